"""Base store for a JSON-persisted record collection."""

import logging
import re
import uuid
from dataclasses import asdict, fields, replace

from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


class Record:
    """Mixin for record dataclasses: dict conversion tolerant of camelCase keys."""

    @classmethod
    def normalize(cls, data: dict) -> dict:
        """Map incoming keys onto field names, dropping anything unknown."""
        names = {f.name for f in fields(cls)}
        normalized = {}
        for key, value in data.items():
            name = snake_case(key)
            if name in names:
                normalized[name] = value
        return normalized

    @classmethod
    def from_dict(cls, data: dict):
        return cls(**cls.normalize(data))

    def to_dict(self) -> dict:
        return asdict(self)


class RecordStore:
    """In-memory collection mirrored to a key-value store.

    The in-memory collection is the source of truth for the session. Every
    mutation replaces the whole collection and then saves it; save failures
    are logged and swallowed.
    """

    KEY = ""
    RECORD_TYPE: type = Record
    # Fields that can be updated
    FIELDS: list[str] = []

    def __init__(self, kv: KeyValueStore):
        self._kv = kv
        self._records = tuple(self._load())

    def list(self):
        """Snapshot of all records."""
        return list(self._records)

    @property
    def records(self) -> tuple:
        """Current collection. Replaced, never mutated, on every change."""
        return self._records

    def get(self, record_id: str):
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def create(self, record):
        """Add a record, assigning an id when it has none."""
        record.id = record.id or str(uuid.uuid4())
        self._records = (*self._records, record)
        self._persist()
        return record

    def update(self, record_id: str, updates: dict):
        """Apply a partial update. Returns the new record, or None if missing."""
        current = self.get(record_id)
        if current is None:
            return None

        valid_updates = {
            field: value
            for field, value in self.RECORD_TYPE.normalize(updates).items()
            if field in self.FIELDS
        }
        if not valid_updates:
            return current

        updated = replace(current, **valid_updates)
        self._records = tuple(updated if r.id == record_id else r for r in self._records)
        self._persist()
        return updated

    def delete(self, record_id: str) -> bool:
        remaining = tuple(r for r in self._records if r.id != record_id)
        if len(remaining) == len(self._records):
            return False
        self._records = remaining
        self._persist()
        return True

    # Private helpers

    def _replace_all(self, records) -> None:
        self._records = tuple(records)
        self._persist()

    def _load(self):
        try:
            raw = self._kv.get_json(self.KEY)
        except Exception:
            logger.warning("Could not load %s, starting empty", self.KEY, exc_info=True)
            return []
        if not isinstance(raw, list):
            return []

        records = []
        for item in raw:
            try:
                records.append(self.RECORD_TYPE.from_dict(item))
            except (TypeError, AttributeError):
                logger.warning("Skipping malformed %s entry: %r", self.KEY, item)
        return records

    def _persist(self) -> None:
        try:
            self._kv.set_json(self.KEY, [r.to_dict() for r in self._records])
        except Exception:
            logger.warning("Could not save %s", self.KEY, exc_info=True)
