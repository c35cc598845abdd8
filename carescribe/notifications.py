"""Persisted notification inbox."""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime

from carescribe.health_records.database import KeyValueStore
from carescribe.health_records.database.record_store import Record

logger = logging.getLogger(__name__)

NOTIFICATIONS_KEY = "cs_notifications"


@dataclass
class Notification(Record):
    id: str
    title: str
    message: str
    timestamp: str
    read: bool = False


class NotificationInbox:
    """Newest-first list of fired reminders.

    Ids are unique: adding an id already in the inbox is refused, which keeps
    a reminder from landing twice while its trigger window is still open.
    """

    def __init__(self, kv: KeyValueStore):
        self._kv = kv
        self._lock = threading.Lock()
        self._items: list[Notification] = self._load()

    def list(self) -> list[Notification]:
        return list(self._items)

    def has(self, notification_id: str) -> bool:
        return any(n.id == notification_id for n in self._items)

    def add(self, notification_id: str, title: str, message: str, timestamp: datetime | None = None) -> Notification | None:
        """Prepend a notification. Returns None if the id is already present."""
        with self._lock:
            if self.has(notification_id):
                return None
            notification = Notification(
                id=notification_id,
                title=title,
                message=message,
                timestamp=(timestamp or datetime.now()).isoformat(),
            )
            self._items = [notification, *self._items]
            self._persist()
        return notification

    def remove(self, notification_id: str) -> bool:
        with self._lock:
            remaining = [n for n in self._items if n.id != notification_id]
            if len(remaining) == len(self._items):
                return False
            self._items = remaining
            self._persist()
        return True

    def mark_read(self, notification_id: str) -> bool:
        with self._lock:
            if not self.has(notification_id):
                return False
            self._items = [
                replace(n, read=True) if n.id == notification_id else n
                for n in self._items
            ]
            self._persist()
        return True

    def clear_all(self) -> None:
        with self._lock:
            self._items = []
            self._persist()

    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def _load(self):
        try:
            raw = self._kv.get_json(NOTIFICATIONS_KEY)
        except Exception:
            logger.warning("Could not load notifications", exc_info=True)
            return []
        if not isinstance(raw, list):
            return []
        items = []
        for entry in raw:
            try:
                items.append(Notification.from_dict(entry))
            except (TypeError, AttributeError):
                logger.warning("Skipping malformed notification: %r", entry)
        return items

    def _persist(self) -> None:
        try:
            self._kv.set_json(NOTIFICATIONS_KEY, [n.to_dict() for n in self._items])
        except Exception:
            logger.warning("Could not save notifications", exc_info=True)
