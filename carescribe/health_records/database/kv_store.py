"""Durable key-value stores backing the record collections."""

import json
from datetime import datetime
from pathlib import Path
from typing import Protocol

from .connection import get_connection, init_database


class KeyValueStore(Protocol):
    """Anything that can load and save a JSON payload by key."""

    def get_json(self, key: str): ...

    def set_json(self, key: str, payload) -> None: ...


class MemoryKeyValueStore:
    """Process-local store. Payloads are serialized so callers never share state."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get_json(self, key: str):
        raw = self._data.get(key)
        return json.loads(raw) if raw else None

    def set_json(self, key: str, payload) -> None:
        self._data[key] = json.dumps(payload, ensure_ascii=False)


class SQLiteKeyValueStore:
    """Store backed by the kv_store table."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = db_path
        init_database(db_path)

    def get_json(self, key: str):
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()
        conn.close()
        return json.loads(row["value"]) if row else None

    def set_json(self, key: str, payload) -> None:
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """, (key, json.dumps(payload, ensure_ascii=False), datetime.now().isoformat()))
        conn.commit()
        conn.close()
