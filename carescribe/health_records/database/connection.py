"""Database connection manager for SQLite."""

import sqlite3
from pathlib import Path

from carescribe import config

from .schema import SCHEMA


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection with row factory enabled."""
    conn = sqlite3.connect(db_path or config.DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_database(db_path: Path | str | None = None) -> None:
    """Initialize the database with schema."""
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
