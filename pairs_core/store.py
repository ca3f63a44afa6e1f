from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class PersistenceStore(Protocol):
    """Key/value string store. Round-tripping a value must return it unchanged."""

    def save(self, key: str, value: str) -> None: ...

    def load(self, key: str) -> Optional[str]: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def save(self, key: str, value: str) -> None:
        self.data[key] = value

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def clear(self, key: str) -> None:
        self.data.pop(key, None)


def _ensure_db_dir(db_path: str) -> None:
    """Ensures the directory for the SQLite DB exists before connecting."""
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _resolve_db_path(db_path: str) -> str:
    """Resolves a potentially unwritable DB path to a writable one, creating the directory if needed."""
    try:
        _ensure_db_dir(db_path)
        return db_path
    except PermissionError:
        pass
    candidates = [
        os.getenv('PAIRS_DB_DIR'),
        os.path.join(os.getcwd(), 'data'),
        '/tmp',
    ]
    base = os.path.basename(db_path) or 'pairs.db'
    for d in candidates:
        if not d:
            continue
        try:
            os.makedirs(d, exist_ok=True)
        except OSError:
            continue
        resolved = os.path.join(d, base)
        logger.warning("cannot create directory for %s, saving to %s instead", db_path, resolved)
        return resolved
    logger.warning("no writable directory for %s, falling back to %s", db_path, base)
    return base


def _ensure_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS saves (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            saved_at TEXT NOT NULL
        )
        """
    )
    conn.commit()


class SqliteStore:
    """Settings-style store in a single SQLite table. Each save replaces the whole value in one transaction."""

    def __init__(self, db_path: str) -> None:
        self.db_path = _resolve_db_path(db_path)

    def _connect(self) -> sqlite3.Connection:
        _ensure_db_dir(self.db_path)
        conn = sqlite3.connect(self.db_path)
        _ensure_db(conn)
        return conn

    def save(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO saves (key, value, saved_at) VALUES (?, ?, ?)",
                    (key, value, datetime.now(timezone.utc).isoformat(timespec='seconds')),
                )
        finally:
            conn.close()

    def load(self, key: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM saves WHERE key = ?", (key,)).fetchone()
            if not row:
                return None
            return str(row[0])
        finally:
            conn.close()

    def clear(self, key: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM saves WHERE key = ?", (key,))
        finally:
            conn.close()
