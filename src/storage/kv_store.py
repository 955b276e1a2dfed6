"""
SQLite-backed key-value store.

Holds serialized blobs (JSON text) under string keys. The history store uses
a single fixed key; the table is generic so other small settings can share
the same database file.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from typing import Optional

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1


class KeyValueStore:
    """
    Persistent key-value store on top of a single SQLite table.

    Schema:
    - schema_meta: tracks schema version
    - kv_store: key TEXT PRIMARY KEY, value TEXT, updated_at

    The connection is shared across threads (detection loop, web server) and
    guarded by a lock.
    """

    def __init__(self, local_database_path: str):
        """
        Args:
            local_database_path: Path to the SQLite database file, or ":memory:".
        """
        self.local_database_path = local_database_path
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

        db_dir = os.path.dirname(local_database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            self.conn = sqlite3.connect(self.local_database_path, check_same_thread=False)
        return self.conn

    def _get_schema_version(self) -> Optional[int]:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
            )
            if cursor.fetchone() is None:
                return None
            cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error:
            return None

    def initialize(self) -> None:
        """Create the schema if missing. Raises sqlite3.Error on failure."""
        with self._lock:
            version = self._get_schema_version()
            if version == EXPECTED_SCHEMA_VERSION:
                logging.debug(f"KV store schema v{version} present at {self.local_database_path}")
                return

            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_meta (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    schema_version INTEGER NOT NULL,
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)
            cursor.execute(
                "INSERT OR REPLACE INTO schema_meta (id, schema_version) VALUES (1, ?)",
                (EXPECTED_SCHEMA_VERSION,),
            )
            conn.commit()
            logging.info(
                f"KV store initialized at {self.local_database_path} "
                f"(schema v{EXPECTED_SCHEMA_VERSION})"
            )

    def get(self, key: str) -> Optional[str]:
        """Return the stored blob for key, or None if absent."""
        with self._lock:
            cursor = self._get_connection().cursor()
            cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    def close(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
