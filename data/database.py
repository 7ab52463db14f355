"""
Database Module for the Beefboard Client

This module handles the local SQLite database that keeps client state across
process restarts. It exposes a small key/value interface used by the
credential store and the posts cache.
"""

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from config import settings
from utils.exceptions import StorageConnectionError, StorageQueryError
from utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueDatabase:
    """SQLite-backed key/value store for persisted client state."""

    def __init__(self, path: Union[str, Path, None] = None, table: Optional[str] = None):
        """
        Initialize the database.

        Args:
            path: Database file path, defaults to settings.STORAGE_PATH.
                ":memory:" keeps a private in-memory database.
            table: Table name, defaults to settings.STORAGE_TABLE.
        """
        self.path = str(path if path is not None else settings.STORAGE_PATH)
        self.table = table or settings.STORAGE_TABLE
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Open the database connection and make sure the table exists.

        Returns:
            sqlite3.Connection: The open connection.

        Raises:
            StorageConnectionError: If the database cannot be opened.
        """
        if self.conn is not None:
            return self.conn

        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path, check_same_thread=False)
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {self.table} ("
                "key TEXT PRIMARY KEY, value TEXT NOT NULL, updated_at TEXT NOT NULL)"
            )
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to open local database {self.path}: {e}")
            raise StorageConnectionError(f"Cannot open {self.path}: {e}") from e

        self.conn = conn
        logger.debug(f"Opened local database {self.path}")
        return conn

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            try:
                self.conn.close()
            except sqlite3.Error as e:
                logger.error(f"Error closing local database: {e}")
            self.conn = None
            logger.debug("Local database closed")

    def execute_query(self, query: str, params: tuple = ()) -> List[Dict]:
        """
        Execute a SQL statement and return any rows.

        Args:
            query: The SQL statement to execute.
            params: Statement parameters.

        Returns:
            List[Dict]: Result rows as dictionaries (empty for writes).

        Raises:
            StorageQueryError: If the statement fails.
        """
        conn = self.connect()
        try:
            with self._lock:
                cursor = conn.execute(query, params)
                if cursor.description:
                    columns = [column[0] for column in cursor.description]
                    return [dict(zip(columns, row)) for row in cursor.fetchall()]
                conn.commit()
                return []
        except sqlite3.Error as e:
            logger.error(f"Error executing query on {self.table}: {e}")
            try:
                conn.rollback()
            except sqlite3.Error:
                pass
            raise StorageQueryError(str(e)) from e

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""
        rows = self.execute_query(f"SELECT value FROM {self.table} WHERE key = ?", (key,))
        return rows[0]["value"] if rows else None

    def set(self, key: str, value: Optional[str]) -> None:
        """Store value under key; None deletes the key."""
        if value is None:
            self.delete(key)
            return
        self.execute_query(
            f"INSERT INTO {self.table} (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
            (key, value, datetime.now(timezone.utc).isoformat()),
        )

    def delete(self, key: str) -> None:
        """Remove key if present."""
        self.execute_query(f"DELETE FROM {self.table} WHERE key = ?", (key,))

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
