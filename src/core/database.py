"""
Database Management Module

SQLite storage for client-side state: the session token and the persisted
playlist-queue live in the app_state key-value table.
"""

import sqlite3
import time
from typing import Optional, List, Dict, Any
from pathlib import Path
import threading
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Database Manager - Singleton Pattern

    Provides thread-safe SQLite operation encapsulation. Every thread gets its
    own connection; writes are serialized by a re-entrant lock.

    Example:
        db = DatabaseManager("client.db")
        db.set_state("session_token", token)
        token = db.get_state("session_token")
    """

    _instance: Optional['DatabaseManager'] = None
    _lock = threading.Lock()

    WRITE_KEYWORDS = ("INSERT", "UPDATE", "DELETE", "REPLACE", "CREATE", "DROP", "ALTER")

    def __new__(cls, db_path: str = None) -> 'DatabaseManager':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    @staticmethod
    def _get_default_db_path() -> str:
        """Get the default database path in the user data directory"""
        import sys
        import os

        if sys.platform == "win32":
            base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        elif sys.platform == "darwin":
            base = Path.home() / "Library" / "Application Support"
        else:
            base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))

        db_dir = base / "music-aggregator-client"
        db_dir.mkdir(parents=True, exist_ok=True)
        return str(db_dir / "client_state.db")

    def __init__(self, db_path: str = None):
        if self._initialized:
            return

        self._db_path = db_path or self._get_default_db_path()
        self._local = threading.local()
        self._write_lock = threading.RLock()
        self._initialized = True
        self._init_schema()

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def _conn(self) -> sqlite3.Connection:
        """Get thread-local connection"""
        if getattr(self._local, 'connection', None) is None:
            conn = sqlite3.connect(self._db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            with self._write_lock:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
            self._local.connection = conn
            self._local.in_transaction = False
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Transaction context manager

        Writes inside the context are committed or rolled back together.
        """
        with self._write_lock:
            conn = self._conn
            self._local.in_transaction = True
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                self._local.in_transaction = False

    @classmethod
    def _is_write_sql(cls, sql: str) -> bool:
        words = sql.lstrip().split(None, 1)
        return bool(words) and words[0].upper() in cls.WRITE_KEYWORDS

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL statement

        Writes outside an explicit transaction() are committed immediately.
        A locked database is retried with a short linear backoff.
        """
        max_retries = 5
        retry_delay = 0.1

        is_write = self._is_write_sql(sql)
        in_transaction = getattr(self._local, 'in_transaction', False)

        for i in range(max_retries):
            try:
                if is_write:
                    with self._write_lock:
                        cursor = self._conn.execute(sql, params)
                        if not in_transaction:
                            self._conn.commit()
                else:
                    cursor = self._conn.execute(sql, params)
                return cursor
            except sqlite3.OperationalError as e:
                if "locked" in str(e).lower() and i < max_retries - 1:
                    time.sleep(retry_delay * (i + 1))
                    continue
                raise

    def fetch_one(self, sql: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Fetch single record"""
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        return dict(row) if row else None

    def fetch_all(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Fetch all records"""
        cursor = self.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    # ===== app_state helpers =====

    def get_state(self, key: str) -> Optional[str]:
        row = self.fetch_one("SELECT value FROM app_state WHERE key = ?", (key,))
        return row["value"] if row else None

    def set_state(self, key: str, value: str) -> None:
        self.execute(
            "INSERT OR REPLACE INTO app_state(key, value, updated_at) VALUES(?, ?, CURRENT_TIMESTAMP)",
            (key, value),
        )

    def delete_state(self, key: str) -> int:
        cursor = self.execute("DELETE FROM app_state WHERE key = ?", (key,))
        return cursor.rowcount

    def _init_schema(self) -> None:
        """Initialize database Schema"""
        from core.schema import get_all_schema_statements

        for statement in get_all_schema_statements():
            self.execute(statement.strip())
        self._conn.commit()

    def close(self) -> None:
        """Close current thread's connection"""
        if getattr(self._local, 'connection', None) is not None:
            self._local.connection.close()
            self._local.connection = None

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (for testing only)"""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.close()
                cls._instance = None
