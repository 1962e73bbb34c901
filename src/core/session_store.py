"""
Session Store

Keeps the opaque session token issued by the backend. Written on login,
read on every authenticated request, cleared on logout or auth failure.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from core.ports.database import IStateStore

logger = logging.getLogger(__name__)


class SessionStore:
    """Session token persistence backed by the app_state table."""

    TOKEN_KEY = "session_token"

    def __init__(self, db: IStateStore):
        self._db = db
        self._lock = threading.Lock()
        self._cached: Optional[str] = None
        self._loaded = False

    def get_token(self) -> Optional[str]:
        with self._lock:
            if not self._loaded:
                self._cached = self._db.get_state(self.TOKEN_KEY) or None
                self._loaded = True
            return self._cached

    def has_token(self) -> bool:
        return bool(self.get_token())

    def save_token(self, token: str) -> None:
        if not token:
            raise ValueError("session token must not be empty")
        with self._lock:
            self._db.set_state(self.TOKEN_KEY, token)
            self._cached = token
            self._loaded = True
        logger.debug("Session token stored")

    def clear(self) -> None:
        with self._lock:
            try:
                self._db.delete_state(self.TOKEN_KEY)
            except Exception:
                logger.warning("Failed to delete stored session token", exc_info=True)
            self._cached = None
            self._loaded = True
        logger.debug("Session token cleared")
