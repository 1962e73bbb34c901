# -*- coding: utf-8 -*-
"""
Database Port Interface

The client only persists small key/value blobs (session token, playlist
queue snapshot), so the port is a state store rather than a general SQL API.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IStateStore(Protocol):
    """Key/value state persistence

    Current implementation: DatabaseManager (SQLite app_state table)
    """

    def get_state(self, key: str) -> Optional[str]:
        """Fetch a stored value

        Returns:
            The stored string or None if absent
        """
        ...

    def set_state(self, key: str, value: str) -> None:
        """Insert or replace a value"""
        ...

    def delete_state(self, key: str) -> None:
        """Remove a value (no-op when absent)"""
        ...
