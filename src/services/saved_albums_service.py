"""Saved Albums Service"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Set, Tuple

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.album import Album
from models.saved import SavedAlbum
from models.track import Track
from services.api.saved_albums_api import SavedAlbumsApi

logger = logging.getLogger(__name__)


class SavedAlbumsService:
    """Saved albums with a (album_id, source) lookup set"""

    def __init__(self, api: SavedAlbumsApi, event_bus: Optional[EventBus] = None, page_size: int = 50):
        self._api = api
        self._event_bus = event_bus or EventBus()
        self._page_size = page_size
        self._lock = threading.RLock()

        self._albums: List[SavedAlbum] = []
        self._saved_keys: Set[Tuple[str, str]] = set()
        self._is_loading = False
        self._error: Optional[str] = None

    @property
    def saved_albums(self) -> List[SavedAlbum]:
        with self._lock:
            return list(self._albums)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def is_album_saved(self, album_id: str, source: str) -> bool:
        with self._lock:
            return (album_id, source) in self._saved_keys

    def _commit(self, albums: List[SavedAlbum]) -> None:
        with self._lock:
            self._albums = albums
            self._saved_keys = {a.key for a in albums}
            self._error = None
        self._event_bus.publish_sync(EventType.SAVED_ALBUMS_CHANGED, self.saved_albums)

    def _fail(self, action: str, error: MusicClientError) -> None:
        self._error = describe_error(error)
        logger.warning("Failed to %s: %s", action, error)
        self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
            "source": "SavedAlbumsService",
            "error": self._error,
        })

    def load(self, page: int = 1, limit: Optional[int] = None) -> bool:
        self._is_loading = True
        try:
            fetched = self._api.list(page=page, limit=limit or self._page_size)
        except MusicClientError as e:
            self._fail("load saved albums", e)
            return False
        finally:
            self._is_loading = False

        with self._lock:
            albums = fetched if page <= 1 else self._albums + fetched
        self._commit(albums)
        return True

    def save_album(self, album: Album) -> bool:
        try:
            saved = self._api.save(album)
        except MusicClientError as e:
            self._fail("save album", e)
            return False
        logger.info("Saved album: %s - %s", album.artist, album.title)
        with self._lock:
            albums = [saved] + [a for a in self._albums if a.key != saved.key]
        self._commit(albums)
        return True

    def remove_saved_album(self, saved_id: str) -> bool:
        try:
            self._api.remove(saved_id)
        except MusicClientError as e:
            self._fail("remove saved album", e)
            return False
        with self._lock:
            albums = [a for a in self._albums if a.id != saved_id]
        self._commit(albums)
        return True

    def toggle_saved(self, album: Album) -> bool:
        with self._lock:
            existing = next((a for a in self._albums if a.key == album.key), None)
        if existing is not None:
            return self.remove_saved_album(existing.id)
        return self.save_album(album)

    def check_saved_status(self, album_id: str, source: str) -> bool:
        try:
            return self._api.is_saved(album_id, source)
        except MusicClientError as e:
            logger.debug("Saved-status check failed for %s: %s", album_id, e)
            return False

    def get_album_tracks(self, album_id: str, source: str) -> List[Track]:
        """Tracks of an album; empty (with error retained) on failure"""
        try:
            return self._api.get_album_tracks(album_id, source)
        except MusicClientError as e:
            self._fail("load album tracks", e)
            return []
