"""Saved Tracks Service

Keeps the user's saved tracks with a (track_id, source) lookup set.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import List, Optional, Set, Tuple

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.saved import SavedTrack
from models.track import Track
from services.api.saved_tracks_api import SavedTracksApi

logger = logging.getLogger(__name__)


class SavedTracksService:
    """Saved Tracks Service

    The list and the lookup set only change after the backend confirms.
    """

    def __init__(self, api: SavedTracksApi, event_bus: Optional[EventBus] = None, page_size: int = 50):
        self._api = api
        self._event_bus = event_bus or EventBus()
        self._page_size = page_size
        self._lock = threading.RLock()

        self._tracks: List[SavedTrack] = []
        self._saved_keys: Set[Tuple[str, str]] = set()
        self._is_loading = False
        self._error: Optional[str] = None

    @property
    def saved_tracks(self) -> List[SavedTrack]:
        with self._lock:
            return list(self._tracks)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def is_track_saved(self, track_id: str, source: str) -> bool:
        """Check if track is saved"""
        with self._lock:
            return (track_id, source) in self._saved_keys

    def _commit(self, tracks: List[SavedTrack]) -> None:
        with self._lock:
            self._tracks = tracks
            self._saved_keys = {t.key for t in tracks}
            self._error = None
        self._event_bus.publish_sync(EventType.SAVED_TRACKS_CHANGED, self.saved_tracks)

    def _fail(self, action: str, error: MusicClientError) -> None:
        self._error = describe_error(error)
        logger.warning("Failed to %s: %s", action, error)
        self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
            "source": "SavedTracksService",
            "error": self._error,
        })

    def load(self, page: int = 1, limit: Optional[int] = None) -> bool:
        """Load a page; page 1 replaces the list, later pages append."""
        self._is_loading = True
        try:
            fetched = self._api.list(page=page, limit=limit or self._page_size)
        except MusicClientError as e:
            self._fail("load saved tracks", e)
            return False
        finally:
            self._is_loading = False

        with self._lock:
            tracks = fetched if page <= 1 else self._tracks + fetched
        self._commit(tracks)
        return True

    def save_track(self, track: Track) -> bool:
        try:
            saved = self._api.save(track)
        except MusicClientError as e:
            self._fail("save track", e)
            return False
        logger.info("Saved track: %s", track.display_name)
        with self._lock:
            tracks = [saved] + [t for t in self._tracks if t.key != saved.key]
        self._commit(tracks)
        return True

    def remove_saved_track(self, saved_id: str) -> bool:
        try:
            self._api.remove(saved_id)
        except MusicClientError as e:
            self._fail("remove saved track", e)
            return False
        with self._lock:
            tracks = [t for t in self._tracks if t.id != saved_id]
        self._commit(tracks)
        return True

    def toggle_saved(self, track: Track) -> bool:
        """Save the track, or remove it if it is already saved"""
        with self._lock:
            existing = next((t for t in self._tracks if t.key == track.key), None)
        if existing is not None:
            return self.remove_saved_track(existing.id)
        return self.save_track(track)

    def update_track_bpm(self, track_id: str, source: str, bpm: float) -> bool:
        """Store an analyzed BPM on the matching saved track (local only)"""
        with self._lock:
            if not any(t.key == (track_id, source) for t in self._tracks):
                return False
            tracks = [
                replace(t, bpm=bpm) if t.key == (track_id, source) else t
                for t in self._tracks
            ]
        self._commit(tracks)
        return True

    def check_saved_status(self, track_id: str, source: str) -> bool:
        """Ask the backend; failures count as not saved and are only logged."""
        try:
            return self._api.is_saved(track_id, source)
        except MusicClientError as e:
            logger.debug("Saved-status check failed for %s: %s", track_id, e)
            return False
