"""
Playlist Service Module

Manages the user's backend playlists and prepares them for playback.
"""

from dataclasses import replace
from typing import Dict, List, Optional
import logging
import random
import threading
import uuid

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.playlist import Playlist, PlaylistItem
from models.queue import LoopMode, PlayMode, PlaylistQueueItem
from models.track import Track
from services.api.playlist_api import PlaylistApi

logger = logging.getLogger(__name__)


class PlaylistService:
    """
    Playlist Service

    Provides create, read, update, delete functions for playlists and
    their items.

    Usage example:
        service = PlaylistService(PlaylistApi(client))

        # Create playlist
        playlist = service.create("Road trip")

        # Add track
        service.add_track(playlist.id, track)

        # Turn it into a playlist-queue entry
        items = service.get_items(playlist.id)
        request = service.build_play_request(playlist, items, PlayMode.SHUFFLE)
    """

    def __init__(self, playlist_api: PlaylistApi, event_bus: Optional[EventBus] = None,
                 rng: Optional[random.Random] = None):
        self._api = playlist_api
        self._event_bus = event_bus or EventBus()
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

        self._playlists: List[Playlist] = []
        self._items: Dict[str, List[PlaylistItem]] = {}
        self._total = 0
        self._error: Optional[str] = None

    @property
    def playlists(self) -> List[Playlist]:
        with self._lock:
            return list(self._playlists)

    @property
    def total(self) -> int:
        return self._total

    @property
    def error(self) -> Optional[str]:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def _fail(self, action: str, error: MusicClientError) -> None:
        self._error = describe_error(error)
        logger.warning("Failed to %s: %s", action, error)
        self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
            "source": "PlaylistService",
            "error": self._error,
        })

    def _publish(self) -> None:
        self._event_bus.publish_sync(EventType.PLAYLISTS_CHANGED, self.playlists)

    # ===== Playlists =====

    def load(self, page: int = 1, per_page: int = 20, search: Optional[str] = None) -> bool:
        """
        Load a page of playlists

        Page 1 replaces the cached list, later pages append to it.
        """
        try:
            result = self._api.list(page=page, per_page=per_page, search=search)
        except MusicClientError as e:
            self._fail("load playlists", e)
            return False

        with self._lock:
            if page <= 1:
                self._playlists = list(result.playlists)
            else:
                self._playlists.extend(result.playlists)
            self._total = result.total
            self._error = None
        self._publish()
        return True

    def get(self, playlist_id: str) -> Optional[Playlist]:
        try:
            return self._api.get(playlist_id)
        except MusicClientError as e:
            self._fail("load playlist", e)
            return None

    def create(self, name: str, description: Optional[str] = None, is_public: bool = False) -> Optional[Playlist]:
        """
        Create playlist

        Returns:
            Playlist: Created playlist, or None on failure
        """
        try:
            playlist = self._api.create(name, description, is_public)
        except MusicClientError as e:
            self._fail("create playlist", e)
            return None

        logger.info("Created playlist: %s", playlist.name)
        with self._lock:
            self._playlists.insert(0, playlist)
            self._total += 1
        self._publish()
        return playlist

    def update(self, playlist_id: str, name: Optional[str] = None, description: Optional[str] = None,
               is_public: Optional[bool] = None) -> Optional[Playlist]:
        try:
            updated = self._api.update(playlist_id, name=name, description=description, is_public=is_public)
        except MusicClientError as e:
            self._fail("update playlist", e)
            return None

        with self._lock:
            self._playlists = [updated if p.id == playlist_id else p for p in self._playlists]
        self._publish()
        return updated

    def delete(self, playlist_id: str) -> bool:
        try:
            self._api.delete(playlist_id)
        except MusicClientError as e:
            self._fail("delete playlist", e)
            return False

        with self._lock:
            before = len(self._playlists)
            self._playlists = [p for p in self._playlists if p.id != playlist_id]
            self._total = max(0, self._total - (before - len(self._playlists)))
            self._items.pop(playlist_id, None)
        self._publish()
        return True

    # ===== Items =====

    def get_items(self, playlist_id: str, refresh: bool = False) -> List[PlaylistItem]:
        """Items in position order; cached per playlist until a mutation"""
        with self._lock:
            if not refresh and playlist_id in self._items:
                return list(self._items[playlist_id])
        try:
            items = self._api.get_items(playlist_id)
        except MusicClientError as e:
            self._fail("load playlist items", e)
            return []
        with self._lock:
            self._items[playlist_id] = items
        return list(items)

    def _after_item_change(self, playlist_id: str, delta: int = 0) -> None:
        with self._lock:
            self._items.pop(playlist_id, None)
            if delta:
                self._playlists = [
                    _with_item_count(p, p.item_count + delta) if p.id == playlist_id else p
                    for p in self._playlists
                ]
        self._publish()

    def add_track(self, playlist_id: str, track: Track, position: Optional[int] = None) -> bool:
        try:
            self._api.add_item(playlist_id, track, position)
        except MusicClientError as e:
            self._fail("add track to playlist", e)
            return False
        self._after_item_change(playlist_id, delta=1)
        return True

    def add_playlist(self, playlist_id: str, nested: Playlist, position: Optional[int] = None) -> bool:
        """Nest another playlist inside this one"""
        if nested.id == playlist_id:
            self._error = "A playlist cannot contain itself"
            return False
        try:
            self._api.add_playlist_item(playlist_id, nested, position)
        except MusicClientError as e:
            self._fail("add playlist to playlist", e)
            return False
        self._after_item_change(playlist_id, delta=1)
        return True

    def remove_item(self, playlist_id: str, item_id: str) -> bool:
        try:
            self._api.remove_item(playlist_id, item_id)
        except MusicClientError as e:
            self._fail("remove playlist item", e)
            return False
        self._after_item_change(playlist_id, delta=-1)
        return True

    def reorder_item(self, playlist_id: str, item_id: str, new_position: int) -> bool:
        try:
            self._api.reorder_item(playlist_id, item_id, new_position)
        except MusicClientError as e:
            self._fail("reorder playlist item", e)
            return False
        self._after_item_change(playlist_id)
        return True

    # ===== Playback =====

    def build_play_request(
        self,
        playlist: Playlist,
        items: List[PlaylistItem],
        play_mode: PlayMode = PlayMode.NORMAL,
        loop_mode: LoopMode = LoopMode.ONCE,
    ) -> Optional[PlaylistQueueItem]:
        """
        Build a playlist-queue entry for playing a playlist

        Only track entries are played; the order is shuffled once for
        SHUFFLE. The first track's display fields are copied onto the
        entry so it can start without another fetch.

        Returns:
            The entry, or None when the playlist has no playable tracks
        """
        tracks = [item for item in items if item.is_track]
        if not tracks:
            self._error = "This playlist has no tracks to play"
            logger.info("Playlist %s has no playable tracks", playlist.name)
            return None

        if play_mode == PlayMode.SHUFFLE:
            tracks = list(tracks)
            self._rng.shuffle(tracks)

        first = tracks[0].to_track()
        entry = PlaylistQueueItem(
            id=str(uuid.uuid4()),
            playlist_id=playlist.id,
            playlist_name=playlist.name,
            playlist_description=playlist.description,
            track_order=tuple(item.item_id for item in tracks),
            play_mode=play_mode,
            loop_mode=loop_mode,
        )
        return entry.with_current_track(first)


def _with_item_count(playlist: Playlist, count: int) -> Playlist:
    return replace(playlist, item_count=max(0, count))
