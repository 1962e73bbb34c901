# -*- coding: utf-8 -*-
"""
Music Application Facade Module

Provides a unified interface for front ends (CLI, UI) to access service layer
functionality, narrowing the dependency surface.

Design Principles:
- Front ends should only depend on this Facade, not directly on underlying services.
- The Facade only exposes "use-case level methods" actually needed.
- Internal service references are hidden from the outside.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from models.queue import LoopMode, PlayMode
from models.search import SearchType

if TYPE_CHECKING:
    from concurrent.futures import Future
    from enum import Enum
    from app.protocols import (
        IConfigService,
        IEventBus,
        IPlayerService,
        IQueueService,
        ISearchService,
    )
    from models.album import Album
    from models.playlist import Playlist, PlaylistItem
    from models.queue import PlaylistQueueItem, QueueItem
    from models.saved import SavedAlbum, SavedTrack
    from models.search import SearchResults
    from models.service import ServiceInfo
    from models.track import Track
    from models.user import User
    from models.analysis import BpmAnalysis, KeyAnalysis
    from services.audio_analysis_service import AudioAnalysisService
    from services.auth_service import AuthService
    from services.connectivity_service import ConnectivityService
    from services.player_service import PlaybackSnapshot
    from services.playlist_service import PlaylistService
    from services.saved_albums_service import SavedAlbumsService
    from services.saved_tracks_service import SavedTracksService
    from services.streaming_service import StreamingService

logger = logging.getLogger(__name__)


class MusicAppFacade:
    """Music Application Facade

    Use-case facade between front ends and the service layer.
    Front ends should only receive this Facade rather than the AppContainer
    or individual services.

    Usage Example:
        facade = container.facade
        facade.subscribe(EventType.TRACK_STARTED, on_track)

        results = facade.search("daft punk")
        facade.play_track(results.tracks[0])
    """

    def __init__(
        self,
        player: "IPlayerService",
        queue: "IQueueService",
        search: "ISearchService",
        playlist_service: "PlaylistService",
        saved_tracks: "SavedTracksService",
        saved_albums: "SavedAlbumsService",
        auth: "AuthService",
        streaming: "StreamingService",
        connectivity: "ConnectivityService",
        analysis: "AudioAnalysisService",
        config: "IConfigService",
        event_bus: "IEventBus",
    ):
        self._player = player
        self._queue = queue
        self._search = search
        self._playlists = playlist_service
        self._saved_tracks = saved_tracks
        self._saved_albums = saved_albums
        self._auth = auth
        self._streaming = streaming
        self._connectivity = connectivity
        self._analysis = analysis
        self._config = config
        self._event_bus = event_bus

    # =========================================================================
    # Playback Control
    # =========================================================================

    def play_track(self, track: "Track", clear_queue: bool = True) -> bool:
        """Play a track.

        Args:
            track: Track to play.
            clear_queue: Empty both queues first ("play now").

        Returns:
            True if playback started successfully.
        """
        return self._player.play_track(track, clear_queue=clear_queue)

    def play_playlist(
        self,
        playlist: "Playlist",
        play_mode: PlayMode = PlayMode.NORMAL,
        loop_mode: LoopMode = LoopMode.ONCE,
    ) -> bool:
        """Replace the queues with a playlist and start its first track."""
        item = self._build_playlist_item(playlist, play_mode, loop_mode)
        if item is None:
            return False
        return self._player.play_playlist(item, replace_queue=True)

    def queue_playlist(
        self,
        playlist: "Playlist",
        play_mode: PlayMode = PlayMode.NORMAL,
        loop_mode: LoopMode = LoopMode.ONCE,
    ) -> bool:
        """Append a playlist to the playlist queue without interrupting playback."""
        item = self._build_playlist_item(playlist, play_mode, loop_mode)
        if item is None:
            return False
        return self._queue.add_playlist_to_queue(item)

    def _build_playlist_item(self, playlist, play_mode, loop_mode) -> Optional["PlaylistQueueItem"]:
        items = self._playlists.get_items(playlist.id, refresh=True)
        return self._playlists.build_play_request(playlist, items, play_mode, loop_mode)

    def pause(self) -> bool:
        return self._player.pause()

    def resume(self) -> bool:
        return self._player.resume()

    def stop(self) -> None:
        """Stop playback."""
        self._player.stop_playback()

    def toggle_play(self) -> bool:
        """Toggle play/pause."""
        return self._player.toggle_play_pause()

    def next_track(self) -> bool:
        return self._player.play_next_track()

    def previous_track(self) -> bool:
        return self._player.play_previous_track()

    def seek(self, position_ms: int) -> bool:
        """Seek to a specified position.

        Raises:
            UnsupportedOperationError: The current stream cannot be seeked.
        """
        return self._player.seek_to(position_ms)

    def set_volume(self, volume: float) -> None:
        """Set volume (0.0 - 1.0)."""
        self._player.set_volume(volume)

    def get_volume(self) -> float:
        return self._player.get_volume()

    @property
    def playback_state(self) -> "PlaybackSnapshot":
        return self._player.state

    @property
    def current_track(self) -> Optional["Track"]:
        return self._player.current_track

    @property
    def is_playing(self) -> bool:
        return self._player.is_playing

    def enter_background(self) -> None:
        """The front end is hidden; stop per-tick position updates."""
        self._player.pause_ui_updates()

    def enter_foreground(self) -> None:
        self._player.resume_ui_updates()

    # =========================================================================
    # Queue
    # =========================================================================

    @property
    def queue(self) -> List["QueueItem"]:
        return self._queue.queue

    @property
    def playlist_queue(self) -> List["PlaylistQueueItem"]:
        return self._queue.playlist_queue

    def refresh_queue(self) -> bool:
        return self._queue.load_queue()

    def add_to_queue(self, track: "Track") -> bool:
        return self._queue.add_to_queue(track)

    def remove_from_queue(self, item_id: str) -> bool:
        return self._queue.remove_from_queue(item_id)

    def reorder_queue(self, item_id: str, new_position: int) -> bool:
        return self._queue.reorder_queue(item_id, new_position)

    def clear_queue(self) -> bool:
        return self._queue.clear_queue()

    def remove_playlist_from_queue(self, item_id: str) -> bool:
        return self._queue.remove_playlist_from_queue(item_id)

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        query: str,
        search_type: SearchType = SearchType.TRACKS,
        page: int = 1,
    ) -> Optional["SearchResults"]:
        """Search the selected streaming service(s).

        Returns:
            Results (empty on failure), or None for a blank query.
        """
        return self._search.search(query, search_type, page=page)

    def search_library(self, query: str, search_type: SearchType = SearchType.TRACKS) -> Optional["SearchResults"]:
        return self._search.search(query, search_type, library=True)

    def next_page(self) -> Optional["SearchResults"]:
        return self._search.next_page()

    def previous_page(self) -> Optional["SearchResults"]:
        return self._search.previous_page()

    def go_to_page(self, page: int) -> Optional["SearchResults"]:
        return self._search.go_to_page(page)

    def set_page_size(self, page_size: int) -> Optional["SearchResults"]:
        return self._search.set_page_size(page_size)

    def select_service(self, service: str) -> None:
        self._search.select_service(service)

    def toggle_multi_service(self) -> bool:
        return self._search.toggle_multi_service()

    def toggle_service_selection(self, service: str) -> None:
        self._search.toggle_service_selection(service)

    def clear_service_selection(self) -> None:
        self._search.clear_service_selection()

    @property
    def use_multi_service(self) -> bool:
        return self._search.use_multi_service

    @property
    def search_results(self) -> Optional["SearchResults"]:
        return self._search.results

    def update_track_bpm(self, track: "Track", bpm: float) -> None:
        """Propagate a BPM annotation to everything that displays the track."""
        self._analysis.apply_bpm(track.id, track.source, bpm)

    # =========================================================================
    # Audio Analysis
    # =========================================================================

    def analyze_bpm(self, track: "Track", spectrogram: bool = True) -> Optional["BpmAnalysis"]:
        """Detect a track's tempo on the backend and show it everywhere.

        Blocks until the backend finishes; see analyze_bpm_in_background().
        """
        return self._analysis.analyze_bpm(track, spectrogram=spectrogram)

    def analyze_bpm_in_background(self, track: "Track", spectrogram: bool = True) -> "Future":
        return self._analysis.analyze_bpm_in_background(track, spectrogram=spectrogram)

    def analyze_key(self, track: "Track") -> Optional["KeyAnalysis"]:
        return self._analysis.analyze_key(track)

    def load_stored_bpm(self, track: "Track") -> Optional[float]:
        return self._analysis.load_stored_bpm(track)

    def is_analyzing(self, track: "Track") -> bool:
        return self._analysis.is_analyzing(track)

    # =========================================================================
    # Saved Tracks / Albums
    # =========================================================================

    @property
    def saved_tracks(self) -> List["SavedTrack"]:
        return self._saved_tracks.saved_tracks

    @property
    def saved_albums(self) -> List["SavedAlbum"]:
        return self._saved_albums.saved_albums

    def load_saved_tracks(self, page: int = 1) -> bool:
        return self._saved_tracks.load(page)

    def load_saved_albums(self, page: int = 1) -> bool:
        return self._saved_albums.load(page)

    def is_track_saved(self, track: "Track") -> bool:
        return self._saved_tracks.is_track_saved(track.id, track.source)

    def toggle_saved_track(self, track: "Track") -> bool:
        return self._saved_tracks.toggle_saved(track)

    def is_album_saved(self, album: "Album") -> bool:
        return self._saved_albums.is_album_saved(*album.key)

    def toggle_saved_album(self, album: "Album") -> bool:
        return self._saved_albums.toggle_saved(album)

    def get_album_tracks(self, album_id: str, source: str) -> List["Track"]:
        return self._saved_albums.get_album_tracks(album_id, source)

    # =========================================================================
    # Playlists
    # =========================================================================

    @property
    def playlists(self) -> List["Playlist"]:
        return self._playlists.playlists

    def load_playlists(self, page: int = 1) -> bool:
        return self._playlists.load(page)

    def create_playlist(self, name: str, description: Optional[str] = None) -> Optional["Playlist"]:
        return self._playlists.create(name, description)

    def delete_playlist(self, playlist_id: str) -> bool:
        return self._playlists.delete(playlist_id)

    def get_playlist_items(self, playlist_id: str) -> List["PlaylistItem"]:
        return self._playlists.get_items(playlist_id)

    def add_track_to_playlist(self, playlist_id: str, track: "Track") -> bool:
        return self._playlists.add_track(playlist_id, track)

    def remove_playlist_item(self, playlist_id: str, item_id: str) -> bool:
        return self._playlists.remove_item(playlist_id, item_id)

    # =========================================================================
    # Account and Services
    # =========================================================================

    def login(self, email: str, password: str) -> bool:
        return self._auth.login(email, password)

    def register(self, email: str, username: str, password: str) -> bool:
        return self._auth.register(email, username, password)

    def logout(self) -> None:
        self._auth.logout()

    def check_auth_status(self) -> bool:
        return self._auth.check_auth_status()

    @property
    def current_user(self) -> Optional["User"]:
        return self._auth.current_user

    @property
    def is_authenticated(self) -> bool:
        return self._auth.is_authenticated

    def load_streaming_services(self) -> List["ServiceInfo"]:
        """Refresh service list for search and for account connections."""
        self._streaming.refresh()
        return self._search.load_available_services()

    def connect_qobuz(self, username: str, password: str) -> bool:
        return self._streaming.connect_qobuz(username, password)

    def disconnect_service(self, service_name: str) -> bool:
        return self._streaming.disconnect(service_name)

    def is_service_connected(self, service_name: str) -> bool:
        return self._streaming.is_connected(service_name)

    @property
    def is_backend_reachable(self) -> bool:
        return self._connectivity.is_backend_reachable

    def check_backend(self) -> bool:
        return self._connectivity.check_now()

    # =========================================================================
    # Configuration
    # =========================================================================

    def get_config(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set_config(self, key: str, value: Any) -> None:
        self._config.set(key, value)

    def save_config(self) -> bool:
        return self._config.save()

    # =========================================================================
    # Event Subscription
    # =========================================================================

    def subscribe(
        self,
        event_type: "Enum",
        callback: Callable[[Any], None]
    ) -> str:
        """Subscribe to an event.

        Returns:
            Subscription ID.
        """
        return self._event_bus.subscribe(event_type, callback)

    def unsubscribe(self, subscription_id: str) -> bool:
        return self._event_bus.unsubscribe(subscription_id)
