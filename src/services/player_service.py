"""
Playback Service Module

Owns the current track and transport state, resolves stream URLs through
the backend and decides what plays next when a track ends.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum
import logging
import threading

from core.audio_engine import PlaybackEndInfo
from core.errors import (
    MusicClientError,
    NetworkTimeoutError,
    NotFoundError,
    UnsupportedOperationError,
    describe_error,
)
from core.event_bus import EventBus, EventType
from core.ports.audio import IAudioEngine
from core.ports.gateway import IApiGateway
from core.scheduling import Cancellable, PeriodicTask, Scheduler, timer_scheduler
from models.queue import PlaylistQueueItem
from models.service import AudioOutputInfo
from models.track import Track, format_source
from services.api.music_api import MusicApi
from services.api.playlist_api import PlaylistApi
from services.audio_info_probe import AudioInfoProbe
from services.queue_service import QueueService

logger = logging.getLogger(__name__)

# Sources the client refuses to stream
UNSUPPORTED_PLAYBACK_SOURCES = frozenset({"spotify"})

# A track counts as finished when the position is this close to the end
COMPLETION_TOLERANCE_MS = 1000


class PlaybackStatus(Enum):
    """Transport state"""
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Playback state"""
    status: PlaybackStatus = PlaybackStatus.IDLE
    current_track: Optional[Track] = None
    position_ms: int = 0
    duration_ms: int = 0
    is_playing: bool = False
    volume: float = 1.0
    is_playing_from_playlist_queue: bool = False
    audio_info: AudioOutputInfo = AudioOutputInfo()
    error: Optional[str] = None


class PlayerService:
    """
    Playback Service

    The engine pushes position, duration and playing-state changes from its
    own threads in no particular order; each callback only updates its own
    field. Track completion is detected both from the engine's end event and
    from a position heuristic confirmed after a short debounce.

    Example:
        player = PlayerService(engine, MusicApi(client), queue, PlaylistApi(client), client)

        player.play_track(track)
        player.toggle_play_pause()
        player.play_next_track()
    """

    def __init__(
        self,
        audio_engine: IAudioEngine,
        music_api: MusicApi,
        queue_service: QueueService,
        playlist_api: PlaylistApi,
        gateway: IApiGateway,
        event_bus: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
        audio_info_interval: float = 3.0,
        background_poll_interval: float = 0.5,
        completion_debounce: float = 0.5,
        default_volume: float = 0.8,
    ):
        self._engine = audio_engine
        self._music_api = music_api
        self._queue = queue_service
        self._playlist_api = playlist_api
        self._gateway = gateway
        self._event_bus = event_bus or EventBus()
        self._schedule = scheduler or timer_scheduler
        self._probe = AudioInfoProbe(gateway)
        self._completion_debounce = completion_debounce

        # Thread safety lock (protects all mutable playback fields)
        self._lock = threading.RLock()

        self._status = PlaybackStatus.IDLE
        self._current_track: Optional[Track] = None
        self._position_ms = 0
        self._duration_ms = 0
        self._engine_playing = False
        self._volume = max(0.0, min(1.0, default_volume))
        self._from_playlist_queue = False
        self._audio_info = AudioOutputInfo()
        self._error: Optional[str] = None
        self._ui_updates_paused = False
        self._closed = False

        # Each play attempt gets a generation; late callbacks for older ones are ignored
        self._generation = 0
        self._completed_generation = -1
        self._pending_completion: Optional[Cancellable] = None

        self._audio_info_task: Optional[PeriodicTask] = None
        if audio_info_interval > 0:
            self._audio_info_task = PeriodicTask("PlayerAudioInfo", audio_info_interval, self._refresh_audio_info)
        self._background_task = PeriodicTask("PlayerBackgroundPoll", background_poll_interval, self._poll_engine)

        self._engine.set_volume(self._volume)
        self._engine.set_on_position(self._on_engine_position)
        self._engine.set_on_duration(self._on_engine_duration)
        self._engine.set_on_playing(self._on_engine_playing)
        self._engine.set_on_end(self._on_engine_end)
        self._engine.set_on_error(self._on_engine_error)

    # ===== State =====

    @property
    def state(self) -> PlaybackSnapshot:
        """Get current playback state"""
        with self._lock:
            return PlaybackSnapshot(
                status=self._status,
                current_track=self._current_track,
                position_ms=self._position_ms,
                duration_ms=self._duration_ms,
                is_playing=self._engine_playing,
                volume=self._volume,
                is_playing_from_playlist_queue=self._from_playlist_queue,
                audio_info=self._audio_info,
                error=self._error,
            )

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def current_track(self) -> Optional[Track]:
        with self._lock:
            return self._current_track

    @property
    def position_ms(self) -> int:
        return self._position_ms

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    @property
    def is_playing(self) -> bool:
        return self._engine_playing

    @property
    def is_loading(self) -> bool:
        return self._status == PlaybackStatus.LOADING

    @property
    def is_playing_from_playlist_queue(self) -> bool:
        return self._from_playlist_queue

    @property
    def audio_info(self) -> AudioOutputInfo:
        return self._audio_info

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_ui_updates_paused(self) -> bool:
        return self._ui_updates_paused

    @property
    def engine_name(self) -> str:
        return self._engine.get_engine_name()

    def clear_error(self) -> None:
        self._error = None

    def _publish_state(self) -> None:
        self._event_bus.publish_sync(EventType.PLAYBACK_STATE_CHANGED, self.state)

    def _publish_position(self, confirmed: bool = True) -> None:
        with self._lock:
            payload = {
                "position": self._position_ms,
                "duration": self._duration_ms,
                "confirmed": confirmed,
            }
        self._event_bus.publish_sync(EventType.POSITION_CHANGED, payload)

    # ===== Playing =====

    def play_track(self, track: Track, clear_queue: bool = True) -> bool:
        """
        Resolve a stream for the track and start playing it

        Args:
            track: Track to play
            clear_queue: Empty the plain queue and the playlist queue first.
                If the backend refuses to clear, playback still starts and the
                plain queue keeps the backend's items, so the local queue
                never shows an order the backend does not have.

        Returns:
            bool: Whether playback started
        """
        return self._play(track, clear_queue=clear_queue, from_playlist_queue=False)

    def _play(self, track: Track, clear_queue: bool, from_playlist_queue: bool) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._generation += 1
            generation = self._generation
            self._cancel_pending_completion()
            self._status = PlaybackStatus.LOADING
            self._current_track = track
            self._from_playlist_queue = from_playlist_queue
            self._error = None
        self._publish_state()

        if clear_queue:
            # A failed backend clear leaves the plain queue populated; only the
            # client-side playlist queue is guaranteed empty here.
            self._queue.clear_queue()
            self._queue.clear_playlist_queue()

        try:
            stream_url = self._resolve_stream_url(track)
            playable = track.with_changes(stream_url=stream_url)
            with self._lock:
                if generation != self._generation:
                    logger.debug("Superseded before playback started: %s", track.display_name)
                    return False
                self._current_track = playable
                self._position_ms = 0
                self._duration_ms = playable.duration_ms
                self._audio_info = AudioOutputInfo()
                self._probe.reset()

            if not self._engine.load(stream_url):
                raise UnsupportedOperationError("Unable to play this audio format. Please try a different track.")
            if not self._engine.play():
                raise UnsupportedOperationError("Unable to play this audio format. Please try a different track.")
        except MusicClientError as e:
            message = self._describe_play_error(e, track)
            logger.error("Failed to play %s: %s", track.display_name, e)
            with self._lock:
                if generation != self._generation:
                    return False
                self._status = PlaybackStatus.IDLE
                self._current_track = None
                self._position_ms = 0
                self._error = message
            self._stop_audio_info()
            self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
                "source": "PlayerService",
                "error": message,
            })
            self._publish_state()
            return False

        with self._lock:
            if generation != self._generation:
                return False
            self._status = PlaybackStatus.PLAYING
        logger.info("Playing: %s [%s]", playable.display_name, playable.source)
        self._event_bus.publish_sync(EventType.TRACK_STARTED, playable)
        self._publish_state()
        self._start_audio_info()
        return True

    def _resolve_stream_url(self, track: Track) -> str:
        """Provider stream URL first, then the backend-proxied URL, made absolute."""
        source = (track.source or "").lower()
        if source in UNSUPPORTED_PLAYBACK_SOURCES:
            raise UnsupportedOperationError(
                f"{format_source(source)} playback is not supported. Please use tracks from another service."
            )

        provider_url = self._music_api.get_stream_url(track.id, service=track.source)
        backend = self._music_api.get_backend_stream_url(
            track.id, track.source, provider_url, title=track.title, artist=track.artist
        )
        logger.debug("Backend stream ready (cached=%s): %s", backend.is_cached, backend.stream_url)
        return self._gateway.absolute_url(backend.stream_url)

    @staticmethod
    def _describe_play_error(error: MusicClientError, track: Track) -> str:
        if isinstance(error, NetworkTimeoutError):
            return ("The track is taking too long to load. This may be due to a slow internet "
                    "connection. Please try again.")
        if isinstance(error, UnsupportedOperationError):
            return str(error)
        return f"Failed to play track: {describe_error(error)}"

    def play_playlist(self, item: PlaylistQueueItem, replace_queue: bool = True) -> bool:
        """
        Start playing through a playlist

        Args:
            item: Playlist-queue cursor (see PlaylistService.build_play_request)
            replace_queue: Empty both queues first ("play now")
        """
        if replace_queue:
            self._queue.clear_queue()
            self._queue.clear_playlist_queue()
        self._queue.add_playlist_to_queue(item)
        return self.play_playlist_queue_item(item)

    def play_playlist_queue_item(self, item: PlaylistQueueItem) -> bool:
        """Start a playlist-queue item from its stored current-track fields."""
        return self._play(item.current_track(), clear_queue=False, from_playlist_queue=True)

    def _play_playlist_index(self, item: PlaylistQueueItem) -> bool:
        track = self._lookup_playlist_track(item, item.current_track_index)
        self._queue.update_current_track_details(track)
        return self._play(track, clear_queue=False, from_playlist_queue=True)

    def _lookup_playlist_track(self, item: PlaylistQueueItem, index: int) -> Track:
        """Fetch the track at index from the playlist; placeholder on any failure."""
        track_id = item.track_id_at(index)
        try:
            entries = self._playlist_api.get_items(item.playlist_id)
            for entry in entries:
                if entry.item_id == track_id:
                    return entry.to_track()
            raise NotFoundError(f"Track {track_id} not found in playlist {item.playlist_name}")
        except MusicClientError as e:
            logger.warning("Playlist lookup failed, using placeholder for index %d: %s", index, e)
            return item.placeholder_track(index)

    def play_next_track(self) -> bool:
        """
        Play whatever comes next

        Order: advance the playlist being played; else start the head
        playlist-queue item; else pop the plain queue; else stay idle.
        """
        if self._from_playlist_queue:
            updated = self._queue.move_to_next_track()
            if updated is not None:
                return self._play_playlist_index(updated)
            with self._lock:
                self._from_playlist_queue = False

        item = self._queue.get_current_playlist_queue_item()
        if item is not None:
            return self.play_playlist_queue_item(item)

        head = self._queue.get_next_track()
        if head is not None:
            if self._queue.move_to_next() is None:
                logger.warning("Could not remove queue head %s; playing it anyway", head.id)
            return self._play(head.to_track(), clear_queue=False, from_playlist_queue=False)

        logger.info("Nothing left to play")
        with self._lock:
            if self._status in (PlaybackStatus.PLAYING, PlaybackStatus.LOADING):
                self._status = PlaybackStatus.IDLE
        self._stop_audio_info()
        self._publish_state()
        return False

    def play_previous_track(self) -> bool:
        """Step back in the playlist being played, or restart the current track."""
        if self._from_playlist_queue:
            updated = self._queue.move_to_previous_track()
            if updated is None:
                return False
            return self._play_playlist_index(updated)

        track = self.current_track
        if track is None:
            return False
        try:
            return self.seek_to(0)
        except UnsupportedOperationError:
            return self._play(track, clear_queue=False, from_playlist_queue=False)

    # ===== Transport =====

    def pause(self) -> bool:
        """Pause playback"""
        with self._lock:
            if self._status != PlaybackStatus.PLAYING:
                return False
            self._engine.pause()
            self._status = PlaybackStatus.PAUSED
        self._publish_state()
        return True

    def resume(self) -> bool:
        """Resume playback"""
        with self._lock:
            if self._status != PlaybackStatus.PAUSED:
                return False
            self._engine.resume()
            self._status = PlaybackStatus.PLAYING
        self._publish_state()
        return True

    def toggle_play_pause(self) -> bool:
        """Toggle play/pause"""
        status = self._status
        if status == PlaybackStatus.PLAYING:
            return self.pause()
        if status == PlaybackStatus.PAUSED:
            return self.resume()
        track = self.current_track
        if track is not None and status != PlaybackStatus.LOADING:
            return self._play(track, clear_queue=False, from_playlist_queue=self._from_playlist_queue)
        return False

    def stop_playback(self) -> None:
        """Stop playback, forget the current track and cancel all timers."""
        self._cancel_pending_completion()
        self._stop_audio_info()
        self._engine.stop()
        with self._lock:
            self._generation += 1
            track = self._current_track
            self._status = PlaybackStatus.STOPPED
            self._current_track = None
            self._position_ms = 0
            self._duration_ms = 0
            self._engine_playing = False
        self._event_bus.publish_sync(EventType.PLAYBACK_STOPPED, {
            "track": track,
            "reason": "stopped",
        })
        self._publish_state()

    def seek_to(self, position_ms: int) -> bool:
        """
        Seek to specified position

        Raises:
            UnsupportedOperationError: The current stream cannot be seeked

        Returns:
            bool: True if the engine moved. Out-of-range positions are
            rejected without changing state; an engine failure still moves
            the displayed position but returns False.
        """
        with self._lock:
            track = self._current_track
            duration = self._duration_ms
        if track is None:
            return False
        if not self._engine.supports_seek(track.stream_url, track.source):
            raise UnsupportedOperationError(
                f"Seeking is not supported for {format_source(track.source)} streams"
            )
        if position_ms < 0 or position_ms > duration:
            logger.debug("Rejected seek to %d ms (duration %d ms)", position_ms, duration)
            return False

        try:
            confirmed = bool(self._engine.seek(int(position_ms)))
        except Exception as e:
            logger.warning("Engine seek failed: %s", e)
            confirmed = False

        with self._lock:
            self._position_ms = int(position_ms)
        self._publish_position(confirmed=confirmed)
        return confirmed

    def set_volume(self, volume: float) -> None:
        """
        Set volume

        Args:
            volume: Volume value, clamped to 0.0 - 1.0
        """
        volume = max(0.0, min(1.0, float(volume)))
        with self._lock:
            self._volume = volume
        self._engine.set_volume(volume)
        self._event_bus.publish_sync(EventType.VOLUME_CHANGED, volume)

    def get_volume(self) -> float:
        return self._volume

    def update_track_bpm(self, track_id: str, bpm: float) -> bool:
        with self._lock:
            if self._current_track is None or self._current_track.id != track_id:
                return False
            self._current_track = self._current_track.with_changes(bpm=bpm)
        self._publish_state()
        return True

    # ===== Engine callbacks =====

    def _on_engine_position(self, position_ms: int) -> None:
        with self._lock:
            if self._closed:
                return
            self._position_ms = position_ms
            quiet = self._ui_updates_paused
        if not quiet:
            self._publish_position()
        self._check_completion()

    def _on_engine_duration(self, duration_ms: int) -> None:
        with self._lock:
            if self._closed or duration_ms <= 0:
                return
            self._duration_ms = duration_ms
            quiet = self._ui_updates_paused
        if not quiet:
            self._publish_position()
        self._check_completion()

    def _on_engine_playing(self, playing: bool) -> None:
        with self._lock:
            if self._closed or playing == self._engine_playing:
                return
            self._engine_playing = playing
            quiet = self._ui_updates_paused
        if not quiet:
            self._publish_state()
        self._check_completion()

    def _on_engine_end(self, info: PlaybackEndInfo) -> None:
        with self._lock:
            track = self._current_track
            if info.ended_url and track is not None and track.stream_url and info.ended_url != track.stream_url:
                logger.debug("Ignoring end event for a previous stream")
                return
            generation = self._generation
        self._complete(generation, info.reason)

    def _on_engine_error(self, error: str) -> None:
        logger.error("Audio engine error: %s", error)
        with self._lock:
            if self._closed:
                return
            self._error = error
            if self._status in (PlaybackStatus.PLAYING, PlaybackStatus.PAUSED, PlaybackStatus.LOADING):
                self._status = PlaybackStatus.IDLE
        self._stop_audio_info()
        self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
            "source": "PlayerService",
            "error": error,
        })
        self._publish_state()

    # ===== Completion detection =====

    def _looks_completed(self) -> bool:
        return (
            self._current_track is not None
            and self._status == PlaybackStatus.PLAYING
            and self._duration_ms > 0
            and self._position_ms >= self._duration_ms - COMPLETION_TOLERANCE_MS
            and not self._engine_playing
        )

    def _check_completion(self) -> None:
        """Schedule a debounced re-check when the track looks finished."""
        with self._lock:
            if (self._closed or self._pending_completion is not None
                    or self._completed_generation == self._generation
                    or not self._looks_completed()):
                return
            generation = self._generation
            # Placeholder so concurrent callbacks do not schedule twice
            self._pending_completion = _PendingCheck()
        handle = self._schedule(self._completion_debounce, lambda: self._confirm_completion(generation))
        with self._lock:
            if isinstance(self._pending_completion, _PendingCheck):
                self._pending_completion = handle

    def _confirm_completion(self, generation: int) -> None:
        with self._lock:
            self._pending_completion = None
            if self._closed or generation != self._generation or not self._looks_completed():
                return
        logger.debug("Track completion detected from position")
        self._complete(generation, "position")

    def _complete(self, generation: int, reason: str) -> None:
        """Advance exactly once per played track, whichever path fires first."""
        with self._lock:
            if self._closed or generation != self._generation or self._completed_generation == generation:
                return
            self._completed_generation = generation
            self._cancel_pending_completion()
            ended = self._current_track
        self._event_bus.publish_sync(EventType.TRACK_ENDED, {
            "track": ended,
            "reason": reason,
        })
        try:
            self.play_next_track()
        except Exception:
            logger.exception("Failed to advance after track end")

    def _cancel_pending_completion(self) -> None:
        with self._lock:
            handle = self._pending_completion
            self._pending_completion = None
        if handle is not None:
            handle.cancel()

    # ===== Timers =====

    def _start_audio_info(self) -> None:
        if self._audio_info_task is not None:
            self._audio_info_task.start()

    def _stop_audio_info(self) -> None:
        if self._audio_info_task is not None:
            self._audio_info_task.stop()
        with self._lock:
            self._audio_info = AudioOutputInfo()

    def _refresh_audio_info(self) -> None:
        with self._lock:
            track = self._current_track
            generation = self._generation
        if track is None or self._closed:
            return
        info = self._probe.analyze(track)
        with self._lock:
            if self._closed or generation != self._generation or not info.has_info or info == self._audio_info:
                return
            self._audio_info = info
        logger.debug("Audio output: %s", info.formatted_output_quality)
        self._event_bus.publish_sync(EventType.AUDIO_INFO_CHANGED, info)

    def pause_ui_updates(self) -> None:
        """Background mode: stop publishing position churn, keep a coarse poll."""
        with self._lock:
            if self._ui_updates_paused:
                return
            self._ui_updates_paused = True
        self._background_task.start()

    def resume_ui_updates(self) -> None:
        """Foreground again: stop the poll and publish a full snapshot."""
        with self._lock:
            if not self._ui_updates_paused:
                return
            self._ui_updates_paused = False
        self._background_task.stop()
        self._poll_engine()
        self._publish_position()
        self._publish_state()

    def _poll_engine(self) -> None:
        with self._lock:
            if self._closed or self._current_track is None:
                return
        position = self._engine.get_position()
        duration = self._engine.get_duration()
        with self._lock:
            self._position_ms = max(0, position)
            if duration > 0:
                self._duration_ms = duration
        self._check_completion()

    def cleanup(self) -> None:
        """Clean up resources; no timer fires afterwards."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            # Invalidates callbacks still in flight (HEAD probe, debounce)
            self._generation += 1
        self._cancel_pending_completion()
        self._stop_audio_info()
        self._background_task.stop()
        self._engine.set_on_position(None)
        self._engine.set_on_duration(None)
        self._engine.set_on_playing(None)
        self._engine.set_on_end(None)
        self._engine.set_on_error(None)
        self._engine.stop()
        self._engine.cleanup()


class _PendingCheck:
    """Marks a completion check as being scheduled."""

    def cancel(self) -> None:
        pass
