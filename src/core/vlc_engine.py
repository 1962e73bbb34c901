"""
VLC Audio Engine Implementation

Audio backend based on the python-vlc library. Plays remote HTTP(S) stream
URLs and pushes position, duration and playing-state changes from libvlc
events instead of being polled.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Any

from core.audio_engine import AudioEngineBase, PlayerState

logger = logging.getLogger(__name__)

# Try to import vlc
try:
    import vlc
    VLC_AVAILABLE = True
except ImportError:
    vlc = None  # type: ignore
    VLC_AVAILABLE = False
    logger.warning("The python-vlc library is not installed; VLCEngine is unavailable.")

# Network buffer for remote streams (ms)
NETWORK_CACHING_MS = 3000


class VLCEngine(AudioEngineBase):
    """
    VLC-based streaming engine

    libvlc must not be re-entered from its own event thread, so completion
    and error notifications are handed to a short-lived worker thread.
    """

    @staticmethod
    def probe() -> bool:
        """Check if python-vlc dependencies are available."""
        return VLC_AVAILABLE

    def __init__(self, network_caching_ms: int = NETWORK_CACHING_MS):
        if not VLC_AVAILABLE:
            raise ImportError("The python-vlc library is not installed.")

        super().__init__()

        self._instance: Any = vlc.Instance(
            "--no-video",
            f"--network-caching={int(network_caching_ms)}",
        )
        self._player: Any = self._instance.media_player_new()
        self._media: Optional[Any] = None
        self._duration_ms: int = 0
        self._lock = threading.Lock()

        self._setup_event_callbacks()

    def _setup_event_callbacks(self) -> None:
        """Set VLC event callbacks."""
        events = self._player.event_manager()
        events.event_attach(vlc.EventType.MediaPlayerTimeChanged, self._on_time_changed)
        events.event_attach(vlc.EventType.MediaPlayerLengthChanged, self._on_length_changed)
        events.event_attach(vlc.EventType.MediaPlayerPlaying, self._on_playing)
        events.event_attach(vlc.EventType.MediaPlayerPaused, self._on_paused)
        events.event_attach(vlc.EventType.MediaPlayerStopped, self._on_paused)
        events.event_attach(vlc.EventType.MediaPlayerEndReached, self._on_end_reached)
        events.event_attach(vlc.EventType.MediaPlayerEncounteredError, self._on_vlc_error)

    def _on_time_changed(self, event) -> None:
        self._emit_position(event.u.new_time)

    def _on_length_changed(self, event) -> None:
        length = max(0, int(event.u.new_length))
        if length and length != self._duration_ms:
            self._duration_ms = length
            self._emit_duration(length)

    def _on_playing(self, event) -> None:
        self._state = PlayerState.PLAYING
        self._emit_playing(True)

    def _on_paused(self, event) -> None:
        self._emit_playing(False)

    def _on_end_reached(self, event) -> None:
        self._state = PlayerState.STOPPED
        self._emit_playing(False)
        threading.Thread(target=self._emit_end, args=("ended",), name="VLCEnd", daemon=True).start()

    def _on_vlc_error(self, event) -> None:
        self._state = PlayerState.ERROR
        self._emit_playing(False)
        threading.Thread(
            target=self._emit_error, args=("VLC playback error",), name="VLCError", daemon=True
        ).start()

    def load(self, url: str) -> bool:
        """Open a stream URL."""
        try:
            with self._lock:
                if self._state in (PlayerState.PLAYING, PlayerState.PAUSED):
                    self._player.stop()
                if self._media is not None:
                    self._media.release()

                self._state = PlayerState.LOADING
                self._media = self._instance.media_new(url)
                self._player.set_media(self._media)
                self._current_url = url
                self._duration_ms = 0
                self._state = PlayerState.STOPPED
                return True

        except Exception as e:
            self._state = PlayerState.ERROR
            logger.error("Failed to open stream: %s", e)
            self._emit_error(f"Failed to open stream: {e}")
            return False

    def play(self) -> bool:
        """Start playback."""
        try:
            with self._lock:
                if self._media is None:
                    return False
                self._apply_volume()
                if self._player.play() == 0:
                    self._state = PlayerState.PLAYING
                    return True
            return False

        except Exception as e:
            self._state = PlayerState.ERROR
            logger.error("Playback failed: %s", e)
            self._emit_error(f"Playback failed: {e}")
            return False

    def _apply_volume(self) -> None:
        self._player.audio_set_volume(max(0, min(100, int(self._volume * 100))))

    def pause(self) -> None:
        """Pause playback."""
        with self._lock:
            if self._state == PlayerState.PLAYING:
                self._player.set_pause(1)
                self._state = PlayerState.PAUSED

    def resume(self) -> None:
        """Resume playback."""
        with self._lock:
            if self._state == PlayerState.PAUSED:
                self._player.set_pause(0)
                self._state = PlayerState.PLAYING

    def stop(self) -> None:
        """Stop playback."""
        with self._lock:
            self._player.stop()
            self._state = PlayerState.STOPPED

    def seek(self, position_ms: int) -> bool:
        """Seek to a specified position."""
        with self._lock:
            if not self._player.is_seekable():
                logger.debug("Stream is not seekable: %s", self._current_url)
                return False
            self._player.set_time(int(position_ms))
            return True

    def set_volume(self, volume: float) -> None:
        """Set volume."""
        self._volume = max(0.0, min(1.0, volume))
        self._apply_volume()

    def get_position(self) -> int:
        """Get current playback position (milliseconds)."""
        pos = self._player.get_time()
        return pos if pos and pos > 0 else 0

    def get_duration(self) -> int:
        """Get stream duration (milliseconds)."""
        if self._duration_ms <= 0:
            length = self._player.get_length()
            if length and length > 0:
                self._duration_ms = length
        return self._duration_ms

    def get_engine_name(self) -> str:
        return "vlc"

    def cleanup(self) -> None:
        """Clean up resources."""
        with self._lock:
            try:
                self._player.event_manager().event_detach(vlc.EventType.MediaPlayerTimeChanged)
                self._player.stop()
                self._player.release()
                if self._media:
                    self._media.release()
                self._instance.release()
            except Exception as e:
                logger.warning("VLC cleanup failed: %s", e)
