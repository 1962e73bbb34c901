"""
Audio Engine Module - Core for Audio Playback

Engines play remote stream URLs and push their state to the player through
callbacks: position, duration, playing flag, completion and errors. Each
callback may fire from an engine-owned thread and in any order relative to
the others.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Callable
from enum import Enum
import threading
import time
import logging

logger = logging.getLogger(__name__)

# Backend-cached streams are served from this path and support range requests
BACKEND_STREAM_MARKER = "/api/stream/"

# Direct provider streams from these sources cannot be seeked reliably
NON_SEEKABLE_SOURCES = frozenset({"qobuz", "tidal"})


class PlayerState(Enum):
    """Engine Status"""
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True)
class PlaybackEndInfo:
    """Playback end info."""
    ended_url: Optional[str]
    reason: str = "ended"


class AudioEngineBase(ABC):
    """
    Abstract Base Class for Audio Engines

    Subclasses implement transport control; the base class owns callback
    registration and safe dispatch.
    """

    def __init__(self):
        self._state: PlayerState = PlayerState.IDLE
        self._volume: float = 1.0
        self._current_url: Optional[str] = None
        self._on_end_callback: Optional[Callable[[PlaybackEndInfo], None]] = None
        self._on_error_callback: Optional[Callable[[str], None]] = None
        self._on_position_callback: Optional[Callable[[int], None]] = None
        self._on_duration_callback: Optional[Callable[[int], None]] = None
        self._on_playing_callback: Optional[Callable[[bool], None]] = None

    @staticmethod
    def probe() -> bool:
        """
        Check if engine dependencies are available (without touching playback state)

        Returns:
            bool: True if dependencies are available
        """
        return False

    @property
    def state(self) -> PlayerState:
        """Get the current playback state"""
        return self._state

    @property
    def volume(self) -> float:
        """Get the current volume"""
        return self._volume

    @property
    def current_url(self) -> Optional[str]:
        """Get the URL of the currently loaded stream"""
        return self._current_url

    @abstractmethod
    def load(self, url: str) -> bool:
        """
        Open a stream

        Args:
            url: Absolute stream URL

        Returns:
            bool: True if the stream was opened
        """

    @abstractmethod
    def play(self) -> bool:
        """Start playback of the loaded stream"""

    @abstractmethod
    def pause(self) -> None:
        """Pause playback"""

    @abstractmethod
    def resume(self) -> None:
        """Resume playback"""

    @abstractmethod
    def stop(self) -> None:
        """Stop playback"""

    @abstractmethod
    def seek(self, position_ms: int) -> bool:
        """
        Seek to a specified position

        Returns:
            bool: True if the engine accepted the new position
        """

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set the volume (0.0 - 1.0)"""

    @abstractmethod
    def get_position(self) -> int:
        """Current playback position in milliseconds"""

    @abstractmethod
    def get_duration(self) -> int:
        """Stream duration in milliseconds (0 when unknown)"""

    def is_playing(self) -> bool:
        return self._state == PlayerState.PLAYING

    def supports_seek(self, url: Optional[str], source: Optional[str]) -> bool:
        """
        Whether seeking works for a stream

        Backend-cached streams always seek; direct Qobuz/Tidal streams do not.
        """
        if url and BACKEND_STREAM_MARKER in url:
            return True
        return (source or "").lower() not in NON_SEEKABLE_SOURCES

    # ===== Callback registration =====

    def set_on_end(self, callback: Optional[Callable[[PlaybackEndInfo], None]]) -> None:
        self._on_end_callback = callback

    def set_on_error(self, callback: Optional[Callable[[str], None]]) -> None:
        self._on_error_callback = callback

    def set_on_position(self, callback: Optional[Callable[[int], None]]) -> None:
        self._on_position_callback = callback

    def set_on_duration(self, callback: Optional[Callable[[int], None]]) -> None:
        self._on_duration_callback = callback

    def set_on_playing(self, callback: Optional[Callable[[bool], None]]) -> None:
        self._on_playing_callback = callback

    def _dispatch(self, callback: Optional[Callable], value) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("Audio engine callback failed")

    def _emit_position(self, position_ms: int) -> None:
        self._dispatch(self._on_position_callback, max(0, int(position_ms)))

    def _emit_duration(self, duration_ms: int) -> None:
        self._dispatch(self._on_duration_callback, max(0, int(duration_ms)))

    def _emit_playing(self, playing: bool) -> None:
        self._dispatch(self._on_playing_callback, bool(playing))

    def _emit_end(self, reason: str = "ended") -> None:
        self._dispatch(self._on_end_callback, PlaybackEndInfo(ended_url=self._current_url, reason=reason))

    def _emit_error(self, message: str) -> None:
        self._dispatch(self._on_error_callback, message)

    def get_engine_name(self) -> str:
        """
        Get the engine name

        Returns:
            str: Engine identifier name
        """
        return "base"

    def cleanup(self) -> None:
        """Release engine resources"""


class NullAudioEngine(AudioEngineBase):
    """
    Silent engine that simulates a playback clock.

    Used for headless runs and as the last-resort fallback when no real
    backend is installed. Position advances in real time while "playing".
    """

    TICK_SECONDS = 0.25

    @staticmethod
    def probe() -> bool:
        return True

    def __init__(self, default_duration_ms: int = 0):
        super().__init__()
        self._default_duration_ms = default_duration_ms
        self._duration_ms = 0
        self._position_ms = 0
        self._started_at: Optional[float] = None
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._ticker: Optional[threading.Thread] = None

    def load(self, url: str) -> bool:
        with self._lock:
            self._halt_ticker()
            self._current_url = url
            self._position_ms = 0
            self._duration_ms = self._default_duration_ms
            self._state = PlayerState.STOPPED
        if self._duration_ms:
            self._emit_duration(self._duration_ms)
        return True

    def play(self) -> bool:
        with self._lock:
            if self._current_url is None:
                return False
            self._started_at = time.monotonic() - self._position_ms / 1000.0
            self._state = PlayerState.PLAYING
            self._start_ticker()
        self._emit_playing(True)
        return True

    def pause(self) -> None:
        with self._lock:
            if self._state != PlayerState.PLAYING:
                return
            self._position_ms = self.get_position()
            self._state = PlayerState.PAUSED
        self._emit_playing(False)

    def resume(self) -> None:
        with self._lock:
            if self._state != PlayerState.PAUSED:
                return
        self.play()

    def stop(self) -> None:
        with self._lock:
            self._halt_ticker()
            was_playing = self._state == PlayerState.PLAYING
            self._state = PlayerState.STOPPED
            self._position_ms = 0
        if was_playing:
            self._emit_playing(False)

    def seek(self, position_ms: int) -> bool:
        with self._lock:
            self._position_ms = max(0, int(position_ms))
            if self._state == PlayerState.PLAYING:
                self._started_at = time.monotonic() - self._position_ms / 1000.0
        self._emit_position(self._position_ms)
        return True

    def set_volume(self, volume: float) -> None:
        self._volume = max(0.0, min(1.0, volume))

    def get_position(self) -> int:
        with self._lock:
            if self._state == PlayerState.PLAYING and self._started_at is not None:
                return int((time.monotonic() - self._started_at) * 1000)
            return self._position_ms

    def get_duration(self) -> int:
        return self._duration_ms

    def _start_ticker(self) -> None:
        if self._ticker and self._ticker.is_alive():
            return
        self._stop_event.clear()
        self._ticker = threading.Thread(target=self._tick_loop, name="NullEngineClock", daemon=True)
        self._ticker.start()

    def _halt_ticker(self) -> None:
        self._stop_event.set()
        ticker = self._ticker
        if ticker and ticker.is_alive() and ticker is not threading.current_thread():
            ticker.join(timeout=1.0)
        self._ticker = None

    def _tick_loop(self) -> None:
        while not self._stop_event.wait(self.TICK_SECONDS):
            if self._state != PlayerState.PLAYING:
                continue
            position = self.get_position()
            self._emit_position(position)
            if self._duration_ms and position >= self._duration_ms:
                with self._lock:
                    self._state = PlayerState.STOPPED
                    self._position_ms = self._duration_ms
                    self._stop_event.set()
                self._emit_playing(False)
                self._emit_end("ended")
                return

    def get_engine_name(self) -> str:
        return "null"

    def cleanup(self) -> None:
        with self._lock:
            self._halt_ticker()
            self._state = PlayerState.STOPPED
