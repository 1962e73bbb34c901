"""
Audio Analysis Service Module

Runs backend tempo/key detection for a track and pushes a detected BPM to
everything that displays the track: the player, the search results and the
saved tracks.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Optional
import logging
import threading

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.analysis import BpmAnalysis, KeyAnalysis
from models.track import Track
from services.api.audio_analysis_api import AudioAnalysisApi

if TYPE_CHECKING:
    from app.protocols import IPlayerService, ISearchService
    from services.saved_tracks_service import SavedTracksService

logger = logging.getLogger(__name__)


class AudioAnalysisService:
    """Audio analysis use cases

    An analysis can take minutes on the backend; analyze_bpm_in_background()
    runs one on a worker thread so callers keep their thread free.
    """

    def __init__(
        self,
        api: AudioAnalysisApi,
        player: "IPlayerService",
        search: "ISearchService",
        saved_tracks: "SavedTracksService",
        event_bus: Optional[EventBus] = None,
    ):
        self._api = api
        self._player = player
        self._search = search
        self._saved_tracks = saved_tracks
        self._event_bus = event_bus or EventBus()
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="AudioAnalysis")

        self._in_progress: set = set()
        self._error: Optional[str] = None

    @property
    def error(self) -> Optional[str]:
        return self._error

    def is_analyzing(self, track: Track) -> bool:
        with self._lock:
            return track.key in self._in_progress

    def _fail(self, action: str, error: MusicClientError) -> None:
        self._error = describe_error(error)
        logger.warning("Failed to %s: %s", action, error)
        self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
            "source": "AudioAnalysisService",
            "error": self._error,
        })

    def apply_bpm(self, track_id: str, source: str, bpm: float) -> None:
        """Propagate a BPM value to the player, search results and saved tracks."""
        self._player.update_track_bpm(track_id, bpm)
        self._search.update_track_bpm(track_id, bpm)
        self._saved_tracks.update_track_bpm(track_id, source, bpm)

    def analyze_bpm(self, track: Track, spectrogram: bool = True) -> Optional[BpmAnalysis]:
        """
        Detect the tempo of a track and apply it.

        Args:
            track: Track to analyze
            spectrogram: Use the spectrogram method (default) instead of the
                windowed one

        Returns:
            The analysis, or None on failure (see `error`)
        """
        with self._lock:
            self._in_progress.add(track.key)
        try:
            if spectrogram:
                result = self._api.analyze_bpm_spectrogram(track)
            else:
                result = self._api.analyze_bpm(track)
        except MusicClientError as e:
            self._fail(f"analyze BPM of {track.display_name}", e)
            return None
        finally:
            with self._lock:
                self._in_progress.discard(track.key)

        logger.info("BPM of %s: %.1f (%d ms)", track.display_name, result.bpm, result.analysis_time_ms)
        self._error = None
        self.apply_bpm(track.id, track.source, result.bpm)
        self._event_bus.publish_sync(EventType.TRACK_ANALYZED, result)
        return result

    def analyze_bpm_in_background(self, track: Track, spectrogram: bool = True) -> Future:
        """Fire-and-forget variant; the Future resolves to analyze_bpm()'s result."""
        return self._executor.submit(self.analyze_bpm, track, spectrogram)

    def analyze_key(self, track: Track) -> Optional[KeyAnalysis]:
        try:
            result = self._api.analyze_key(track)
        except MusicClientError as e:
            self._fail(f"analyze key of {track.display_name}", e)
            return None
        self._error = None
        self._event_bus.publish_sync(EventType.TRACK_ANALYZED, result)
        return result

    def load_stored_bpm(self, track: Track) -> Optional[float]:
        """Fetch a BPM the backend already knows and apply it; failures only log."""
        try:
            bpm = self._api.get_bpm(track)
        except MusicClientError as e:
            logger.debug("Stored BPM lookup failed for %s: %s", track.id, e)
            return None
        if bpm is not None:
            self.apply_bpm(track.id, track.source, bpm)
        return bpm

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
