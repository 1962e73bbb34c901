"""
Audio analysis endpoints (tempo and key detection run on the backend)
"""

import logging
from typing import Any, Dict, Optional

from core.errors import BackendError
from core.ports.gateway import IApiGateway
from models.analysis import BpmAnalysis, KeyAnalysis
from models.serialization import optional_float
from models.track import Track

logger = logging.getLogger(__name__)


def _track_params(track: Track) -> Dict[str, Any]:
    return {'track_id': track.id, 'source': track.source, 'stream_url': track.stream_url}


class AudioAnalysisApi:
    """Wrapper over /audio/*

    The analyze calls block until the backend has downloaded and decoded the
    track, so they use the gateway's analysis timeout.
    """

    def __init__(self, client: IApiGateway):
        self._client = client

    def _analyze(self, path: str, track: Track) -> dict:
        data = self._client.post(path, params=_track_params(track), timeout=self._client.analysis_timeout)
        if not isinstance(data, dict):
            raise BackendError(f"Empty analysis result for track {track.id}")
        return data

    def analyze_bpm_spectrogram(self, track: Track) -> BpmAnalysis:
        data = self._analyze('/audio/analyze-bpm-spectrogram', track)
        try:
            return BpmAnalysis.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed BPM analysis: {e}") from e

    def analyze_bpm(self, track: Track) -> BpmAnalysis:
        """Windowed onset analysis; faster and less accurate than the spectrogram"""
        data = self._analyze('/audio/analyze-bpm', track)
        try:
            return BpmAnalysis.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed BPM analysis: {e}") from e

    def analyze_key(self, track: Track) -> KeyAnalysis:
        data = self._analyze('/audio/analyze-key', track)
        try:
            return KeyAnalysis.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed key analysis: {e}") from e

    def get_bpm(self, track: Track) -> Optional[float]:
        """Previously stored BPM, or None when the track was never analyzed"""
        data = self._client.get('/audio/bpm', params={'track_id': track.id, 'source': track.source})
        if not isinstance(data, dict):
            return None
        return optional_float(data.get('bpm'))
