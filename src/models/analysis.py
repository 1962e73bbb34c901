"""
Results of the backend's audio analysis endpoints
"""

from dataclasses import dataclass
from typing import Optional

from models.serialization import optional_float, optional_int


@dataclass(frozen=True)
class BpmAnalysis:
    """Detected tempo of one track.

    The spectrogram variant also reports where the backend stored its
    spectrogram and visualization images.
    """
    track_id: str
    source: str
    bpm: float
    analysis_time_ms: int = 0
    spectrogram_path: Optional[str] = None
    visualization_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'BpmAnalysis':
        bpm = optional_float(data.get('bpm'))
        if bpm is None:
            raise ValueError(f"Analysis result has no usable bpm: {data.get('bpm')!r}")
        return cls(
            track_id=str(data['track_id']),
            source=str(data['source']),
            bpm=bpm,
            analysis_time_ms=optional_int(data.get('analysis_time_ms')) or 0,
            spectrogram_path=data.get('spectrogram_path'),
            visualization_path=data.get('analysis_visualization_path'),
        )


@dataclass(frozen=True)
class KeyAnalysis:
    """Detected musical key, with its Camelot wheel code"""
    track_id: str
    source: str
    key_name: str
    camelot: str
    confidence: float = 0.0
    is_major: bool = True
    analysis_time_ms: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> 'KeyAnalysis':
        return cls(
            track_id=str(data['track_id']),
            source=str(data['source']),
            key_name=str(data['key_name']),
            camelot=str(data['camelot']),
            confidence=optional_float(data.get('confidence')) or 0.0,
            is_major=bool(data.get('is_major', True)),
            analysis_time_ms=optional_int(data.get('analysis_time_ms')) or 0,
        )
