"""
Track data model
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from models.serialization import optional_float, optional_int


class Source(Enum):
    """Origin of a track or album"""
    QOBUZ = "qobuz"
    SPOTIFY = "spotify"
    TIDAL = "tidal"
    APPLE_MUSIC = "apple_music"
    YOUTUBE_MUSIC = "youtube_music"
    DEEZER = "deezer"
    SERVER = "server"  # Self-hosted backend library

    @property
    def display_name(self) -> str:
        return _SOURCE_NAMES[self]


_SOURCE_NAMES = {
    Source.QOBUZ: "Qobuz",
    Source.SPOTIFY: "Spotify",
    Source.TIDAL: "Tidal",
    Source.APPLE_MUSIC: "Apple Music",
    Source.YOUTUBE_MUSIC: "YouTube Music",
    Source.DEEZER: "Deezer",
    Source.SERVER: "Server",
}


def format_source(source: str) -> str:
    """Display name for a source string, tolerating unknown values."""
    try:
        return Source(source.lower()).display_name
    except ValueError:
        return source.upper() if source else "Streaming"


def format_seconds(seconds: Optional[int]) -> str:
    """mm:ss, empty when unknown"""
    if seconds is None:
        return ""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class Track:
    """
    Track data model

    Immutable value. Resolving a stream URL or annotating BPM produces a new
    Track through with_changes().
    """

    id: str
    title: str = "Unknown Title"
    artist: str = "Unknown Artist"
    album: str = "Unknown Album"
    duration: Optional[int] = None      # seconds
    stream_url: Optional[str] = None
    cover_url: Optional[str] = None
    source: str = "streaming"
    quality: Optional[str] = None
    bitrate: Optional[int] = None       # kbps
    sample_rate: Optional[int] = None   # Hz
    bit_depth: Optional[int] = None
    bpm: Optional[float] = None
    key_name: Optional[str] = None
    camelot: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        """Composite identity (id, source)"""
        return (self.id, self.source)

    @property
    def duration_ms(self) -> int:
        return int(self.duration or 0) * 1000

    @property
    def formatted_duration(self) -> str:
        return format_seconds(self.duration)

    @property
    def formatted_source(self) -> str:
        return format_source(self.source)

    @property
    def formatted_quality(self) -> str:
        """e.g. "1411 kbps • 44.1kHz/16bit" """
        parts = []
        if self.bitrate is not None:
            parts.append(f"{self.bitrate} kbps")
        if self.sample_rate is not None and self.bit_depth is not None:
            parts.append(f"{self.sample_rate / 1000:.1f}kHz/{self.bit_depth}bit")
        elif self.sample_rate is not None:
            parts.append(f"{self.sample_rate / 1000:.1f}kHz")
        if self.quality and not parts:
            parts.append(self.quality)
        return " • ".join(parts)

    @property
    def display_name(self) -> str:
        if self.artist:
            return f"{self.artist} - {self.title}"
        return self.title

    def with_changes(self, **changes) -> 'Track':
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'duration': self.duration,
            'stream_url': self.stream_url,
            'cover_url': self.cover_url,
            'source': self.source,
            'quality': self.quality,
            'bitrate': self.bitrate,
            'sample_rate': self.sample_rate,
            'bit_depth': self.bit_depth,
            'bpm': self.bpm,
            'key_name': self.key_name,
            'camelot': self.camelot,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Track':
        """Create Track object from a backend JSON object"""
        def _text(key: str, default: str) -> str:
            value = data.get(key)
            return str(value) if value is not None else default

        return cls(
            id=_text('id', ''),
            title=_text('title', 'Unknown Title'),
            artist=_text('artist', 'Unknown Artist'),
            album=_text('album', 'Unknown Album'),
            duration=optional_int(data.get('duration')),
            stream_url=data.get('stream_url'),
            cover_url=data.get('cover_url'),
            source=_text('source', 'streaming'),
            quality=data.get('quality'),
            bitrate=optional_int(data.get('bitrate')),
            sample_rate=optional_int(data.get('sample_rate')),
            bit_depth=optional_int(data.get('bit_depth')),
            bpm=optional_float(data.get('bpm')),
            key_name=data.get('key_name'),
            camelot=data.get('camelot'),
        )

