"""
Album data model
"""

from dataclasses import dataclass, field
from typing import List, Optional

from models.track import Track


@dataclass
class Album:
    """
    Album data model

    Search results usually carry no track list; album detail views fill it.
    """

    id: str
    title: str = "Unknown Album"
    artist: str = "Unknown Artist"
    release_date: Optional[str] = None
    cover_url: Optional[str] = None
    tracks: List[Track] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def resolved_source(self) -> str:
        """Album source, falling back to its first track's source"""
        if self.source:
            return self.source
        if self.tracks:
            return self.tracks[0].source
        return "streaming"

    @property
    def key(self):
        return (self.id, self.resolved_source)

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'release_date': self.release_date,
            'cover_url': self.cover_url,
            'tracks': [t.to_dict() for t in self.tracks],
            'source': self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Album':
        """Create Album object from dictionary"""
        return cls(
            id=str(data.get('id') or ''),
            title=str(data.get('title') or 'Unknown Album'),
            artist=str(data.get('artist') or 'Unknown Artist'),
            release_date=data.get('release_date'),
            cover_url=data.get('cover_url'),
            tracks=[Track.from_dict(t) for t in (data.get('tracks') or []) if isinstance(t, dict)],
            source=data.get('source'),
        )
