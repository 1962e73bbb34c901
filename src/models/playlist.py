"""
Playlist data models (user playlists stored by the backend)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from models.serialization import format_datetime, optional_int, parse_datetime
from models.track import Track


@dataclass
class Playlist:
    """
    Playlist data model
    """

    id: str
    name: str = ""
    description: Optional[str] = None
    is_public: bool = False
    item_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_public': self.is_public,
            'item_count': self.item_count,
            'created_at': format_datetime(self.created_at),
            'updated_at': format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Playlist':
        """Create Playlist object from dictionary"""
        return cls(
            id=str(data.get('id') or ''),
            name=str(data.get('name') or ''),
            description=data.get('description'),
            is_public=bool(data.get('is_public', False)),
            item_count=optional_int(data.get('item_count')) or 0,
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at')),
        )


@dataclass
class PlaylistItem:
    """
    Entry of a playlist: either a track or a nested playlist

    item_id is the source id of the referenced track, not the entry id.
    """

    id: str
    item_type: str
    item_id: str
    position: int = 0
    added_at: Optional[datetime] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[int] = None
    source: Optional[str] = None
    cover_url: Optional[str] = None
    is_playlist: bool = False
    playlist_name: Optional[str] = None

    @property
    def is_track(self) -> bool:
        return self.item_type == "track" and not self.is_playlist

    def to_track(self) -> Track:
        return Track(
            id=self.item_id,
            title=self.title or "Unknown Title",
            artist=self.artist or "Unknown Artist",
            album=self.album or "Unknown Album",
            duration=self.duration,
            cover_url=self.cover_url,
            source=self.source or "qobuz",
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'PlaylistItem':
        return cls(
            id=str(data.get('id') or ''),
            item_type=str(data.get('item_type') or 'track'),
            item_id=str(data.get('item_id') or ''),
            position=optional_int(data.get('position')) or 0,
            added_at=parse_datetime(data.get('added_at')),
            title=data.get('title'),
            artist=data.get('artist'),
            album=data.get('album'),
            duration=optional_int(data.get('duration')),
            source=data.get('source'),
            cover_url=data.get('cover_url'),
            is_playlist=bool(data.get('is_playlist', False)),
            playlist_name=data.get('playlist_name'),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'item_type': self.item_type,
            'item_id': self.item_id,
            'position': self.position,
            'added_at': format_datetime(self.added_at),
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'duration': self.duration,
            'source': self.source,
            'cover_url': self.cover_url,
            'is_playlist': self.is_playlist,
            'playlist_name': self.playlist_name,
        }


@dataclass
class PlaylistPage:
    """One page of the user's playlists"""
    playlists: List[Playlist] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    @classmethod
    def from_dict(cls, data: dict) -> 'PlaylistPage':
        return cls(
            playlists=[Playlist.from_dict(p) for p in data.get('playlists') or []],
            total=optional_int(data.get('total')) or 0,
            page=optional_int(data.get('page')) or 1,
            per_page=optional_int(data.get('per_page')) or 20,
        )
