"""
Saved tracks / saved albums (the user's library of favorites)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from models.album import Album
from models.serialization import optional_float, optional_int, parse_datetime
from models.track import Track, format_seconds


@dataclass
class SavedTrack:
    """A saved track; id is the backend record id, track_id the source id."""
    id: str
    track_id: str
    title: str
    artist: str
    album: str
    duration: int
    source: str
    cover_url: Optional[str] = None
    created_at: Optional[datetime] = None
    bpm: Optional[float] = None
    key_name: Optional[str] = None
    camelot: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.track_id, self.source)

    @property
    def formatted_duration(self) -> str:
        return format_seconds(self.duration)

    def to_track(self) -> Track:
        return Track(
            id=self.track_id,
            title=self.title,
            artist=self.artist,
            album=self.album,
            duration=self.duration,
            cover_url=self.cover_url,
            source=self.source,
            bpm=self.bpm,
            key_name=self.key_name,
            camelot=self.camelot,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'SavedTrack':
        return cls(
            id=str(data['id']),
            track_id=str(data['track_id']),
            title=str(data.get('title') or ''),
            artist=str(data.get('artist') or ''),
            album=str(data.get('album') or ''),
            duration=optional_int(data.get('duration')) or 0,
            source=str(data.get('source') or ''),
            cover_url=data.get('cover_url'),
            created_at=parse_datetime(data.get('created_at')),
            bpm=optional_float(data.get('bpm')),
            key_name=data.get('key_name'),
            camelot=data.get('camelot'),
        )


@dataclass
class SavedAlbum:
    """A saved album; id is the backend record id, album_id the source id."""
    id: str
    album_id: str
    title: str
    artist: str
    source: str
    track_count: int = 0
    release_date: Optional[str] = None
    cover_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.album_id, self.source)

    def to_album(self) -> Album:
        return Album(
            id=self.album_id,
            title=self.title,
            artist=self.artist,
            release_date=self.release_date,
            cover_url=self.cover_url,
            source=self.source,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'SavedAlbum':
        return cls(
            id=str(data['id']),
            album_id=str(data['album_id']),
            title=str(data.get('title') or ''),
            artist=str(data.get('artist') or ''),
            source=str(data.get('source') or ''),
            track_count=optional_int(data.get('track_count')) or 0,
            release_date=data.get('release_date'),
            cover_url=data.get('cover_url'),
            created_at=parse_datetime(data.get('created_at')),
        )


def save_track_request(track: Track) -> dict:
    """Body of POST /saved-tracks"""
    return {
        'track_id': track.id,
        'title': track.title,
        'artist': track.artist,
        'album': track.album,
        'duration': track.duration or 0,
        'source': track.source,
        'cover_url': track.cover_url,
    }


def save_album_request(album: Album) -> dict:
    """Body of POST /albums/save"""
    return {
        'album_id': album.id,
        'title': album.title,
        'artist': album.artist,
        'release_date': album.release_date,
        'cover_url': album.cover_url,
        'source': album.resolved_source,
        'track_count': album.track_count,
    }
