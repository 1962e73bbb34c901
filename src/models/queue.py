"""
Queue data models

QueueItem mirrors the backend-persisted FIFO queue; PlaylistQueueItem is the
client-side cursor for "playing through playlist X".
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from models.serialization import format_datetime, optional_int, parse_datetime
from models.track import Track, format_seconds, format_source


class PlayMode(Enum):
    """Order in which a playlist is played"""
    NORMAL = "normal"
    SHUFFLE = "shuffle"


class LoopMode(Enum):
    """What happens when a playlist-queue item runs out of tracks"""
    ONCE = "once"
    TWICE = "twice"
    INFINITE = "infinite"


@dataclass
class QueueItem:
    """Entry of the backend-owned play queue (position is server-assigned)"""
    id: str
    track_id: str
    title: str
    artist: str
    album: str
    duration: int
    source: str
    cover_url: Optional[str] = None
    position: int = 0
    added_at: Optional[datetime] = None

    @property
    def formatted_duration(self) -> str:
        return format_seconds(self.duration)

    @property
    def formatted_source(self) -> str:
        return format_source(self.source)

    def to_track(self) -> Track:
        """Track for playback; the stream URL is resolved when played."""
        return Track(
            id=self.track_id,
            title=self.title,
            artist=self.artist,
            album=self.album,
            duration=self.duration,
            cover_url=self.cover_url,
            source=self.source,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'QueueItem':
        return cls(
            id=str(data['id']),
            track_id=str(data['track_id']),
            title=str(data.get('title') or ''),
            artist=str(data.get('artist') or ''),
            album=str(data.get('album') or ''),
            duration=optional_int(data.get('duration')) or 0,
            source=str(data.get('source') or ''),
            cover_url=data.get('cover_url'),
            position=optional_int(data.get('position')) or 0,
            added_at=parse_datetime(data.get('added_at')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'track_id': self.track_id,
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'duration': self.duration,
            'source': self.source,
            'cover_url': self.cover_url,
            'position': self.position,
            'added_at': format_datetime(self.added_at),
        }


@dataclass(frozen=True)
class PlaylistQueueItem:
    """
    Cursor over a playlist being played

    The current_track_* fields duplicate the current track's display data so
    it can be shown and started without fetching the playlist items first.
    loops_completed counts wraparounds, used by LoopMode.TWICE.
    """
    id: str
    playlist_id: str
    playlist_name: str
    track_order: Tuple[str, ...]
    playlist_description: Optional[str] = None
    cover_url: Optional[str] = None
    play_mode: PlayMode = PlayMode.NORMAL
    loop_mode: LoopMode = LoopMode.ONCE
    current_track_index: int = 0
    loops_completed: int = 0
    added_at: datetime = field(default_factory=datetime.now)
    current_track_id: Optional[str] = None
    current_track_title: Optional[str] = None
    current_track_artist: Optional[str] = None
    current_track_album: Optional[str] = None
    current_track_duration: Optional[int] = None
    current_track_source: Optional[str] = None
    current_track_cover_url: Optional[str] = None

    @property
    def track_count(self) -> int:
        return len(self.track_order)

    def track_id_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.track_order):
            return self.track_order[index]
        return None

    @property
    def current_track_id_at_index(self) -> Optional[str]:
        return self.track_id_at(self.current_track_index)

    def with_changes(self, **changes) -> 'PlaylistQueueItem':
        return replace(self, **changes)

    def with_current_track(self, track: Optional[Track]) -> 'PlaylistQueueItem':
        """Refresh the denormalized current-track fields."""
        if track is None:
            return replace(
                self,
                current_track_id=self.current_track_id_at_index,
                current_track_title=None,
                current_track_artist=None,
                current_track_album=None,
                current_track_duration=None,
                current_track_source=None,
                current_track_cover_url=None,
            )
        return replace(
            self,
            current_track_id=track.id,
            current_track_title=track.title,
            current_track_artist=track.artist,
            current_track_album=track.album,
            current_track_duration=track.duration,
            current_track_source=track.source,
            current_track_cover_url=track.cover_url,
        )

    def placeholder_track(self, index: int) -> Track:
        """Minimal track for an index whose details could not be fetched."""
        return Track(
            id=self.track_id_at(index) or "",
            title=f"Track {index + 1}",
            artist=f"From {self.playlist_name}",
            album=self.playlist_name,
            source="qobuz",
        )

    def current_track(self) -> Track:
        """Track built from the denormalized fields, placeholders where missing."""
        index = self.current_track_index
        return Track(
            id=self.current_track_id or self.track_id_at(index) or "",
            title=self.current_track_title or f"Track {index + 1}",
            artist=self.current_track_artist or f"From {self.playlist_name}",
            album=self.current_track_album or self.playlist_name,
            duration=self.current_track_duration,
            cover_url=self.current_track_cover_url,
            source=self.current_track_source or "qobuz",
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'playlist_id': self.playlist_id,
            'playlist_name': self.playlist_name,
            'playlist_description': self.playlist_description,
            'cover_url': self.cover_url,
            'play_mode': self.play_mode.value,
            'loop_mode': self.loop_mode.value,
            'track_order': list(self.track_order),
            'current_track_index': self.current_track_index,
            'loops_completed': self.loops_completed,
            'added_at': format_datetime(self.added_at),
            'current_track_id': self.current_track_id,
            'current_track_title': self.current_track_title,
            'current_track_artist': self.current_track_artist,
            'current_track_album': self.current_track_album,
            'current_track_duration': self.current_track_duration,
            'current_track_source': self.current_track_source,
            'current_track_cover_url': self.current_track_cover_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PlaylistQueueItem':
        return cls(
            id=str(data['id']),
            playlist_id=str(data['playlist_id']),
            playlist_name=str(data.get('playlist_name') or ''),
            track_order=tuple(str(t) for t in data.get('track_order') or []),
            playlist_description=data.get('playlist_description'),
            cover_url=data.get('cover_url'),
            play_mode=PlayMode(data.get('play_mode') or PlayMode.NORMAL.value),
            loop_mode=LoopMode(data.get('loop_mode') or LoopMode.ONCE.value),
            current_track_index=optional_int(data.get('current_track_index')) or 0,
            loops_completed=optional_int(data.get('loops_completed')) or 0,
            added_at=parse_datetime(data.get('added_at')) or datetime.now(),
            current_track_id=data.get('current_track_id'),
            current_track_title=data.get('current_track_title'),
            current_track_artist=data.get('current_track_artist'),
            current_track_album=data.get('current_track_album'),
            current_track_duration=optional_int(data.get('current_track_duration')),
            current_track_source=data.get('current_track_source'),
            current_track_cover_url=data.get('current_track_cover_url'),
        )
