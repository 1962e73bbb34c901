"""
Search result models
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import List, Optional

from models.album import Album
from models.serialization import optional_int
from models.track import Track

logger = logging.getLogger(__name__)


class SearchType(Enum):
    """What a search asks the backend for"""
    TRACKS = "tracks"
    ALBUMS = "albums"
    PLAYLISTS = "playlists"
    ALL = "all"

    @property
    def api_type(self) -> Optional[str]:
        """Value of the backend `type` parameter (None for tracks)"""
        return {
            SearchType.TRACKS: None,
            SearchType.ALBUMS: "album",
            SearchType.PLAYLISTS: "playlist",
        }.get(self)


@dataclass
class PlaylistSearchResult:
    """Playlist found in a streaming service catalog"""
    id: str
    name: str = "Unknown Playlist"
    description: Optional[str] = None
    owner: str = "Unknown"
    source: str = "unknown"
    cover_url: Optional[str] = None
    track_count: int = 0
    is_public: bool = True
    external_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'PlaylistSearchResult':
        return cls(
            id=str(data.get('id') or 'unknown'),
            name=str(data.get('name') or 'Unknown Playlist'),
            description=data.get('description'),
            owner=str(data.get('owner') or 'Unknown'),
            source=str(data.get('source') or 'unknown'),
            cover_url=data.get('cover_url'),
            track_count=optional_int(data.get('track_count')) or 0,
            is_public=bool(data.get('is_public', True)),
            external_url=data.get('external_url'),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'owner': self.owner,
            'source': self.source,
            'cover_url': self.cover_url,
            'track_count': self.track_count,
            'is_public': self.is_public,
            'external_url': self.external_url,
        }


@dataclass
class SearchResults:
    """
    One page of search results

    offset + len(items) <= total is not enforced; it only drives
    has_next_page.
    """
    tracks: List[Track] = field(default_factory=list)
    albums: List[Album] = field(default_factory=list)
    playlists: List[PlaylistSearchResult] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0

    @classmethod
    def empty(cls, limit: int = 20, offset: int = 0) -> 'SearchResults':
        return cls(total=0, offset=offset, limit=limit)

    @property
    def is_empty(self) -> bool:
        return not (self.tracks or self.albums or self.playlists)

    @property
    def page_item_count(self) -> int:
        return max(len(self.tracks), len(self.albums), len(self.playlists))

    @property
    def has_next_page(self) -> bool:
        return self.offset + self.page_item_count < self.total

    @property
    def has_previous_page(self) -> bool:
        return self.offset > 0

    def with_tracks(self, tracks: List[Track]) -> 'SearchResults':
        return SearchResults(
            tracks=list(tracks),
            albums=self.albums,
            playlists=self.playlists,
            total=self.total,
            offset=self.offset,
            limit=self.limit,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'SearchResults':
        playlists: List[PlaylistSearchResult] = []
        raw_playlists = data.get('playlists')
        if isinstance(raw_playlists, list):
            for entry in raw_playlists:
                try:
                    playlists.append(PlaylistSearchResult.from_dict(entry))
                except (AttributeError, TypeError) as e:
                    logger.debug("Skipping malformed playlist entry: %s", e)

        return cls(
            tracks=[Track.from_dict(t) for t in (data.get('tracks') or []) if isinstance(t, dict)],
            albums=[Album.from_dict(a) for a in (data.get('albums') or []) if isinstance(a, dict)],
            playlists=playlists,
            total=optional_int(data.get('total')) or 0,
            offset=optional_int(data.get('offset')) or 0,
            limit=optional_int(data.get('limit')) or 0,
        )
