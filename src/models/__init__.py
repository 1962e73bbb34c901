"""
Data Models Module
"""

from .track import Track, Source
from .album import Album
from .search import SearchResults, SearchType, PlaylistSearchResult
from .queue import QueueItem, PlaylistQueueItem, PlayMode, LoopMode
from .playlist import Playlist, PlaylistItem, PlaylistPage
from .saved import SavedTrack, SavedAlbum
from .user import User, AuthSession
from .service import ServiceInfo, ServiceStatus, BackendStreamUrl, AudioOutputInfo

__all__ = [
    'Track', 'Source', 'Album',
    'SearchResults', 'SearchType', 'PlaylistSearchResult',
    'QueueItem', 'PlaylistQueueItem', 'PlayMode', 'LoopMode',
    'Playlist', 'PlaylistItem', 'PlaylistPage',
    'SavedTrack', 'SavedAlbum',
    'User', 'AuthSession',
    'ServiceInfo', 'ServiceStatus', 'BackendStreamUrl', 'AudioOutputInfo',
]
