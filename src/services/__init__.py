"""
Service Layer Module
"""

from .config_service import ConfigService
from .player_service import PlayerService, PlaybackStatus, PlaybackSnapshot
from .queue_service import QueueService
from .search_service import SearchService, SearchRequest
from .playlist_service import PlaylistService
from .saved_tracks_service import SavedTracksService
from .saved_albums_service import SavedAlbumsService
from .auth_service import AuthService
from .streaming_service import StreamingService
from .connectivity_service import ConnectivityService
from .queue_persistence_service import QueuePersistenceService
from .audio_info_probe import AudioInfoProbe

__all__ = [
    'ConfigService',
    'PlayerService',
    'PlaybackStatus',
    'PlaybackSnapshot',
    'QueueService',
    'SearchService',
    'SearchRequest',
    'PlaylistService',
    'SavedTracksService',
    'SavedAlbumsService',
    'AuthService',
    'StreamingService',
    'ConnectivityService',
    'QueuePersistenceService',
    'AudioInfoProbe',
]
