"""
Backend API wrappers

Stateless translators between backend endpoints and models. Errors from the
gateway propagate unchanged.
"""

from .music_api import MusicApi
from .queue_api import QueueApi
from .playlist_api import PlaylistApi
from .saved_tracks_api import SavedTracksApi
from .saved_albums_api import SavedAlbumsApi
from .auth_api import AuthApi
from .audio_analysis_api import AudioAnalysisApi

__all__ = [
    'MusicApi',
    'QueueApi',
    'PlaylistApi',
    'SavedTracksApi',
    'SavedAlbumsApi',
    'AuthApi',
    'AudioAnalysisApi',
]
