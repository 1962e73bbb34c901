"""
Music Client Core Module
"""

from .event_bus import EventBus, EventType
from .audio_engine import AudioEngineBase, NullAudioEngine, PlayerState, PlaybackEndInfo
from .database import DatabaseManager
from .session_store import SessionStore
from .api_client import ApiClient
from .engine_factory import AudioEngineFactory
from .errors import (
    MusicClientError,
    NetworkError,
    NetworkTimeoutError,
    AuthError,
    BackendError,
    NotFoundError,
    UnsupportedOperationError,
)

__all__ = [
    'EventBus',
    'EventType',
    'AudioEngineBase',
    'NullAudioEngine',
    'PlayerState',
    'PlaybackEndInfo',
    'DatabaseManager',
    'SessionStore',
    'ApiClient',
    'AudioEngineFactory',
    'MusicClientError',
    'NetworkError',
    'NetworkTimeoutError',
    'AuthError',
    'BackendError',
    'NotFoundError',
    'UnsupportedOperationError',
]
