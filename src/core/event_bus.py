# -*- coding: utf-8 -*-
"""
Event Bus Module - Publish-Subscribe Pattern Implementation

Coordinators publish state transitions here instead of notifying listeners
directly, so tests and front ends can observe them without a UI tree.

Design Notes:
- Pure Python, no UI framework dependency
- publish() dispatches on a small thread pool, publish_sync() runs inline
- A failing callback is logged and never breaks the publisher
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional
from enum import Enum
import threading
import uuid
import logging
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event type enumeration"""

    # Playback events
    TRACK_STARTED = "track_started"
    TRACK_ENDED = "track_ended"
    PLAYBACK_STATE_CHANGED = "playback_state_changed"
    PLAYBACK_STOPPED = "playback_stopped"  # Manual stop (distinguished from natural end)
    POSITION_CHANGED = "position_changed"
    VOLUME_CHANGED = "volume_changed"
    AUDIO_INFO_CHANGED = "audio_info_changed"
    TRACK_ANALYZED = "track_analyzed"

    # Queue events
    QUEUE_CHANGED = "queue_changed"
    PLAYLIST_QUEUE_CHANGED = "playlist_queue_changed"

    # Search events
    SEARCH_STARTED = "search_started"
    SEARCH_RESULTS_CHANGED = "search_results_changed"

    # Library events
    SAVED_TRACKS_CHANGED = "saved_tracks_changed"
    SAVED_ALBUMS_CHANGED = "saved_albums_changed"
    PLAYLISTS_CHANGED = "playlists_changed"

    # Session and services
    AUTH_CHANGED = "auth_changed"
    SESSION_EXPIRED = "session_expired"
    SERVICES_CHANGED = "services_changed"
    BACKEND_STATUS_CHANGED = "backend_status_changed"

    # System events
    CONFIG_CHANGED = "config_changed"
    ERROR_OCCURRED = "error_occurred"


class _Subscription(NamedTuple):
    event_type: EventType
    callback: Callable[[Any], None]


class EventBus:
    """
    Event Bus - Singleton Pattern

    Usage example:
        event_bus = EventBus()

        def on_track_started(track):
            logger.info("Playing: %s", track.title)

        sub_id = event_bus.subscribe(EventType.TRACK_STARTED, on_track_started)
        event_bus.publish(EventType.TRACK_STARTED, track)
        event_bus.unsubscribe(sub_id)

    Tests that need isolation should use EventBus.create_isolated().
    """

    _instance: Optional['EventBus'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'EventBus':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._setup()

    def _setup(self) -> None:
        # Insertion order doubles as delivery order
        self._subscriptions: Dict[str, _Subscription] = {}
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="EventBus")
        self._sub_lock = threading.Lock()
        self._initialized = True

    @classmethod
    def create_isolated(cls) -> 'EventBus':
        """Create a non-singleton bus (composition root for tests)."""
        bus = object.__new__(cls)
        bus._setup()
        return bus

    def subscribe(self, event_type: EventType, callback: Callable[[Any], None]) -> str:
        """
        Register a callback for one event type.

        Args:
            event_type: Event type
            callback: Called with the event data

        Returns:
            str: Subscription ID, used for unsubscription
        """
        subscription_id = uuid.uuid4().hex
        with self._sub_lock:
            self._subscriptions[subscription_id] = _Subscription(event_type, callback)
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe; returns whether the subscription existed."""
        with self._sub_lock:
            return self._subscriptions.pop(subscription_id, None) is not None

    def _callbacks_for(self, event_type: EventType) -> List[Callable[[Any], None]]:
        with self._sub_lock:
            return [s.callback for s in self._subscriptions.values() if s.event_type == event_type]

    def publish(self, event_type: EventType, data: Any = None) -> None:
        """Publish event asynchronously on the bus thread pool."""
        for callback in self._callbacks_for(event_type):
            self._executor.submit(self._deliver, event_type, callback, data)

    def publish_sync(self, event_type: EventType, data: Any = None) -> None:
        """Run every callback for the event in the calling thread, in subscription order."""
        for callback in self._callbacks_for(event_type):
            self._deliver(event_type, callback, data)

    def _deliver(self, event_type: EventType, callback: Callable[[Any], None], data: Any) -> None:
        try:
            callback(data)
        except Exception as e:
            # Do not publish ERROR_OCCURRED here, it could loop
            logger.error("Subscriber for %s failed: %s", event_type.value, e)

    def shutdown(self) -> None:
        """Shutdown the event bus"""
        self._executor.shutdown(wait=True)

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing only)"""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
                cls._instance = None
