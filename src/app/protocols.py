# -*- coding: utf-8 -*-
"""
Protocols Definition Module

Defines the interface protocols (Protocol) the facade depends on.
Uses Protocol instead of ABC to support structural subtyping checks.

Design Decisions:
- Default to using Protocol + @runtime_checkable
- ABC is only used for base classes that need to share default implementations (e.g., AudioEngineBase)
- Runtime checks are performed as one-time assertions during container assembly or testing
"""

from __future__ import annotations

from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

if TYPE_CHECKING:
    from models.queue import PlaylistQueueItem, QueueItem
    from models.search import SearchResults, SearchType
    from models.track import Track


# =============================================================================
# Event Bus Protocol
# =============================================================================

@runtime_checkable
class IEventBus(Protocol):
    """Event Bus Interface

    Provides a publish-subscribe pattern event system.
    """

    def subscribe(
        self,
        event_type: Enum,
        callback: Callable[[Any], None]
    ) -> str:
        """Subscribe to an event

        Returns:
            Subscription ID, used to unsubscribe
        """
        ...

    def unsubscribe(self, subscription_id: str) -> bool:
        ...

    def publish(self, event_type: Enum, data: Any = None) -> None:
        ...

    def publish_sync(self, event_type: Enum, data: Any = None) -> None:
        """Publish an event and run all callbacks in the calling thread"""
        ...


# =============================================================================
# Configuration Service Protocol
# =============================================================================

@runtime_checkable
class IConfigService(Protocol):
    """Configuration Service Interface"""

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-separated key"""
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def save(self) -> bool:
        ...


# =============================================================================
# Playback Protocol
# =============================================================================

@runtime_checkable
class IPlayerService(Protocol):
    """Playback Service Interface"""

    def play_track(self, track: "Track", clear_queue: bool = True) -> bool:
        ...

    def play_playlist(self, item: "PlaylistQueueItem", replace_queue: bool = True) -> bool:
        ...

    def play_next_track(self) -> bool:
        ...

    def play_previous_track(self) -> bool:
        ...

    def pause(self) -> bool:
        ...

    def resume(self) -> bool:
        ...

    def toggle_play_pause(self) -> bool:
        ...

    def stop_playback(self) -> None:
        ...

    def seek_to(self, position_ms: int) -> bool:
        """Raises UnsupportedOperationError for non-seekable streams"""
        ...

    def set_volume(self, volume: float) -> None:
        ...

    def get_volume(self) -> float:
        ...

    def update_track_bpm(self, track_id: str, bpm: float) -> bool:
        ...

    @property
    def current_track(self) -> Optional["Track"]:
        ...

    @property
    def is_playing(self) -> bool:
        ...


# =============================================================================
# Queue Protocol
# =============================================================================

@runtime_checkable
class IQueueService(Protocol):
    """Queue Service Interface"""

    @property
    def queue(self) -> List["QueueItem"]:
        ...

    @property
    def playlist_queue(self) -> List["PlaylistQueueItem"]:
        ...

    def load_queue(self) -> bool:
        ...

    def add_to_queue(self, track: "Track") -> bool:
        ...

    def remove_from_queue(self, item_id: str) -> bool:
        ...

    def reorder_queue(self, item_id: str, new_position: int) -> bool:
        ...

    def clear_queue(self) -> bool:
        ...


# =============================================================================
# Search Protocol
# =============================================================================

@runtime_checkable
class ISearchService(Protocol):
    """Search Service Interface"""

    def search(
        self,
        query: str,
        search_type: "SearchType" = ...,
        page: int = 1,
        library: bool = False,
    ) -> Optional["SearchResults"]:
        ...

    def next_page(self) -> Optional["SearchResults"]:
        ...

    def previous_page(self) -> Optional["SearchResults"]:
        ...

    def go_to_page(self, page: int) -> Optional["SearchResults"]:
        ...

    def update_track_bpm(self, track_id: str, bpm: float) -> bool:
        ...

    @property
    def results(self) -> Optional["SearchResults"]:
        ...
