"""
Playlist Queue Persistence Service

Supports:
- restoring the playlist queue after a restart
- saving it whenever it changes
"""

from __future__ import annotations

from typing import Any, List, Optional
import json
import logging

from core.database import DatabaseManager
from core.event_bus import EventBus, EventType
from core.ports.database import IStateStore
from models.queue import PlaylistQueueItem
from services.config_service import ConfigService
from services.queue_service import QueueService

logger = logging.getLogger(__name__)


class QueuePersistenceService:
    LAST_PLAYLIST_QUEUE_KEY = "playback.playlist_queue"

    def __init__(
        self,
        db: Optional[IStateStore] = None,
        config: Optional[ConfigService] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self._db = db or DatabaseManager()
        self._config = config or ConfigService()
        self._event_bus = event_bus or EventBus()

        self._enabled = bool(self._config.get("playback.persist_playlist_queue", True))

        self._queue: Optional[QueueService] = None
        self._sub_ids: List[str] = []
        self._suppress = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def attach(self, queue_service: QueueService) -> None:
        """Bind the queue service and save on every playlist-queue change."""
        self._queue = queue_service
        if not self._enabled:
            return
        self._sub_ids.append(
            self._event_bus.subscribe(EventType.PLAYLIST_QUEUE_CHANGED, self._on_playlist_queue_changed)
        )

    def shutdown(self) -> None:
        """Unsubscribe (on application exit)."""
        for sub_id in self._sub_ids:
            self._event_bus.unsubscribe(sub_id)
        self._sub_ids.clear()
        self._queue = None

    def save(self, items: List[PlaylistQueueItem]) -> None:
        if not self._enabled:
            return
        raw = json.dumps([item.to_dict() for item in items], ensure_ascii=False)
        self._db.set_state(self.LAST_PLAYLIST_QUEUE_KEY, raw)

    def load(self) -> List[PlaylistQueueItem]:
        """Read the saved playlist queue; unreadable entries are skipped."""
        raw = self._db.get_state(self.LAST_PLAYLIST_QUEUE_KEY)
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Saved playlist queue is not valid JSON; ignoring it")
            return []
        if not isinstance(data, list):
            return []

        items: List[PlaylistQueueItem] = []
        for entry in data:
            try:
                items.append(PlaylistQueueItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable playlist queue entry: %s", e)
        return items

    def restore(self, queue_service: Optional[QueueService] = None) -> bool:
        """Load the saved playlist queue into the queue service."""
        queue = queue_service or self._queue
        if not self._enabled or queue is None:
            return False

        items = self.load()
        if not items:
            return False

        self._suppress = True
        try:
            queue.restore_playlist_queue(items)
        finally:
            self._suppress = False
        logger.info("Restored %d playlist queue entries", len(items))
        return True

    def clear(self) -> None:
        self._db.delete_state(self.LAST_PLAYLIST_QUEUE_KEY)

    def _on_playlist_queue_changed(self, items: Any) -> None:
        if self._suppress:
            return
        self.save(list(items or []))
