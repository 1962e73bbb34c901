"""
Queue Service Module

Two queues feed the player:
- the plain FIFO queue, owned and ordered by the backend;
- the playlist queue, a client-side list of cursors over playlists being
  played through, each with its own loop mode.
"""

from typing import List, Optional
import logging
import threading

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.queue import LoopMode, PlaylistQueueItem, QueueItem
from models.track import Track
from services.api.queue_api import QueueApi

logger = logging.getLogger(__name__)


class QueueService:
    """
    Queue Service

    Positions of plain-queue items are never computed locally: every
    mutation is followed by a full reload from the backend.

    Example:
        queue = QueueService(QueueApi(client))
        queue.load_queue()
        queue.add_to_queue(track)
        head = queue.get_next_track()
    """

    def __init__(self, queue_api: QueueApi, event_bus: Optional[EventBus] = None):
        self._api = queue_api
        self._event_bus = event_bus or EventBus()
        self._lock = threading.RLock()

        self._queue: List[QueueItem] = []
        self._playlist_queue: List[PlaylistQueueItem] = []
        self._is_loading = False
        self._error: Optional[str] = None

    # ===== State =====

    @property
    def queue(self) -> List[QueueItem]:
        with self._lock:
            return list(self._queue)

    @property
    def playlist_queue(self) -> List[PlaylistQueueItem]:
        with self._lock:
            return list(self._playlist_queue)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def queue_length(self) -> int:
        """Plain queue items plus playlist-queue items"""
        with self._lock:
            return len(self._queue) + len(self._playlist_queue)

    @property
    def has_items(self) -> bool:
        return self.queue_length > 0

    def clear_error(self) -> None:
        self._error = None

    def _fail(self, action: str, error: MusicClientError) -> None:
        self._error = describe_error(error)
        logger.warning("Failed to %s: %s", action, error)
        self._event_bus.publish_sync(EventType.ERROR_OCCURRED, {
            "source": "QueueService",
            "error": self._error,
        })

    # ===== Plain queue (backend owned) =====

    def load_queue(self) -> bool:
        """Replace the local queue with the backend's ordering."""
        self._is_loading = True
        try:
            items = self._api.get_queue()
        except MusicClientError as e:
            self._fail("load queue", e)
            return False
        finally:
            self._is_loading = False

        with self._lock:
            self._queue = items
            self._error = None
        self._event_bus.publish_sync(EventType.QUEUE_CHANGED, self.queue)
        return True

    def refresh(self) -> bool:
        return self.load_queue()

    def add_to_queue(self, track: Track) -> bool:
        try:
            self._api.add_to_queue(track)
        except MusicClientError as e:
            self._fail("add track to queue", e)
            return False
        logger.debug("Queued: %s", track.display_name)
        return self.load_queue()

    def remove_from_queue(self, item_id: str) -> bool:
        try:
            self._api.remove(item_id)
        except MusicClientError as e:
            self._fail("remove track from queue", e)
            return False
        return self.load_queue()

    def reorder_queue(self, item_id: str, new_position: int) -> bool:
        try:
            self._api.reorder(item_id, new_position)
        except MusicClientError as e:
            self._fail("reorder queue", e)
            return False
        return self.load_queue()

    def clear_queue(self) -> bool:
        """Empty the backend queue; the local copy is emptied only on success.

        On failure the local queue keeps mirroring the backend, which still
        holds its items; callers that go on to play (play_track with
        clear_queue) therefore start with a non-empty plain queue.
        """
        self._is_loading = True
        try:
            self._api.clear()
        except MusicClientError as e:
            self._fail("clear queue", e)
            return False
        finally:
            self._is_loading = False

        with self._lock:
            self._queue = []
        self._event_bus.publish_sync(EventType.QUEUE_CHANGED, [])
        return True

    def get_next_track(self) -> Optional[QueueItem]:
        """Head of the plain queue"""
        with self._lock:
            return self._queue[0] if self._queue else None

    def move_to_next(self) -> Optional[QueueItem]:
        """
        Pop the head of the plain queue (delete it on the backend, then reload)

        Returns:
            The removed head, or None if the queue was empty or the delete failed
        """
        head = self.get_next_track()
        if head is None:
            return None
        if not self.remove_from_queue(head.id):
            return None
        return head

    # ===== Playlist queue (client side) =====

    def _publish_playlist_queue(self) -> None:
        self._event_bus.publish_sync(EventType.PLAYLIST_QUEUE_CHANGED, self.playlist_queue)

    def add_playlist_to_queue(self, item: PlaylistQueueItem) -> bool:
        with self._lock:
            self._playlist_queue.append(item)
        logger.info("Playlist queued: %s (%d tracks, loop=%s)",
                    item.playlist_name, item.track_count, item.loop_mode.value)
        self._publish_playlist_queue()
        return True

    def restore_playlist_queue(self, items: List[PlaylistQueueItem]) -> None:
        """Replace the playlist queue wholesale (startup restore)."""
        with self._lock:
            self._playlist_queue = list(items)
        self._publish_playlist_queue()

    def remove_playlist_from_queue(self, item_id: str) -> bool:
        with self._lock:
            before = len(self._playlist_queue)
            self._playlist_queue = [i for i in self._playlist_queue if i.id != item_id]
            removed = len(self._playlist_queue) != before
        if removed:
            self._publish_playlist_queue()
        return removed

    def update_playlist_queue_item(self, updated: PlaylistQueueItem) -> bool:
        with self._lock:
            for index, item in enumerate(self._playlist_queue):
                if item.id == updated.id:
                    self._playlist_queue[index] = updated
                    break
            else:
                return False
        self._publish_playlist_queue()
        return True

    def get_current_playlist_queue_item(self) -> Optional[PlaylistQueueItem]:
        with self._lock:
            return self._playlist_queue[0] if self._playlist_queue else None

    def get_current_track_id(self) -> Optional[str]:
        item = self.get_current_playlist_queue_item()
        return item.current_track_id_at_index if item else None

    def move_to_next_track(self) -> Optional[PlaylistQueueItem]:
        """
        Advance the current playlist cursor

        On overflow: ONCE removes the item, TWICE wraps once more and
        removes on the second overflow, INFINITE always wraps.

        Returns:
            The updated item, or None when there was none or it was removed
        """
        with self._lock:
            item = self.get_current_playlist_queue_item()
            if item is None:
                return None

            next_index = item.current_track_index + 1
            if next_index < item.track_count:
                updated = item.with_changes(current_track_index=next_index)
            elif item.track_count == 0 or item.loop_mode == LoopMode.ONCE:
                updated = None
            elif item.loop_mode == LoopMode.TWICE and item.loops_completed >= 1:
                updated = None
            else:
                updated = item.with_changes(
                    current_track_index=0,
                    loops_completed=item.loops_completed + 1,
                )

        if updated is None:
            logger.info("Playlist finished: %s", item.playlist_name)
            self.remove_playlist_from_queue(item.id)
            return None
        self.update_playlist_queue_item(updated)
        return updated

    def move_to_previous_track(self) -> Optional[PlaylistQueueItem]:
        """
        Step the current playlist cursor back

        On underflow ONCE refuses (returns None, item unchanged); TWICE and
        INFINITE wrap to the last index.
        """
        with self._lock:
            item = self.get_current_playlist_queue_item()
            if item is None or item.track_count == 0:
                return None

            prev_index = item.current_track_index - 1
            if prev_index >= 0:
                updated = item.with_changes(current_track_index=prev_index)
            elif item.loop_mode == LoopMode.ONCE:
                return None
            else:
                updated = item.with_changes(
                    current_track_index=item.track_count - 1,
                    loops_completed=max(0, item.loops_completed - 1),
                )

        self.update_playlist_queue_item(updated)
        return updated

    def update_current_track_details(self, track: Optional[Track]) -> Optional[PlaylistQueueItem]:
        """Refresh the current item's denormalized track fields."""
        item = self.get_current_playlist_queue_item()
        if item is None:
            return None
        updated = item.with_current_track(track)
        self.update_playlist_queue_item(updated)
        return updated

    def clear_playlist_queue(self) -> None:
        with self._lock:
            if not self._playlist_queue:
                return
            self._playlist_queue = []
        self._publish_playlist_queue()
