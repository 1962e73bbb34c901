"""
Queue and playlist-queue coordinator tests
"""

import pytest

from conftest import EventRecorder
from core.event_bus import EventType
from models.queue import LoopMode, PlaylistQueueItem
from models.track import Track
from services.api.queue_api import QueueApi
from services.queue_service import QueueService


def _queue_row(item_id, track_id, position):
    return {
        "id": item_id,
        "track_id": track_id,
        "title": f"Title {track_id}",
        "artist": "Artist",
        "album": "Album",
        "duration": 200,
        "source": "qobuz",
        "position": position,
    }


def _playlist_item(loop_mode=LoopMode.ONCE, track_count=3, item_id="pq1", index=0) -> PlaylistQueueItem:
    return PlaylistQueueItem(
        id=item_id,
        playlist_id=f"pl-{item_id}",
        playlist_name=f"Playlist {item_id}",
        track_order=tuple(f"t{i}" for i in range(track_count)),
        loop_mode=loop_mode,
        current_track_index=index,
    )


@pytest.fixture
def queue(api_client, event_bus):
    return QueueService(QueueApi(api_client), event_bus=event_bus)


class TestPlainQueue:

    def test_load_sorts_by_server_position(self, queue, fake_api):
        fake_api.on("GET", "/queue", [_queue_row("q2", "b", 2), _queue_row("q1", "a", 1)])

        assert queue.load_queue() is True
        assert [i.id for i in queue.queue] == ["q1", "q2"]
        assert queue.get_next_track().track_id == "a"

    def test_add_reloads_from_backend(self, queue, fake_api):
        fake_api.on("POST", "/queue", None)
        fake_api.on("GET", "/queue", [_queue_row("q9", "x", 1)])

        assert queue.add_to_queue(Track(id="x", source="qobuz")) is True

        methods = [(c.method, c.path) for c in fake_api.calls]
        assert methods == [("POST", "/queue"), ("GET", "/queue")]
        assert fake_api.calls[0].body["track_id"] == "x"
        assert [i.id for i in queue.queue] == ["q9"]

    def test_reorder_sends_new_position_then_reloads(self, queue, fake_api):
        fake_api.on("PUT", "/queue/q1/reorder", None)
        fake_api.on("GET", "/queue", [])

        assert queue.reorder_queue("q1", 3) is True
        assert fake_api.calls_to("PUT", "/queue/q1/reorder")[0].body == {"new_position": 3}
        assert len(fake_api.calls_to("GET", "/queue")) == 1

    def test_failed_add_retains_error_and_skips_reload(self, queue, fake_api, event_bus):
        recorder = EventRecorder(event_bus, EventType.ERROR_OCCURRED)
        fake_api.fail("POST", "/queue", message="Queue is full")

        assert queue.add_to_queue(Track(id="x")) is False
        assert queue.error == "Queue is full"
        assert fake_api.calls_to("GET", "/queue") == []
        assert recorder.of(EventType.ERROR_OCCURRED)[0]["source"] == "QueueService"

    def test_clear_empties_local_copy_only_on_success(self, queue, fake_api):
        fake_api.on("GET", "/queue", [_queue_row("q1", "a", 1)])
        queue.load_queue()

        fake_api.fail("DELETE", "/queue")
        assert queue.clear_queue() is False
        assert len(queue.queue) == 1

        fake_api.on("DELETE", "/queue", None)
        assert queue.clear_queue() is True
        assert queue.queue == []

    def test_move_to_next_pops_head(self, queue, fake_api):
        rows = [_queue_row("q1", "a", 1), _queue_row("q2", "b", 2)]
        fake_api.on("GET", "/queue", handler=lambda call: rows)

        def _delete(call):
            rows.pop(0)
            return None
        fake_api.on("DELETE", "/queue/q1", handler=_delete)
        queue.load_queue()

        head = queue.move_to_next()

        assert head.id == "q1"
        assert [i.id for i in queue.queue] == ["q2"]

    def test_move_to_next_on_empty_queue(self, queue):
        assert queue.move_to_next() is None

    def test_queue_length_counts_both_queues(self, queue, fake_api):
        fake_api.on("GET", "/queue", [_queue_row("q1", "a", 1)])
        queue.load_queue()
        queue.add_playlist_to_queue(_playlist_item())

        assert queue.queue_length == 2


class TestPlaylistQueueLoopModes:

    def _advance(self, queue, steps):
        indexes = []
        for _ in range(steps):
            updated = queue.move_to_next_track()
            indexes.append(None if updated is None else updated.current_track_index)
        return indexes

    def test_once_removes_after_last_track(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.ONCE))

        assert self._advance(queue, 3) == [1, 2, None]
        assert queue.playlist_queue == []

    def test_twice_plays_through_two_times(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.TWICE))

        assert self._advance(queue, 6) == [1, 2, 0, 1, 2, None]
        assert queue.playlist_queue == []

    def test_infinite_always_wraps(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.INFINITE, track_count=2))

        assert self._advance(queue, 5) == [1, 0, 1, 0, 1]
        assert len(queue.playlist_queue) == 1

    def test_empty_track_order_is_removed(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.INFINITE, track_count=0))

        assert queue.move_to_next_track() is None
        assert queue.playlist_queue == []

    def test_removal_exposes_next_playlist(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.ONCE, track_count=1, item_id="first"))
        queue.add_playlist_to_queue(_playlist_item(LoopMode.ONCE, item_id="second"))

        assert queue.move_to_next_track() is None
        assert queue.get_current_playlist_queue_item().id == "second"

    def test_previous_once_refuses_underflow(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.ONCE))

        assert queue.move_to_previous_track() is None
        assert queue.get_current_playlist_queue_item().current_track_index == 0

    def test_previous_infinite_wraps_to_last(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.INFINITE))

        updated = queue.move_to_previous_track()
        assert updated.current_track_index == 2

    def test_previous_steps_back(self, queue):
        queue.add_playlist_to_queue(_playlist_item(LoopMode.ONCE, index=2))

        assert queue.move_to_previous_track().current_track_index == 1

    def test_current_track_id(self, queue):
        queue.add_playlist_to_queue(_playlist_item(index=1))
        assert queue.get_current_track_id() == "t1"

    def test_update_current_track_details(self, queue):
        queue.add_playlist_to_queue(_playlist_item())
        track = Track(id="t0", title="Real Title", artist="Real Artist", source="tidal")

        updated = queue.update_current_track_details(track)

        assert updated.current_track_title == "Real Title"
        assert queue.get_current_playlist_queue_item().current_track_source == "tidal"

    def test_changes_publish_playlist_queue_event(self, queue, event_bus):
        recorder = EventRecorder(event_bus, EventType.PLAYLIST_QUEUE_CHANGED)

        queue.add_playlist_to_queue(_playlist_item())
        queue.move_to_next_track()
        queue.clear_playlist_queue()

        published = recorder.of(EventType.PLAYLIST_QUEUE_CHANGED)
        assert len(published) == 3
        assert published[-1] == []
