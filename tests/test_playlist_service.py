"""
User playlist tests
"""

import random

import pytest

from conftest import EventRecorder
from core.event_bus import EventType
from models.playlist import Playlist, PlaylistItem
from models.queue import LoopMode, PlayMode
from models.track import Track
from services.api.playlist_api import PlaylistApi
from services.playlist_service import PlaylistService


def _playlist(playlist_id, name=None, item_count=0):
    return {"id": playlist_id, "name": name or f"List {playlist_id}", "item_count": item_count}


def _entry(index, track_id, item_type="track"):
    return PlaylistItem.from_dict({
        "id": f"e{index}", "item_type": item_type, "item_id": track_id, "position": index,
        "title": f"Title {track_id}", "artist": "Band", "source": "tidal", "duration": 120,
        "is_playlist": item_type == "playlist",
    })


@pytest.fixture
def playlists(api_client, event_bus):
    return PlaylistService(PlaylistApi(api_client), event_bus=event_bus, rng=random.Random(7))


class TestPlaylists:

    def test_load_pages(self, playlists, fake_api):
        fake_api.on("GET", "/v2/playlists", handler=lambda call: {
            "playlists": [_playlist(f"p{call.params['page']}")], "total": 2,
        })

        playlists.load(1)
        playlists.load(2)

        assert [p.id for p in playlists.playlists] == ["p1", "p2"]
        assert playlists.total == 2
        assert fake_api.calls[-1].params["per_page"] == "20"

    def test_create_inserts_at_front(self, playlists, fake_api, event_bus):
        recorder = EventRecorder(event_bus, EventType.PLAYLISTS_CHANGED)
        fake_api.on("GET", "/v2/playlists", {"playlists": [_playlist("p1")], "total": 1})
        fake_api.on("POST", "/v2/playlists", _playlist("p2", "Road trip"))
        playlists.load()

        created = playlists.create("Road trip", "songs for the car")

        assert created.name == "Road trip"
        assert [p.id for p in playlists.playlists] == ["p2", "p1"]
        assert fake_api.calls[-1].body == {"name": "Road trip", "description": "songs for the car", "is_public": False}
        assert len(recorder.of(EventType.PLAYLISTS_CHANGED)) == 2

    def test_create_failure(self, playlists, fake_api):
        fake_api.fail("POST", "/v2/playlists", message="name taken")

        assert playlists.create("dup") is None
        assert playlists.error == "name taken"

    def test_update_and_delete(self, playlists, fake_api):
        fake_api.on("GET", "/v2/playlists", {"playlists": [_playlist("p1"), _playlist("p2")], "total": 2})
        fake_api.on("PUT", "/v2/playlists/p1", _playlist("p1", "Renamed"))
        fake_api.on("DELETE", "/v2/playlists/p2", None)
        playlists.load()

        playlists.update("p1", name="Renamed")
        assert fake_api.calls_to("PUT", "/v2/playlists/p1")[0].body == {"name": "Renamed"}
        assert playlists.delete("p2") is True

        assert [(p.id, p.name) for p in playlists.playlists] == [("p1", "Renamed")]
        assert playlists.total == 1

    def test_items_are_cached_until_changed(self, playlists, fake_api):
        fake_api.on("GET", "/v2/playlists", {"playlists": [_playlist("p1", item_count=1)], "total": 1})
        fake_api.on("GET", "/v2/playlists/p1/items", [{"id": "e1", "item_id": "t1", "position": 0}])
        fake_api.on("POST", "/v2/playlists/p1/items", {"id": "e2", "item_id": "t2", "position": 1})
        playlists.load()

        playlists.get_items("p1")
        playlists.get_items("p1")
        assert len(fake_api.calls_to("GET", "/v2/playlists/p1/items")) == 1

        assert playlists.add_track("p1", Track(id="t2", source="tidal")) is True
        playlists.get_items("p1")
        assert len(fake_api.calls_to("GET", "/v2/playlists/p1/items")) == 2
        assert playlists.playlists[0].item_count == 2

    def test_playlist_cannot_contain_itself(self, playlists, fake_api):
        assert playlists.add_playlist("p1", Playlist(id="p1", name="Self")) is False
        assert fake_api.calls == []

    def test_nested_playlist(self, playlists, fake_api):
        fake_api.on("POST", "/v2/playlists/p1/items", {"id": "e9", "item_type": "playlist", "item_id": "p2"})

        assert playlists.add_playlist("p1", Playlist(id="p2", name="Inner")) is True
        body = fake_api.calls[-1].body
        assert body["item_type"] == "playlist"
        assert body["playlist_name"] == "Inner"

    def test_remove_and_reorder_items(self, playlists, fake_api):
        fake_api.on("DELETE", "/v2/playlists/p1/items/e1", None)
        fake_api.on("PUT", "/v2/playlists/p1/items/e2/reorder", None)

        assert playlists.remove_item("p1", "e1") is True
        assert playlists.reorder_item("p1", "e2", 0) is True
        assert fake_api.calls[-1].body == {"new_position": 0}


class TestPlayRequest:

    def test_normal_order_skips_nested_playlists(self, playlists):
        items = [_entry(0, "a"), _entry(1, "p9", "playlist"), _entry(2, "b")]

        entry = playlists.build_play_request(Playlist(id="p1", name="Mix"), items, loop_mode=LoopMode.TWICE)

        assert entry.track_order == ("a", "b")
        assert entry.loop_mode == LoopMode.TWICE
        assert entry.current_track_index == 0
        assert entry.current_track_id == "a"
        assert entry.current_track_title == "Title a"
        assert entry.current_track_source == "tidal"

    def test_shuffle_uses_given_rng(self, playlists):
        items = [_entry(i, f"t{i}") for i in range(8)]
        expected = [f"t{i}" for i in range(8)]
        random.Random(7).shuffle(expected)

        entry = playlists.build_play_request(Playlist(id="p1", name="Mix"), items, PlayMode.SHUFFLE)

        assert list(entry.track_order) == expected
        assert entry.current_track_id == expected[0]
        assert entry.play_mode == PlayMode.SHUFFLE

    def test_entries_get_unique_ids(self, playlists):
        items = [_entry(0, "a")]
        playlist = Playlist(id="p1", name="Mix")

        first = playlists.build_play_request(playlist, items)
        second = playlists.build_play_request(playlist, items)

        assert first.id != second.id

    def test_empty_playlist(self, playlists):
        items = [_entry(0, "p9", "playlist")]

        assert playlists.build_play_request(Playlist(id="p1", name="Empty"), items) is None
        assert playlists.error == "This playlist has no tracks to play"
