"""
Playback coordinator tests
"""

import socket

import pytest

from conftest import BASE_URL, EventRecorder
from core.errors import UnsupportedOperationError
from core.event_bus import EventType
from models.queue import LoopMode, PlaylistQueueItem
from models.track import Track
from services.api.music_api import MusicApi
from services.api.playlist_api import PlaylistApi
from services.api.queue_api import QueueApi
from services.player_service import PlaybackStatus, PlayerService
from services.queue_service import QueueService


def _provider_url(call):
    return f"https://cdn.test/{call.params['track_id']}.flac"


def _backend_url(call):
    return {"stream_url": f"/api/stream/{call.params['track_id']}", "is_cached": False}


def _stream_url(track_id):
    return f"{BASE_URL}/api/stream/{track_id}"


def _track(track_id="t1", source="qobuz", duration=200):
    return Track(id=track_id, title=f"Song {track_id}", artist="Artist", source=source, duration=duration)


class PlayerHarness:
    """PlayerService wired to FakeApi, FakeAudioEngine and a manual scheduler."""

    def __init__(self, fake_api, api_client, fake_engine, event_bus, scheduler):
        self.api = fake_api
        self.engine = fake_engine
        self.scheduler = scheduler
        self.queue = QueueService(QueueApi(api_client), event_bus=event_bus)
        self.player = PlayerService(
            fake_engine,
            MusicApi(api_client),
            self.queue,
            PlaylistApi(api_client),
            api_client,
            event_bus=event_bus,
            scheduler=scheduler,
            audio_info_interval=0,
        )
        fake_api.on("GET", "/streaming/stream-url", handler=_provider_url)
        fake_api.on("GET", "/streaming/backend-stream-url", handler=_backend_url)
        fake_api.on("DELETE", "/queue", None)


@pytest.fixture
def harness(fake_api, api_client, fake_engine, event_bus, scheduler):
    h = PlayerHarness(fake_api, api_client, fake_engine, event_bus, scheduler)
    yield h
    h.player.cleanup()


class TestPlayTrack:

    def test_resolves_backend_stream_and_plays(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.TRACK_STARTED)

        assert harness.player.play_track(_track("t1")) is True

        backend_call = harness.api.calls_to("GET", "/streaming/backend-stream-url")[0]
        assert backend_call.params["url"] == "https://cdn.test/t1.flac"
        assert backend_call.params["source"] == "qobuz"
        assert backend_call.timeout == 180
        assert harness.engine.loaded == [_stream_url("t1")]

        state = harness.player.state
        assert state.status == PlaybackStatus.PLAYING
        assert state.current_track.stream_url == _stream_url("t1")
        assert state.duration_ms == 200000
        assert recorder.of(EventType.TRACK_STARTED)[0].id == "t1"

    def test_clear_queue_empties_both_queues(self, harness):
        harness.queue.add_playlist_to_queue(
            PlaylistQueueItem(id="pq", playlist_id="pl", playlist_name="P", track_order=("a",))
        )

        harness.player.play_track(_track(), clear_queue=True)

        assert len(harness.api.calls_to("DELETE", "/queue")) == 1
        assert harness.queue.playlist_queue == []

    def test_clear_queue_failure_does_not_block_playback(self, harness):
        harness.api.on("GET", "/queue", [{
            "id": "q1", "track_id": "t2", "title": "Next", "artist": "A",
            "album": "B", "duration": 180, "source": "qobuz", "position": 1,
        }])
        harness.queue.load_queue()
        harness.queue.add_playlist_to_queue(
            PlaylistQueueItem(id="pq", playlist_id="pl", playlist_name="P", track_order=("a",))
        )
        harness.api.fail("DELETE", "/queue")

        assert harness.player.play_track(_track()) is True

        # The backend still holds q1, so the local plain queue keeps it
        assert [item.id for item in harness.queue.queue] == ["q1"]
        assert harness.queue.playlist_queue == []

    def test_keep_queue(self, harness):
        harness.player.play_track(_track(), clear_queue=False)
        assert harness.api.calls_to("DELETE", "/queue") == []

    def test_spotify_is_refused_before_any_request(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.ERROR_OCCURRED)

        assert harness.player.play_track(_track(source="spotify"), clear_queue=False) is False

        assert harness.api.calls == []
        assert harness.player.status == PlaybackStatus.IDLE
        assert harness.player.current_track is None
        assert "Spotify playback is not supported" in harness.player.error
        assert recorder.of(EventType.ERROR_OCCURRED)[0]["source"] == "PlayerService"

    def test_timeout_gets_slow_connection_message(self, harness):
        harness.api.on("GET", "/streaming/stream-url", error=socket.timeout("timed out"))

        assert harness.player.play_track(_track(), clear_queue=False) is False
        assert "taking too long to load" in harness.player.error

    def test_backend_failure_message(self, harness):
        harness.api.fail("GET", "/streaming/backend-stream-url", message="cache full")

        assert harness.player.play_track(_track(), clear_queue=False) is False
        assert harness.player.error == "Failed to play track: cache full"
        assert harness.engine.loaded == []

    def test_engine_refusing_stream(self, harness):
        harness.engine.load_result = False

        assert harness.player.play_track(_track(), clear_queue=False) is False
        assert "Unable to play this audio format" in harness.player.error

    def test_duration_from_engine_during_load_is_kept(self, harness):
        original_load = harness.engine.load

        def load_and_report(url):
            result = original_load(url)
            harness.engine.fire_duration(215000)
            return result
        harness.engine.load = load_and_report

        harness.player.play_track(_track(duration=200), clear_queue=False)
        assert harness.player.duration_ms == 215000


class TestTransport:

    def test_pause_resume_toggle(self, harness):
        harness.player.play_track(_track(), clear_queue=False)

        assert harness.player.toggle_play_pause() is True
        assert harness.player.status == PlaybackStatus.PAUSED
        assert harness.player.resume() is True
        assert harness.player.status == PlaybackStatus.PLAYING
        assert harness.player.resume() is False

    def test_stop_forgets_track(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.PLAYBACK_STOPPED)
        harness.player.play_track(_track(), clear_queue=False)

        harness.player.stop_playback()

        assert harness.player.status == PlaybackStatus.STOPPED
        assert harness.player.current_track is None
        assert harness.engine.stopped >= 1
        assert recorder.of(EventType.PLAYBACK_STOPPED)[0]["reason"] == "stopped"

    def test_volume_is_clamped(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.VOLUME_CHANGED)

        harness.player.set_volume(1.7)
        assert harness.player.get_volume() == 1.0
        assert harness.engine.volume == 1.0

        harness.player.set_volume(-3)
        assert harness.player.get_volume() == 0.0
        assert recorder.of(EventType.VOLUME_CHANGED) == [1.0, 0.0]

    def test_update_track_bpm(self, harness):
        harness.player.play_track(_track("t1"), clear_queue=False)

        assert harness.player.update_track_bpm("t1", 124.0) is True
        assert harness.player.current_track.bpm == 124.0
        assert harness.player.update_track_bpm("other", 90.0) is False


class TestSeek:

    def test_seek_backend_stream(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.POSITION_CHANGED)
        harness.player.play_track(_track(), clear_queue=False)

        assert harness.player.seek_to(60000) is True

        assert harness.engine.seeks == [60000]
        assert harness.player.position_ms == 60000
        assert recorder.of(EventType.POSITION_CHANGED)[-1] == {
            "position": 60000, "duration": 200000, "confirmed": True,
        }

    def test_direct_qobuz_stream_is_not_seekable(self, harness):
        harness.api.on("GET", "/streaming/backend-stream-url",
                       {"stream_url": "https://cdn.test/direct.flac"})
        harness.player.play_track(_track(source="qobuz"), clear_queue=False)

        with pytest.raises(UnsupportedOperationError):
            harness.player.seek_to(1000)
        assert harness.engine.seeks == []

    def test_out_of_range_is_rejected_without_change(self, harness):
        harness.player.play_track(_track(), clear_queue=False)
        harness.engine.fire_position(5000)

        assert harness.player.seek_to(-1) is False
        assert harness.player.seek_to(200001) is False
        assert harness.player.position_ms == 5000
        assert harness.engine.seeks == []

    def test_engine_failure_moves_display_unconfirmed(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.POSITION_CHANGED)
        harness.player.play_track(_track(), clear_queue=False)
        harness.engine.seek_result = RuntimeError("device busy")

        assert harness.player.seek_to(30000) is False

        assert harness.player.position_ms == 30000
        assert recorder.of(EventType.POSITION_CHANGED)[-1]["confirmed"] is False

    def test_seek_without_track(self, harness):
        assert harness.player.seek_to(0) is False


class TestCompletion:

    def _finish(self, harness, position=199500):
        harness.engine.fire_playing(True)
        harness.engine.fire_position(position)
        harness.engine.fire_playing(False)

    def test_position_heuristic_is_debounced(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.TRACK_ENDED)
        harness.player.play_track(_track(), clear_queue=False)

        self._finish(harness)

        assert recorder.of(EventType.TRACK_ENDED) == []
        assert len(harness.scheduler.pending) == 1
        assert harness.scheduler.pending[0].delay == 0.5

        harness.scheduler.run_pending()

        ended = recorder.of(EventType.TRACK_ENDED)
        assert len(ended) == 1
        assert ended[0]["reason"] == "position"
        assert harness.player.status == PlaybackStatus.IDLE
        assert harness.player.current_track.id == "t1"

    def test_not_finished_while_engine_still_plays(self, harness):
        harness.player.play_track(_track(), clear_queue=False)
        harness.engine.fire_playing(True)
        harness.engine.fire_position(199900)

        assert harness.scheduler.pending == []

    def test_recovered_playback_cancels_advance(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.TRACK_ENDED)
        harness.player.play_track(_track(), clear_queue=False)
        self._finish(harness)

        harness.engine.fire_playing(True)
        harness.scheduler.run_pending()

        assert recorder.of(EventType.TRACK_ENDED) == []

    def test_end_event_and_heuristic_advance_once(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.TRACK_ENDED)
        harness.api.on("GET", "/queue", [{
            "id": "q1", "track_id": "t2", "title": "Next", "artist": "A",
            "album": "B", "duration": 180, "source": "qobuz", "position": 1,
        }])
        harness.api.on("DELETE", "/queue/q1", None)
        harness.queue.load_queue()
        harness.player.play_track(_track("t1"), clear_queue=False)

        self._finish(harness)
        harness.engine.fire_end()
        harness.scheduler.run_pending()

        assert len(recorder.of(EventType.TRACK_ENDED)) == 1
        assert harness.engine.loaded == [_stream_url("t1"), _stream_url("t2")]
        assert harness.player.current_track.id == "t2"

    def test_end_of_previous_stream_is_ignored(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.TRACK_ENDED)
        harness.player.play_track(_track("t1"), clear_queue=False)

        harness.engine.fire_end(url=_stream_url("old"))

        assert recorder.of(EventType.TRACK_ENDED) == []
        assert harness.player.status == PlaybackStatus.PLAYING

    def test_engine_error_goes_idle(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.ERROR_OCCURRED)
        harness.player.play_track(_track(), clear_queue=False)

        harness.engine.fire_error("decoder crashed")

        assert harness.player.status == PlaybackStatus.IDLE
        assert harness.player.error == "decoder crashed"
        assert recorder.of(EventType.ERROR_OCCURRED)[-1]["error"] == "decoder crashed"


class TestNextTrack:

    def _playlist_route(self, harness, playlist_id, ids):
        harness.api.on("GET", f"/v2/playlists/{playlist_id}/items", [
            {"id": f"e{i}", "item_type": "track", "item_id": track_id, "title": f"Real {track_id}",
             "artist": "Band", "source": "tidal", "duration": 100, "position": i}
            for i, track_id in enumerate(ids)
        ])

    def test_playlist_advances_before_plain_queue(self, harness):
        self._playlist_route(harness, "pl", ["a", "b"])
        harness.api.on("GET", "/queue", [{
            "id": "q1", "track_id": "z", "title": "Z", "artist": "A",
            "album": "B", "duration": 1, "source": "qobuz", "position": 1,
        }])
        harness.queue.load_queue()
        item = PlaylistQueueItem(id="pq", playlist_id="pl", playlist_name="P", track_order=("a", "b"))

        harness.player.play_playlist(item, replace_queue=False)
        assert harness.player.is_playing_from_playlist_queue

        assert harness.player.play_next_track() is True
        assert harness.player.current_track.id == "b"
        assert harness.player.current_track.title == "Real b"
        assert harness.queue.get_current_playlist_queue_item().current_track_title == "Real b"

    def test_finished_playlist_falls_through_to_plain_queue(self, harness):
        harness.api.on("GET", "/queue", [{
            "id": "q1", "track_id": "z", "title": "Z", "artist": "A",
            "album": "B", "duration": 1, "source": "qobuz", "position": 1,
        }])
        harness.api.on("DELETE", "/queue/q1", None)
        harness.queue.load_queue()
        item = PlaylistQueueItem(id="pq", playlist_id="pl", playlist_name="P",
                                 track_order=("a",), loop_mode=LoopMode.ONCE)
        harness.player.play_playlist(item, replace_queue=False)

        assert harness.player.play_next_track() is True

        assert harness.player.current_track.id == "z"
        assert not harness.player.is_playing_from_playlist_queue
        assert harness.queue.playlist_queue == []
        assert len(harness.api.calls_to("DELETE", "/queue/q1")) == 1

    def test_lookup_failure_plays_placeholder(self, harness):
        harness.api.fail("GET", "/v2/playlists/pl/items", message="gone")
        item = PlaylistQueueItem(id="pq", playlist_id="pl", playlist_name="Mix", track_order=("a", "b"))
        harness.player.play_playlist(item, replace_queue=False)

        harness.player.play_next_track()

        track = harness.player.current_track
        assert track.id == "b"
        assert track.title == "Track 2"
        assert track.artist == "From Mix"

    def test_nothing_next_goes_idle_and_keeps_track(self, harness):
        harness.api.on("GET", "/queue", [])
        harness.player.play_track(_track("t1"), clear_queue=False)

        assert harness.player.play_next_track() is False
        assert harness.player.status == PlaybackStatus.IDLE
        assert harness.player.current_track.id == "t1"

    def test_previous_restarts_current_track(self, harness):
        harness.player.play_track(_track("t1"), clear_queue=False)
        harness.engine.fire_position(42000)

        assert harness.player.play_previous_track() is True
        assert harness.engine.seeks == [0]

    def test_previous_in_playlist_steps_back(self, harness):
        self._playlist_route(harness, "pl", ["a", "b"])
        item = PlaylistQueueItem(id="pq", playlist_id="pl", playlist_name="P",
                                 track_order=("a", "b"), current_track_index=1)
        harness.player.play_playlist(item, replace_queue=False)

        harness.player.play_previous_track()

        assert harness.player.current_track.id == "a"


class TestBackgroundAndCleanup:

    def test_background_mode_silences_position_events(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.POSITION_CHANGED)
        harness.player.play_track(_track(), clear_queue=False)

        harness.player.pause_ui_updates()
        harness.engine.fire_position(1000)
        assert recorder.of(EventType.POSITION_CHANGED) == []
        assert harness.player.position_ms == 1000

        harness.engine.position_ms = 2500
        harness.player.resume_ui_updates()
        assert recorder.of(EventType.POSITION_CHANGED)[-1]["position"] == 2500

    def test_cleanup_cancels_timers_and_releases_engine(self, harness):
        harness.player.play_track(_track(), clear_queue=False)
        harness.engine.fire_playing(True)
        harness.engine.fire_position(199500)
        harness.engine.fire_playing(False)
        pending = harness.scheduler.pending

        harness.player.cleanup()

        assert pending and all(h.cancelled for h in pending)
        assert harness.engine.cleaned_up
        assert harness.player.play_track(_track()) is False

    def test_audio_info_is_published_while_playing(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.AUDIO_INFO_CHANGED)
        harness.player.play_track(_track("t1"), clear_queue=False)
        harness.api.on("HEAD", "/stream/t1", headers={"Content-Type": "audio/flac", "Content-Length": "25000000"})

        harness.player._refresh_audio_info()

        assert [info.format for info in recorder.of(EventType.AUDIO_INFO_CHANGED)] == ["FLAC"]

    def test_audio_info_finishing_after_cleanup_is_dropped(self, harness, event_bus):
        recorder = EventRecorder(event_bus, EventType.AUDIO_INFO_CHANGED)
        harness.player.play_track(_track("t1"), clear_queue=False)
        # Teardown lands while the HEAD request is still in flight
        harness.api.on("HEAD", "/stream/t1", headers={"Content-Type": "audio/flac", "Content-Length": "25000000"},
                       handler=lambda call: harness.player.cleanup())

        harness.player._refresh_audio_info()

        assert recorder.of(EventType.AUDIO_INFO_CHANGED) == []
        assert not harness.player.audio_info.has_info


class TestAudioInfoProbe:

    def setup_method(self):
        from unittest.mock import MagicMock
        from services.audio_info_probe import AudioInfoProbe

        self.gateway = MagicMock()
        self.probe = AudioInfoProbe(self.gateway)

    def test_derives_format_and_bitrate_from_headers(self):
        self.gateway.head.return_value = {"content-type": "audio/flac", "content-length": "25000000"}
        track = _track(duration=200).with_changes(stream_url=_stream_url("t1"), sample_rate=44100, bit_depth=16)

        info = self.probe.analyze(track)

        assert info.format == "FLAC"
        assert info.output_bitrate == 1000
        assert info.formatted_output_quality == "1000 kbps • 44.1kHz/16bit • FLAC"
        self.gateway.head.assert_called_once_with(_stream_url("t1"), timeout=10.0)

    def test_headers_are_cached_per_stream(self):
        self.gateway.head.return_value = {"content-type": "audio/mpeg"}
        track = _track().with_changes(stream_url=_stream_url("t1"))

        self.probe.analyze(track)
        self.probe.analyze(track)
        assert self.gateway.head.call_count == 1

        self.probe.reset()
        self.probe.analyze(track)
        assert self.gateway.head.call_count == 2

    def test_head_failure_falls_back_to_track_fields(self):
        from core.errors import NetworkError

        self.gateway.head.side_effect = NetworkError("down")
        track = _track().with_changes(stream_url=_stream_url("t1"), bitrate=320, quality="MP3")

        info = self.probe.analyze(track)

        assert info.output_bitrate == 320
        assert info.format == "MP3"
