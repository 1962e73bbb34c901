"""
HTTP gateway client tests
"""

import json
import socket
from urllib.error import URLError

import pytest

from conftest import BASE_URL, FakeApi
from core.api_client import ApiClient, encode_params
from core.errors import (
    AuthError,
    BackendError,
    NetworkError,
    NetworkTimeoutError,
    NotFoundError,
)
from core.event_bus import EventType


class TestEncodeParams:

    def test_drops_none_and_expands_lists(self):
        query = encode_params({"q": "daft punk", "service": None, "services": ["qobuz", "tidal"], "x": True})
        assert "service=" not in query
        assert "services%5B0%5D=qobuz" in query
        assert "services%5B1%5D=tidal" in query
        assert "x=true" in query
        assert "q=daft+punk" in query

    def test_empty(self):
        assert encode_params(None) == ""
        assert encode_params({}) == ""


class TestApiClient:

    def setup_method(self):
        self.api = FakeApi()
        self.client = ApiClient(BASE_URL, opener=self.api, timeout=12)

    def test_unwraps_envelope_data(self):
        self.api.on("GET", "/queue", [{"id": "1"}])
        assert self.client.get("/queue") == [{"id": "1"}]

    def test_uses_api_prefix_and_default_timeout(self):
        self.api.on("GET", "/queue", [])
        self.client.get("/queue")

        call = self.api.calls[-1]
        assert call.path == "/queue"
        assert call.timeout == 12

    def test_per_request_timeout(self):
        self.api.on("GET", "/streaming/stream-url", "https://cdn/x")
        self.client.get("/streaming/stream-url", timeout=180)
        assert self.api.calls[-1].timeout == 180

    def test_posts_json_body(self):
        self.api.on("POST", "/queue", None)
        self.client.post("/queue", body={"track_id": "t1"})

        call = self.api.calls[-1]
        assert call.body == {"track_id": "t1"}
        assert call.headers["content-type"] == "application/json"

    def test_success_false_raises_backend_error_with_message(self):
        self.api.on("GET", "/queue", raw=json.dumps({"success": False, "message": "queue is locked"}))
        with pytest.raises(BackendError) as excinfo:
            self.client.get("/queue")
        assert excinfo.value.message == "queue is locked"

    def test_http_500_carries_status_and_message(self):
        self.api.fail("GET", "/queue", status=500, message="boom")
        with pytest.raises(BackendError) as excinfo:
            self.client.get("/queue")
        assert excinfo.value.status_code == 500
        assert "boom" in str(excinfo.value)

    def test_404_is_not_found(self):
        with pytest.raises(NotFoundError):
            self.client.get("/v2/playlists/missing")

    def test_invalid_json_is_backend_error(self):
        self.api.on("GET", "/queue", raw="<html>")
        with pytest.raises(BackendError):
            self.client.get("/queue")

    def test_timeout_is_distinct_error(self):
        self.api.on("GET", "/queue", error=socket.timeout("timed out"))
        with pytest.raises(NetworkTimeoutError):
            self.client.get("/queue")

    def test_wrapped_timeout_is_distinct_error(self):
        self.api.on("GET", "/queue", error=URLError(TimeoutError("timed out")))
        with pytest.raises(NetworkTimeoutError):
            self.client.get("/queue")

    def test_unreachable_is_network_error(self):
        self.api.on("GET", "/queue", error=URLError(ConnectionRefusedError(111, "refused")))
        with pytest.raises(NetworkError) as excinfo:
            self.client.get("/queue")
        assert not isinstance(excinfo.value, NetworkTimeoutError)

    def test_absolute_url(self):
        assert self.client.absolute_url("/api/stream/abc") == f"{BASE_URL}/api/stream/abc"
        assert self.client.absolute_url("https://cdn.example/x.flac") == "https://cdn.example/x.flac"

    def test_health_check(self):
        self.api.on("GET", "/health", "ok")
        assert self.client.health_check() is True
        assert self.api.calls[-1].timeout == 3.0

    def test_health_check_unreachable(self):
        self.api.on("GET", "/health", error=URLError("down"))
        assert self.client.health_check() is False

    def test_head_returns_lowercase_headers(self):
        self.api.on("HEAD", "/stream/abc", headers={"Content-Type": "audio/flac", "Content-Length": "100"})
        headers = self.client.head("/api/stream/abc", timeout=10)
        assert headers["content-type"] == "audio/flac"
        assert self.api.calls[-1].timeout == 10


class TestAuthentication:

    def setup_method(self):
        from core.database import DatabaseManager
        from core.event_bus import EventBus
        from core.session_store import SessionStore
        import tempfile
        import os

        DatabaseManager.reset_instance()
        self._tmpdir = tempfile.mkdtemp(prefix="music-client-auth-")
        self.db = DatabaseManager(os.path.join(self._tmpdir, "state.db"))
        self.store = SessionStore(self.db)
        self.bus = EventBus.create_isolated()
        self.api = FakeApi()
        self.client = ApiClient(BASE_URL, session_store=self.store, event_bus=self.bus, opener=self.api)

    def teardown_method(self):
        import shutil
        from core.database import DatabaseManager

        DatabaseManager.reset_instance()
        shutil.rmtree(self._tmpdir, ignore_errors=True)

    def test_bearer_token_sent_when_stored(self):
        self.store.save_token("tok-1")
        self.api.on("GET", "/auth/me", {"id": "u1"})
        self.client.get("/auth/me")
        assert self.api.calls[-1].headers["authorization"] == "Bearer tok-1"

    def test_unauthenticated_request_omits_token(self):
        self.store.save_token("tok-1")
        self.api.on("POST", "/auth/login", {"session_token": "t"})
        self.client.post("/auth/login", body={}, authenticated=False)
        assert "authorization" not in self.api.calls[-1].headers

    def test_401_clears_session_and_publishes_expiry(self):
        expired = []
        self.bus.subscribe(EventType.SESSION_EXPIRED, expired.append)
        self.store.save_token("tok-1")
        self.api.fail("GET", "/saved-tracks", status=401, message="Invalid session")

        with pytest.raises(AuthError):
            self.client.get("/saved-tracks")

        assert self.store.get_token() is None
        assert self.db.get_state("session_token") is None
        assert expired == [{"message": "Invalid session"}]

    def test_401_without_token_does_not_publish_expiry(self):
        expired = []
        self.bus.subscribe(EventType.SESSION_EXPIRED, expired.append)
        self.api.fail("POST", "/auth/login", status=401, message="Wrong password")

        with pytest.raises(AuthError):
            self.client.post("/auth/login", body={}, authenticated=False)
        assert expired == []
