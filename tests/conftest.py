"""
Test Configuration File

Unified setup for Python path, avoiding sys.path.insert in each test file.
Provides fakes for the backend HTTP transport and the audio engine.
"""

import io
import json
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.error import HTTPError
from urllib.parse import parse_qsl, urlparse

import pytest

# Add the src directory to the Python path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from core.audio_engine import AudioEngineBase, PlayerState  # noqa: E402
from core.event_bus import EventBus  # noqa: E402

BASE_URL = "http://backend.test"


# =============================================================================
# Scripted backend
# =============================================================================

@dataclass
class Call:
    """One request seen by FakeApi"""
    method: str
    path: str
    params: Dict[str, Any]
    body: Any
    headers: Dict[str, str]
    timeout: Optional[float]


@dataclass
class Route:
    data: Any = None
    status: int = 200
    error: Optional[BaseException] = None
    handler: Optional[Callable[[Call], Any]] = None
    raw: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200, headers: Optional[Dict[str, str]] = None):
        self._body = body
        self.status = status
        self.headers = headers or {}

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeApi:
    """
    Drop-in urlopen replacement with scripted routes.

    Paths are matched without the /api prefix. Route data is wrapped in the
    backend envelope; unknown routes answer 404.

    Example:
        api = FakeApi()
        api.on("GET", "/queue", [])
        client = ApiClient(BASE_URL, opener=api)
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.calls: List[Call] = []
        self._lock = threading.Lock()

    def on(self, method: str, path: str, data: Any = None, **kwargs) -> None:
        self.routes[(method.upper(), path)] = Route(data=data, **kwargs)

    def fail(self, method: str, path: str, status: int = 500, message: str = "Server error") -> None:
        self.on(method, path, status=status, raw=json.dumps({"success": False, "message": message}))

    def calls_to(self, method: str, path: str) -> List[Call]:
        with self._lock:
            return [c for c in self.calls if c.method == method and c.path == path]

    def __call__(self, req, timeout=None):
        parsed = urlparse(req.full_url)
        path = parsed.path
        if path.startswith("/api/"):
            path = path[len("/api"):]
        params: Dict[str, Any] = {}
        for key, value in parse_qsl(parsed.query):
            params.setdefault(key, value)
        body = json.loads(req.data.decode("utf-8")) if req.data else None
        call = Call(
            method=req.get_method(),
            path=path,
            params=params,
            body=body,
            headers={k.lower(): v for k, v in req.header_items()},
            timeout=timeout,
        )
        with self._lock:
            self.calls.append(call)
            route = self.routes.get((call.method, path))

        if route is None:
            raise HTTPError(req.full_url, 404, "Not Found", {}, io.BytesIO(b'{"message": "Not found"}'))
        if route.error is not None:
            raise route.error
        if route.status >= 400:
            raw = (route.raw or "").encode("utf-8")
            raise HTTPError(req.full_url, route.status, "Error", {}, io.BytesIO(raw))

        if route.raw is not None:
            payload = route.raw
        else:
            data = route.handler(call) if route.handler else route.data
            payload = json.dumps({"success": True, "data": data})
        return FakeResponse(payload.encode("utf-8"), route.status, dict(route.headers))


# =============================================================================
# Audio engine driven by the test
# =============================================================================

class FakeAudioEngine(AudioEngineBase):
    """Records transport calls; tests push callbacks with fire_*()."""

    def __init__(self):
        super().__init__()
        self.loaded: List[str] = []
        self.load_result = True
        self.play_result = True
        self.seek_result = True
        self.seeks: List[int] = []
        self.position_ms = 0
        self.duration_ms = 0
        self.stopped = 0
        self.cleaned_up = False

    @staticmethod
    def probe() -> bool:
        return True

    def load(self, url: str) -> bool:
        self.loaded.append(url)
        self._current_url = url
        return self.load_result

    def play(self) -> bool:
        if self.play_result:
            self._state = PlayerState.PLAYING
        return self.play_result

    def pause(self) -> None:
        self._state = PlayerState.PAUSED

    def resume(self) -> None:
        self._state = PlayerState.PLAYING

    def stop(self) -> None:
        self.stopped += 1
        self._state = PlayerState.STOPPED

    def seek(self, position_ms: int) -> bool:
        self.seeks.append(position_ms)
        if isinstance(self.seek_result, BaseException):
            raise self.seek_result
        return self.seek_result

    def set_volume(self, volume: float) -> None:
        self._volume = volume

    def get_position(self) -> int:
        return self.position_ms

    def get_duration(self) -> int:
        return self.duration_ms

    def get_engine_name(self) -> str:
        return "fake"

    def cleanup(self) -> None:
        self.cleaned_up = True

    # ===== Test drivers =====

    def fire_position(self, position_ms: int) -> None:
        self.position_ms = position_ms
        self._emit_position(position_ms)

    def fire_duration(self, duration_ms: int) -> None:
        self.duration_ms = duration_ms
        self._emit_duration(duration_ms)

    def fire_playing(self, playing: bool) -> None:
        self._emit_playing(playing)

    def fire_end(self, url: Optional[str] = None) -> None:
        if url is not None:
            self._current_url = url
        self._emit_end("ended")

    def fire_error(self, message: str) -> None:
        self._emit_error(message)


# =============================================================================
# Timers the test fires by hand
# =============================================================================

class _Handle:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose callbacks run only when the test calls run_pending()."""

    def __init__(self):
        self.handles: List[_Handle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[_Handle]:
        return [h for h in self.handles if not h.cancelled]

    def run_pending(self) -> int:
        handles, self.handles = self.pending, []
        for handle in handles:
            handle.callback()
        return len(handles)


class EventRecorder:
    """Collects (event_type, data) for the given event types."""

    def __init__(self, bus: EventBus, *event_types):
        self.events: List[Tuple[Any, Any]] = []
        for event_type in event_types:
            bus.subscribe(event_type, lambda data, t=event_type: self.events.append((t, data)))

    def of(self, event_type) -> List[Any]:
        return [data for t, data in self.events if t == event_type]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def event_bus():
    bus = EventBus.create_isolated()
    yield bus
    bus.shutdown()


@pytest.fixture
def api_client(fake_api, event_bus):
    from core.api_client import ApiClient
    return ApiClient(BASE_URL, event_bus=event_bus, opener=fake_api)


@pytest.fixture
def fake_engine():
    return FakeAudioEngine()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def state_db(tmp_path):
    from core.database import DatabaseManager
    DatabaseManager.reset_instance()
    db = DatabaseManager(str(tmp_path / "state.db"))
    yield db
    DatabaseManager.reset_instance()
