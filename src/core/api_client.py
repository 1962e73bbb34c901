"""
HTTP Gateway Client

Thin JSON client for the aggregator backend REST API.

Every backend response is an envelope:
    {"success": bool, "data": T | null, "message": str | null}
Callers get the unwrapped `data`; failures surface as typed errors from
core.errors.

Auth: Authorization: Bearer <session token>, when a token is stored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urljoin
from urllib.request import Request, urlopen

from core.errors import (
    AuthError,
    BackendError,
    NetworkError,
    NetworkTimeoutError,
    NotFoundError,
)
from core.event_bus import EventBus, EventType
from core.session_store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
STREAMING_TIMEOUT = 180.0
ANALYSIS_TIMEOUT = 300.0
HEALTH_TIMEOUT = 3.0

Opener = Callable[..., Any]


def encode_params(params: Optional[Mapping[str, Any]]) -> str:
    """Encode query parameters.

    None values are dropped, booleans become true/false and list values are
    expanded as name[0]=a&name[1]=b.
    """
    if not params:
        return ""
    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                pairs.append((f"{key}[{i}]", str(item)))
        elif isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        else:
            pairs.append((key, str(value)))
    return urlencode(pairs)


class ApiClient:
    """
    Backend REST client

    Example:
        client = ApiClient("http://127.0.0.1:8080", session_store=store)
        results = client.get("/streaming/search", params={"q": "daft punk"})
    """

    def __init__(
        self,
        base_url: str,
        session_store: Optional[SessionStore] = None,
        event_bus: Optional[EventBus] = None,
        api_prefix: str = "/api",
        timeout: float = DEFAULT_TIMEOUT,
        streaming_timeout: float = STREAMING_TIMEOUT,
        analysis_timeout: float = ANALYSIS_TIMEOUT,
        opener: Optional[Opener] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self._session_store = session_store
        self._event_bus = event_bus
        self._timeout = timeout
        self._streaming_timeout = streaming_timeout
        self._analysis_timeout = analysis_timeout
        self._opener: Opener = opener or urlopen

    @staticmethod
    def from_config(
        config: Any,
        session_store: Optional[SessionStore] = None,
        event_bus: Optional[EventBus] = None,
        opener: Optional[Opener] = None,
    ) -> "ApiClient":
        """Create a client from the configuration service."""
        import os

        base_url = os.environ.get("MUSIC_BACKEND_URL") or config.get("backend.url", "http://127.0.0.1:8080")
        return ApiClient(
            base_url=str(base_url),
            session_store=session_store,
            event_bus=event_bus,
            api_prefix=str(config.get("backend.api_prefix", "/api")),
            timeout=float(config.get("backend.timeout_seconds", DEFAULT_TIMEOUT)),
            streaming_timeout=float(config.get("backend.streaming_timeout_seconds", STREAMING_TIMEOUT)),
            analysis_timeout=float(config.get("backend.analysis_timeout_seconds", ANALYSIS_TIMEOUT)),
            opener=opener,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def streaming_timeout(self) -> float:
        return self._streaming_timeout

    @property
    def analysis_timeout(self) -> float:
        """Server-side audio analysis downloads and decodes the whole track"""
        return self._analysis_timeout

    def api_url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        url = f"{self._base_url}{self._api_prefix}/{path.lstrip('/')}"
        query = encode_params(params)
        return f"{url}?{query}" if query else url

    def absolute_url(self, url: str) -> str:
        """Rewrite a backend-relative path (e.g. /api/stream/...) against the backend host."""
        if url.startswith(("http://", "https://")):
            return url
        return urljoin(self._base_url + "/", url.lstrip("/"))

    # ===== Verbs =====

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        return self.request("POST", path, params=params, body=body, **kwargs)

    def put(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        return self.request("PUT", path, params=params, body=body, **kwargs)

    def delete(self, path: str, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        return self.request("DELETE", path, params=params, **kwargs)

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        timeout: Optional[float] = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Execute a request and unwrap the response envelope.

        Returns:
            The envelope's `data` field (None when absent)

        Raises:
            NetworkTimeoutError, NetworkError, AuthError, NotFoundError, BackendError
        """
        url = self.api_url(path, params)
        headers = {"Accept": "application/json"}
        data = None
        if body is not None:
            data = json.dumps(body, ensure_ascii=False).encode("utf-8")
            headers["Content-Type"] = "application/json"

        token = self._session_store.get_token() if (authenticated and self._session_store) else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        req = Request(url, data=data, headers=headers, method=method)
        effective_timeout = self._timeout if timeout is None else timeout
        logger.debug("%s %s (timeout=%.0fs)", method, url, effective_timeout)

        raw = self._send(req, effective_timeout, sent_token=bool(token))
        return self._unwrap(raw, method, path)

    def _send(self, req: Request, timeout: float, sent_token: bool) -> str:
        try:
            with self._opener(req, timeout=timeout) as resp:
                return resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            raise self._http_error(e, sent_token) from e
        except URLError as e:
            if isinstance(e.reason, TimeoutError):
                logger.warning("Request timed out: %s %s", req.get_method(), req.full_url)
                raise NetworkTimeoutError(f"Request timed out after {timeout:.0f}s") from e
            logger.warning("Backend unreachable: %s", e.reason)
            raise NetworkError(f"Backend unreachable: {e.reason}") from e
        except TimeoutError as e:
            logger.warning("Request timed out: %s %s", req.get_method(), req.full_url)
            raise NetworkTimeoutError(f"Request timed out after {timeout:.0f}s") from e
        except OSError as e:
            logger.warning("Network failure: %s", e)
            raise NetworkError(f"Network failure: {e}") from e

    def _http_error(self, e: HTTPError, sent_token: bool) -> Exception:
        body = ""
        try:
            body = e.read().decode("utf-8", errors="replace")
        except Exception:
            pass
        message = self._extract_message(body) or str(e.reason or f"HTTP {e.code}")

        if e.code == 401:
            if sent_token:
                self._expire_session(message)
            return AuthError(message)
        if e.code == 404:
            return NotFoundError(message, status_code=404)

        logger.error("Backend HTTP %s: %s", e.code, message)
        return BackendError(message, status_code=e.code)

    def _expire_session(self, message: str) -> None:
        logger.info("Session rejected by backend, clearing stored token")
        if self._session_store:
            self._session_store.clear()
        if self._event_bus:
            self._event_bus.publish_sync(EventType.SESSION_EXPIRED, {"message": message})

    @staticmethod
    def _extract_message(body: str) -> Optional[str]:
        if not body:
            return None
        try:
            payload = json.loads(body)
        except ValueError:
            return body[:200]
        if isinstance(payload, dict):
            return payload.get("message") or payload.get("error")
        return None

    @staticmethod
    def _unwrap(raw: str, method: str, path: str) -> Any:
        if not raw.strip():
            return None
        try:
            payload = json.loads(raw)
        except ValueError as e:
            logger.error("Invalid JSON from %s %s: %s", method, path, raw[:200])
            raise BackendError(f"Invalid response from server for {path}") from e

        if isinstance(payload, dict) and "success" in payload:
            if not payload.get("success"):
                raise BackendError(payload.get("message") or f"Request to {path} failed")
            return payload.get("data")
        return payload

    # ===== Non-API endpoints =====

    def health_check(self, timeout: float = HEALTH_TIMEOUT) -> bool:
        """GET /health (outside the API prefix); True when the backend answers 200."""
        req = Request(f"{self._base_url}/health", method="GET")
        try:
            with self._opener(req, timeout=timeout) as resp:
                return getattr(resp, "status", 200) == 200
        except (OSError, ValueError) as e:
            logger.debug("Health check failed: %s", e)
            return False

    def head(self, url: str, timeout: Optional[float] = None) -> Dict[str, str]:
        """HEAD a (possibly backend-relative) URL and return lower-cased headers."""
        req = Request(self.absolute_url(url), method="HEAD")
        token = self._session_store.get_token() if self._session_store else None
        if token:
            req.add_header("Authorization", f"Bearer {token}")
        try:
            with self._opener(req, timeout=timeout or self._timeout) as resp:
                return {k.lower(): v for k, v in resp.headers.items()}
        except HTTPError as e:
            raise BackendError(f"HEAD {url} failed", status_code=e.code) from e
        except TimeoutError as e:
            raise NetworkTimeoutError(f"HEAD {url} timed out") from e
        except OSError as e:
            raise NetworkError(f"HEAD {url} failed: {e}") from e
