# -*- coding: utf-8 -*-
"""
Backend Gateway Port Interface

What the API wrappers need from the HTTP client. Paths are relative to
the API prefix; return values are the unwrapped envelope `data`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class IApiGateway(Protocol):
    """Backend REST gateway

    Current implementation: ApiClient (urllib)
    """

    @property
    def streaming_timeout(self) -> float:
        ...

    @property
    def analysis_timeout(self) -> float:
        ...

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        ...

    def post(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        ...

    def put(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        ...

    def delete(self, path: str, params: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
        ...

    def absolute_url(self, url: str) -> str:
        """Resolve a backend-relative stream path"""
        ...

    def head(self, url: str, timeout: Optional[float] = None) -> Dict[str, str]:
        ...

    def health_check(self, timeout: float = 3.0) -> bool:
        ...
