# -*- coding: utf-8 -*-
"""
Ports Interfaces Package

Defines the interfaces between the application and external infrastructure
(backend HTTP gateway, key/value state store, audio engine).

Service layer depends on these interfaces rather than concrete
implementations, so tests can substitute fakes.
"""

from core.ports.database import IStateStore
from core.ports.audio import IAudioEngine
from core.ports.gateway import IApiGateway

__all__ = [
    "IStateStore",
    "IAudioEngine",
    "IApiGateway",
]
