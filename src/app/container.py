# -*- coding: utf-8 -*-
"""
Application Container Module

Defines the dependency container for the application, holding all service instances centrally.

Design Principles:
- Only the entry point holds the complete AppContainer
- Front-end components access services via facade, not directly accessing the container
- Prohibited to pass AppContainer to sub-components
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.protocols import IConfigService, IEventBus
    from core.database import DatabaseManager
    from services.music_app_facade import MusicAppFacade

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Application Dependency Container

    Holds all service instances centrally, serving as the composition root for dependency injection.

    Usage Example:
        # In main.py
        container = AppContainerFactory.create()
        try:
            container.facade.search("daft punk")
        finally:
            container.cleanup()
    """

    # === Public Attributes ===
    config: "IConfigService"
    event_bus: "IEventBus"
    db: "DatabaseManager"
    facade: "MusicAppFacade"

    # === Internal Service References (Not exposed to front ends) ===
    # Use field(repr=False) to avoid leaking in debug output
    _api_client: Any = field(default=None, repr=False)
    _player: Any = field(default=None, repr=False)
    _queue: Any = field(default=None, repr=False)
    _search: Any = field(default=None, repr=False)
    _auth: Any = field(default=None, repr=False)
    _analysis: Any = field(default=None, repr=False)
    _connectivity: Any = field(default=None, repr=False)
    _queue_persistence: Any = field(default=None, repr=False)

    def cleanup(self) -> None:
        """Clean up all resources

        Should be called when the application exits. Timers stop first so
        nothing fires against a closed database.
        """
        if self._connectivity is not None:
            self._connectivity.stop()

        if self._player is not None:
            self._player.cleanup()

        if self._search is not None:
            self._search.shutdown()

        if self._analysis is not None:
            self._analysis.shutdown()

        if self._queue_persistence is not None:
            self._queue_persistence.shutdown()

        if self._auth is not None:
            self._auth.close()

        if self.event_bus is not None and hasattr(self.event_bus, 'shutdown'):
            self.event_bus.shutdown()

        if self.db is not None:
            self.db.close()
        logger.debug("Application container cleaned up")
