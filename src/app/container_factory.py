# -*- coding: utf-8 -*-
"""
Container Factory Module

Responsible for creating and assembling all application dependencies.

This is the **only** instance creation point (Composition Root) for the application.
All service instance creation should be done here, not within individual services.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.container import AppContainer
    from core.api_client import Opener
    from core.audio_engine import AudioEngineBase
    from core.database import DatabaseManager
    from core.event_bus import EventBus
    from core.scheduling import Scheduler
    from services.config_service import ConfigService

logger = logging.getLogger(__name__)


class AppContainerFactory:
    """Application Container Factory

    Creates and assembles all application dependencies.

    Usage Example:
        # In main.py
        container = AppContainerFactory.create()

        # In tests (scripted HTTP, no audio device)
        container = AppContainerFactory.create_for_testing(opener=fake_api, engine=fake_engine)
    """

    @staticmethod
    def create(
        config_path: Optional[str] = None,
        engine: Optional["AudioEngineBase"] = None,
        start_monitoring: bool = True,
    ) -> "AppContainer":
        """Create Application Container

        Creates all service instances in dependency order and assembles them into the container.

        Args:
            config_path: Configuration file path (default: per-user config)
            engine: Audio engine to use instead of the configured backend
            start_monitoring: Start the background backend health poll

        Returns:
            A configured AppContainer instance
        """
        from core.database import DatabaseManager
        from core.engine_factory import AudioEngineFactory
        from core.event_bus import EventBus
        from services.config_service import ConfigService

        logger.info("Creating application container...")

        # === 1. Infrastructure Layer ===
        config = ConfigService(config_path)
        db = DatabaseManager()
        event_bus = EventBus()

        # === 2. Audio Engine ===
        if engine is None:
            backend = config.get("audio.backend", "vlc")
            try:
                engine = AudioEngineFactory.create(backend)
            except RuntimeError as e:
                logger.error("Failed to create audio engine: %s", e)
                raise

        container = AppContainerFactory._assemble(config, db, event_bus, engine)
        if start_monitoring:
            container._connectivity.start()

        logger.info("Application container creation complete")
        return container

    @staticmethod
    def create_for_testing(
        config_path: str = "config/default_config.yaml",
        db_path: Optional[str] = None,
        opener: Optional["Opener"] = None,
        engine: Optional["AudioEngineBase"] = None,
        scheduler: Optional["Scheduler"] = None,
    ) -> "AppContainer":
        """Create a container for testing

        Uses an isolated EventBus, a scripted HTTP opener and the null audio
        engine unless others are given. Connectivity monitoring is not started.

        Args:
            config_path: Configuration file path
            db_path: Database path (defaults to a file in a fresh temp dir;
                     connections are per thread so ':memory:' is not shared)
            opener: urlopen replacement for the API client
            engine: Audio engine
            scheduler: Scheduler for the player's debounced checks

        Returns:
            A configured test AppContainer instance
        """
        import os
        import tempfile

        from core.audio_engine import NullAudioEngine
        from core.database import DatabaseManager
        from core.event_bus import EventBus
        from services.config_service import ConfigService

        logger.info("Creating test application container...")

        config = ConfigService(config_path)
        db = DatabaseManager(db_path or os.path.join(tempfile.mkdtemp(prefix="music-client-"), "state.db"))
        event_bus = EventBus.create_isolated()

        container = AppContainerFactory._assemble(
            config, db, event_bus, engine or NullAudioEngine(),
            opener=opener, scheduler=scheduler,
        )
        logger.info("Test application container creation complete")
        return container

    @staticmethod
    def _assemble(
        config: "ConfigService",
        db: "DatabaseManager",
        event_bus: "EventBus",
        engine: "AudioEngineBase",
        opener: Optional["Opener"] = None,
        scheduler: Optional["Scheduler"] = None,
    ) -> "AppContainer":
        from app.container import AppContainer
        from core.api_client import ApiClient
        from core.session_store import SessionStore
        from services.api import (
            AudioAnalysisApi,
            AuthApi,
            MusicApi,
            PlaylistApi,
            QueueApi,
            SavedAlbumsApi,
            SavedTracksApi,
        )
        from services.audio_analysis_service import AudioAnalysisService
        from services.auth_service import AuthService
        from services.connectivity_service import ConnectivityService
        from services.music_app_facade import MusicAppFacade
        from services.player_service import PlayerService
        from services.playlist_service import PlaylistService
        from services.queue_persistence_service import QueuePersistenceService
        from services.queue_service import QueueService
        from services.saved_albums_service import SavedAlbumsService
        from services.saved_tracks_service import SavedTracksService
        from services.search_service import SearchService
        from services.streaming_service import StreamingService

        # === Gateway ===
        session_store = SessionStore(db)
        client = ApiClient.from_config(config, session_store=session_store, event_bus=event_bus, opener=opener)
        music_api = MusicApi(client)
        playlist_api = PlaylistApi(client)

        # === Coordinators ===
        queue = QueueService(QueueApi(client), event_bus=event_bus)
        search = SearchService(
            music_api,
            event_bus=event_bus,
            default_service=config.get("search.default_service", "qobuz"),
            page_size=int(config.get("search.page_size", 20)),
        )
        player = PlayerService(
            audio_engine=engine,
            music_api=music_api,
            queue_service=queue,
            playlist_api=playlist_api,
            gateway=client,
            event_bus=event_bus,
            scheduler=scheduler,
            audio_info_interval=float(config.get("playback.audio_info_interval_seconds", 3)),
            background_poll_interval=int(config.get("playback.background_poll_interval_ms", 500)) / 1000.0,
            completion_debounce=int(config.get("playback.completion_debounce_ms", 500)) / 1000.0,
            default_volume=float(config.get("playback.default_volume", 0.8)),
        )
        saved_page_size = int(config.get("saved.page_size", 50))
        saved_tracks = SavedTracksService(SavedTracksApi(client), event_bus=event_bus, page_size=saved_page_size)
        saved_albums = SavedAlbumsService(SavedAlbumsApi(client), event_bus=event_bus, page_size=saved_page_size)
        playlist_service = PlaylistService(playlist_api, event_bus=event_bus)
        auth = AuthService(AuthApi(client), session_store, event_bus=event_bus)
        streaming = StreamingService(music_api, event_bus=event_bus)
        analysis = AudioAnalysisService(
            AudioAnalysisApi(client),
            player=player,
            search=search,
            saved_tracks=saved_tracks,
            event_bus=event_bus,
        )
        connectivity = ConnectivityService(
            client,
            event_bus=event_bus,
            poll_interval=float(config.get("connectivity.poll_interval_seconds", 5)),
            health_timeout=float(config.get("backend.health_timeout_seconds", 3)),
        )

        # Playlist queue survives restarts
        queue_persistence = QueuePersistenceService(db=db, config=config, event_bus=event_bus)
        queue_persistence.restore(queue)
        queue_persistence.attach(queue)

        facade = MusicAppFacade(
            player=player,
            queue=queue,
            search=search,
            playlist_service=playlist_service,
            saved_tracks=saved_tracks,
            saved_albums=saved_albums,
            auth=auth,
            streaming=streaming,
            analysis=analysis,
            connectivity=connectivity,
            config=config,
            event_bus=event_bus,
        )

        return AppContainer(
            config=config,
            event_bus=event_bus,
            db=db,
            facade=facade,
            _api_client=client,
            _player=player,
            _queue=queue,
            _search=search,
            _auth=auth,
            _analysis=analysis,
            _connectivity=connectivity,
            _queue_persistence=queue_persistence,
        )
