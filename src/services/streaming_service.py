"""
Streaming Service Module

Which streaming services the backend offers and which accounts the user
has connected.
"""

from typing import List, Optional
import logging
import threading

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from models.service import ServiceInfo, ServiceStatus
from services.api.music_api import MusicApi

logger = logging.getLogger(__name__)


class StreamingService:
    """Streaming account connections"""

    def __init__(self, music_api: MusicApi, event_bus: Optional[EventBus] = None):
        self._api = music_api
        self._event_bus = event_bus or EventBus()
        self._lock = threading.RLock()

        self._services: List[ServiceInfo] = []
        self._statuses: List[ServiceStatus] = []
        self._error: Optional[str] = None

    @property
    def available_services(self) -> List[ServiceInfo]:
        with self._lock:
            return list(self._services)

    @property
    def service_statuses(self) -> List[ServiceStatus]:
        with self._lock:
            return list(self._statuses)

    @property
    def error(self) -> Optional[str]:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def is_connected(self, service_name: str) -> bool:
        with self._lock:
            return any(s.name == service_name and s.is_connected for s in self._statuses)

    def refresh(self) -> bool:
        """Reload both the service list and the connection statuses."""
        try:
            services = self._api.get_available_services()
            statuses = self._api.get_service_status()
        except MusicClientError as e:
            self._error = describe_error(e)
            logger.warning("Failed to load streaming services: %s", e)
            return False

        with self._lock:
            self._services = services
            self._statuses = statuses
            self._error = None
        self._event_bus.publish_sync(EventType.SERVICES_CHANGED, services)
        return True

    def connect_qobuz(self, username: str, password: str) -> bool:
        try:
            message = self._api.connect_qobuz(username, password)
        except MusicClientError as e:
            self._error = describe_error(e)
            logger.warning("Qobuz connection failed: %s", e)
            return False
        logger.info("Qobuz connected: %s", message)
        return self.refresh()

    def disconnect(self, service_name: str) -> bool:
        try:
            self._api.disconnect_service(service_name)
        except MusicClientError as e:
            self._error = describe_error(e)
            logger.warning("Failed to disconnect %s: %s", service_name, e)
            return False
        logger.info("Disconnected %s", service_name)
        return self.refresh()
