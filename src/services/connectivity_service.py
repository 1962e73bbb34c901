"""
Connectivity Service

Polls the backend health endpoint and reports reachability changes.
"""

from typing import Optional
import logging
import threading

from core.event_bus import EventBus, EventType
from core.ports.gateway import IApiGateway
from core.scheduling import PeriodicTask

logger = logging.getLogger(__name__)


class ConnectivityService:
    """
    Backend reachability monitor

    Reachability starts unknown (None); BACKEND_STATUS_CHANGED is published
    with the new bool on every transition, including the first check.
    """

    def __init__(
        self,
        gateway: IApiGateway,
        event_bus: Optional[EventBus] = None,
        poll_interval: float = 5.0,
        health_timeout: float = 3.0,
    ):
        self._gateway = gateway
        self._event_bus = event_bus or EventBus()
        self._health_timeout = health_timeout
        self._lock = threading.Lock()
        self._reachable: Optional[bool] = None
        self._task = PeriodicTask("BackendHealthPoll", poll_interval, self.check_now)

    @property
    def is_backend_reachable(self) -> bool:
        return bool(self._reachable)

    @property
    def is_monitoring(self) -> bool:
        return self._task.is_running

    def check_now(self) -> bool:
        reachable = self._gateway.health_check(timeout=self._health_timeout)
        with self._lock:
            changed = reachable != self._reachable
            self._reachable = reachable
        if changed:
            if reachable:
                logger.info("Backend reachable")
            else:
                logger.warning("Backend unreachable")
            self._event_bus.publish_sync(EventType.BACKEND_STATUS_CHANGED, reachable)
        return reachable

    def start(self) -> None:
        """Check once immediately, then poll in the background."""
        self.check_now()
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
