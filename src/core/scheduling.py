"""
Timer helpers

One-shot delayed calls and fixed-interval background loops, both backed by
daemon threads and cancellable at any time.
"""

from typing import Callable, Optional, Protocol
import logging
import threading

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


# scheduler(delay_seconds, callback) -> handle with cancel()
Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> Cancellable:
    """Run callback once after delay seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class PeriodicTask:
    """
    Calls a function every `interval` seconds until stopped.

    The first call happens one interval after start(). Exceptions from the
    function are logged and the loop keeps running.
    """

    def __init__(self, name: str, interval: float, func: Callable[[], None]):
        self._name = name
        self._interval = interval
        self._func = func
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name=self._name, daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            try:
                self._func()
            except Exception:
                logger.exception("Periodic task %s failed", self._name)
