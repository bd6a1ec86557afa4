"""
Module with the events that end the bridge.

The main thread of the bridge does nothing but wait after the sessions are mounted. It
is woken up by one of two things: a signal handler asking for a shutdown, or the thread
of the host service reporting that serving stopped. The first is a normal exit, the
second is raised in the main thread so that it unwinds and logs everything out:

    events = BridgeEvents()

    start_thread(serve, events)  # calls events.service_failed(...) when serve() ends
    signal.signal(signal.SIGTERM, lambda signum, _: events.shutdown(signum))

    signum = events.wait_for_shutdown()
"""

from __future__ import annotations

from enum import auto, Enum
import queue
from typing import Any, Optional, Tuple


class Event(Enum):
    """Types of events."""

    SHUTDOWN = auto()

    SERVICE_FAILED = auto()


class ServiceFailed(RuntimeError):
    """The host service stopped serving, either by failing or by returning."""


class BridgeEvents:
    """Thread-safe queue of the events that end the bridge."""

    def __init__(self) -> None:
        self._queue: queue.Queue[Tuple[Event, Any]] = queue.Queue()

    def shutdown(self, signum: int) -> None:
        """Ask the bridge to shut down because of the signal."""
        self._queue.put((Event.SHUTDOWN, signum))

    def service_failed(
        self, message: str, cause: Optional[BaseException] = None
    ) -> None:
        error = ServiceFailed(message)
        error.__cause__ = cause

        self._queue.put((Event.SERVICE_FAILED, error))

    def wait_for_shutdown(self) -> int:
        """
        Block until the bridge should stop and return the number of the signal.

        Raises ServiceFailed if the host service stopped first.
        """
        event, value = self._queue.get()

        if event is Event.SERVICE_FAILED:
            raise value

        return value
