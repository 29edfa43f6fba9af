"""Serving/draining state and the connection workers shutdown waits on."""

import logging
import socket
import threading
import time
from enum import Enum
from typing import Optional

from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("oneshot_http.lifecycle"), {}
)

# Upper bound on how long wait_for_workers sleeps before re-checking liveness.
WORKER_POLL_SECONDS = 0.1


class LifecycleState(str, Enum):
    SERVING = "serving"
    DRAINING = "draining"


class ServerLifecycle:
    """Shared by the accept loop, every worker and the signal handler.

    Draining is one-way: once begun, the accept loop stops taking connections,
    ``/healthz`` answers 503 and shutdown waits for the registered workers.
    """

    def __init__(self) -> None:
        self._changed = threading.Condition()
        self._state = LifecycleState.SERVING
        self._workers: dict[threading.Thread, Optional[socket.socket]] = {}

    @property
    def state(self) -> LifecycleState:
        with self._changed:
            return self._state

    def should_stop(self) -> bool:
        """True once the accept loop should leave."""
        return self.state is LifecycleState.DRAINING

    def is_draining(self) -> bool:
        return self.state is LifecycleState.DRAINING

    def register_worker(
        self, thread: threading.Thread, connection: Optional[socket.socket] = None
    ) -> None:
        """Track ``thread``; ``connection`` is what abort_workers shuts down."""
        with self._changed:
            self._workers[thread] = connection

    def cleanup_worker(self, thread: threading.Thread) -> None:
        with self._changed:
            self._workers.pop(thread, None)
            self._changed.notify_all()

    def active_worker_count(self) -> int:
        with self._changed:
            return len(self._workers)

    def abort_workers(self) -> int:
        """Shut down the connection of every worker still registered.

        A worker blocked reading its socket then sees end of stream and
        finishes. Returns how many connections were shut down.
        """
        with self._changed:
            connections = [c for c in self._workers.values() if c is not None]
        aborted = 0
        for connection in connections:
            try:
                connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                continue
            aborted += 1
        LIFECYCLE_LOGGER.warning(
            "Aborting connections still open after the grace period",
            extra={"event": "workers_aborted", "remaining_workers": aborted},
        )
        return aborted

    def begin_draining(self) -> None:
        """Switch to draining; calling it again is a no-op."""
        with self._changed:
            if self._state is LifecycleState.DRAINING:
                return
            self._state = LifecycleState.DRAINING
            in_flight = len(self._workers)
            self._changed.notify_all()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown",
            extra={"event": "draining_started", "remaining_workers": in_flight},
        )

    def wait_for_workers(self, timeout: float) -> bool:
        """Block until every registered worker is gone.

        Threads that died without calling ``cleanup_worker`` are dropped too.
        Returns False when ``timeout`` seconds pass first.
        """
        deadline = time.monotonic() + timeout
        with self._changed:
            while True:
                self._workers = {
                    w: c for w, c in self._workers.items() if w.is_alive()
                }
                if not self._workers:
                    return True
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._changed.wait(min(WORKER_POLL_SECONDS, remaining))
            stragglers = len(self._workers)

        LIFECYCLE_LOGGER.warning(
            "Shutdown timeout exceeded",
            extra={"event": "shutdown_timeout", "remaining_workers": stragglers},
        )
        return False
