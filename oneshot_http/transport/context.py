"""Collaborators handed to every connection worker."""

import socket
import threading
from dataclasses import dataclass
from typing import Optional

from oneshot_http.lifecycle.state import ServerLifecycle
from oneshot_http.pipeline.router import Router, route_request
from oneshot_http.transport.connection_limiter import ConnectionLimiter


@dataclass(frozen=True)
class WorkerContext:
    """What every connection worker shares.

    Attributes:
        router: Fills in the response for a parsed request.
        connection_limiter: Holds the slot the accept loop took for the
            connection; released when the worker leaves.
        lifecycle: Shutdown state. Workers register here so shutdown can
            wait for them.
    """

    router: Router = route_request
    connection_limiter: Optional[ConnectionLimiter] = None
    lifecycle: Optional[ServerLifecycle] = None

    def is_draining(self) -> bool:
        return self.lifecycle is not None and self.lifecycle.is_draining()

    def enter(self, thread: threading.Thread, connection: socket.socket) -> None:
        if self.lifecycle is not None:
            self.lifecycle.register_worker(thread, connection)

    def leave(self, thread: threading.Thread, client_ip: str) -> None:
        if self.connection_limiter is not None:
            self.connection_limiter.release(client_ip)
        if self.lifecycle is not None:
            self.lifecycle.cleanup_worker(thread)
