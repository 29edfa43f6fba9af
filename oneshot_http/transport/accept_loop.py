"""Accept loop: admit, refuse or hand off each incoming connection."""

import logging
import socket
import threading
from typing import Optional

from oneshot_http.bootstrap.config import ServerConfig
from oneshot_http.bootstrap.socket_factory import create_server_socket
from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter
from oneshot_http.domain.http_types import HttpResponse
from oneshot_http.domain.response_builders import (
    connection_limited_response,
    draining_response,
)
from oneshot_http.lifecycle.state import ServerLifecycle
from oneshot_http.pipeline.io import close_gracefully, send_response
from oneshot_http.pipeline.router import Router, build_router
from oneshot_http.transport.connection_limiter import ConnectionLimiter
from oneshot_http.transport.context import WorkerContext
from oneshot_http.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("oneshot_http.transport.accept"), {}
)

# How long shutdown waits for aborted connections to wind down.
ABORT_WAIT_SECONDS = 2.0


def _send_rejection(client_socket: socket.socket, response: HttpResponse) -> None:
    try:
        send_response(client_socket, response)
    except OSError as error:
        ACCEPT_LOGGER.debug(
            "Failed to send rejection",
            extra={"event": "reject_failed", "error_type": type(error).__name__},
        )
    finally:
        close_gracefully(client_socket)


def _reject(client_socket: socket.socket, response: HttpResponse) -> None:
    """Answer and close ``client_socket`` off the accept thread.

    The close lingers while the peer's request is discarded.
    """
    threading.Thread(
        target=_send_rejection, args=(client_socket, response), daemon=True
    ).start()


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Start a worker for the connection, or refuse it when over the ceiling."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client_addr_str},
        )

    limiter = context.connection_limiter
    if limiter is not None:
        allowed, limit_type = limiter.acquire(client_address[0])
        if not allowed:
            ACCEPT_LOGGER.warning(
                "Connection limit reached",
                extra={
                    "event": "connection_limit_reached",
                    "client": client_addr_str,
                    "limit_type": limit_type,
                },
            )
            _reject(client_socket, connection_limited_response(limit_type))
            return

    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, context),
        daemon=False,
    )
    thread.start()


def _accept(
    server_socket: socket.socket, lifecycle: ServerLifecycle
) -> Optional[tuple[socket.socket, tuple[str, int]]]:
    """Wait up to one poll interval for a connection; None if none arrived."""
    try:
        return server_socket.accept()
    except socket.timeout:
        return None
    except OSError as error:
        if not lifecycle.should_stop():
            ACCEPT_LOGGER.error(
                "Socket accept failed",
                extra={"event": "accept_error", "error_type": type(error).__name__},
            )
        return None


def _shut_down(
    server_socket: socket.socket, config: ServerConfig, lifecycle: ServerLifecycle
) -> None:
    server_socket.close()
    ACCEPT_LOGGER.info(
        "Waiting for active connections to complete",
        extra={
            "event": "shutdown_waiting",
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
            "remaining_workers": lifecycle.active_worker_count(),
        },
    )
    finished = lifecycle.wait_for_workers(config.shutdown_grace_seconds)
    if not finished:
        lifecycle.abort_workers()
        finished = lifecycle.wait_for_workers(ABORT_WAIT_SECONDS)
    ACCEPT_LOGGER.info(
        "Server shutdown complete",
        extra={"event": "server_stopped", "workers_finished": finished},
    )


def serve(
    server_socket: socket.socket,
    config: ServerConfig,
    lifecycle: ServerLifecycle,
    router: Optional[Router] = None,
) -> None:
    """Accept connections on ``server_socket`` until the lifecycle says stop.

    ``server_socket`` must have a timeout so the loop can notice a stop
    request. It is closed on the way out, after which in-flight workers get
    ``config.shutdown_grace_seconds`` to finish.
    """
    context = WorkerContext(
        router=router if router is not None else build_router(lifecycle),
        connection_limiter=ConnectionLimiter(
            config.max_connections, config.max_connections_per_ip
        ),
        lifecycle=lifecycle,
    )

    try:
        while not lifecycle.should_stop():
            accepted = _accept(server_socket, lifecycle)
            if accepted is None:
                continue
            client_socket, client_address = accepted
            if lifecycle.is_draining():
                _reject(client_socket, draining_response())
                continue
            _handle_accepted_client(client_socket, client_address, context)
    finally:
        _shut_down(server_socket, config, lifecycle)


def run_server(
    host: str, port: int, config: ServerConfig, lifecycle: ServerLifecycle
) -> None:
    """Create the listening socket and serve until shutdown."""
    server_socket = create_server_socket(host, port)
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={"event": "server_listening", "host": host, "port": port},
    )
    serve(server_socket, config, lifecycle)
