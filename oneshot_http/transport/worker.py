"""Worker thread logic: one request per connection, then close."""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Optional

from oneshot_http.domain.correlation_id import (
    CorrelationLoggerAdapter,
    correlation_scope,
)
from oneshot_http.domain.errors import HttpParseError, UnterminatedStreamError
from oneshot_http.domain.http_types import HttpRequest, HttpResponse, HttpVersion
from oneshot_http.domain.response_builders import (
    bad_request_response,
    draining_response,
    version_not_supported_response,
)
from oneshot_http.pipeline.io import close_gracefully, receive_request, send_response
from oneshot_http.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("oneshot_http.transport.worker"), {}
)

# Recognized on the request line, but no HTTP/2 framing exists to answer it.
UNSUPPORTED_VERSIONS = frozenset({HttpVersion.HTTP_2_0})


@dataclass
class _WorkerResources:
    thread: threading.Thread
    client_socket: socket.socket
    client_ip: str
    client_addr_str: str


def _read_request(resources: _WorkerResources) -> Optional[HttpRequest]:
    """Parse the request, answering 400 when it is malformed."""
    try:
        request = receive_request(resources.client_socket)
    except UnterminatedStreamError as error:
        WORKER_LOGGER.warning(
            "Request ended before the header block was complete",
            extra={
                "event": "malformed_request",
                "client": resources.client_addr_str,
                "error_type": type(error).__name__,
            },
        )
        send_response(resources.client_socket, bad_request_response())
        return None
    except HttpParseError as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": resources.client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        send_response(resources.client_socket, bad_request_response(str(error)))
        return None

    if request is None and WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Client closed without sending a request",
            extra={"event": "client_disconnected", "client": resources.client_addr_str},
        )
    return request


def _build_response(request: HttpRequest, context: WorkerContext) -> HttpResponse:
    if request.version in UNSUPPORTED_VERSIONS:
        WORKER_LOGGER.warning(
            "Unsupported protocol version requested",
            extra={"event": "version_not_supported", "route": request.path},
        )
        return version_not_supported_response(request.version)

    response = HttpResponse(request.version)
    context.router(request, response)
    return response


def _drain_if_requested(context: WorkerContext, client_socket: socket.socket) -> bool:
    if not context.is_draining():
        return False
    send_response(client_socket, draining_response())
    return True


def _close_connection(context: WorkerContext, resources: _WorkerResources) -> None:
    context.leave(resources.thread, resources.client_ip)
    close_gracefully(resources.client_socket)

    WORKER_LOGGER.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": resources.client_addr_str},
    )


def _serve_one(resources: _WorkerResources, context: WorkerContext) -> None:
    started = time.monotonic()
    if _drain_if_requested(context, resources.client_socket):
        return

    request = _read_request(resources)
    if request is None:
        return

    response = _build_response(request, context)
    send_response(resources.client_socket, response)
    WORKER_LOGGER.info(
        "Request served",
        extra={
            "event": "request_complete",
            "client": resources.client_addr_str,
            "method": request.method.value,
            "route": request.path,
            "status_code": response.status.code,
            "duration_ms": round((time.monotonic() - started) * 1000, 3),
        },
    )


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Serve exactly one request on ``client_socket`` and close it.

    Failures are logged and end this connection only.
    """
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    resources = _WorkerResources(
        threading.current_thread(), client_socket, client_address[0], client_addr_str
    )
    context.enter(resources.thread, client_socket)

    with correlation_scope():
        try:
            _serve_one(resources, context)
        except OSError as error:
            WORKER_LOGGER.error(
                "Error handling client connection",
                extra={
                    "event": "connection_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                },
            )
        except Exception as error:  # pylint: disable=broad-except
            WORKER_LOGGER.error(
                "Unexpected error in worker",
                extra={
                    "event": "worker_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                    "error": str(error),
                },
                exc_info=True,
            )
        finally:
            _close_connection(context, resources)
