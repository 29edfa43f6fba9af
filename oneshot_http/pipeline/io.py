"""HTTP Input/Output operations on a connected socket."""

import logging
import socket
import time
from typing import Optional

from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter
from oneshot_http.domain.http_types import HttpRequest, HttpResponse
from oneshot_http.pipeline.parser import parse_request

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("oneshot_http.io"), {})

LINGER_SECONDS = 0.5
DISCARD_CHUNK_BYTES = 4096


def receive_request(client_socket: socket.socket) -> Optional[HttpRequest]:
    """Parse exactly one request head from the socket.

    Returns None when the peer closes the connection before sending anything.
    """
    with client_socket.makefile("rb") as reader:
        if not reader.peek(1):
            return None
        return parse_request(reader)


def send_response(client_socket: socket.socket, response: HttpResponse) -> int:
    """Serialize the response, write it to the socket and return the byte count."""
    payload = response.serialize()
    client_socket.sendall(payload)
    IO_LOGGER.debug(
        "Sent response",
        extra={
            "event": "response_sent",
            "status_code": response.status.code,
            "bytes_out": len(payload),
        },
    )
    return len(payload)


def close_gracefully(
    client_socket: socket.socket, linger_seconds: float = LINGER_SECONDS
) -> None:
    """Half-close, discard what the peer still sends, then close.

    Closing a socket with unread input resets the connection, and the reset
    can destroy a response the peer has not read yet. Input is discarded
    until the peer closes its side or ``linger_seconds`` pass.
    """
    try:
        client_socket.shutdown(socket.SHUT_WR)
        client_socket.settimeout(linger_seconds)
        deadline = time.monotonic() + linger_seconds
        while time.monotonic() < deadline:
            if not client_socket.recv(DISCARD_CHUNK_BYTES):
                break
    except OSError:
        pass
    finally:
        client_socket.close()
