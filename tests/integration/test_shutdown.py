"""Integration tests for graceful shutdown behavior."""

from __future__ import annotations

import json
import signal
import socket
import time

import pytest

from tests.utils.server import running_server
from tests.utils.http import exchange, parse_raw_response, read_until_close

pytestmark = pytest.mark.integration


def _logged_events(log_file) -> list[str]:
    events = []
    for line in log_file.read_text().splitlines():
        if line.strip():
            events.append(json.loads(line).get("event"))
    return events


def test_sigterm_stops_server_cleanly(server_process) -> None:
    """SIGTERM drains the server and the process exits with status 0."""
    host = server_process["host"]
    port = server_process["port"]
    process = server_process["process"]

    response = parse_raw_response(exchange(host, port, b"GET / HTTP/1.1\r\n\r\n"))
    assert response.status_line == "HTTP/1.1 200 OK"

    process.send_signal(signal.SIGTERM)
    assert process.wait(timeout=10) == 0

    events = _logged_events(server_process["log_file"])
    assert "draining_started" in events
    assert events[-1] == "server_stopped"


def test_in_flight_request_completes_during_shutdown(server_process) -> None:
    host = server_process["host"]
    port = server_process["port"]
    process = server_process["process"]

    with socket.create_connection((host, port), timeout=5) as sock:
        sock.sendall(b"GET /echo/late HTTP/1.1\r\n")
        time.sleep(0.2)
        process.send_signal(signal.SIGTERM)
        time.sleep(0.2)
        sock.sendall(b"\r\n")
        raw = read_until_close(sock)

    assert raw.endswith(b"\r\n\r\nlate")
    assert process.wait(timeout=10) == 0


def test_stalled_client_cannot_block_exit(tmp_path) -> None:
    """A client that goes quiet mid-head is cut off after the grace period."""
    with running_server(tmp_path, ["--shutdown-grace-seconds", "1"]) as server:
        process = server["process"]
        with socket.create_connection(
            (server["host"], server["port"]), timeout=10
        ) as stalled:
            stalled.sendall(b"GET / HTTP/1.1\r\n")
            time.sleep(0.2)
            process.send_signal(signal.SIGTERM)
            assert process.wait(timeout=6) == 0

        events = _logged_events(server["log_file"])
        assert "workers_aborted" in events
        assert events[-1] == "server_stopped"
