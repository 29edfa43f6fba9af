"""Handlers for the built-in routes."""

import logging
from typing import Optional

from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter
from oneshot_http.domain.http_types import HttpRequest, HttpResponse, HttpStatus
from oneshot_http.lifecycle.state import ServerLifecycle

SYSTEM_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("oneshot_http.handlers.system"), {}
)

ECHO_PREFIX = "/echo/"


def handle_root(_request: HttpRequest, response: HttpResponse) -> None:
    """Answer ``/`` with an empty 200."""
    response.set_status(HttpStatus.OK)


def handle_echo(request: HttpRequest, response: HttpResponse) -> None:
    """Handle /echo/ requests by returning the path suffix."""
    content = request.path[len(ECHO_PREFIX) :]
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "Echo request processed",
            extra={"event": "echo_request", "content_length": len(content)},
        )
    response.write_text(content)


def handle_user_agent(request: HttpRequest, response: HttpResponse) -> None:
    """Handle /user-agent requests by returning the User-Agent header."""
    agent = request.get_header("User-Agent") or ""
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "User-agent request processed", extra={"event": "user_agent_request"}
        )
    response.write_text(agent)


def handle_healthz(
    response: HttpResponse, lifecycle: Optional[ServerLifecycle]
) -> None:
    """Report 503 once the server has started draining, 200 otherwise."""
    is_draining = lifecycle.is_draining() if lifecycle is not None else False
    SYSTEM_LOGGER.info(
        "Health check performed",
        extra={"event": "healthz_check", "draining": is_draining},
    )
    if is_draining:
        response.set_status(HttpStatus.SERVICE_UNAVAILABLE).write_text("draining")
    else:
        response.set_status(HttpStatus.OK)
