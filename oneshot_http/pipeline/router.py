"""Request routing logic."""

import logging
from typing import Callable, Optional

from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter
from oneshot_http.domain.http_types import HttpRequest, HttpResponse, HttpStatus
from oneshot_http.handlers.system_handlers import (
    ECHO_PREFIX,
    handle_echo,
    handle_healthz,
    handle_root,
    handle_user_agent,
)
from oneshot_http.lifecycle.state import ServerLifecycle

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("oneshot_http.pipeline.router"), {}
)

Router = Callable[[HttpRequest, HttpResponse], None]


def _log_match(route: str) -> None:
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched", extra={"event": "route_matched", "route": route}
        )


def route_request(
    request: HttpRequest,
    response: HttpResponse,
    lifecycle: Optional[ServerLifecycle] = None,
) -> None:
    """Dispatch the request to a handler that fills in ``response``."""
    path = request.path

    if path == "/healthz":
        _log_match("/healthz")
        handle_healthz(response, lifecycle)
        return

    if path == "/":
        _log_match("/")
        handle_root(request, response)
        return

    if path.startswith(ECHO_PREFIX):
        _log_match("/echo/*")
        handle_echo(request, response)
        return

    if path == "/user-agent":
        _log_match("/user-agent")
        handle_user_agent(request, response)
        return

    ROUTER_LOGGER.info(
        "No matching route found",
        extra={
            "event": "route_not_found",
            "route": path,
            "method": request.method.value,
        },
    )
    response.set_status(HttpStatus.NOT_FOUND).add_content("")


def build_router(lifecycle: Optional[ServerLifecycle] = None) -> Router:
    """Bind the default routes to a lifecycle so ``/healthz`` can report draining."""

    def router(request: HttpRequest, response: HttpResponse) -> None:
        route_request(request, response, lifecycle)

    return router
