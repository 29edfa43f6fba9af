"""Per-connection correlation IDs carried through logging via contextvars."""

import contextlib
import contextvars
import logging
import uuid
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "oneshot_http."
NO_CORRELATION_ID = "-"

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


@contextlib.contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind ``correlation_id`` (a fresh UUID by default) for the block.

    The previous value is restored on exit, so scopes nest and a worker
    thread never leaks its ID into the next task on that thread.
    """
    value = correlation_id or generate_correlation_id()
    token = _correlation_id_var.set(value)
    try:
        yield value
    finally:
        _correlation_id_var.reset(token)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Stamps records with the bound correlation ID and a component name.

    The component is the logger name below ``oneshot_http.``, e.g.
    ``transport.worker``.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["correlation_id"] = get_correlation_id() or NO_CORRELATION_ID
        extra["component"] = self.logger.name.removeprefix(LOGGER_PREFIX)
        kwargs["extra"] = extra
        return msg, kwargs
