"""Single-request-per-connection HTTP/1.x server."""

import logging
import signal
import sys

from oneshot_http.bootstrap.config import ServerConfig, parse_cli_args
from oneshot_http.bootstrap.logging_setup import configure_logging
from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter
from oneshot_http.lifecycle.state import ServerLifecycle
from oneshot_http.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("oneshot_http.server"), {})


def main(argv: list[str] | None = None) -> None:
    """Start the HTTP server and spawn a worker thread per connection."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination)

    config = ServerConfig.from_args(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal", extra={"event": "signal", "signal": signum}
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "max_connections": config.max_connections,
            "max_connections_per_ip": config.max_connections_per_ip,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    run_server(args.host, args.port, config, lifecycle)


if __name__ == "__main__":
    main()
