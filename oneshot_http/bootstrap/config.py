"""Command-line options, with ``ONESHOT_HTTP_*`` environment defaults."""

import argparse
import os
from dataclasses import dataclass

ENV_PREFIX = "ONESHOT_HTTP_"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(ENV_PREFIX + name)
    return int(value) if value is not None else default


def _env_str(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


DEFAULT_HOST = _env_str("HOST", "localhost")
DEFAULT_PORT = _env_int("PORT", 4221)
DEFAULT_MAX_CONNECTIONS = _env_int("MAX_CONNECTIONS", 200)
DEFAULT_MAX_CONNECTIONS_PER_IP = _env_int("MAX_CONNECTIONS_PER_IP", 20)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("SHUTDOWN_GRACE_SECONDS", 30)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True)
class ServerConfig:
    """Settings the accept loop needs beyond the listener address."""

    max_connections: int
    max_connections_per_ip: int
    shutdown_grace_seconds: int

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ServerConfig":
        return cls(
            max_connections=args.max_connections,
            max_connections_per_ip=args.max_connections_per_ip,
            shutdown_grace_seconds=args.shutdown_grace_seconds,
        )


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return value


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        description="Single-request-per-connection HTTP/1.x server"
    )

    listen = parser.add_argument_group("listener")
    listen.add_argument("--host", default=DEFAULT_HOST)
    listen.add_argument("--port", type=int, default=DEFAULT_PORT)

    logs = parser.add_argument_group("logging")
    logs.add_argument(
        "--log-level",
        default=_env_str("LOG_LEVEL", "INFO").upper(),
        choices=LOG_LEVELS,
        type=str.upper,
    )
    logs.add_argument(
        "--log-destination",
        default=_env_str("LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )

    limits = parser.add_argument_group("limits")
    limits.add_argument(
        "--max-connections",
        type=_non_negative_int,
        default=DEFAULT_MAX_CONNECTIONS,
        help="Maximum concurrent connections (0 for unlimited)",
    )
    limits.add_argument(
        "--max-connections-per-ip",
        type=_non_negative_int,
        default=DEFAULT_MAX_CONNECTIONS_PER_IP,
        help="Maximum concurrent connections per client IP (0 for unlimited)",
    )
    limits.add_argument(
        "--shutdown-grace-seconds",
        type=_non_negative_int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Seconds to wait for in-flight connections on shutdown",
    )
    return parser.parse_args(argv)
