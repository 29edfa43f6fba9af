"""Admission control for new connections."""

import threading
from collections import Counter
from typing import Optional


class ConnectionLimiter:
    """Counts connections in flight, overall and per client IP.

    A ceiling of 0 means no ceiling. The overall count is the sum of the
    per-IP counts, so releasing an IP that never acquired changes nothing.
    """

    def __init__(self, max_connections: int, max_connections_per_ip: int) -> None:
        self._max_total = max(0, max_connections)
        self._max_per_ip = max(0, max_connections_per_ip)
        self._lock = threading.Lock()
        self._by_ip: Counter[str] = Counter()

    @property
    def active(self) -> int:
        with self._lock:
            return self._by_ip.total()

    def _refusal(self, client_ip: str) -> Optional[str]:
        if 0 < self._max_per_ip <= self._by_ip[client_ip]:
            return "ip"
        if 0 < self._max_total <= self._by_ip.total():
            return "global"
        return None

    def acquire(self, client_ip: str) -> tuple[bool, Optional[str]]:
        """Take a slot for ``client_ip``.

        Returns ``(True, None)`` when admitted, otherwise ``(False, limit)``
        where ``limit`` is ``"ip"`` or ``"global"``.
        """
        with self._lock:
            refusal = self._refusal(client_ip)
            if refusal is None:
                self._by_ip[client_ip] += 1
        return refusal is None, refusal

    def release(self, client_ip: str) -> None:
        with self._lock:
            remaining = self._by_ip[client_ip] - 1
            if remaining > 0:
                self._by_ip[client_ip] = remaining
            else:
                self._by_ip.pop(client_ip, None)
