"""Connection accounting exposed by the proxy to its health checks."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Protocol


@dataclass(frozen=True, slots=True)
class ConnectionInfo:
    """Point-in-time view of the proxy's connection usage.

    ``max_connections`` of zero means the proxy has no connection limit.
    """

    current: int
    max_connections: int = 0

    @property
    def unlimited(self) -> bool:
        return self.max_connections <= 0

    @property
    def at_limit(self) -> bool:
        return not self.unlimited and self.current >= self.max_connections


class ConnectionInfoProvider(Protocol):
    def connection_info(self) -> ConnectionInfo: ...


class ProxyClient:
    """Thread-safe active connection counter with an optional upper limit."""

    def __init__(self, max_connections: int = 0) -> None:
        if max_connections < 0:
            raise ValueError("max_connections must not be negative")
        self._max_connections = max_connections
        self._connections = 0
        self._lock = threading.Lock()

    @property
    def max_connections(self) -> int:
        return self._max_connections

    @property
    def active_connections(self) -> int:
        with self._lock:
            return self._connections

    def connection_opened(self) -> int:
        with self._lock:
            self._connections += 1
            return self._connections

    def connection_closed(self) -> int:
        with self._lock:
            if self._connections == 0:
                raise ValueError("No active connections to close")
            self._connections -= 1
            return self._connections

    @contextmanager
    def connection(self) -> Iterator[int]:
        """Count a connection for the duration of the ``with`` block."""

        current = self.connection_opened()
        try:
            yield current
        finally:
            self.connection_closed()

    def connection_info(self) -> ConnectionInfo:
        with self._lock:
            return ConnectionInfo(
                current=self._connections, max_connections=self._max_connections
            )

    def available_conn(self) -> bool:
        return not self.connection_info().at_limit


__all__ = ["ConnectionInfo", "ConnectionInfoProvider", "ProxyClient"]
