"""Liveness and readiness probes served over HTTP.

``GET /liveness`` answers whether the process can still handle requests at
all, ``GET /readiness`` whether it should receive new connections. Both reply
with a plain ``ok`` (200) or ``error`` (500) body.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from enum import Enum
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterable, Set, Tuple
from urllib.parse import urlsplit

from ..core.exceptions import HealthServerBindError, HealthServerShutdownError
from ..proxy.client import ConnectionInfo, ConnectionInfoProvider

logger = logging.getLogger(__name__)

LIVENESS_PATH = "/liveness"
READINESS_PATH = "/readiness"


class HealthState:
    """Startup flag and health predicates shared by the request handlers."""

    def __init__(self) -> None:
        self._started = False
        self._lock = threading.Lock()

    @property
    def started(self) -> bool:
        with self._lock:
            return self._started

    def mark_started(self) -> None:
        with self._lock:
            self._started = True

    def is_live(self) -> bool:
        return True

    def is_ready(self, info: ConnectionInfo) -> bool:
        """Check, in order, that startup finished and the connection limit
        (if any) has not been reached."""

        if not self.started:
            logger.error(
                "Readiness failed because proxy has not finished starting up."
            )
            return False

        if info.at_limit:
            logger.error(
                "Readiness failed because proxy has reached the maximum "
                "connections limit (%d).",
                info.max_connections,
            )
            return False

        return True


class ServerState(str, Enum):
    UNSTARTED = "unstarted"
    SERVING = "serving"
    CLOSED = "closed"


def _abort(connections: Iterable[socket.socket]) -> None:
    for connection in connections:
        try:
            connection.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            logger.debug("Could not abort health check connection: %s", exc)


class _HealthHTTPServer(ThreadingHTTPServer):
    """Threaded server tracking open connections and the requests being answered.

    A connection is *idle* until its request line arrives and *busy* from then
    until the server closes it.
    """

    daemon_threads = True
    block_on_close = False
    allow_reuse_port = False

    def __init__(self, address: Tuple[str, int], handler: type) -> None:
        self._connections: Set[socket.socket] = set()
        self._busy: Set[socket.socket] = set()
        self._drained = threading.Condition()
        super().__init__(address, handler)

    def process_request(self, request, client_address) -> None:
        with self._drained:
            self._connections.add(request)
        super().process_request(request, client_address)

    def mark_busy(self, request: socket.socket) -> None:
        with self._drained:
            self._busy.add(request)

    def shutdown_request(self, request) -> None:
        try:
            super().shutdown_request(request)
        finally:
            with self._drained:
                self._connections.discard(request)
                self._busy.discard(request)
                self._drained.notify_all()

    def abort_idle(self) -> int:
        with self._drained:
            idle = self._connections - self._busy
        _abort(idle)
        return len(idle)

    def wait_drained(self, timeout: float) -> int:
        """Wait up to ``timeout`` seconds and return the requests still running."""

        with self._drained:
            self._drained.wait_for(lambda: not self._busy, timeout=timeout)
            return len(self._busy)

    def abort_busy(self) -> None:
        with self._drained:
            busy = list(self._busy)
        _abort(busy)

    def handle_error(self, request, client_address) -> None:
        logger.exception(
            "Error while handling health check request from %s", client_address[0]
        )


class HealthCheckServer:
    """Threaded HTTP server reporting proxy health to an orchestrator.

    The listener is bound in the constructor, so an unavailable port surfaces
    as :class:`HealthServerBindError` before the caller continues its own
    startup. Requests are served on a background thread until :meth:`close`.
    """

    def __init__(
        self,
        client: ConnectionInfoProvider,
        port: int,
        host: str = "0.0.0.0",
        *,
        poll_interval: float = 0.1,
        request_timeout: float = 5.0,
    ) -> None:
        self._health = HealthState()
        self._poll_interval = poll_interval
        self._state = ServerState.UNSTARTED
        self._state_lock = threading.Lock()

        health = self._health

        class Handler(BaseHTTPRequestHandler):
            protocol_version = "HTTP/1.1"
            # Bounds every socket read, including the wait for a request line.
            timeout = request_timeout

            def parse_request(self) -> bool:
                self.server.mark_busy(self.request)
                return super().parse_request()

            def do_GET(self) -> None:  # noqa: N802 - part of BaseHTTPRequestHandler API
                path = urlsplit(self.path).path
                if path == LIVENESS_PATH:
                    # is_live() is always true, the 500 branch is unreachable.
                    self._send_check_result(health.is_live())
                elif path == READINESS_PATH:
                    info = client.connection_info()
                    self._send_check_result(health.is_ready(info))
                else:
                    self._send_body(404, b"")

            def _send_check_result(self, healthy: bool) -> None:
                if healthy:
                    self._send_body(200, b"ok")
                else:
                    self._send_body(500, b"error")

            def _send_body(self, status: int, body: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.send_header("Connection", "close")
                self.end_headers()
                self.wfile.write(body)

            def log_message(
                self, format: str, *args
            ) -> None:  # noqa: A003 - API requirement
                logger.debug("%s - %s", self.address_string(), format % args)

        try:
            self._server = _HealthHTTPServer((host, port), Handler)
        except OSError as exc:
            logger.error("Failed to listen on %s:%s: %s", host, port, exc)
            raise HealthServerBindError(host, port, str(exc)) from exc

        self._thread = threading.Thread(
            target=self._serve, name="health-check-server", daemon=True
        )
        self._state = ServerState.SERVING
        self._thread.start()
        logger.info(
            "Health check server listening on http://%s:%s", self.host, self.port
        )

    def _serve(self) -> None:
        try:
            self._server.serve_forever(poll_interval=self._poll_interval)
        except Exception:
            logger.exception("Failed to serve health check endpoints")

    def notify_started(self) -> None:
        """Tell the server that the proxy has finished starting up."""

        self._health.mark_started()

    def close(self, timeout: float = 5.0) -> None:
        """Stop accepting requests and wait for in-flight ones to finish.

        Connections that have not sent a request line are dropped at once.
        Requests still running after ``timeout`` seconds have their
        connections aborted and :class:`HealthServerShutdownError` is raised.
        Closing an already closed server does nothing.
        """

        with self._state_lock:
            if self._state is ServerState.CLOSED:
                logger.debug("Health check server already closed")
                return
            self._state = ServerState.CLOSED

        deadline = time.monotonic() + timeout
        # shutdown() waits on serve_forever and would hang if the loop died.
        if self._thread.is_alive():
            self._server.shutdown()
        self._server.server_close()
        self._thread.join(max(0.0, deadline - time.monotonic()))

        idle = self._server.abort_idle()
        if idle:
            logger.debug("Dropped %d idle health check connection(s)", idle)

        pending = self._server.wait_drained(max(0.0, deadline - time.monotonic()))
        if pending:
            self._server.abort_busy()
            logger.error(
                "Health check server shut down with %d request(s) in flight",
                pending,
            )
            raise HealthServerShutdownError(pending, timeout)

        logger.info("Health check server on port %s closed", self.port)

    @property
    def health(self) -> HealthState:
        return self._health

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def host(self) -> str:
        return self._server.server_address[0]

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    @property
    def address(self) -> Tuple[str, int]:
        return self.host, self.port

    @property
    def running(self) -> bool:
        return self._state is ServerState.SERVING and self._thread.is_alive()


__all__ = [
    "HealthCheckServer",
    "HealthState",
    "LIVENESS_PATH",
    "READINESS_PATH",
    "ServerState",
]
