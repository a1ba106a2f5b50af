import threading
from typing import Callable, Iterator, List

import pytest

from proxyhealth.core.config import reset_config_provider
from proxyhealth.observability.health import HealthCheckServer
from proxyhealth.proxy.client import ConnectionInfo, ConnectionInfoProvider, ProxyClient


class StallingClient:
    """Collaborator whose ``connection_info`` blocks until released."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def connection_info(self) -> ConnectionInfo:
        self.entered.set()
        self.release.wait(timeout=5)
        return ConnectionInfo(current=0)


@pytest.fixture(autouse=True)
def _config_scope():

    reset_config_provider()
    yield
    reset_config_provider()


@pytest.fixture
def client() -> ProxyClient:

    return ProxyClient()


@pytest.fixture
def stalling_client() -> Iterator[StallingClient]:

    stalling = StallingClient()
    yield stalling
    stalling.release.set()


@pytest.fixture
def make_server() -> Iterator[Callable[..., HealthCheckServer]]:
    """Build health check servers on an ephemeral loopback port."""

    servers: List[HealthCheckServer] = []

    def _make(provider: ConnectionInfoProvider, **kwargs) -> HealthCheckServer:
        server = HealthCheckServer(provider, port=0, host="127.0.0.1", **kwargs)
        servers.append(server)
        return server

    yield _make

    for server in servers:
        try:
            server.close(timeout=1)
        except Exception:  # pragma: no cover - teardown best effort
            pass
