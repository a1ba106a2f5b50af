import logging
import threading

import pytest

from proxyhealth.observability.health import HealthState
from proxyhealth.proxy.client import ConnectionInfo


def test_not_ready_before_startup_regardless_of_connections(caplog) -> None:
    state = HealthState()

    with caplog.at_level(logging.ERROR, logger="proxyhealth.observability.health"):
        assert state.is_ready(ConnectionInfo(current=0)) is False
        assert state.is_ready(ConnectionInfo(current=3, max_connections=10)) is False

    assert "has not finished starting up" in caplog.text


@pytest.mark.parametrize("current", [0, 1, 10_000, 2**63])
def test_unlimited_connections_ready_after_startup(current: int) -> None:
    state = HealthState()
    state.mark_started()

    assert state.is_ready(ConnectionInfo(current=current, max_connections=0))


def test_readiness_boundary_at_connection_limit(caplog) -> None:
    state = HealthState()
    state.mark_started()

    assert state.is_ready(ConnectionInfo(current=9, max_connections=10)) is True

    with caplog.at_level(logging.ERROR, logger="proxyhealth.observability.health"):
        assert state.is_ready(ConnectionInfo(current=10, max_connections=10)) is False
        assert state.is_ready(ConnectionInfo(current=11, max_connections=10)) is False

    assert "maximum connections limit (10)" in caplog.text


def test_startup_reason_checked_before_limit(caplog) -> None:
    state = HealthState()

    with caplog.at_level(logging.ERROR, logger="proxyhealth.observability.health"):
        assert state.is_ready(ConnectionInfo(current=10, max_connections=10)) is False

    assert "has not finished starting up" in caplog.text
    assert "maximum connections limit" not in caplog.text


def test_liveness_does_not_depend_on_startup() -> None:
    state = HealthState()
    assert state.is_live() is True

    state.mark_started()
    assert state.is_live() is True


def test_mark_started_is_idempotent() -> None:
    state = HealthState()
    assert state.started is False

    state.mark_started()
    state.mark_started()

    assert state.started is True
    assert state.is_ready(ConnectionInfo(current=0))


def test_concurrent_mark_started_is_observed_by_all_readers() -> None:
    state = HealthState()
    workers = 16
    barrier = threading.Barrier(workers)

    def _notify() -> None:
        barrier.wait()
        state.mark_started()

    threads = [threading.Thread(target=_notify) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert all(
        state.is_ready(ConnectionInfo(current=n, max_connections=100))
        for n in range(100)
    )
