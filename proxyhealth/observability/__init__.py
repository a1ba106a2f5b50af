"""Observability utilities (logging, health checks)."""

from .health import HealthCheckServer, HealthState, ServerState
from .logging import configure_logging

__all__ = [
    "configure_logging",
    "HealthCheckServer",
    "HealthState",
    "ServerState",
]
