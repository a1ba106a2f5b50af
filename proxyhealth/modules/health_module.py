"""Module wiring the HTTP health check server into the process lifecycle."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..core.exceptions import HealthServerShutdownError
from ..observability.health import HealthCheckServer
from .base import Module, ModuleContext

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckModule(Module):
    name: str = "health_check"
    order: int = 10
    server: Optional[HealthCheckServer] = field(default=None, init=False)

    def setup(self, context: ModuleContext) -> None:  # noqa: D401
        config = context.config
        if not config.use_http_health_check:
            logger.info("HTTP health check disabled")
            return

        # Binding here lets a busy port abort setup before the proxy starts.
        server = HealthCheckServer(
            context.client, port=config.health_port, host=config.health_host
        )
        self.server = server

        async def _on_shutdown() -> None:
            try:
                await asyncio.to_thread(server.close, config.shutdown_timeout)
            except HealthServerShutdownError as exc:
                logger.error("Failed to shut down health check: %s", exc)

        context.on_ready(server.notify_started)
        context.on_shutdown(_on_shutdown)
