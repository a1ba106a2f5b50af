"""Application entrypoint wiring proxy health checks and lifecycle."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from dataclasses import replace
from typing import Optional, Sequence

from proxyhealth import __version__
from proxyhealth.core.config import get_config
from proxyhealth.core.exceptions import ConfigurationError, HealthServerBindError
from proxyhealth.modules.base import LifecyclePhase, ModuleLoader
from proxyhealth.modules.health_module import HealthCheckModule
from proxyhealth.modules.observability import ObservabilityModule
from proxyhealth.proxy.client import ProxyClient

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="proxyhealth",
        description="Serve liveness and readiness probes for the proxy.",
    )
    parser.add_argument(
        "--health-check-port",
        type=int,
        default=None,
        help="port for the HTTP health check server (default: HEALTH_CHECK_PORT or 8080)",
    )
    return parser.parse_args(argv)


async def _wait_for_signal() -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)
    await stop.wait()
    logger.info("Shutdown signal received")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Load configuration and modules, then serve until interrupted."""

    args = parse_args(argv)

    try:
        config = get_config()
        if args.health_check_port is not None:
            config = replace(config, health_port=args.health_check_port)

        client = ProxyClient(max_connections=config.max_connections)
        loader = ModuleLoader([ObservabilityModule(), HealthCheckModule()])
        loader.setup(loader.context(config, client))

        async def _run() -> None:
            await loader.run(LifecyclePhase.STARTUP)
            logger.info("Proxy %s ready for new connections", __version__)
            await loader.run(LifecyclePhase.READY)
            try:
                await _wait_for_signal()
            finally:
                await loader.run(LifecyclePhase.SHUTDOWN)

        asyncio.run(_run())
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise
    except HealthServerBindError as exc:
        logger.error("Health check setup failed: %s", exc)
        raise
    except Exception:
        logger.exception("Proxy startup error")
        raise


if __name__ == "__main__":
    main()
