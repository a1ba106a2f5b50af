"""Module configuring structured logging."""

from __future__ import annotations

from dataclasses import dataclass

from ..observability.logging import configure_logging
from .base import Module, ModuleContext


@dataclass
class ObservabilityModule(Module):
    name: str = "observability"
    order: int = 0

    def setup(self, context: ModuleContext) -> None:  # noqa: D401
        configure_logging(context.config.log_level_value)
