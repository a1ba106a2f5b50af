"""Lifecycle composition for the proxy process.

Modules register hooks for three phases: ``startup`` (before the proxy
accepts connections), ``ready`` (once it has announced it is ready for new
connections) and ``shutdown`` (before the process exits, run in reverse
registration order).
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Protocol

from ..core.config import HealthConfig
from ..proxy.client import ConnectionInfoProvider

LifecycleHook = Callable[[], Awaitable[None] | None]


class LifecyclePhase(str, Enum):
    STARTUP = "startup"
    READY = "ready"
    SHUTDOWN = "shutdown"


@dataclass
class ModuleContext:
    config: HealthConfig
    client: ConnectionInfoProvider
    _register: Callable[[LifecyclePhase, LifecycleHook], None]

    def on_startup(self, hook: LifecycleHook) -> None:
        self._register(LifecyclePhase.STARTUP, hook)

    def on_ready(self, hook: LifecycleHook) -> None:
        self._register(LifecyclePhase.READY, hook)

    def on_shutdown(self, hook: LifecycleHook) -> None:
        self._register(LifecyclePhase.SHUTDOWN, hook)


class Module(Protocol):
    name: str
    order: int

    def setup(self, context: ModuleContext) -> None: ...


class ModuleLoader:
    """Sets modules up by ``order`` and runs their hooks phase by phase."""

    def __init__(self, modules: Iterable[Module]) -> None:
        self._modules = sorted(modules, key=lambda module: module.order)
        self._hooks: Dict[LifecyclePhase, List[LifecycleHook]] = {
            phase: [] for phase in LifecyclePhase
        }

    def context(
        self, config: HealthConfig, client: ConnectionInfoProvider
    ) -> ModuleContext:
        return ModuleContext(config=config, client=client, _register=self.register)

    def setup(self, context: ModuleContext) -> None:
        for module in self._modules:
            module.setup(context)

    def register(self, phase: LifecyclePhase, hook: LifecycleHook) -> None:
        self._hooks[phase].append(hook)

    async def run(self, phase: LifecyclePhase) -> None:
        hooks = self._hooks[phase]
        if phase is LifecyclePhase.SHUTDOWN:
            hooks = list(reversed(hooks))
        for hook in hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result
