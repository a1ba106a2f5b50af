"""Process composition modules."""

from .base import LifecyclePhase, Module, ModuleContext, ModuleLoader
from .health_module import HealthCheckModule
from .observability import ObservabilityModule

__all__ = [
    "HealthCheckModule",
    "LifecyclePhase",
    "Module",
    "ModuleContext",
    "ModuleLoader",
    "ObservabilityModule",
]
