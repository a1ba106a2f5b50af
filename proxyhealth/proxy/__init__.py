"""Proxy-side collaborators consumed by the health checks."""

from .client import ConnectionInfo, ConnectionInfoProvider, ProxyClient

__all__ = ["ConnectionInfo", "ConnectionInfoProvider", "ProxyClient"]
