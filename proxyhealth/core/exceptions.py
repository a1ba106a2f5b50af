class ProxyHealthError(Exception):

    pass


class ConfigurationError(ProxyHealthError):

    pass


class HealthCheckError(ProxyHealthError):

    pass


class HealthServerBindError(HealthCheckError):

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Failed to listen on {host}:{port}: {reason}")


class HealthServerShutdownError(HealthCheckError):

    def __init__(self, pending: int, timeout: float) -> None:
        self.pending = pending
        self.timeout = timeout
        super().__init__(
            f"Health check server did not drain {pending} request(s) "
            f"within {timeout:.2f}s"
        )
