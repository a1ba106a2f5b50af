import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _env_int(name: str, default: str) -> int:

    raw = os.getenv(name, default)
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"Invalid {name} value: {raw!r}")


def _env_float(name: str, default: str) -> float:

    raw = os.getenv(name, default)
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigurationError(f"Invalid {name} value: {raw!r}")


@dataclass
class HealthConfig:

    health_host: str = "0.0.0.0"
    health_port: int = 8080
    use_http_health_check: bool = True
    max_connections: int = 0
    shutdown_timeout: float = 5.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:

        if not 0 <= self.health_port <= 65535:
            raise ConfigurationError(
                f"Health check port out of range: {self.health_port}"
            )
        if self.max_connections < 0:
            raise ConfigurationError("Maximum connections must not be negative")
        if self.shutdown_timeout < 0:
            raise ConfigurationError("Shutdown timeout must not be negative")
        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    @property
    def log_level_value(self) -> int:

        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> "HealthConfig":

        health_host = os.getenv("HEALTH_CHECK_HOST", "0.0.0.0")
        health_port = _env_int("HEALTH_CHECK_PORT", "8080")
        use_http_health_check = os.getenv(
            "USE_HTTP_HEALTH_CHECK", "true"
        ).lower() in {
            "1",
            "true",
            "yes",
        }
        max_connections = _env_int("PROXY_MAX_CONNECTIONS", "0")
        shutdown_timeout = _env_float("HEALTH_SHUTDOWN_TIMEOUT", "5")
        log_level = os.getenv("LOG_LEVEL", "INFO")

        return cls(
            health_host=health_host,
            health_port=health_port,
            use_http_health_check=use_http_health_check,
            max_connections=max_connections,
            shutdown_timeout=shutdown_timeout,
            log_level=log_level,
        )


class ConfigProvider(ABC):

    @abstractmethod
    def get(self) -> HealthConfig:

        raise NotImplementedError


class EnvConfigProvider(ConfigProvider):

    def __init__(self) -> None:

        self._config: Optional[HealthConfig] = None

    def get(self) -> HealthConfig:

        if self._config is None:
            self._config = HealthConfig.from_env()
        return self._config

    def reset(self) -> None:

        self._config = None


class StaticConfigProvider(ConfigProvider):

    def __init__(self, config: HealthConfig) -> None:

        self._config = config

    def get(self) -> HealthConfig:

        return self._config


_config_provider: ConfigProvider = EnvConfigProvider()


def get_config_provider() -> ConfigProvider:

    return _config_provider


def set_config_provider(provider: ConfigProvider) -> None:

    global _config_provider
    _config_provider = provider


def reset_config_provider() -> None:

    set_config_provider(EnvConfigProvider())


def get_config() -> HealthConfig:

    return _config_provider.get()


def set_config(config_instance: HealthConfig) -> None:

    set_config_provider(StaticConfigProvider(config_instance))
