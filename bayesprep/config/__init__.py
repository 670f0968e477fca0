"""Configuration management for bayesprep."""

from .settings import (
    BayesPrepConfig,
    DataConfig,
    BaselineHazardConfig,
    LoggingConfig,
    LogLevel,
    get_default_config,
    reset_default_config,
)

__all__ = [
    "BayesPrepConfig",
    "DataConfig",
    "BaselineHazardConfig",
    "LoggingConfig",
    "LogLevel",
    "get_default_config",
    "reset_default_config",
]
