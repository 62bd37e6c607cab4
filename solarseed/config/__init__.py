"""Configuration loading for solarseed."""

from .settings import (
    AnomalyConfig,
    ConfigurationError,
    GenerationConfig,
    LoggingConfig,
    Settings,
    SolarUnitConfig,
    StorageConfig,
    load_settings,
    parse_settings,
)

__all__ = [
    "AnomalyConfig",
    "ConfigurationError",
    "GenerationConfig",
    "LoggingConfig",
    "Settings",
    "SolarUnitConfig",
    "StorageConfig",
    "load_settings",
    "parse_settings",
]
