"""Configuration loading and typed settings."""

from .manager import ConfigManager, ConfigurationError, load_config
from .settings import DisplaySettings, ReporterSettings

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "DisplaySettings",
    "ReporterSettings",
    "load_config",
]
