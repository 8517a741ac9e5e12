"""Configuration Manager - read-only settings for the status reporter.

Values are resolved once at startup, lowest precedence first:

1. Registry defaults
2. TOML file (``[section] key = ...`` becomes ``section.key``)
3. ``SERVERPULSE_<SECTION>_<KEY>`` environment variables, including any
   set by a ``.env`` file

Every resolved value is checked against the registry. Whether the bot
credentials are usable is a separate question, answered by
ReporterSettings.validate() when the reporter activates.
"""

import os
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
import structlog

from .registry import (
    REGISTRY,
    get_config_key,
    get_default_values,
    get_sensitive_keys,
    validate_config_value,
)

logger = structlog.get_logger(__name__)

ENV_PREFIX = "SERVERPULSE_"
DEFAULT_CONFIG_FILE = Path("config/default.toml")
DEFAULT_ENV_FILE = Path(".env")


class ConfigurationError(ValueError):
    """Raised when the configuration cannot be used to start the reporter."""


def env_var_name(key: str) -> str:
    """``telegram.bot_token`` -> ``SERVERPULSE_TELEGRAM_BOT_TOKEN``."""
    return ENV_PREFIX + key.replace(".", "_").upper()


def _loggable(key: str, value: Any) -> Any:
    return "[REDACTED]" if key in get_sensitive_keys() else value


class ConfigManager:
    """Resolves and serves the configuration.

    Attributes:
        config: Resolved values by dotted key (empty until load())
        config_file: TOML file to read
        env_file: .env file to read
    """

    def __init__(self, config_file: Optional[Path] = None, env_file: Optional[Path] = None):
        self.config: dict[str, Any] = {}
        self.config_file = Path(config_file) if config_file is not None else DEFAULT_CONFIG_FILE
        self.env_file = Path(env_file) if env_file is not None else DEFAULT_ENV_FILE
        logger.info("config_manager_initialized",
                    config_file=str(self.config_file),
                    env_file=str(self.env_file))

    def load(self) -> dict[str, Any]:
        """Resolve every registered key.

        A missing TOML file is not an error; defaults and environment
        variables still apply.

        Returns:
            The resolved configuration

        Raises:
            ValueError: If an environment value cannot be parsed or any
                resolved value fails validation
        """
        logger.info("loading_config", config_file=str(self.config_file))

        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info("env_file_loaded", env_file=str(self.env_file))

        config = get_default_values()
        config.update(self._read_toml())
        config.update(self._read_env())

        for key, value in config.items():
            is_valid, error_msg = validate_config_value(key, value)
            if not is_valid:
                logger.error("config_validation_failed", key=key,
                             value=_loggable(key, value), error=error_msg)
                raise ValueError(f"Config validation failed for '{key}': {error_msg}")

        self.config = config
        logger.info("config_loaded",
                    keys_count=len(config),
                    status_chat_id=config["telegram.status_chat_id"],
                    bot_token=_loggable("telegram.bot_token", config["telegram.bot_token"]))
        return config

    def _read_toml(self) -> dict[str, Any]:
        if not self.config_file.exists():
            logger.warning("config_file_not_found",
                           config_file=str(self.config_file), using_defaults=True)
            return {}

        with open(self.config_file, "rb") as f:
            flattened = self._flatten_toml(tomllib.load(f))

        values = {}
        for key, value in flattened.items():
            if key in REGISTRY:
                values[key] = value
            else:
                logger.warning("unknown_config_key_ignored", key=key)
        logger.info("toml_config_loaded", keys_count=len(values))
        return values

    def _read_env(self) -> dict[str, Any]:
        values = {}
        for key, definition in REGISTRY.items():
            env_key = env_var_name(key)
            raw = os.getenv(env_key)
            if raw is None:
                continue
            try:
                values[key] = self._parse_env_value(raw, definition.value_type)
            except ValueError as e:
                logger.error("env_parse_error", key=key, env_key=env_key, error=str(e))
                raise ValueError(f"Failed to parse env var {env_key}: {e}") from e
            logger.info("env_override_applied", key=key, env_key=env_key)
        return values

    def get(self, key: str) -> Any:
        """Value for ``key``; the registry default before load().

        Raises:
            KeyError: If ``key`` is not registered
        """
        default = get_config_key(key).default
        return self.config.get(key, default)

    @staticmethod
    def _flatten_toml(data: dict, prefix: str = "") -> dict[str, Any]:
        """``{"server": {"name": "x"}}`` -> ``{"server.name": "x"}``."""
        flat: dict[str, Any] = {}
        for key, value in data.items():
            dotted = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                flat.update(ConfigManager._flatten_toml(value, dotted))
            else:
                flat[dotted] = value
        return flat

    @staticmethod
    def _parse_env_value(value: str, target_type: type) -> Any:
        """Convert an environment string to the key's registered type.

        Raises:
            ValueError: If the string does not parse as ``target_type``
        """
        if target_type is bool:
            return value.strip().lower() in ("true", "1", "yes", "on")
        if target_type in (int, float, str):
            return target_type(value.strip() if target_type is not str else value)
        raise ValueError(f"Unsupported type for env parsing: {target_type.__name__}")


def load_config(config_file: Optional[Path] = None,
                env_file: Optional[Path] = None) -> ConfigManager:
    """Create a ConfigManager and load it."""
    manager = ConfigManager(config_file, env_file)
    manager.load()
    return manager
