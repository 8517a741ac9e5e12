"""Configuration Registry - every key serverpulse understands.

All keys are loaded once at startup (defaults < TOML < environment) and are
read-only for the lifetime of the process. The only runtime write path is the
report identity, which lives in SQLite (see persistence/report_state.py).
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

# Placeholder values shipped in config/default.toml
BOT_TOKEN_PLACEHOLDER = "YOUR_BOT_TOKEN_HERE"
CHAT_ID_PLACEHOLDER = "YOUR_CHAT_ID_HERE"


@dataclass
class ConfigKey:
    """One configuration key: its type, default and constraints.

    Attributes:
        value_type: Python type the resolved value must have
        default: Used when neither TOML nor the environment sets the key
        min_value: Inclusive lower bound (numeric keys)
        max_value: Inclusive upper bound (numeric keys)
        validator: Extra predicate the value must satisfy
        sensitive: Value must never appear in logs
    """
    value_type: type
    default: Any
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    validator: Optional[Callable[[Any], bool]] = None
    sensitive: bool = False


def _is_message_id(value: str) -> bool:
    return value == "" or value.isdigit()


def _is_banner_url(value: str) -> bool:
    return value == "" or value.startswith(("http://", "https://"))


# Configuration Registry
# =======================
# All configuration keys must be registered here.

REGISTRY: dict[str, ConfigKey] = {
    # ===== TELEGRAM (Destination + credentials) =====
    "telegram.bot_token": ConfigKey(
        value_type=str,
        default=BOT_TOKEN_PLACEHOLDER,
        sensitive=True,
    ),
    "telegram.status_chat_id": ConfigKey(
        value_type=str,
        default=CHAT_ID_PLACEHOLDER,
    ),
    "telegram.connect_timeout_seconds": ConfigKey(
        value_type=int,
        default=30,
        min_value=1,
        max_value=300,
    ),

    # ===== STATUS REPORT (Cadence + identity seed) =====
    "status.update_interval_seconds": ConfigKey(
        value_type=int,
        default=60,
        min_value=5,
        max_value=86400,
    ),
    "status.initial_delay_seconds": ConfigKey(
        value_type=int,
        default=10,
        min_value=0,
        max_value=3600,
    ),
    "status.snapshot_timeout_seconds": ConfigKey(
        value_type=int,
        default=10,
        min_value=1,
        max_value=300,
    ),
    "status.shutdown_timeout_seconds": ConfigKey(
        value_type=int,
        default=30,
        min_value=1,
        max_value=300,
    ),
    "status.message_id": ConfigKey(
        value_type=str,
        default="",
        validator=_is_message_id,
    ),

    # ===== SERVER INFO (Display fields) =====
    "server.name": ConfigKey(
        value_type=str,
        default="N/A",
    ),
    "server.platform": ConfigKey(
        value_type=str,
        default="N/A",
    ),
    "server.ip": ConfigKey(
        value_type=str,
        default="N/A",
    ),
    "server.banner_url": ConfigKey(
        value_type=str,
        default="",
        validator=_is_banner_url,
    ),
    "server.version": ConfigKey(
        value_type=str,
        default="unknown",
    ),
    "server.max_players": ConfigKey(
        value_type=int,
        default=20,
        min_value=0,
        max_value=100000,
    ),

    # ===== DATABASE =====
    "database.path": ConfigKey(
        value_type=str,
        default="data/serverpulse.db",
    ),

    # ===== LOGGING =====
    "logging.level": ConfigKey(
        value_type=str,
        default="INFO",
        validator=lambda v: v in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    ),
    "logging.format": ConfigKey(
        value_type=str,
        default="console",
        validator=lambda v: v in ("console", "json"),
    ),
}


def get_config_key(key: str) -> ConfigKey:
    """Look up a registered key.

    Raises:
        KeyError: If ``key`` is not registered
    """
    try:
        return REGISTRY[key]
    except KeyError:
        raise KeyError(f"Configuration key '{key}' not found in registry") from None


def _check_range(definition: ConfigKey, value: Any) -> Optional[str]:
    if definition.min_value is not None and value < definition.min_value:
        return f"Value {value} below minimum {definition.min_value}"
    if definition.max_value is not None and value > definition.max_value:
        return f"Value {value} above maximum {definition.max_value}"
    return None


def validate_config_value(key: str, value: Any) -> tuple[bool, Optional[str]]:
    """Check ``value`` against the definition registered for ``key``.

    Returns:
        (True, None) when valid, otherwise (False, reason)
    """
    definition = REGISTRY.get(key)
    if definition is None:
        return False, f"Configuration key '{key}' not found in registry"

    expected = definition.value_type
    # bool is an int subclass; TOML `true` must not pass as a number
    if isinstance(value, bool) and expected is not bool:
        return False, f"Expected type {expected.__name__}, got bool"
    if not isinstance(value, expected):
        return False, f"Expected type {expected.__name__}, got {type(value).__name__}"

    if expected in (int, float):
        error = _check_range(definition, value)
        if error is not None:
            return False, error

    if definition.validator is not None:
        try:
            accepted = definition.validator(value)
        except Exception as e:  # noqa: BLE001
            return False, f"Validator error: {e}"
        if not accepted:
            return False, f"Custom validation failed for value: {value}"

    return True, None


def get_default_values() -> dict[str, Any]:
    """Fresh dict of every key's default."""
    return {key: definition.default for key, definition in REGISTRY.items()}


def credential_problems(bot_token: str, status_chat_id: str) -> list[str]:
    """List the reasons the bot credentials are unusable (empty if fine)."""
    problems = []
    if bot_token.strip() in ("", BOT_TOKEN_PLACEHOLDER):
        problems.append("telegram.bot_token is not set")
    if status_chat_id.strip() in ("", CHAT_ID_PLACEHOLDER):
        problems.append("telegram.status_chat_id is not set")
    return problems


def get_sensitive_keys() -> set[str]:
    """Keys whose values are redacted in logs."""
    return {key for key, definition in REGISTRY.items() if definition.sensitive}
