"""Typed, immutable views over the loaded configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .manager import ConfigManager, ConfigurationError
from .registry import credential_problems


@dataclass(frozen=True)
class DisplaySettings:
    """Static fields shown on every report."""

    name: str = "N/A"
    platform: str = "N/A"
    ip: str = "N/A"
    banner_url: str = ""


@dataclass(frozen=True)
class ReporterSettings:
    """Everything the status reporter needs, resolved once at startup."""

    bot_token: str
    status_chat_id: str
    display: DisplaySettings = field(default_factory=DisplaySettings)
    update_interval_seconds: float = 60
    initial_delay_seconds: float = 10
    snapshot_timeout_seconds: float = 10
    shutdown_timeout_seconds: float = 30
    connect_timeout_seconds: float = 30
    seed_message_id: Optional[int] = None
    database_path: str = "data/serverpulse.db"

    @property
    def effective_snapshot_timeout(self) -> float:
        """Snapshot waits never outlast a single tick."""
        return min(self.snapshot_timeout_seconds, self.update_interval_seconds)

    def validate(self) -> None:
        """Raise ConfigurationError when the credentials are unusable."""
        problems = credential_problems(self.bot_token, self.status_chat_id)
        if problems:
            raise ConfigurationError("; ".join(problems))

    @classmethod
    def from_config(cls, config: ConfigManager) -> "ReporterSettings":
        message_id = config.get("status.message_id")
        return cls(
            bot_token=config.get("telegram.bot_token"),
            status_chat_id=config.get("telegram.status_chat_id"),
            display=DisplaySettings(
                name=config.get("server.name"),
                platform=config.get("server.platform"),
                ip=config.get("server.ip"),
                banner_url=config.get("server.banner_url"),
            ),
            update_interval_seconds=config.get("status.update_interval_seconds"),
            initial_delay_seconds=config.get("status.initial_delay_seconds"),
            snapshot_timeout_seconds=config.get("status.snapshot_timeout_seconds"),
            shutdown_timeout_seconds=config.get("status.shutdown_timeout_seconds"),
            connect_timeout_seconds=config.get("telegram.connect_timeout_seconds"),
            seed_message_id=int(message_id) if message_id else None,
            database_path=config.get("database.path"),
        )
