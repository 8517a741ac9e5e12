"""Status report data models.

ServerSnapshot is the only value that crosses from the host authority to
the background publisher. It is frozen so the publishing side can never
observe a half-written capture.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ServerStatus(str, Enum):
    """Server state shown on the report."""

    ONLINE = "online"
    OFFLINE = "offline"
    STARTING = "starting"


class ReportColor(Enum):
    """Report accent color. Telegram has no embed colors, so each carries a marker."""

    GREEN = ((15, 255, 0), "🟢")
    RED = ((255, 0, 0), "🔴")
    YELLOW = ((255, 224, 0), "🟡")

    @property
    def rgb(self) -> tuple[int, int, int]:
        return self.value[0]

    @property
    def marker(self) -> str:
        return self.value[1]


class PublishOutcome(str, Enum):
    """Result of a single publish attempt."""

    CREATED = "created"
    EDITED = "edited"
    FAILED = "failed"
    NOT_READY = "not_ready"
    SKIPPED = "skipped"

    @property
    def delivered(self) -> bool:
        return self in (PublishOutcome.CREATED, PublishOutcome.EDITED)


@dataclass(frozen=True)
class ServerSnapshot:
    """Point-in-time capture of host state, taken on the authority thread."""

    version: str
    online_players: int
    max_players: int
    whitelist_enabled: bool
    uptime: str

    def __post_init__(self):
        if self.online_players < 0:
            raise ValueError(f"online_players must be >= 0, got {self.online_players}")
        if self.max_players < 0:
            raise ValueError(f"max_players must be >= 0, got {self.max_players}")


@dataclass(frozen=True)
class ReportField:
    """One labelled value on the report."""

    name: str
    value: str
    inline: bool = True
    monospace: bool = False


@dataclass(frozen=True)
class RenderedDocument:
    """Platform-neutral report, rendered fresh for every publish."""

    title: str
    color: ReportColor
    fields: tuple[ReportField, ...]
    timestamp: datetime
    footer: str
    image_url: Optional[str] = None

    def field(self, name: str) -> Optional[ReportField]:
        """Return the first field called ``name``, if any."""
        for report_field in self.fields:
            if report_field.name == name:
                return report_field
        return None
