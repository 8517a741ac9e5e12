"""Report rendering: (status, snapshot, display settings) -> RenderedDocument."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ..config.settings import DisplaySettings
from .models import RenderedDocument, ReportColor, ReportField, ServerSnapshot, ServerStatus

FOOTER_TEXT = "Last Updated"
MISSING_VALUE = "N/A"

# status -> (color, title, carries snapshot)
_STATUS_STYLES: dict[ServerStatus, tuple[ReportColor, str, bool]] = {
    ServerStatus.ONLINE: (ReportColor.GREEN, "Server is Online", True),
    ServerStatus.OFFLINE: (ReportColor.RED, "Server is Offline", False),
    ServerStatus.STARTING: (ReportColor.YELLOW, "Server is Starting...", False),
}


def _display_value(value: Optional[str]) -> str:
    return value if value else MISSING_VALUE


def _static_fields(display: DisplaySettings) -> list[ReportField]:
    return [
        ReportField("Server Name", _display_value(display.name)),
        ReportField("Platform", _display_value(display.platform)),
        ReportField("IP Address", _display_value(display.ip), monospace=True),
    ]


def _snapshot_fields(snapshot: ServerSnapshot) -> list[ReportField]:
    return [
        ReportField("Version", snapshot.version),
        ReportField("Players", f"{snapshot.online_players} / {snapshot.max_players}"),
        ReportField("Whitelist", "On" if snapshot.whitelist_enabled else "Off"),
        ReportField("Uptime", snapshot.uptime, inline=False),
    ]


def render_report(
    status: ServerStatus,
    snapshot: Optional[ServerSnapshot],
    display: DisplaySettings,
    now: Optional[datetime] = None,
) -> RenderedDocument:
    """Render the report for ``status``.

    Args:
        status: Server status to show
        snapshot: Live data, required for ONLINE and forbidden otherwise
        display: Static display fields
        now: Report timestamp (default: current UTC time)

    Raises:
        ValueError: If the snapshot does not match the status
    """
    color, title, carries_snapshot = _STATUS_STYLES[status]
    if carries_snapshot and snapshot is None:
        raise ValueError(f"{status.name} report requires a server snapshot")
    if not carries_snapshot and snapshot is not None:
        raise ValueError(f"{status.name} report must not carry a server snapshot")

    fields = _static_fields(display)
    if snapshot is not None:
        fields.extend(_snapshot_fields(snapshot))

    return RenderedDocument(
        title=title,
        color=color,
        fields=tuple(fields),
        timestamp=now or datetime.now(timezone.utc),
        footer=FOOTER_TEXT,
        image_url=display.banner_url or None,
    )
