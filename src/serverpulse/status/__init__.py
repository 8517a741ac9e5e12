"""Status report pipeline: snapshot, render, publish."""

from .models import (
    PublishOutcome,
    RenderedDocument,
    ReportColor,
    ReportField,
    ServerSnapshot,
    ServerStatus,
)
from .publisher import StatusPublisher
from .renderer import render_report
from .snapshot import SnapshotProducer
from .uptime import format_uptime

__all__ = [
    "PublishOutcome",
    "RenderedDocument",
    "ReportColor",
    "ReportField",
    "ServerSnapshot",
    "ServerStatus",
    "SnapshotProducer",
    "StatusPublisher",
    "format_uptime",
    "render_report",
]
