"""Unit tests for Telegram report formatting."""

from datetime import datetime, timedelta, timezone

import pytest

from serverpulse.config.settings import DisplaySettings
from serverpulse.gateway.formatters import MAX_MESSAGE_LENGTH, format_report
from serverpulse.status.models import (
    RenderedDocument,
    ReportColor,
    ReportField,
    ServerSnapshot,
    ServerStatus,
)
from serverpulse.status.renderer import render_report

NOW = datetime(2024, 5, 1, 12, 30, 5, tzinfo=timezone.utc)


def test_online_report_layout():
    display = DisplaySettings(name="Pulse SMP", platform="Java Edition", ip="play.example.com")
    snapshot = ServerSnapshot("1.20.4", 3, 20, False, "2d 4m")
    text = format_report(render_report(ServerStatus.ONLINE, snapshot, display, now=NOW))

    assert text.split("\n") == [
        "🟢 <b>Server is Online</b>",
        "",
        "<b>Server Name:</b> Pulse SMP  |  <b>Platform:</b> Java Edition  |  "
        "<b>IP Address:</b> <code>play.example.com</code>",
        "<b>Version:</b> 1.20.4  |  <b>Players:</b> 3 / 20  |  <b>Whitelist:</b> Off",
        "<b>Uptime:</b> 2d 4m",
        "",
        "<i>Last Updated • 2024-05-01 12:30:05 UTC</i>",
    ]


def test_non_inline_field_breaks_the_row():
    doc = RenderedDocument(
        title="T",
        color=ReportColor.YELLOW,
        fields=(
            ReportField("A", "1"),
            ReportField("B", "2", inline=False),
            ReportField("C", "3"),
        ),
        timestamp=NOW,
        footer="Last Updated",
    )
    lines = format_report(doc).split("\n")
    assert lines[2:5] == ["<b>A:</b> 1", "<b>B:</b> 2", "<b>C:</b> 3"]


def test_values_are_html_escaped():
    display = DisplaySettings(name="<Tom & Jerry>", platform="N/A", ip="1.2.3.4")
    text = format_report(render_report(ServerStatus.STARTING, None, display, now=NOW))

    assert "&lt;Tom &amp; Jerry&gt;" in text
    assert "<Tom" not in text
    assert text.startswith("🟡 ")


def test_timestamp_rendered_in_utc():
    local = NOW.astimezone(timezone(timedelta(hours=2)))
    text = format_report(render_report(ServerStatus.OFFLINE, None, DisplaySettings(), now=local))
    assert text.startswith("🔴 <b>Server is Offline</b>")
    assert text.endswith("<i>Last Updated • 2024-05-01 12:30:05 UTC</i>")


def test_oversized_report_rejected():
    doc = RenderedDocument(
        title="T",
        color=ReportColor.GREEN,
        fields=(ReportField("Big", "x" * MAX_MESSAGE_LENGTH),),
        timestamp=NOW,
        footer="Last Updated",
    )
    with pytest.raises(ValueError, match="4096"):
        format_report(doc)
