"""
Telegram message formatting utilities.

Turns a RenderedDocument into Telegram HTML. Telegram has no embeds, so the
report color becomes a marker emoji and inline fields share a line.
"""

from datetime import timezone
from html import escape

from ..status.models import RenderedDocument, ReportField

MAX_MESSAGE_LENGTH = 4096
INLINE_FIELDS_PER_LINE = 3
INLINE_SEPARATOR = "  |  "
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def _format_field(field: ReportField) -> str:
    value = escape(field.value)
    if field.monospace:
        value = f"<code>{value}</code>"
    return f"<b>{escape(field.name)}:</b> {value}"


def _field_lines(fields: tuple[ReportField, ...]) -> list[str]:
    lines: list[str] = []
    row: list[str] = []
    for field in fields:
        if not field.inline:
            if row:
                lines.append(INLINE_SEPARATOR.join(row))
                row = []
            lines.append(_format_field(field))
            continue
        row.append(_format_field(field))
        if len(row) == INLINE_FIELDS_PER_LINE:
            lines.append(INLINE_SEPARATOR.join(row))
            row = []
    if row:
        lines.append(INLINE_SEPARATOR.join(row))
    return lines


def format_report(document: RenderedDocument) -> str:
    """
    Render a report as Telegram HTML.

    Args:
        document: Rendered report

    Returns:
        HTML text for ``parse_mode=HTML``

    Raises:
        ValueError: If the result exceeds Telegram's 4096-character limit

    Examples:
        >>> from datetime import datetime, timezone
        >>> from serverpulse.status.models import ReportColor
        >>> doc = RenderedDocument("Server is Offline", ReportColor.RED, (),
        ...                        datetime(2024, 1, 1, tzinfo=timezone.utc), "Last Updated")
        >>> print(format_report(doc))
        🔴 <b>Server is Offline</b>
        <BLANKLINE>
        <i>Last Updated • 2024-01-01 00:00:00 UTC</i>
    """
    timestamp = document.timestamp.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    parts = [f"{document.color.marker} <b>{escape(document.title)}</b>", ""]
    lines = _field_lines(document.fields)
    if lines:
        parts.extend(lines)
        parts.append("")
    parts.append(f"<i>{escape(document.footer)} • {timestamp}</i>")

    text = "\n".join(parts)
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValueError(
            f"Report is {len(text)} characters, Telegram allows {MAX_MESSAGE_LENGTH}"
        )
    return text
