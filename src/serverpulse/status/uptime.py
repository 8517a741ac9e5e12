"""Uptime formatting."""

MILLIS_PER_MINUTE = 60_000
MILLIS_PER_HOUR = 60 * MILLIS_PER_MINUTE
MILLIS_PER_DAY = 24 * MILLIS_PER_HOUR


def format_uptime(now_ms: int, start_ms: int) -> str:
    """Format elapsed time as ``"{d}d {h}h {m}m"``.

    Days and hours are left out when zero, minutes are always shown.
    Seconds are truncated. A start time in the future counts as zero.

    Examples:
        >>> format_uptime(3_661_000, 0)
        '1h 1m'
        >>> format_uptime(90_000_000, 0)
        '1d 1h 0m'
    """
    elapsed = max(0, int(now_ms) - int(start_ms))
    days, elapsed = divmod(elapsed, MILLIS_PER_DAY)
    hours, elapsed = divmod(elapsed, MILLIS_PER_HOUR)
    minutes = elapsed // MILLIS_PER_MINUTE

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")
    return " ".join(parts)
