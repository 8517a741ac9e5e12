"""Unit tests for uptime formatting."""

import pytest

from serverpulse.status.uptime import (
    MILLIS_PER_DAY,
    MILLIS_PER_HOUR,
    MILLIS_PER_MINUTE,
    format_uptime,
)


@pytest.mark.parametrize(
    "elapsed_ms, expected",
    [
        (0, "0m"),
        (59_999, "0m"),
        (90_000, "1m"),
        (MILLIS_PER_MINUTE, "1m"),
        (3_661_000, "1h 1m"),
        (MILLIS_PER_HOUR, "1h 0m"),
        (86_700_000, "1d 5m"),
        (90_000_000, "1d 1h 0m"),
        (3 * MILLIS_PER_DAY + 23 * MILLIS_PER_HOUR + 59 * MILLIS_PER_MINUTE + 59_999, "3d 23h 59m"),
    ],
)
def test_format_uptime(elapsed_ms, expected):
    start = 1_700_000_000_000
    assert format_uptime(start + elapsed_ms, start) == expected


def test_format_uptime_future_start_counts_as_zero():
    """Clock skew must never produce a negative uptime."""
    assert format_uptime(1_000, 61_000) == "0m"
