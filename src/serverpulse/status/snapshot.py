"""Snapshot producer for the live status report.

Runs on the host authority: each call reads the live server state once and
freezes it into a ServerSnapshot that the background publisher can use
without further access to the host.

Design principles:
- Authority-only: refuses to run on any other thread
- Read-only: no side effects on the host
- All-or-nothing: a snapshot is either fully populated or not produced
"""

import time
from typing import Callable, Optional

import structlog

from ..host.authority import HostAuthority
from ..host.server import ServerHost
from .models import ServerSnapshot
from .uptime import format_uptime

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def short_version(version: str) -> str:
    """Strip build qualifiers: ``"1.20.4-R0.1-SNAPSHOT"`` -> ``"1.20.4"``."""
    return version.split("-", 1)[0]


class SnapshotProducer:
    """Capture ServerSnapshots on the host authority thread."""

    def __init__(
        self,
        host: ServerHost,
        authority: HostAuthority,
        started_at_ms: Optional[int] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Args:
            host: Live server state
            authority: Authority the capture must run on
            started_at_ms: Epoch millis the server came up (default: now)
            clock: Epoch-millis clock, injectable for tests
        """
        self.host = host
        self.authority = authority
        self.clock = clock
        self.started_at_ms = started_at_ms if started_at_ms is not None else clock()

    def capture(self) -> ServerSnapshot:
        """Read the host state into an immutable snapshot.

        Raises:
            RuntimeError: If called off the authority thread
        """
        if not self.authority.is_current():
            raise RuntimeError("capture() must run on the host authority thread")

        snapshot = ServerSnapshot(
            version=short_version(self.host.version),
            online_players=self.host.online_player_count(),
            max_players=self.host.max_players,
            whitelist_enabled=self.host.whitelist_enabled,
            uptime=format_uptime(self.clock(), self.started_at_ms),
        )
        logger.debug(
            "server_snapshot_captured",
            online_players=snapshot.online_players,
            max_players=snapshot.max_players,
        )
        return snapshot
