"""Status publisher: create-or-edit of the single live report.

One publish runs at a time. The create-vs-edit decision reads the report
identity inside the lock, so concurrent callers can never both create.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

import structlog

from ..config.settings import DisplaySettings
from ..persistence.report_state import ReportIdentityStore
from .models import PublishOutcome, RenderedDocument, ServerSnapshot, ServerStatus
from .renderer import render_report

logger = structlog.get_logger(__name__)


class ReportChannel(Protocol):
    """Remote publish capability: create a report, or edit one by message id.

    Implementations raise on rejected creates and edits; see
    gateway.telegram_client.TelegramReportChannel.
    """

    @property
    def is_connected(self) -> bool:
        ...

    async def ensure_ready(self) -> bool:
        ...

    async def create(self, document: RenderedDocument) -> int:
        ...

    async def edit(self, message_id: int, document: RenderedDocument) -> None:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatusPublisher:
    """Publish rendered reports to a ReportChannel, tracking the report identity."""

    def __init__(
        self,
        channel: ReportChannel,
        identity: ReportIdentityStore,
        display: DisplaySettings,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.channel = channel
        self.identity = identity
        self.display = display
        self.clock = clock
        self._lock = asyncio.Lock()
        self._sealed = False

    @property
    def message_id(self) -> Optional[int]:
        return self.identity.message_id

    @property
    def sealed(self) -> bool:
        """True once the final publish has been admitted."""
        return self._sealed

    async def publish(
        self,
        status: ServerStatus,
        snapshot: Optional[ServerSnapshot] = None,
        *,
        final: bool = False,
    ) -> PublishOutcome:
        """Create or edit the report for ``status``.

        Args:
            status: Status to publish
            snapshot: Live data (ONLINE only)
            final: Last publish of the process; later calls are skipped

        Returns:
            PublishOutcome; remote failures are logged, never raised

        Raises:
            ValueError: If the snapshot does not match the status
        """
        async with self._lock:
            if self._sealed:
                logger.debug("status_publish_skipped_after_final", status=status.value)
                return PublishOutcome.SKIPPED
            if final:
                self._sealed = True

            if not await self.channel.ensure_ready():
                logger.warning("status_publish_not_ready", status=status.value)
                return PublishOutcome.NOT_READY

            document = render_report(status, snapshot, self.display, now=self.clock())

            message_id = self.identity.message_id
            if message_id is None:
                return await self._create(status, document)
            return await self._edit(status, message_id, document)

    async def _create(self, status: ServerStatus, document: RenderedDocument) -> PublishOutcome:
        try:
            message_id = await self.channel.create(document)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "status_message_create_failed",
                status=status.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return PublishOutcome.FAILED

        try:
            await self.identity.save(message_id)
        except Exception as e:  # noqa: BLE001
            logger.error(
                "report_identity_persist_failed",
                message_id=message_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        else:
            logger.info("status_message_created", status=status.value, message_id=message_id)
        return PublishOutcome.CREATED

    async def _edit(
        self, status: ServerStatus, message_id: int, document: RenderedDocument
    ) -> PublishOutcome:
        try:
            await self.channel.edit(message_id, document)
        except Exception as e:  # noqa: BLE001
            # Identity is kept; the next cycle edits the same message again
            logger.warning(
                "status_message_edit_failed",
                status=status.value,
                message_id=message_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return PublishOutcome.FAILED

        logger.debug("status_message_edited", status=status.value, message_id=message_id)
        return PublishOutcome.EDITED
