"""Status reporter: drives snapshot -> render -> publish on a fixed cadence.

Lifecycle: UNSTARTED -> CONNECTING -> RUNNING -> STOPPED.

activate() and shutdown() are called by the host (typically on the
authority thread). Connecting, ticking and publishing all happen on the
background context; the only cross-thread rendezvous is the snapshot
request, which is submitted to the authority and awaited with a bound.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import time
from contextlib import AsyncExitStack
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from ..config.settings import ReporterSettings
from ..gateway.telegram_client import TelegramReportChannel
from ..host.authority import HostAuthority
from ..host.server import ServerHost
from ..persistence.db import DatabaseManager, set_db_manager
from ..persistence.report_state import ReportIdentityStore
from ..status.models import PublishOutcome, ServerSnapshot, ServerStatus
from ..status.publisher import ReportChannel, StatusPublisher
from ..status.snapshot import SnapshotProducer
from .background import BackgroundContext, PeriodicHandle

logger = structlog.get_logger(__name__)

ChannelFactory = Callable[[ReporterSettings], Any]


class ReporterState(str, Enum):
    UNSTARTED = "unstarted"
    CONNECTING = "connecting"
    RUNNING = "running"
    STOPPED = "stopped"


def default_channel_factory(settings: ReporterSettings) -> TelegramReportChannel:
    return TelegramReportChannel(
        token=settings.bot_token,
        chat_id=settings.status_chat_id,
        connect_timeout=settings.connect_timeout_seconds,
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


class StatusReporter:
    """Keeps one live status report up to date for the lifetime of the host."""

    def __init__(
        self,
        settings: ReporterSettings,
        host: ServerHost,
        authority: HostAuthority,
        *,
        background: Optional[BackgroundContext] = None,
        channel_factory: ChannelFactory = default_channel_factory,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Args:
            settings: Resolved configuration
            host: Live server state, read only on the authority
            authority: Host authority capability
            background: Background context (default: a new dedicated thread)
            channel_factory: Builds the async-context-managed report channel
            clock: Epoch-millis clock used for uptime
        """
        self.settings = settings
        self.host = host
        self.authority = authority
        self.background = background or BackgroundContext()
        self.channel_factory = channel_factory
        self.clock = clock

        self._state = ReporterState.UNSTARTED
        self._producer: Optional[SnapshotProducer] = None
        self._publisher: Optional[StatusPublisher] = None
        self._channel: Optional[ReportChannel] = None
        self._cycle: Optional[PeriodicHandle] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._resources: Optional[AsyncExitStack] = None
        self.last_outcome: Optional[PublishOutcome] = None

    @property
    def state(self) -> ReporterState:
        return self._state

    @property
    def publisher(self) -> Optional[StatusPublisher]:
        return self._publisher

    @property
    def cycle(self) -> Optional[PeriodicHandle]:
        return self._cycle

    def _set_state(self, state: ReporterState) -> None:
        if state is self._state:
            return
        logger.info("status_reporter_state_changed",
                    previous=self._state.value, state=state.value)
        self._state = state

    # ------------------------------------------------------------------
    # Host-facing lifecycle
    # ------------------------------------------------------------------

    def activate(self) -> concurrent.futures.Future:
        """Validate configuration and start connecting in the background.

        Returns:
            Future resolved when the connect routine has finished

        Raises:
            ConfigurationError: If credentials are missing; nothing is started
            RuntimeError: If the reporter was already activated
        """
        if self._state is not ReporterState.UNSTARTED:
            raise RuntimeError(f"StatusReporter cannot activate from state {self._state.value}")

        try:
            self.settings.validate()
        except ValueError as e:
            logger.error("status_reporter_config_invalid", error=str(e))
            raise

        self._producer = SnapshotProducer(
            self.host, self.authority, started_at_ms=self.clock(), clock=self.clock
        )
        self.background.start()
        self._set_state(ReporterState.CONNECTING)
        return self.background.run_once(self._connect)

    def shutdown(self) -> None:
        """Stop ticking, publish OFFLINE and release the connection.

        Blocks until the OFFLINE publish has completed (or failed), bounded
        by shutdown_timeout_seconds. Never raises.
        """
        if self._state is ReporterState.UNSTARTED or not self.background.running:
            self._set_state(ReporterState.STOPPED)
            return

        future = self.background.run_once(self._stop)
        try:
            future.result(timeout=self.settings.shutdown_timeout_seconds)
        except concurrent.futures.TimeoutError:
            logger.warning("status_reporter_shutdown_timed_out",
                           timeout_seconds=self.settings.shutdown_timeout_seconds)
            future.cancel()
        except Exception as e:  # noqa: BLE001
            logger.warning("status_reporter_shutdown_failed",
                           error=str(e), error_type=type(e).__name__)
        finally:
            self.background.stop()
        logger.info("status_reporter_disabled")

    # ------------------------------------------------------------------
    # Background routines
    # ------------------------------------------------------------------

    async def _connect(self) -> None:
        self._connect_task = asyncio.current_task()
        self._resources = AsyncExitStack()
        try:
            db_manager = DatabaseManager(self.settings.database_path)
            self._resources.push_async_callback(self._close_database, db_manager)
            await db_manager.init_db()
            set_db_manager(db_manager)

            identity = ReportIdentityStore(self.settings.status_chat_id,
                                           self.settings.seed_message_id)
            await identity.load()

            channel = await self._resources.enter_async_context(
                self.channel_factory(self.settings)
            )
        except Exception as e:  # noqa: BLE001
            logger.error(
                "status_reporter_connect_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._release()
            self._set_state(ReporterState.STOPPED)
            return

        self._channel = channel
        self._publisher = StatusPublisher(channel, identity, self.settings.display)
        self._set_state(ReporterState.RUNNING)
        logger.info("status_reporter_connected")

        self.last_outcome = await self._publisher.publish(ServerStatus.STARTING)
        if self._state is not ReporterState.RUNNING:
            return
        self._cycle = self.background.run_periodically(
            self._tick,
            initial_delay=self.settings.initial_delay_seconds,
            interval=self.settings.update_interval_seconds,
            name="status-update",
        )

    async def _tick(self) -> None:
        if self._state is not ReporterState.RUNNING:
            return
        try:
            snapshot = await self._request_snapshot()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "server_snapshot_unavailable",
                error=str(e) or type(e).__name__,
                error_type=type(e).__name__,
            )
            return
        if self._state is not ReporterState.RUNNING:
            logger.debug("status_tick_result_ignored", state=self._state.value)
            return
        self.last_outcome = await self._publisher.publish(ServerStatus.ONLINE, snapshot)

    async def _request_snapshot(self) -> ServerSnapshot:
        future = self.authority.submit(self._producer.capture)
        return await asyncio.wait_for(
            asyncio.wrap_future(future),
            timeout=self.settings.effective_snapshot_timeout,
        )

    async def _stop(self) -> None:
        previous = self._state
        self._set_state(ReporterState.STOPPED)

        if self._cycle is not None:
            self._cycle.cancel()

        connect_task = self._connect_task
        if (connect_task is not None and not connect_task.done()
                and previous is ReporterState.CONNECTING):
            connect_task.cancel()
            await asyncio.gather(connect_task, return_exceptions=True)

        try:
            if (previous is ReporterState.RUNNING and self._channel is not None
                    and self._channel.is_connected):
                logger.info("sending_final_offline_status")
                self.last_outcome = await self._publisher.publish(
                    ServerStatus.OFFLINE, final=True
                )
                logger.info("final_offline_status_published", outcome=self.last_outcome.value)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "final_offline_status_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            await self._release()

    async def _release(self) -> None:
        resources, self._resources = self._resources, None
        if resources is None:
            return
        try:
            await resources.aclose()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "status_reporter_release_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _close_database(self, db_manager: DatabaseManager) -> None:
        await db_manager.close()
        set_db_manager(None)
