"""Background execution context for remote I/O.

A daemon thread runs its own asyncio loop. Everything that talks to
Telegram or SQLite runs there, so the host authority is never blocked by
network latency.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Awaitable, Callable, Coroutine, Optional

import structlog

logger = structlog.get_logger(__name__)


class PeriodicHandle:
    """Cancellation handle for a repeating background job.

    Each tick runs as its own task. Cancelling stops further ticks from
    starting; a tick already running is left to finish on its own.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        fn: Callable[[], Awaitable[Any]],
        initial_delay: float,
        interval: float,
        name: str,
    ):
        self._loop = loop
        self._fn = fn
        self.initial_delay = initial_delay
        self.interval = interval
        self.name = name
        self.tick_count = 0
        self._cancelled = False
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def in_flight(self) -> Optional[asyncio.Task]:
        """The tick currently running, if any."""
        if self._in_flight is not None and not self._in_flight.done():
            return self._in_flight
        return None

    def _start(self) -> None:
        if self._cancelled:
            return
        self._timer = self._loop.create_task(self._run(), name=f"{self.name}-timer")

    async def _run(self) -> None:
        await asyncio.sleep(self.initial_delay)
        while not self._cancelled:
            if self.in_flight is not None:
                logger.warning("periodic_tick_skipped_previous_in_flight", job=self.name)
            else:
                self.tick_count += 1
                self._in_flight = self._loop.create_task(
                    self._fn(), name=f"{self.name}-tick-{self.tick_count}"
                )
                self._in_flight.add_done_callback(self._on_tick_done)
            await asyncio.sleep(self.interval)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "periodic_tick_crashed",
                job=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self) -> None:
        """Stop scheduling ticks. Safe to call from any thread."""
        if self._cancelled:
            return
        self._cancelled = True
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._cancel_timer()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._cancel_timer)
        logger.info("periodic_job_cancelled", job=self.name, ticks=self.tick_count)


class BackgroundContext:
    """Dedicated thread with its own event loop."""

    def __init__(self, name: str = "serverpulse-background"):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread (no-op if already running)."""
        if self.running:
            return
        self._loop = asyncio.new_event_loop()
        self._started.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.name, daemon=True)
        self._thread.start()
        self._started.wait()
        logger.info("background_context_started", thread=self.name)

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        try:
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()

    def is_current(self) -> bool:
        """True when called on the background thread."""
        return self._thread is not None and threading.current_thread() is self._thread

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if not self.running or self._loop is None:
            raise RuntimeError(f"Background context '{self.name}' is not running")
        return self._loop

    def run_once(
        self, fn: Callable[..., Coroutine[Any, Any, Any]], *args: Any
    ) -> concurrent.futures.Future:
        """Run ``fn(*args)`` on the background loop.

        Returns:
            Future with the coroutine's result; cancelling it cancels the task
        """
        loop = self._require_loop()
        return asyncio.run_coroutine_threadsafe(fn(*args), loop)

    def run_periodically(
        self,
        fn: Callable[[], Awaitable[Any]],
        initial_delay: float,
        interval: float,
        name: str = "periodic",
    ) -> PeriodicHandle:
        """Run ``fn`` after ``initial_delay`` seconds, then every ``interval`` seconds."""
        loop = self._require_loop()
        handle = PeriodicHandle(loop, fn, initial_delay, interval, name)
        if self.is_current():
            handle._start()
        else:
            loop.call_soon_threadsafe(handle._start)
        logger.info(
            "periodic_job_scheduled",
            job=name,
            initial_delay=initial_delay,
            interval=interval,
        )
        return handle

    def stop(self, grace: float = 2.0) -> None:
        """Let outstanding tasks finish for up to ``grace`` seconds, then stop.

        Must not be called from the background thread itself.
        """
        if not self.running:
            return
        if self.is_current():
            raise RuntimeError("BackgroundContext.stop() called from the background thread")

        drain = asyncio.run_coroutine_threadsafe(self._drain(grace), self._loop)
        try:
            drain.result(timeout=grace + 5)
        except (concurrent.futures.TimeoutError, concurrent.futures.CancelledError) as e:
            logger.warning("background_drain_incomplete", error=type(e).__name__)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=grace + 5)
        logger.info("background_context_stopped", thread=self.name)

    async def _drain(self, grace: float) -> None:
        current = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current]
        if not pending:
            return
        _, still_pending = await asyncio.wait(pending, timeout=grace)
        for task in still_pending:
            task.cancel()
        if still_pending:
            logger.warning("background_tasks_cancelled", count=len(still_pending))
            await asyncio.gather(*still_pending, return_exceptions=True)
