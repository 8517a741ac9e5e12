"""Host authority: the single thread allowed to touch live server state.

Background code never reads host state directly. It submits a callable to
the authority and waits on the returned future, which resolves once the
callable has run on the authority thread.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Callable, Protocol, TypeVar

T = TypeVar("T")


class AuthorityUnavailableError(RuntimeError):
    """The authority loop is closed or shutting down."""


class HostAuthority(Protocol):
    """Capability to run a computation on the host authority thread."""

    def submit(self, fn: Callable[..., T], *args: Any) -> "concurrent.futures.Future[T]":
        ...

    def is_current(self) -> bool:
        ...


class LoopAuthority:
    """Host authority backed by an asyncio event loop.

    The loop's thread is the authority. ``submit`` may be called from any
    thread; the callable runs as a plain loop callback, so it must not block.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def is_current(self) -> bool:
        """True when called from within the authority loop."""
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def submit(self, fn: Callable[..., T], *args: Any) -> "concurrent.futures.Future[T]":
        """Schedule ``fn(*args)`` on the authority loop.

        Returns:
            Future resolved with the result (or exception) of ``fn``. If the
            future is cancelled before the loop gets to it, ``fn`` never runs.
        """
        future: concurrent.futures.Future[T] = concurrent.futures.Future()

        def _run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fn(*args))
            except Exception as exc:
                future.set_exception(exc)

        if self._loop.is_closed():
            future.set_exception(AuthorityUnavailableError("authority loop is closed"))
            return future

        try:
            self._loop.call_soon_threadsafe(_run)
        except RuntimeError as exc:
            # Loop closed between the check and the call
            future.set_exception(AuthorityUnavailableError(str(exc)))
        return future
