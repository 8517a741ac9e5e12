"""Shared fixtures for serverpulse tests."""

import asyncio
import threading
from typing import Optional

import pytest

from serverpulse.persistence.db import DatabaseManager, set_db_manager
from serverpulse.status.models import RenderedDocument


class FakeChannel:
    """In-memory ReportChannel that records every create and edit."""

    def __init__(self, connected: bool = False):
        self.connected = connected
        self.ready = True
        self.latency = 0.0
        self.open_latency = 0.0
        self.fail_open: Optional[Exception] = None
        self.fail_create: Optional[Exception] = None
        self.fail_edit: Optional[Exception] = None
        self.created: list[RenderedDocument] = []
        self.edited: list[tuple[int, RenderedDocument]] = []
        self.history: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.closed = False
        self.next_message_id = 100

    async def __aenter__(self) -> "FakeChannel":
        if self.open_latency:
            await asyncio.sleep(self.open_latency)
        if self.fail_open is not None:
            raise self.fail_open
        self.connected = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.connected = False
        self.closed = True

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def ensure_ready(self) -> bool:
        return self.connected and self.ready

    async def _remote_call(self) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
        finally:
            self.active -= 1

    async def create(self, document: RenderedDocument) -> int:
        await self._remote_call()
        if self.fail_create is not None:
            raise self.fail_create
        self.next_message_id += 1
        self.created.append(document)
        self.history.append(("create", document.title))
        return self.next_message_id

    async def edit(self, message_id: int, document: RenderedDocument) -> None:
        await self._remote_call()
        if self.fail_edit is not None:
            raise self.fail_edit
        self.edited.append((message_id, document))
        self.history.append(("edit", document.title))


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
async def setup_database(tmp_path):
    """Migrated SQLite database registered as the global manager."""
    db_manager = DatabaseManager(tmp_path / "test.db")
    await db_manager.init_db()
    set_db_manager(db_manager)
    yield db_manager
    await db_manager.close()
    set_db_manager(None)


@pytest.fixture
def authority_loop():
    """An event loop running on its own thread, standing in for the host's main thread."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, name="authority", daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


@pytest.fixture
def make_channel():
    """Factory for extra FakeChannels when a test needs more than one."""
    return FakeChannel
