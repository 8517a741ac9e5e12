"""SQLite access for the status reporter's runtime state."""

import asyncio
from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

from .migrate import MIGRATIONS_DIR, apply_migrations

logger = structlog.get_logger(__name__)

# Applied to every new connection, in order
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=5000",
)


async def _check_journal_mode(conn: aiosqlite.Connection) -> str:
    cursor = await conn.execute("PRAGMA journal_mode")
    row = await cursor.fetchone()
    await cursor.close()
    mode = row[0].lower()
    if mode != "wal":
        raise RuntimeError(f"SQLite refused WAL journal mode (got '{mode}')")
    return mode


class DatabaseManager:
    """Owns the reporter's single SQLite connection.

    The connection belongs to the event loop that opened it; the status
    reporter only touches it from its background loop.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._connection: Optional[aiosqlite.Connection] = None

    async def get_connection(self) -> aiosqlite.Connection:
        """Return the cached connection, opening it on first use.

        Raises:
            RuntimeError: If WAL mode cannot be enabled
        """
        if self._connection is not None:
            return self._connection

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(self.db_path))
        try:
            for pragma in CONNECTION_PRAGMAS:
                await conn.execute(pragma)
            journal_mode = await _check_journal_mode(conn)
        except Exception:
            await conn.close()
            raise

        logger.info("database_connection_established",
                    db_path=str(self.db_path), journal_mode=journal_mode)
        self._connection = conn
        return conn

    async def init_db(self, migrations_dir: Path = MIGRATIONS_DIR) -> None:
        """Bring the schema up to date, then open the connection."""
        applied, skipped = await asyncio.to_thread(apply_migrations, self.db_path, migrations_dir)
        await self.get_connection()
        logger.info(
            "database_initialized",
            db_path=str(self.db_path),
            migrations_applied=applied,
            migrations_skipped=skipped,
        )

    async def close(self) -> None:
        if self._connection is None:
            return
        conn, self._connection = self._connection, None
        await conn.close()
        logger.info("database_connection_closed", db_path=str(self.db_path))


# Set by the status reporter while it is connected
_db_manager: Optional[DatabaseManager] = None


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    """Register (or with None, clear) the process-wide database manager."""
    global _db_manager
    _db_manager = manager


def get_db_manager() -> DatabaseManager:
    """
    Return the registered database manager.

    Raises:
        RuntimeError: If no reporter has registered one
    """
    if _db_manager is None:
        raise RuntimeError("No database manager registered; call set_db_manager() first")
    return _db_manager


async def get_db() -> aiosqlite.Connection:
    """Connection of the registered database manager."""
    return await get_db_manager().get_connection()
