"""Report identity persistence operations.

The identity of the live report (its Telegram message id) is stored in the
``config`` table, keyed by chat, so a restart keeps editing the same message
and pointing the bot at another chat starts a fresh one.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Optional

import structlog

from .db import get_db

logger = structlog.get_logger(__name__)

_REPORT_KEY_PREFIX = "report."
_REPORT_KEY_SUFFIX = ".message_id"


def _report_config_key(chat_id: str) -> str:
    return f"{_REPORT_KEY_PREFIX}{chat_id}{_REPORT_KEY_SUFFIX}"


async def get_report_message_id(chat_id: str) -> Optional[int]:
    """Read the persisted report message id for a chat (None if never created)."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT value FROM config WHERE key = ?", (_report_config_key(chat_id),)
    )
    row = await cursor.fetchone()
    await cursor.close()

    if row is None:
        return None

    try:
        value = json.loads(row[0])
    except (TypeError, json.JSONDecodeError):
        value = row[0]
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("report_message_id_unreadable", chat_id=chat_id, value=row[0])
        return None


async def set_report_message_id(chat_id: str, message_id: int) -> None:
    """Persist the report message id for a chat."""
    db = await get_db()
    now = int(datetime.now().timestamp())
    await db.execute(
        """
        INSERT INTO config (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            updated_at = excluded.updated_at
        """,
        (_report_config_key(chat_id), json.dumps(int(message_id)), now),
    )
    await db.commit()


class ReportIdentityStore:
    """In-memory report identity backed by the config table.

    Attributes:
        chat_id: Chat the report lives in
        seed_message_id: Identity to use when nothing is persisted yet
    """

    def __init__(self, chat_id: str, seed_message_id: Optional[int] = None):
        self.chat_id = chat_id
        self.seed_message_id = seed_message_id
        self._message_id: Optional[int] = None

    @property
    def message_id(self) -> Optional[int]:
        return self._message_id

    async def load(self) -> Optional[int]:
        """Load the identity: persisted value first, then the configured seed."""
        persisted = await get_report_message_id(self.chat_id)
        self._message_id = persisted if persisted is not None else self.seed_message_id
        logger.info(
            "report_identity_loaded",
            chat_id=self.chat_id,
            message_id=self._message_id,
            source="database" if persisted is not None else "config",
        )
        return self._message_id

    async def save(self, message_id: int) -> None:
        """Record a freshly created report.

        The in-memory identity is updated before the write, so a failed write
        still lets the next publish edit instead of creating a duplicate.
        """
        self._message_id = message_id
        await set_report_message_id(self.chat_id, message_id)
