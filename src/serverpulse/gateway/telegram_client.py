"""
Telegram report channel.

Owns the bot connection and implements the two remote operations the
publisher needs: create the report message and edit it by message id.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog
from telegram import LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import BadRequest, TelegramError
from telegram.ext import Application

from ..status.models import RenderedDocument
from .formatters import format_report

logger = structlog.get_logger(__name__)


class PublishError(Exception):
    """A create or edit was rejected by the messaging platform."""


def _link_preview(document: RenderedDocument) -> LinkPreviewOptions:
    if not document.image_url:
        return LinkPreviewOptions(is_disabled=True)
    return LinkPreviewOptions(url=document.image_url, prefer_large_media=True)


class TelegramReportChannel:
    """Async Telegram Bot API connection for the status report."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        connect_timeout: float = 30,
        application: Optional[Application] = None,
    ):
        """
        Initialize TelegramReportChannel.

        Args:
            token: Telegram bot token from @BotFather
            chat_id: Chat id or @channel username the report lives in
            connect_timeout: Seconds to wait for the bot to authenticate
            application: Optional prebuilt application (used by tests)
        """
        self.token = token
        self.chat_id = chat_id
        self.connect_timeout = connect_timeout
        self.application = application
        self._connected = False
        self._destination: Optional[int] = None

    async def __aenter__(self) -> "TelegramReportChannel":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def destination(self) -> Optional[int]:
        """Resolved numeric chat id, or None while the chat is unreachable."""
        return self._destination

    async def open(self) -> None:
        """Authenticate the bot and resolve the status chat.

        Raises:
            TelegramError: If authentication fails (e.g. invalid token)
            TimeoutError: If the bot does not come up within connect_timeout
        """
        logger.info("telegram_bot_starting", chat_id=self.chat_id)

        if self.application is None:
            # No updater: the report channel never polls for updates
            self.application = Application.builder().token(self.token).updater(None).build()

        try:
            await asyncio.wait_for(self.application.initialize(), timeout=self.connect_timeout)
        except BaseException:
            # Covers cancellation during connect as well as auth failures
            await self._shutdown_application()
            raise
        self._connected = True

        await self._resolve_destination()
        logger.info(
            "telegram_bot_started",
            bot_username=self.application.bot.username,
            destination=self._destination,
        )

    async def close(self) -> None:
        """Stop the bot gracefully."""
        if not self._connected:
            return
        self._connected = False
        logger.info("telegram_bot_stopping")
        await self._shutdown_application()
        logger.info("telegram_bot_stopped")

    async def _shutdown_application(self) -> None:
        try:
            await self.application.shutdown()
        except Exception as e:
            logger.warning(
                "telegram_shutdown_error",
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _resolve_destination(self) -> Optional[int]:
        try:
            chat = await self.application.bot.get_chat(self.chat_id)
        except TelegramError as e:
            logger.warning(
                "status_chat_unavailable",
                chat_id=self.chat_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        self._destination = chat.id
        return self._destination

    async def ensure_ready(self) -> bool:
        """True when connected and the status chat is reachable."""
        if not self._connected:
            return False
        if self._destination is None:
            await self._resolve_destination()
        return self._destination is not None

    async def create(self, document: RenderedDocument) -> int:
        """
        Send a new report message.

        Returns:
            Telegram message id of the new report

        Raises:
            PublishError: If Telegram rejects the message
        """
        try:
            message = await self.application.bot.send_message(
                chat_id=self._destination,
                text=format_report(document),
                parse_mode=ParseMode.HTML,
                link_preview_options=_link_preview(document),
            )
        except TelegramError as e:
            raise PublishError(str(e)) from e
        return message.message_id

    async def edit(self, message_id: int, document: RenderedDocument) -> None:
        """
        Replace the report message content in place.

        Raises:
            PublishError: If the message is gone, not editable, or Telegram fails
        """
        try:
            await self.application.bot.edit_message_text(
                text=format_report(document),
                chat_id=self._destination,
                message_id=message_id,
                parse_mode=ParseMode.HTML,
                link_preview_options=_link_preview(document),
            )
        except BadRequest as e:
            if "message is not modified" in str(e).lower():
                logger.debug("status_message_unchanged", message_id=message_id)
                return
            raise PublishError(str(e)) from e
        except TelegramError as e:
            raise PublishError(str(e)) from e
