"""
Unit tests for the Telegram report channel.

Tests connection lifecycle, chat resolution, and create/edit mapping.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.constants import ParseMode
from telegram.error import BadRequest, InvalidToken, NetworkError

from serverpulse.config.settings import DisplaySettings
from serverpulse.gateway.telegram_client import PublishError, TelegramReportChannel
from serverpulse.status.models import ServerStatus
from serverpulse.status.renderer import render_report

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def application():
    """Create mock telegram Application."""
    app = MagicMock()
    app.initialize = AsyncMock()
    app.shutdown = AsyncMock()
    app.bot.username = "pulse_bot"
    app.bot.get_chat = AsyncMock(return_value=MagicMock(id=-100123))
    app.bot.send_message = AsyncMock(return_value=MagicMock(message_id=42))
    app.bot.edit_message_text = AsyncMock()
    return app


@pytest.fixture
def channel(application):
    return TelegramReportChannel(
        token="test_token",
        chat_id="@pulse_status",
        connect_timeout=1,
        application=application,
    )


@pytest.fixture
def document():
    return render_report(ServerStatus.STARTING, None, DisplaySettings(name="Pulse SMP"), now=NOW)


# Connection Tests

@pytest.mark.asyncio
async def test_open_resolves_destination(channel, application):
    await channel.open()

    application.initialize.assert_awaited_once()
    application.bot.get_chat.assert_awaited_once_with("@pulse_status")
    assert channel.is_connected
    assert channel.destination == -100123
    assert await channel.ensure_ready()


@pytest.mark.asyncio
async def test_invalid_token_fails_open(channel, application):
    application.initialize.side_effect = InvalidToken()

    with pytest.raises(InvalidToken):
        await channel.open()

    application.shutdown.assert_awaited_once()
    assert not channel.is_connected


@pytest.mark.asyncio
async def test_connect_timeout(application):
    async def hang():
        await asyncio.sleep(5)

    application.initialize.side_effect = hang
    channel = TelegramReportChannel("test_token", "-100123", connect_timeout=0.05,
                                    application=application)

    with pytest.raises(asyncio.TimeoutError):
        await channel.open()

    application.shutdown.assert_awaited_once()
    assert not channel.is_connected


@pytest.mark.asyncio
async def test_unreachable_chat_is_not_ready(channel, application):
    application.bot.get_chat.side_effect = BadRequest("Chat not found")

    await channel.open()

    assert channel.is_connected
    assert channel.destination is None
    assert not await channel.ensure_ready()

    # Chat becomes reachable later
    application.bot.get_chat.side_effect = None
    assert await channel.ensure_ready()
    assert channel.destination == -100123


@pytest.mark.asyncio
async def test_not_ready_before_open(channel):
    assert not await channel.ensure_ready()


@pytest.mark.asyncio
async def test_context_manager_closes(channel, application):
    async with channel as opened:
        assert opened is channel
        assert channel.is_connected

    application.shutdown.assert_awaited_once()
    assert not channel.is_connected

    # Closing twice is a no-op
    await channel.close()
    application.shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_shutdown_error_is_swallowed(channel, application):
    application.shutdown.side_effect = NetworkError("connection reset")
    await channel.open()

    await channel.close()

    assert not channel.is_connected


# Publish Tests

@pytest.mark.asyncio
async def test_create_sends_html_message(channel, application, document):
    await channel.open()

    message_id = await channel.create(document)

    assert message_id == 42
    kwargs = application.bot.send_message.call_args.kwargs
    assert kwargs["chat_id"] == -100123
    assert kwargs["parse_mode"] == ParseMode.HTML
    assert kwargs["text"].startswith("🟡 <b>Server is Starting...</b>")
    assert kwargs["link_preview_options"].is_disabled is True


@pytest.mark.asyncio
async def test_banner_becomes_large_preview(channel, application):
    await channel.open()
    display = DisplaySettings(banner_url="https://example.com/banner.png")

    await channel.create(render_report(ServerStatus.OFFLINE, None, display, now=NOW))

    preview = application.bot.send_message.call_args.kwargs["link_preview_options"]
    assert preview.url == "https://example.com/banner.png"
    assert preview.prefer_large_media is True


@pytest.mark.asyncio
async def test_create_failure_raises_publish_error(channel, application, document):
    await channel.open()
    application.bot.send_message.side_effect = NetworkError("timed out")

    with pytest.raises(PublishError, match="timed out"):
        await channel.create(document)


@pytest.mark.asyncio
async def test_edit_replaces_message(channel, application, document):
    await channel.open()

    await channel.edit(42, document)

    kwargs = application.bot.edit_message_text.call_args.kwargs
    assert kwargs["chat_id"] == -100123
    assert kwargs["message_id"] == 42
    assert kwargs["parse_mode"] == ParseMode.HTML


@pytest.mark.asyncio
async def test_edit_unchanged_content_is_success(channel, application, document):
    await channel.open()
    application.bot.edit_message_text.side_effect = BadRequest(
        "Message is not modified: specified new message content and reply markup "
        "are exactly the same as a current content and reply markup of the message"
    )

    await channel.edit(42, document)


@pytest.mark.asyncio
async def test_edit_missing_message_raises(channel, application, document):
    await channel.open()
    application.bot.edit_message_text.side_effect = BadRequest("Message to edit not found")

    with pytest.raises(PublishError, match="not found"):
        await channel.edit(42, document)
