"""
Telegram Gateway module.

Connects to the Telegram Bot API and creates or edits the status report
message in the configured chat.
"""

from .formatters import format_report
from .telegram_client import PublishError, TelegramReportChannel

__all__ = ["format_report", "PublishError", "TelegramReportChannel"]
