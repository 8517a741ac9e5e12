"""serverpulse - live server status report for Telegram."""

__version__ = "0.1.0"
