"""serverpulse entry point.

Runs a host authority loop around a LocalServerHost and keeps the Telegram
status report live until SIGINT/SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from .config import ConfigManager, ConfigurationError, ReporterSettings, load_config
from .host import LocalServerHost, LoopAuthority
from .runtime import StatusReporter, configure_logging

logger = structlog.get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


async def run(config: ConfigManager) -> int:
    """Run the reporter on the current loop until a stop signal arrives.

    Returns:
        Process exit code
    """
    loop = asyncio.get_running_loop()
    settings = ReporterSettings.from_config(config)
    host = LocalServerHost(
        version=config.get("server.version"),
        max_players=config.get("server.max_players"),
    )
    reporter = StatusReporter(settings, host, LoopAuthority(loop))

    try:
        reporter.activate()
    except ConfigurationError:
        # Already logged by the reporter; the status feature stays off
        return 1

    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: SIGINT arrives as KeyboardInterrupt instead
            pass

    try:
        await stop.wait()
    finally:
        # Blocks the authority loop until OFFLINE is published
        reporter.shutdown()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serverpulse",
        description="Keep a live server status message up to date in a Telegram chat.",
    )
    parser.add_argument("--config", type=Path, default=Path("config/default.toml"),
                        help="TOML configuration file")
    parser.add_argument("--env-file", type=Path, default=Path(".env"),
                        help=".env file with SERVERPULSE_* overrides")
    parser.add_argument("--log-level", default=None, type=str.upper, choices=LOG_LEVELS,
                        help="Override logging.level from the configuration")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or "INFO")

    try:
        config = load_config(args.config, args.env_file)
    except ValueError as e:
        logger.error("serverpulse_config_load_failed", error=str(e))
        return 1

    configure_logging(args.log_level or config.get("logging.level"), config.get("logging.format"))

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
