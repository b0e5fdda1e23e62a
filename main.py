"""
DIP Daily Check-in Bot - Main Entry Point

Loads settings, prints the banner and runs the CycleScheduler until
interrupted: every 24 hours each token in ``data.txt`` is identified, its
balance checked and its daily reward claimed.

Usage:
    python main.py                     # Run continuously
    python main.py --once              # Run a single cycle and exit
    python main.py --data-file my.txt  # Use another token file
"""
from dotenv import load_dotenv

# Load environment variables from .env file into os.environ
load_dotenv()

import asyncio
import argparse
import logging
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console

from core.config import BotSettings
from core.display import display_banner
from core.logging_setup import setup_logging
from core.orchestrator import CycleScheduler
from rewards.client import RewardClient
from rewards.processor import CheckInBot

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="DIP Daily Check-in Bot")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--data-file", type=str, help="Token file (one account per line)")
    parser.add_argument("--log-level", type=str, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    parser.add_argument("--no-banner", action="store_true", help="Skip the startup banner")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> BotSettings:
    """Build settings from the environment, applying CLI overrides."""
    overrides = {}
    if args.data_file:
        overrides["data_file"] = args.data_file
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.no_banner:
        overrides["show_banner"] = False
    return BotSettings(**overrides)


def _handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    # Unretrieved task exceptions must not take the process down
    logger.warning(f"Unhandled async error: {context.get('message')} ({context.get('exception')!r})")


async def main(args: argparse.Namespace, settings: BotSettings) -> None:
    """
    Main execution loop.

    1. Installs signal handlers that request a graceful stop.
    2. Creates the RewardClient and CheckInBot.
    3. Runs the CycleScheduler until stopped (or once with ``--once``).
    """
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_handle_loop_exception)

    stop_event = asyncio.Event()

    def handle_signal():
        if not stop_event.is_set():
            logger.info("🛑 Received shutdown signal. Gracefully shutting down...")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

    async with RewardClient(
        settings.api_base_url,
        timeout=settings.request_timeout,
        headers=settings.headers,
    ) as client:
        bot = CheckInBot(settings, client, stop_event)
        scheduler = CycleScheduler(settings, bot, stop_event)
        await scheduler.run_forever(max_cycles=1 if args.once else None)


def run(argv: Optional[List[str]] = None) -> int:
    """Synchronous entry point; returns the process exit status."""
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except ValidationError as e:
        setup_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings.log_level, settings.log_file)

    if settings.show_banner:
        display_banner(Console())

    try:
        asyncio.run(main(args, settings))
    except KeyboardInterrupt:
        logger.info("👋 Stopping bot (KeyboardInterrupt)...")
    return 0


if __name__ == "__main__":
    sys.exit(run())
