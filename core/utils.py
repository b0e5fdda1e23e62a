"""Shared utility functions for the check-in bot.

Provides the cooperative, cancellable sleep used for every pacing delay and
countdown tick, plus a small duration formatter for log output.
"""

import asyncio
from typing import Optional


async def interruptible_sleep(
    seconds: float, stop_event: Optional[asyncio.Event] = None,
) -> bool:
    """Sleep for *seconds* unless *stop_event* is set first.

    Args:
        seconds: Duration to wait.  Non-positive values only check
            the event.
        stop_event: Cooperative cancellation flag.  ``None`` means a
            plain sleep.

    Returns:
        ``True`` if a stop was requested (before or during the wait),
        ``False`` if the full duration elapsed.
    """
    if stop_event is None:
        if seconds > 0:
            await asyncio.sleep(seconds)
        return False

    if stop_event.is_set():
        return True
    if seconds <= 0:
        return False

    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        return True
    except asyncio.TimeoutError:
        return False


def format_hms(total_seconds: float) -> str:
    """Format a duration as zero-padded ``HH:MM:SS``.

    Negative durations are clamped to ``00:00:00``; hours may exceed 99.
    """
    total = max(0, int(total_seconds))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration(total_seconds: float) -> str:
    """Format a duration as ``Xh Ym Zs`` for log messages."""
    total = max(0, int(total_seconds))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}h {minutes}m {seconds}s"
