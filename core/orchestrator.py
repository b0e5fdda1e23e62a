"""Cycle scheduler for the DIP check-in bot.

This module implements the outer loop that drives all check-in activity:

* Reloads the credential store at the start of every cycle.
* Processes accounts strictly in order with an inter-account pause.
* Isolates failures per account; nothing short of task cancellation escapes
  a cycle.
* Logs and tabulates a :class:`CycleSummary` when the cycle ends.
* Waits out the check-in interval with a live, one-second countdown.
* Cooperative shutdown through a shared :class:`asyncio.Event`.

Classes:
    SchedulerState: Enum of the scheduler's lifecycle states.
    CycleScheduler: Main orchestration engine.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from rich.console import Console

from core.config import BotSettings
from core.credentials import Account, AccountStatus, load_accounts
from core.display import CountdownDisplay, build_summary_table
from core.logging_setup import log_success
from core.utils import format_hms, interruptible_sleep
from rewards.processor import CheckInBot
from rewards.results import AccountResult, CycleSummary

logger = logging.getLogger(__name__)

COUNTDOWN_TICK_SECONDS = 1.0


class SchedulerState(Enum):
    """Lifecycle states of :class:`CycleScheduler`."""
    LOADING = "loading"
    RUNNING = "running"
    COOLING_DOWN = "cooling_down"
    TERMINATING = "terminating"


class CycleScheduler:
    """
    Runs check-in cycles over every account, forever.

    One cycle loads the token file, processes each account through
    :class:`CheckInBot`, summarises the results and then counts down the
    check-in interval before starting again.
    """

    def __init__(
        self,
        settings: BotSettings,
        bot: CheckInBot,
        stop_event: Optional[asyncio.Event] = None,
        console: Optional[Console] = None,
        account_loader: Callable[[str], List[Account]] = load_accounts,
    ):
        """
        Args:
            settings: Timing and data-file configuration.
            bot: Token/account processor.
            stop_event: Cooperative stop flag, shared with ``bot``.
            console: Rich console for the countdown and summary table.
            account_loader: Reads the token file; swappable in tests.
        """
        self.settings = settings
        self.bot = bot
        self._stop_event = stop_event or bot.stop_event
        self.bot.stop_event = self._stop_event
        self.console = console or Console()
        self.account_loader = account_loader
        self.state = SchedulerState.LOADING
        self.accounts: List[Account] = []
        self.last_summary: Optional[CycleSummary] = None
        self.cycles_completed = 0

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def _pause(self, seconds: float) -> bool:
        return await interruptible_sleep(seconds, self._stop_event)

    def load(self) -> List[Account]:
        """(Re)load the token file into fresh, pending accounts."""
        self.state = SchedulerState.LOADING
        self.accounts = self.account_loader(self.settings.data_file)
        return self.accounts

    async def run_cycle(self) -> Optional[CycleSummary]:
        """
        Run one pass over all accounts.

        Returns:
            The cycle summary, or ``None`` if no accounts were loaded or the
            cycle could not complete.
        """
        try:
            accounts = self.load()
        except Exception as e:
            logger.error(f"Failed to load accounts: {e}")
            accounts = []

        if not accounts:
            logger.warning("No accounts to process, skipping this cycle")
            return None

        self.state = SchedulerState.RUNNING
        started_at = datetime.now(timezone.utc)
        results: List[AccountResult] = []
        total = len(accounts)

        try:
            for index, account in enumerate(accounts, start=1):
                try:
                    result = await self.bot.process_account(account, index, total)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Account {index}/{total} failed: {type(e).__name__}: {e}")
                    account.status = AccountStatus.ERROR
                    result = AccountResult(account=account)
                results.append(result)

                if self.stop_requested:
                    logger.info("Stop requested, ending cycle early")
                    break
                if index < total:
                    if await self._pause(self.settings.account_delay):
                        logger.info("Stop requested, ending cycle early")
                        break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Cycle interrupted, will retry in next run: {e}")
            return None

        summary = CycleSummary.from_results(
            results, started_at=started_at, finished_at=datetime.now(timezone.utc),
        )
        self.last_summary = summary
        self.cycles_completed += 1
        self._report(summary)
        return summary

    def _report(self, summary: CycleSummary) -> None:
        log_success(
            logger,
            f"Cycle completed - Accounts: Success: {summary.success_accounts}, "
            f"Cooldown: {summary.cooldown_accounts}, Error: {summary.error_accounts}",
        )
        log_success(
            logger,
            f"Tokens processed: {summary.success_tokens}/{summary.total_tokens} successful",
        )
        self.console.print(build_summary_table(summary))

    async def countdown(self, seconds: int) -> bool:
        """
        Count down *seconds* one tick at a time, updating the display.

        Returns:
            ``True`` if the countdown ran to zero, ``False`` if stopped.
        """
        self.state = SchedulerState.COOLING_DOWN
        logger.warning(f"Waiting {format_hms(seconds)} before next cycle...")

        remaining = int(seconds)
        with CountdownDisplay(self.console) as display:
            while remaining > 0:
                if self.stop_requested:
                    return False
                display.update(remaining)
                if await self._pause(COUNTDOWN_TICK_SECONDS):
                    return False
                remaining -= 1
        return not self.stop_requested

    async def run_forever(self, max_cycles: Optional[int] = None) -> None:
        """
        Main loop: cycle, count down, repeat until stopped.

        Args:
            max_cycles: Stop after this many cycles (``None`` = unbounded).
                The countdown after the final cycle is skipped.
        """
        cycles = 0
        while not self.stop_requested:
            await self.run_cycle()
            cycles += 1

            if self.stop_requested:
                break
            if max_cycles is not None and cycles >= max_cycles:
                break
            if not await self.countdown(self.settings.check_in_interval):
                break

        self.state = SchedulerState.TERMINATING
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        """Signal the loop to stop at its next cooperative check point."""
        self._stop_event.set()
