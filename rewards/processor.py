"""Per-token and per-account check-in logic.

:class:`CheckInBot` walks one token through identify -> balance -> check-in ->
balance and one account through its tokens, strictly in order.  Every failure
is turned into a :class:`TokenOutcome`; nothing but task cancellation escapes
:meth:`CheckInBot.process_token`.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from core.config import BotSettings
from core.credentials import Account, token_expiration
from core.logging_setup import log_success
from core.utils import format_duration, interruptible_sleep
from rewards.client import RemoteError, RewardClient
from rewards.results import (
    AccountResult,
    TokenOutcome,
    TokenPosition,
    TokenStatus,
)

logger = logging.getLogger(__name__)


class CheckInBot:
    """Drives tokens and accounts through the daily check-in workflow."""

    def __init__(
        self,
        settings: BotSettings,
        client: RewardClient,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.settings = settings
        self.client = client
        self.stop_event = stop_event or asyncio.Event()

    async def _pause(self, seconds: float) -> bool:
        """Pacing delay; returns ``True`` if a stop was requested."""
        return await interruptible_sleep(seconds, self.stop_event)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _stopped(
        token: str,
        position: TokenPosition,
        user_id: str,
        balance_before: Optional[float] = None,
        expires_at: Optional[datetime] = None,
    ) -> TokenOutcome:
        """Outcome for a token abandoned because a stop was requested."""
        logger.info(f"Stop requested, abandoning {position}")
        return TokenOutcome(
            status=TokenStatus.ERROR,
            token=token,
            user_id=user_id,
            balance_before=balance_before,
            expires_at=expires_at,
            error="stopped",
        )

    async def process_token(self, token: str, position: TokenPosition) -> TokenOutcome:
        """
        Identify, check balance, check in and re-check balance for one token.

        Returns:
            Exactly one :class:`TokenOutcome`.  ``IDENTIFY_FAILED`` when the
            token resolves to no user, ``COOLDOWN`` when the check-in is
            rejected, ``SUCCESS`` otherwise, or ``ERROR`` for any failure
            after identification.
        """
        try:
            user_id = await self.client.identify(token)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Identify raised for {position}: {e!r}")
            user_id = None

        if not user_id:
            logger.warning(f"Failed to get user info for {position}")
            return TokenOutcome(status=TokenStatus.IDENTIFY_FAILED, token=token)

        expires_at = None
        balance_before = None
        if self.stop_event.is_set():
            return self._stopped(token, position, user_id)
        try:
            expires_at = token_expiration(token)
            logger.info(f"Processing {position}: {user_id}")
            if expires_at:
                logger.info(f"Token expiration: {expires_at:%B %d, %Y %H:%M:%S %Z}")

            balance_before = await self.client.get_balance(user_id, token)
            logger.info(f"Initial balance: {balance_before}")

            if self.stop_event.is_set():
                return self._stopped(token, position, user_id, balance_before, expires_at)
            result = await self.client.claim(user_id, token)
            if not result.claimed:
                assumed_age = timedelta(seconds=self.settings.cooldown_assumed_age)
                last_check_in = self._now() - assumed_age
                remaining = self.settings.check_in_interval - assumed_age.total_seconds()
                logger.warning(
                    f"Check-in cooldown for {position}: "
                    f"~{format_duration(remaining)} remaining (estimated)"
                )
                return TokenOutcome(
                    status=TokenStatus.COOLDOWN,
                    token=token,
                    user_id=user_id,
                    last_check_in=last_check_in,
                    last_check_in_estimated=True,
                    balance_before=balance_before,
                    expires_at=expires_at,
                )

            if self.stop_event.is_set():
                # Claimed already; only the reporting balance read is skipped
                balance_after = None
                log_success(logger, f"Check-in successful for {position}")
            else:
                balance_after = await self.client.get_balance(user_id, token)
                log_success(logger, f"Check-in successful! New balance: {balance_after}")
            return TokenOutcome(
                status=TokenStatus.SUCCESS,
                token=token,
                user_id=user_id,
                last_check_in=self._now(),
                balance_before=balance_before,
                balance_after=balance_after,
                expires_at=expires_at,
            )
        except asyncio.CancelledError:
            raise
        except RemoteError as e:
            logger.error(f"Failed to process {position}: {e}")
            error = str(e)
        except Exception as e:
            logger.error(f"Failed to process {position}: unexpected {type(e).__name__}: {e}")
            error = f"{type(e).__name__}: {e}"

        return TokenOutcome(
            status=TokenStatus.ERROR,
            token=token,
            user_id=user_id,
            balance_before=balance_before,
            expires_at=expires_at,
            error=error,
        )

    async def process_account(
        self, account: Account, account_index: int, total_accounts: int,
    ) -> AccountResult:
        """
        Process an account's tokens in order with a pause between tokens.

        A stop request during a pause leaves the remaining tokens unprocessed;
        the outcomes gathered so far still determine the account status.
        """
        outcomes: List[TokenOutcome] = []
        total_tokens = len(account.tokens)

        for index, token in enumerate(account.tokens, start=1):
            position = TokenPosition(account_index, total_accounts, index, total_tokens)
            outcomes.append(await self.process_token(token, position))

            if index < total_tokens:
                if await self._pause(self.settings.request_delay):
                    logger.info(f"Stop requested, skipping remaining tokens of account {account_index}")
                    break

        result = AccountResult(account=account, outcomes=outcomes)
        account.status = result.status
        for outcome in reversed(outcomes):
            if outcome.user_id and account.user_id is None:
                account.user_id = outcome.user_id
            if outcome.last_check_in and account.last_check_in is None:
                account.last_check_in = outcome.last_check_in
        return result
