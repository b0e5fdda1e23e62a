"""Outcome types produced by a check-in cycle.

:class:`TokenOutcome` is the per-token result of the identify -> balance ->
check-in -> balance sequence.  Account and cycle results are derived from
token outcomes and never stored independently.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from core.credentials import Account, AccountStatus


class TokenStatus(Enum):
    """Classification of a single token's processing outcome."""
    IDENTIFY_FAILED = "identify_failed"
    SUCCESS = "success"
    COOLDOWN = "cooldown"
    ERROR = "error"


@dataclass(frozen=True)
class TokenPosition:
    """Where a token sits in the cycle, used to correlate log lines."""

    account_index: int
    total_accounts: int
    token_index: int
    total_tokens: int

    def __str__(self) -> str:
        return (
            f"account {self.account_index}/{self.total_accounts} "
            f"(token {self.token_index}/{self.total_tokens})"
        )


@dataclass
class TokenOutcome:
    """Result of processing one token.

    Attributes:
        status: Outcome classification.
        token: The bearer token that was processed.
        user_id: Remote identity, ``None`` if identification failed.
        last_check_in: Check-in time for ``SUCCESS`` / ``COOLDOWN``.
        last_check_in_estimated: ``True`` when ``last_check_in`` is an
            assumption rather than an observed time (rejected claims).
        balance_before: Balance read before the check-in.
        balance_after: Balance read after a successful check-in.
        expires_at: Token expiry decoded from its payload, if any.
        error: Short description for ``ERROR`` outcomes.
    """

    status: TokenStatus
    token: str
    user_id: Optional[str] = None
    last_check_in: Optional[datetime] = None
    last_check_in_estimated: bool = False
    balance_before: Optional[float] = None
    balance_after: Optional[float] = None
    expires_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status in (TokenStatus.IDENTIFY_FAILED, TokenStatus.ERROR)


def aggregate_status(outcomes: Iterable[TokenOutcome]) -> AccountStatus:
    """Fold token outcomes into an account status.

    Precedence is success > cooldown > error; an empty sequence is an error.
    """
    statuses = {outcome.status for outcome in outcomes}
    if TokenStatus.SUCCESS in statuses:
        return AccountStatus.SUCCESS
    if TokenStatus.COOLDOWN in statuses:
        return AccountStatus.COOLDOWN
    return AccountStatus.ERROR


@dataclass
class AccountResult:
    """An account together with the outcomes of its tokens."""

    account: Account
    outcomes: List[TokenOutcome] = field(default_factory=list)

    @property
    def status(self) -> AccountStatus:
        return aggregate_status(self.outcomes)


@dataclass
class CycleSummary:
    """Aggregate counts for one full pass over all accounts."""

    total_accounts: int = 0
    success_accounts: int = 0
    cooldown_accounts: int = 0
    error_accounts: int = 0
    total_tokens: int = 0
    success_tokens: int = 0
    cooldown_tokens: int = 0
    identify_failed_tokens: int = 0
    error_tokens: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_results(
        cls,
        results: Iterable[AccountResult],
        started_at: Optional[datetime] = None,
        finished_at: Optional[datetime] = None,
    ) -> "CycleSummary":
        results = list(results)
        accounts = Counter(result.status for result in results)
        tokens = Counter(
            outcome.status for result in results for outcome in result.outcomes
        )
        return cls(
            total_accounts=len(results),
            success_accounts=accounts[AccountStatus.SUCCESS],
            cooldown_accounts=accounts[AccountStatus.COOLDOWN],
            error_accounts=accounts[AccountStatus.ERROR],
            total_tokens=sum(len(result.account.tokens) for result in results),
            success_tokens=tokens[TokenStatus.SUCCESS],
            cooldown_tokens=tokens[TokenStatus.COOLDOWN],
            identify_failed_tokens=tokens[TokenStatus.IDENTIFY_FAILED],
            error_tokens=tokens[TokenStatus.ERROR],
            started_at=started_at,
            finished_at=finished_at,
        )
