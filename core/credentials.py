"""Credential store for the check-in bot.

The token file is line-oriented: every non-blank line is one account and
holds one or more comma-separated bearer tokens.  The store is re-read at the
start of every cycle, so edits to the file take effect on the next pass.

Tokens are usually JWTs; :func:`token_expiration` recovers the ``exp`` claim
for display purposes only.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from core.logging_setup import log_success

logger = logging.getLogger(__name__)


class AccountStatus(Enum):
    """Lifecycle status of an account within one cycle."""
    PENDING = "pending"
    SUCCESS = "success"
    COOLDOWN = "cooldown"
    ERROR = "error"


@dataclass
class Account:
    """A group of tokens processed together once per cycle.

    Attributes:
        tokens: Bearer tokens in file order (duplicates are kept).
        line_number: 1-based line of the token file, for log context.
        user_id: Remote identity resolved during the cycle.
        last_check_in: Time of the most recent (or estimated) check-in.
        status: Aggregate status, ``PENDING`` until processed.
    """

    tokens: List[str]
    line_number: int = 0
    user_id: Optional[str] = None
    last_check_in: Optional[datetime] = None
    status: AccountStatus = field(default=AccountStatus.PENDING)


def parse_accounts(content: str) -> List[Account]:
    """Parse token-file text into accounts.

    Blank lines are skipped and surrounding whitespace is trimmed from each
    token.  Every comma-separated field is kept, empty ones included, so an
    account's token count always equals its field count; an empty token
    simply fails identification.
    """
    accounts: List[Account] = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        tokens = [tok.strip() for tok in line.split(",")]
        accounts.append(Account(tokens=tokens, line_number=line_number))
    return accounts


def load_accounts(path: Union[str, Path]) -> List[Account]:
    """Load accounts from *path*.

    A missing or unreadable file is not an error: a warning is logged and
    an empty list is returned so the scheduler can skip the cycle.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"No accounts found or error reading {path}: {e}")
        return []

    accounts = parse_accounts(content)
    if not accounts:
        logger.warning(f"No accounts found in {path}")
        return []

    total_tokens = sum(len(acc.tokens) for acc in accounts)
    log_success(
        logger,
        f"Loaded {len(accounts)} accounts with {total_tokens} total tokens"
    )
    return accounts


def token_expiration(token: str) -> Optional[datetime]:
    """Best-effort decode of a JWT's ``exp`` claim.

    Returns:
        Expiry as an aware UTC datetime, or ``None`` if the token is not a
        three-segment JWT, the payload is not JSON, or ``exp`` is missing
        or not numeric.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None

    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(payload))
        exp = data["exp"]
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (binascii.Error, ValueError, TypeError, KeyError, OverflowError, OSError) as e:
        logger.debug(f"Could not decode token expiration: {e}")
        return None
