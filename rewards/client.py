import aiohttp
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.config import DEFAULT_HEADERS

logger = logging.getLogger(__name__)

USERS_ENDPOINT = "/users"
BALANCE_ENDPOINT = "/users/get-balance/{user_id}"
EARN_ENDPOINT = "/users/earn/{user_id}"
BALANCE_FIELD = "dipTokenBalance"


class RemoteError(Exception):
    """A reward API call failed (transport error, non-2xx or bad body)."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


@dataclass
class ClaimResponse:
    """Result of a daily check-in attempt.

    ``claimed`` is ``False`` for every failure, including the expected
    "already checked in today" rejection; the API does not distinguish them.
    """

    claimed: bool
    payload: Optional[Dict[str, Any]] = None


class RewardClient:
    """
    Client for the reward/check-in REST API.
    Every call authenticates with the caller's bearer token.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the RewardClient.

        Args:
            base_url: API root, e.g. ``https://apix.securitylabs.xyz/v1``.
            timeout: Total seconds allowed per request.
            headers: Browser-mimicking headers sent with every request.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = dict(headers or DEFAULT_HEADERS)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "RewardClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers, timeout=self.timeout)
        return self._session

    async def _get_json(self, path: str, token: str) -> Any:
        """
        GET *path* with bearer auth and return the decoded JSON body.

        Raises:
            RemoteError: On transport failure, timeout, non-2xx status or a
                body that is not JSON.
        """
        url = f"{self.base_url}{path}"
        auth = {"Authorization": f"Bearer {token}"}
        try:
            session = await self._get_session()
            async with session.get(url, headers=auth) as response:
                if not 200 <= response.status < 300:
                    raise RemoteError(f"HTTP {response.status} from {path}", status=response.status, url=url)
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise RemoteError(f"Invalid JSON from {path}: {e}", status=response.status, url=url) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteError(f"Request to {path} failed: {e!r}", url=url) from e

    async def identify(self, token: str) -> Optional[str]:
        """Resolve the user id a token belongs to, or ``None`` if it cannot be resolved."""
        try:
            data = await self._get_json(USERS_ENDPOINT, token)
        except RemoteError as e:
            logger.debug(f"Identify failed: {e}")
            return None

        user_id = data.get("id") if isinstance(data, dict) else None
        if user_id is None or user_id == "":
            logger.debug("Identify response carried no user id")
            return None
        return str(user_id)

    async def get_balance(self, user_id: str, token: str) -> float:
        """
        Fetch the current token balance.

        Raises:
            RemoteError: If the request fails or the balance field is missing
                or not numeric.
        """
        path = BALANCE_ENDPOINT.format(user_id=user_id)
        data = await self._get_json(path, token)
        value = data.get(BALANCE_FIELD) if isinstance(data, dict) else None
        if isinstance(value, bool) or value is None:
            raise RemoteError(f"Missing {BALANCE_FIELD} in balance response", url=f"{self.base_url}{path}")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise RemoteError(f"Non-numeric balance {value!r}", url=f"{self.base_url}{path}") from e

    async def claim(self, user_id: str, token: str) -> ClaimResponse:
        """Attempt today's check-in. Never raises; failures yield ``claimed=False``."""
        try:
            data = await self._get_json(EARN_ENDPOINT.format(user_id=user_id), token)
        except RemoteError as e:
            logger.debug(f"Check-in rejected: {e}")
            return ClaimResponse(claimed=False)
        return ClaimResponse(claimed=True, payload=data if isinstance(data, dict) else {"data": data})

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None
