"""Application configuration for the DIP check-in bot.

Central configuration module powered by Pydantic v2.  Settings are loaded from
environment variables (with ``.env`` file support).

Key exports:
    BotSettings: Root settings model (instantiate once at startup).
    DEFAULT_HEADERS: Browser-mimicking headers sent with every API request.
    BASE_DIR / LOGS_DIR: Canonical project paths.
"""

# pylint: disable=no-member

import logging
from pathlib import Path
from typing import Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base Paths
# ---------------------------------------------------------------------------
BASE_DIR: Path = Path(__file__).parent.parent
"""Project root directory (parent of ``core/``)."""

LOGS_DIR: Path = BASE_DIR / "logs"
"""Directory for log output files."""

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Encoding": "gzip, deflate, br, zstd",
    "Accept-Language": "en-US,eng;q=0.7",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Sec-Fetch-Mode": "cors",
    "User-Agent": DEFAULT_USER_AGENT,
}


class BotSettings(BaseSettings):
    """Root configuration model for the check-in bot.

    All fields can be set via environment variables or a ``.env`` file
    (names are case-insensitive, e.g. ``REQUEST_DELAY=3``).

    Section overview:
        * **Core** -- log level, log file, banner toggle.
        * **Credentials** -- path of the token file.
        * **API** -- base URL, request timeout, user agent.
        * **Timing** -- pacing delays and the cycle interval.
    """

    # Core
    log_level: str = "INFO"
    log_file: str = str(LOGS_DIR / "checkin_bot.log")
    show_banner: bool = True

    # Credentials
    # One account per line, comma-separated tokens
    data_file: str = "data.txt"

    # API
    api_base_url: str = "https://apix.securitylabs.xyz/v1"
    # Seconds per HTTP request
    request_timeout: float = Field(default=10.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT

    # Timing (seconds)
    # Pause between tokens of the same account
    request_delay: float = Field(default=2.0, ge=0)
    # Pause between accounts
    account_delay: float = Field(default=5.0, ge=0)
    # Countdown between cycles (24h)
    check_in_interval: int = Field(default=24 * 60 * 60, gt=0)
    # Assumed age of the previous check-in when a claim is rejected
    cooldown_assumed_age: int = Field(default=60 * 60, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def headers(self) -> Dict[str, str]:
        """Default request headers with the configured user agent."""
        headers = dict(DEFAULT_HEADERS)
        headers["User-Agent"] = self.user_agent
        return headers
