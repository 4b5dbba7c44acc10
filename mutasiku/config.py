from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import httpx
from dotenv import load_dotenv

API_BASE_URL = "https://mutasiku.co.id"
API_PREFIX = "/api/v1"
API_KEY_HEADER = "x-api-key"
DEFAULT_TIMEOUT = httpx.Timeout(20.0, connect=5.0)


def _default_logger() -> logging.Logger:
    return logging.getLogger("mutasiku.client")


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings shared by every call a client makes."""

    api_key: str
    base_url: str = API_BASE_URL
    timeout: Union[httpx.Timeout, float, None] = field(default_factory=lambda: DEFAULT_TIMEOUT)
    logger: logging.Logger = field(default_factory=_default_logger, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("API key is required to initialize the Mutasiku client")
        object.__setattr__(self, "base_url", (self.base_url or API_BASE_URL).rstrip("/"))

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, logger: Optional[logging.Logger] = None) -> "ClientConfig":
        """Load configuration from environment variables, reading a `.env` file first.

        Variables already present in the environment win over the file.
        """
        load_dotenv(env_file or Path.cwd() / ".env")

        timeout: Union[httpx.Timeout, float] = DEFAULT_TIMEOUT
        raw_timeout = os.getenv("MUTASIKU_TIMEOUT")
        if raw_timeout:
            timeout = float(raw_timeout)

        return cls(
            api_key=os.getenv("MUTASIKU_API_KEY", ""),
            base_url=os.getenv("MUTASIKU_BASE_URL", API_BASE_URL),
            timeout=timeout,
            logger=logger or _default_logger(),
        )
