"""Runtime configuration for FeedPulse.

Values come from environment variables; a ``.env`` file in the working
directory is honoured via ``python-dotenv``.  The server and the command-line
client both read their settings through ``get_settings()`` so a single
``.env`` file configures the whole project.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Some sites refuse requests that do not look like they come from a browser.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36"
)
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout: float = 10.0
    max_results: int = 50
    host: str = "127.0.0.1"
    port: int = 8090
    api_url: str = "http://127.0.0.1:8090"
    store_path: str = str(Path.home() / ".feedpulse.json")
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Build a ``Settings`` instance from the current environment."""
    defaults = Settings()
    return Settings(
        user_agent=os.getenv("FEEDPULSE_USER_AGENT", defaults.user_agent),
        fetch_timeout=float(os.getenv("FEEDPULSE_FETCH_TIMEOUT", defaults.fetch_timeout)),
        max_results=int(os.getenv("FEEDPULSE_MAX_RESULTS", defaults.max_results)),
        host=os.getenv("FEEDPULSE_HOST", defaults.host),
        port=int(os.getenv("FEEDPULSE_PORT", defaults.port)),
        api_url=os.getenv("FEEDPULSE_API_URL", defaults.api_url),
        store_path=os.getenv("FEEDPULSE_STORE_PATH", defaults.store_path),
        log_level=os.getenv("FEEDPULSE_LOG_LEVEL", defaults.log_level).upper(),
    )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_settings().log_level,
        format=LOG_FORMAT,
    )
