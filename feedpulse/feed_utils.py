"""Request-parameter helpers shared by the HTTP server and the CLI client."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Union

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalize_feed_urls(feed_urls: Union[str, Iterable[str], None]) -> List[str]:
    """Return the non-blank feed URLs as a list; a single string becomes a one-item list."""
    if not feed_urls:
        return []
    if isinstance(feed_urls, str):
        feed_urls = [feed_urls]
    return [url.strip() for url in feed_urls if url and url.strip()]


def parse_year(value: Union[str, int, None]) -> Optional[int]:
    """Read a year from the leading integer of *value*.

    ``"2024"`` and ``"2024abc"`` both give ``2024``; a value without a leading
    integer means "no year constraint" and gives ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))
