"""Fetch a single RSS/Atom feed and decode it into article items.

``fetch_feed`` downloads one feed with ``httpx`` and hands the body to
``feedparser``.  Every entry is flattened into a plain ``dict`` with the keys
the HTTP API returns (``title``, ``link``, ``pubDate``, ``isoDate``,
``content``, ``contentSnippet``, ``categories``, ``guid``, ``creator``).

Failures are reported with ``FetchError`` (transport, non-200 status) or
``ParseError`` (body is not a feed), never by returning an empty item list.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from feedparser import FeedParserDict

from feedpulse.main.settings import get_settings
from feedpulse.main.tools.errors import FetchError, ParseError

logger = logging.getLogger(__name__)


def new_http_client() -> httpx.AsyncClient:
    """Create an async client carrying the browser-like User-Agent."""
    settings = get_settings()
    return httpx.AsyncClient(
        timeout=settings.fetch_timeout,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    )


def clean_html(html_content: str) -> str:
    soup = BeautifulSoup(html_content, "html.parser")
    return soup.get_text(separator=" ", strip=True)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse an RFC 822 or ISO 8601 date string into an aware UTC datetime.

    Returns ``None`` for missing or unparsable values; naive datetimes are
    taken to be UTC.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        dt = date_parser.parse(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _iso_date(entry: FeedParserDict) -> Optional[str]:
    struct = entry.get("published_parsed") or entry.get("updated_parsed")
    if not struct:
        return None
    try:
        dt = datetime(*struct[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None
    return dt.isoformat().replace("+00:00", "Z")


def _entry_content(entry: FeedParserDict) -> Optional[str]:
    # ``content`` is a list of dicts with ``value``; prefer it over the summary.
    for content_item in entry.get("content") or []:
        value = content_item.get("value")
        if value:
            return value
    return entry.get("summary") or entry.get("description")


def _to_item(entry: FeedParserDict) -> Dict[str, Any]:
    content = _entry_content(entry)
    return {
        "title": entry.get("title"),
        "link": entry.get("link"),
        "pubDate": entry.get("published") or entry.get("updated"),
        "isoDate": _iso_date(entry),
        "content": content,
        "contentSnippet": clean_html(content) if content else None,
        "categories": [tag.get("term") for tag in entry.get("tags", []) if tag.get("term")],
        "guid": entry.get("id"),
        "creator": entry.get("author"),
    }


def parse_feed(feed_response: FeedParserDict, feed_url: str) -> Dict[str, Any]:
    """Turn a ``feedparser`` result into ``{"title", "link", "items"}``.

    Raises ``ParseError`` when the document yielded no entries and is either
    malformed or not recognised as RSS/Atom at all.
    """
    if not feed_response.entries and (feed_response.get("bozo") or not feed_response.get("version")):
        reason = feed_response.get("bozo_exception") or "not an RSS or Atom document"
        raise ParseError(f"Failed to parse feed {feed_url}", details=str(reason))

    items: List[Dict[str, Any]] = [_to_item(entry) for entry in feed_response.entries]
    return {
        "title": feed_response.feed.get("title"),
        "link": feed_response.feed.get("link"),
        "items": items,
    }


async def fetch_feed(feed_url: str, client: httpx.AsyncClient) -> Dict[str, Any]:
    """Download and decode the feed at *feed_url*."""
    try:
        response = await client.get(feed_url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"Failed to fetch feed {feed_url}", details=str(exc)) from exc

    if response.status_code != 200:
        raise FetchError(
            f"Failed to fetch feed {feed_url}",
            details=f"HTTP {response.status_code}",
        )

    # No content-location: feedparser would resolve relative guids against it.
    headers = {"content-type": response.headers.get("content-type", "")}
    parsed = feedparser.parse(response.content, response_headers=headers)
    feed = parse_feed(parsed, feed_url)
    logger.debug("Parsed %d items from %s", len(feed["items"]), feed_url)
    return feed
