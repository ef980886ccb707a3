"""Aggregate articles from several RSS/Atom feeds.

``aggregate`` fetches every requested feed concurrently, merges the items,
applies the optional keyword/year filters, sorts newest first and returns at
most ``max_results`` items.  A feed that cannot be fetched or parsed only
contributes nothing: the failure is logged and the remaining feeds are still
used.  Nothing is kept between calls.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import httpx

from feedpulse.main.settings import get_settings
from feedpulse.main.tools.errors import ValidationError
from feedpulse.main.tools.rss_feed_utils import fetch_feed, new_http_client, parse_date

logger = logging.getLogger(__name__)

Item = Dict[str, Any]


def published_at(item: Item) -> Optional[datetime]:
    """Return the item's publication date in UTC, or ``None`` if unknown."""
    return parse_date(item.get("isoDate")) or parse_date(item.get("pubDate"))


def matches_keyword(item: Item, keyword: str) -> bool:
    title = item.get("title")
    if not title or not isinstance(title, str):
        return False
    return keyword.lower() in title.lower()


def matches_year(item: Item, year: int) -> bool:
    published = published_at(item)
    return published is not None and published.year == year


def compare_by_date_desc(a: Item, b: Item) -> int:
    """Order newest first; an item without a usable date compares equal."""
    date_a = published_at(a)
    date_b = published_at(b)
    if date_a is None or date_b is None:
        return 0
    if date_a > date_b:
        return -1
    if date_a < date_b:
        return 1
    return 0


def filter_and_sort(
    items: Iterable[Item],
    keyword: Optional[str] = None,
    year: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Item]:
    """Apply the keyword and year filters, sort newest first and truncate."""
    selected = list(items)
    if keyword:
        selected = [item for item in selected if matches_keyword(item, keyword)]
    if year is not None:
        selected = [item for item in selected if matches_year(item, year)]
    selected.sort(key=functools.cmp_to_key(compare_by_date_desc))
    if limit is None:
        limit = get_settings().max_results
    return selected[:limit]


async def _fetch_items(feed_url: str, client: httpx.AsyncClient) -> List[Item]:
    feed = await fetch_feed(feed_url, client)
    return feed["items"]


async def gather_items(feed_urls: List[str], client: httpx.AsyncClient) -> List[Item]:
    """Fetch all feeds concurrently and flatten the items of those that succeeded."""
    tasks = [_fetch_items(url, client) for url in feed_urls]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    merged: List[Item] = []
    for url, result in zip(feed_urls, results):
        if isinstance(result, BaseException):
            logger.error("Error fetching feed %s: %s", url, result)
            continue
        merged.extend(result)
    return merged


async def aggregate(
    feed_urls: List[str],
    keyword: Optional[str] = None,
    year: Optional[int] = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> List[Item]:
    """Fetch, merge, filter, sort and truncate the articles of *feed_urls*.

    Raises ``ValidationError`` if no feed URL is given.  When every feed fails
    the result is simply an empty list.
    """
    feed_urls = [url.strip() for url in feed_urls if url and url.strip()]
    if not feed_urls:
        raise ValidationError("At least one feed URL is required.")

    if client is None:
        async with new_http_client() as own_client:
            items = await gather_items(feed_urls, own_client)
    else:
        items = await gather_items(feed_urls, client)

    result = filter_and_sort(items, keyword=keyword, year=year)
    logger.info(
        "Aggregated %d feeds: %d items merged, %d returned",
        len(feed_urls),
        len(items),
        len(result),
    )
    return result
