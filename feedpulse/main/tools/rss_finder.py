"""Discover the RSS/Atom feed URL advertised by a website.

The page at the given URL is fetched with a browser-like ``User-Agent`` and
its ``<link>`` tags are scanned: an ``application/rss+xml`` link wins, an
``application/atom+xml`` link is the fallback.  The ``href`` is resolved
against the site URL so relative links come back absolute.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from feedpulse.main.settings import get_settings
from feedpulse.main.tools.errors import FetchError, NotFoundError

logger = logging.getLogger(__name__)

# Searched in order of preference.
FEED_LINK_TYPES = ("application/rss+xml", "application/atom+xml")


def _find_link_tag(soup: BeautifulSoup) -> Optional[str]:
    """Return the ``href`` of the first RSS ``<link>``, else the first Atom one."""
    links = soup.find_all("link")
    for feed_type in FEED_LINK_TYPES:
        for link in links:
            type_attr = (link.get("type") or "").strip().lower()
            href = (link.get("href") or "").strip()
            if type_attr == feed_type and href:
                return href
    return None


def find_feed_link(html: str) -> Optional[str]:
    """Return the raw feed ``href`` declared in *html* or ``None``."""
    return _find_link_tag(BeautifulSoup(html, "html.parser"))


def find_rss_feed(site_url: str, timeout: float | None = None) -> str:
    """Return the absolute RSS/Atom feed URL for *site_url*.

    Parameters
    ----------
    site_url:
        The website URL (e.g. ``"https://example.com/"``).
    timeout:
        HTTP request timeout in seconds; defaults to the configured fetch timeout.

    Raises ``FetchError`` if the page cannot be retrieved and ``NotFoundError``
    if it declares no feed.
    """
    settings = get_settings()
    try:
        response = requests.get(
            site_url,
            timeout=timeout or settings.fetch_timeout,
            headers={"User-Agent": settings.user_agent},
        )
        response.raise_for_status()
    except (requests.RequestException, UnicodeError) as exc:
        logger.error("Failed to fetch site %s: %s", site_url, exc)
        raise FetchError("Failed to fetch the site page.", details=str(exc)) from exc

    link_href = find_feed_link(response.text)
    if not link_href:
        logger.info("No feed found for %s", site_url)
        raise NotFoundError("No RSS or Atom feed found at this URL.")

    feed_url = urljoin(site_url, link_href)
    logger.info("Discovered feed via <link>: %s", feed_url)
    return feed_url
