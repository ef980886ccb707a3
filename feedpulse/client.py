"""Command-line client for the FeedPulse API.

Keeps the user's feed list (via ``FeedRegistry``) and the current filters in
an ``AppState``, calls ``/api/fetch-and-filter`` and ``/api/find-rss`` and
renders the result as plain text.

Usage::

    feedpulse-client add https://example.com/feed.xml
    feedpulse-client find https://example.com/
    feedpulse-client news --keyword python --year 2024
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from feedpulse.feed_utils import parse_year
from feedpulse.main.settings import configure_logging, get_settings
from feedpulse.main.tools.errors import FetchError
from feedpulse.main.tools.rss_feed_utils import clean_html
from feedpulse.registry import FeedRegistry

logger = logging.getLogger(__name__)

NO_FEEDS_MESSAGE = "Add at least one RSS feed URL to search."
NO_SUMMARY = "Summary not available."


@dataclass
class NewsCard:
    title: Optional[str]
    summary: str
    link: Optional[str]
    source: str
    tags: List[str] = field(default_factory=list)


@dataclass
class AppState:
    feeds: List[str] = field(default_factory=list)
    pending_url: str = ""
    keyword: str = ""
    year: str = ""
    is_loading: bool = False
    error: Optional[str] = None
    news: List[NewsCard] = field(default_factory=list)


def to_card(item: Dict[str, Any]) -> NewsCard:
    """Shape one API item for display."""
    content = item.get("content")
    summary = item.get("contentSnippet") or (clean_html(content) if content else "") or NO_SUMMARY
    link = item.get("link")
    hostname = urlparse(link).hostname if link else None
    categories = item.get("categories")
    return NewsCard(
        title=item.get("title"),
        summary=summary,
        link=link,
        source=(hostname or "").replace("www.", "", 1),
        tags=list(categories) if isinstance(categories, list) else [],
    )


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    return body.get("details") or body.get("error") or default


class NewsClient:
    """Client-side application state bound to a feed registry and the API."""

    def __init__(
        self,
        registry: FeedRegistry,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self.registry = registry
        self.state = AppState(feeds=registry.list_feeds())
        if http is None:
            settings = get_settings()
            http = httpx.Client(base_url=settings.api_url, timeout=None)
        self._http = http

    def close(self) -> None:
        self._http.close()

    def add_feed(self, feed_url: Optional[str] = None) -> bool:
        """Add *feed_url* (or the pending URL); a URL already in the list is ignored."""
        added = self.registry.add_feed(feed_url if feed_url is not None else self.state.pending_url)
        if added:
            self.state.pending_url = ""
        self.state.feeds = self.registry.list_feeds()
        return added

    def remove_feed(self, feed_url: str) -> bool:
        removed = self.registry.remove_feed(feed_url)
        self.state.feeds = self.registry.list_feeds()
        return removed

    def set_filters(self, keyword: str = "", year: str = "") -> None:
        self.state.keyword = keyword or ""
        self.state.year = str(year) if year else ""

    def fetch_news(self) -> List[NewsCard]:
        state = self.state
        if not state.feeds:
            state.error = NO_FEEDS_MESSAGE
            return []

        state.is_loading = True
        state.error = None
        state.news = []

        params = [("feed", feed) for feed in state.feeds]
        if state.keyword:
            params.append(("keyword", state.keyword))
        if state.year:
            params.append(("year", state.year))

        try:
            response = self._http.get("/api/fetch-and-filter", params=params)
            if not response.is_success:
                raise FetchError(_error_message(response, "Failed to fetch news."))
            state.news = [to_card(item) for item in response.json()]
        except (httpx.HTTPError, FetchError, ValueError) as exc:
            logger.error("Failed to fetch news: %s", exc)
            state.error = str(exc)
        finally:
            state.is_loading = False
        return state.news

    def find_feed(self, site_url: str) -> Optional[str]:
        """Discover the feed of *site_url*; on success it becomes the pending URL."""
        self.state.error = None
        try:
            response = self._http.get("/api/find-rss", params={"url": site_url})
            if not response.is_success:
                raise FetchError(_error_message(response, "Failed to find a feed."))
            feed_url = response.json()["feedUrl"]
        except (httpx.HTTPError, FetchError, KeyError, ValueError) as exc:
            logger.error("Failed to find feed for %s: %s", site_url, exc)
            self.state.error = str(exc)
            return None
        self.state.pending_url = feed_url
        return feed_url


def render_card(card: NewsCard) -> str:
    lines = [card.title or "(untitled)", f"  {card.summary}"]
    if card.tags:
        lines.append("  Tags: " + ", ".join(card.tags))
    lines.append(f"  Source: {card.source} <{card.link or ''}>")
    return "\n".join(lines)


def render(state: AppState) -> str:
    """Render exactly one of: loading, error, empty state or the news cards."""
    if state.is_loading:
        return "Fetching and filtering news..."
    if state.error:
        return f"An error occurred\n  {state.error}"
    if not state.news:
        return "No news to display\n  Add feeds and apply filters to get started."
    return "\n\n".join(render_card(card) for card in state.news)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="feedpulse-client", description=__doc__.splitlines()[0])
    parser.add_argument("--store", help="Path of the feed list store file.")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a feed URL to the list.")
    add.add_argument("url")
    remove = sub.add_parser("remove", help="Remove a feed URL from the list.")
    remove.add_argument("url")
    sub.add_parser("list", help="Show the registered feed URLs.")
    find = sub.add_parser("find", help="Discover the feed of a website.")
    find.add_argument("url")
    find.add_argument("--add", action="store_true", help="Add the discovered feed to the list.")
    news = sub.add_parser("news", help="Fetch, filter and show news from all feeds.")
    news.add_argument("--keyword", default="")
    news.add_argument("--year", default="")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    client = NewsClient(FeedRegistry(args.store))
    try:
        if args.command == "add":
            added = client.add_feed(args.url)
            print(f"Feed {'added' if added else 'already registered'}: {args.url.strip()}")
        elif args.command == "remove":
            removed = client.remove_feed(args.url)
            print(f"Feed {'removed' if removed else 'not registered'}: {args.url}")
        elif args.command == "list":
            print("\n".join(client.state.feeds) if client.state.feeds else "No feeds registered.")
        elif args.command == "find":
            feed_url = client.find_feed(args.url)
            if feed_url is None:
                print(render(client.state))
                return 1
            print(feed_url)
            if args.add:
                client.add_feed()
        elif args.command == "news":
            if args.year and parse_year(args.year) is None:
                print(f"Ignoring non-numeric year: {args.year}", file=sys.stderr)
            client.set_filters(args.keyword, args.year)
            client.fetch_news()
            print(render(client.state))
            return 1 if client.state.error else 0
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
