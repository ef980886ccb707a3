"""Simple persistent registry for the client's feed URLs.

The list is kept in a small JSON key-value file (``FEEDPULSE_STORE_PATH``)
under the fixed key ``rssFeeds``; its value is the JSON-encoded list of URL
strings.  The list is loaded when the registry is created and the file is
rewritten after every add/remove.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Dict, List, Optional

from feedpulse.main.settings import get_settings

logger = logging.getLogger(__name__)

STORAGE_KEY = "rssFeeds"


class FeedRegistry:
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or get_settings().store_path
        self._feeds: List[str] = self._load()

    def _read_store(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                store = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable feed store %s: %s", self.path, exc)
            return {}
        return store if isinstance(store, dict) else {}

    def _load(self) -> List[str]:
        raw = self._read_store().get(STORAGE_KEY)
        if not raw:
            return []
        try:
            feeds = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed %s entry in %s", STORAGE_KEY, self.path)
            return []
        if not isinstance(feeds, list):
            return []
        return [url for url in feeds if isinstance(url, str)]

    def _save(self) -> None:
        store = self._read_store()
        store[STORAGE_KEY] = json.dumps(self._feeds)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(store, f, indent=2)

    def add_feed(self, feed_url: str) -> bool:
        """Add *feed_url* if it is not already present.

        Returns ``True`` when the feed was added, ``False`` if it was blank or
        already registered.
        """
        feed_url = (feed_url or "").strip()
        if not feed_url or feed_url in self._feeds:
            return False
        self._feeds.append(feed_url)
        self._save()
        return True

    def remove_feed(self, feed_url: str) -> bool:
        if feed_url not in self._feeds:
            return False
        self._feeds = [url for url in self._feeds if url != feed_url]
        self._save()
        return True

    def list_feeds(self) -> List[str]:
        """Return the registered feed URLs in insertion order."""
        return list(self._feeds)
