# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable

from babeldesk.bookmarks.scraper import Bookmark
from babeldesk.storage.kv import KeyValueStore

CACHE_KEY = "wolai_bookmarks_cache"
CACHE_DURATION_MS = 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CachedBookmarks:
    bookmarks: list[Bookmark] = field(default_factory=list)
    timestamp: int | None = None
    stale: bool = True


class BookmarkCache:
    """
    Last scrape result, stored as ``{"bookmarks": [...], "timestamp": ms}``.

    Entries older than ``ttl_ms`` are reported stale but still returned so
    they can be shown while a refresh runs.
    """

    def __init__(self, store: KeyValueStore, key: str = CACHE_KEY, ttl_ms: int = CACHE_DURATION_MS):
        self.store = store
        self.key = key
        self.ttl_ms = ttl_ms

    def is_stale(self, timestamp: int, now: int | None = None) -> bool:
        now = now_ms() if now is None else now
        return now - timestamp >= self.ttl_ms

    def load(self, now: int | None = None) -> CachedBookmarks:
        data = self.store.get(self.key)
        if not isinstance(data, dict) or not isinstance(data.get("timestamp"), (int, float)):
            return CachedBookmarks()
        bookmarks = [Bookmark.from_dict(b) for b in data.get("bookmarks") or [] if isinstance(b, dict)]
        timestamp = int(data["timestamp"])
        return CachedBookmarks(bookmarks=bookmarks, timestamp=timestamp, stale=self.is_stale(timestamp, now))

    def save(self, bookmarks: Iterable[Bookmark], now: int | None = None) -> bool:
        return self.store.put(self.key, {
            "bookmarks": [b.to_dict() for b in bookmarks],
            "timestamp": now_ms() if now is None else now,
        })
