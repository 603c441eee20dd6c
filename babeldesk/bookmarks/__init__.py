# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.bookmarks.cache import BookmarkCache, CachedBookmarks
from babeldesk.bookmarks.scraper import (
    Bookmark,
    BookmarkScraper,
    BookmarkScraperConfig,
    clean_links,
    filter_bookmarks,
)

__all__ = [
    "Bookmark",
    "BookmarkCache",
    "BookmarkScraper",
    "BookmarkScraperConfig",
    "CachedBookmarks",
    "clean_links",
    "filter_bookmarks",
]
