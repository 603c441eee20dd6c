# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from logging import Logger
from typing import Any, AsyncIterator, Iterable, Protocol

from babeldesk.errors import ScrapeError
from babeldesk.logger import global_logger

DEFAULT_BOOKMARK_PAGE = "https://www.wolai.com/3PM5pcLYyZT4dAFP8LMwV2"
MAX_TITLE_LENGTH = 200

# runs in page context; filtering happens on the Python side
COLLECT_ANCHORS_JS = """
() => Array.from(document.querySelectorAll('a[href]')).map(a => ({
    title: a.textContent || '',
    url: a.href || '',
}))
"""


@dataclass(frozen=True)
class Bookmark:
    title: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Bookmark:
        return cls(title=str(data.get("title", "")), url=str(data.get("url", "")))


class PageLike(Protocol):
    async def goto(self, url: str, **kwargs) -> Any: ...

    async def wait_for_timeout(self, timeout: float) -> None: ...

    async def evaluate(self, expression: str) -> Any: ...


def _clean(s: str | None) -> str:
    return (s or "").strip()


def clean_links(raw: Iterable[dict[str, Any]]) -> list[Bookmark]:
    """
    Keep http(s) links with a non-empty title under 200 chars, one per URL.

    A repeated URL keeps its first position and its last title.
    """
    unique: dict[str, Bookmark] = {}
    for item in raw:
        if not isinstance(item, dict):
            continue
        title = _clean(item.get("title"))
        url = (item.get("url") or "").strip()
        if title and url.startswith("http") and len(title) < MAX_TITLE_LENGTH:
            unique[url] = Bookmark(title=title, url=url)
    return list(unique.values())


def filter_bookmarks(bookmarks: Iterable[Bookmark], query: str | None) -> list[Bookmark]:
    if not query or not query.strip():
        return list(bookmarks)
    needle = query.strip().lower()
    return [b for b in bookmarks if needle in b.title.lower()]


@dataclass(kw_only=True)
class BookmarkScraperConfig:
    logger: Logger = global_logger
    url: str = DEFAULT_BOOKMARK_PAGE
    # the page renders its link list client-side
    settle_ms: int = 3000
    timeout_ms: int = 60000


class BookmarkScraper:
    def __init__(self, config: BookmarkScraperConfig | None = None):
        self.config = config or BookmarkScraperConfig()
        self.logger = self.config.logger

    async def collect(self, page: PageLike) -> list[Bookmark]:
        await page.goto(self.config.url, wait_until="domcontentloaded", timeout=self.config.timeout_ms)
        await page.wait_for_timeout(self.config.settle_ms)
        raw = await page.evaluate(COLLECT_ANCHORS_JS)
        return clean_links(raw or [])

    @asynccontextmanager
    async def _open_page(self) -> AsyncIterator[PageLike]:
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                context = await browser.new_context(viewport={"width": 1280, "height": 800})
                try:
                    yield await context.new_page()
                finally:
                    await context.close()
            finally:
                await browser.close()

    async def fetch(self) -> list[Bookmark]:
        try:
            from playwright.async_api import Error as PlaywrightError
        except ModuleNotFoundError as e:
            raise ScrapeError(f"playwright is not installed: {e}") from e

        self.logger.info(f"Fetching bookmarks from {self.config.url}")
        try:
            async with self._open_page() as page:
                bookmarks = await self.collect(page)
        except PlaywrightError as e:
            raise ScrapeError(str(e)) from e
        self.logger.info(f"Collected {len(bookmarks)} bookmarks")
        return bookmarks
