"""Breadth-first page crawler feeding fetched pages to a handler."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Set, Tuple

import httpx
from bs4 import BeautifulSoup

from core.config import CrawlConfig
from core.extractor import parse_html
from core.url_utils import host_of, normalize_link
from fetch.http_client import fetch_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedPage:
    url: str  # requested URL
    loaded_url: str  # final URL after redirects
    html: str
    status_code: int
    document: Optional[BeautifulSoup] = None


@dataclass
class CrawlStats:
    requested: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


PageHandler = Callable[[FetchedPage], Awaitable[object]]


def _is_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return not content_type or "html" in content_type.lower()


class Crawler:
    """Fetches start URLs and, optionally, the links they contain.

    At most ``max_requests_per_crawl`` requests are made per run. With
    ``follow_internal_only`` a link is followed only when its host equals the
    host of the start URL it was discovered from.
    """

    def __init__(self, config: CrawlConfig, handler: PageHandler, fetch: Optional[Callable[..., Awaitable[httpx.Response]]] = None):
        self.config = config
        self.handler = handler
        self._fetch = fetch
        self._queue: "asyncio.Queue[Tuple[str, str]]" = asyncio.Queue()
        self._seen: Set[str] = set()
        self.stats = CrawlStats()

    def _enqueue(self, url: str, start_host: str) -> bool:
        if url in self._seen:
            return False
        self._seen.add(url)
        self._queue.put_nowait((url, start_host))
        return True

    def _seed(self, start_urls) -> int:
        seeded = 0
        for raw in start_urls:
            url = normalize_link(raw, "")
            if not url:
                logger.warning(f"Skipping invalid start URL: {raw!r}")
                continue
            if self._enqueue(url, host_of(url)):
                seeded += 1
        return seeded

    async def run(self, start_urls=None) -> CrawlStats:
        start_urls = self.config.start_urls if start_urls is None else start_urls
        seeded = self._seed(start_urls)
        logger.info(f"Starting crawl of {seeded} start URLs (max {self.config.max_requests_per_crawl} requests)")
        if not seeded:
            return self.stats

        workers = [
            asyncio.create_task(self._worker(i))
            for i in range(min(self.config.max_concurrency, self.config.max_requests_per_crawl))
        ]
        try:
            await self._queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        logger.info(
            f"Crawl finished: {self.stats.requested} requested, {self.stats.succeeded} succeeded, "
            f"{self.stats.failed} failed, {self.stats.skipped} skipped"
        )
        return self.stats

    async def _worker(self, worker_id: int):
        while True:
            url, start_host = await self._queue.get()
            try:
                if self.stats.requested >= self.config.max_requests_per_crawl:
                    logger.debug(f"Request budget exhausted, dropping {url}")
                    continue
                self.stats.requested += 1
                await self._crawl_one(url, start_host)
            except Exception as e:
                self.stats.failed += 1
                logger.error(f"Error while crawling {url}: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def _crawl_one(self, url: str, start_host: str):
        fetch = self._fetch or fetch_url
        try:
            response = await fetch(url, timeout=self.config.request_timeout, headers=self.config.headers)
        except httpx.HTTPError as e:
            self.stats.failed += 1
            logger.warning(f"Request failed for {url}: {e}")
            return

        if response.status_code >= 400:
            self.stats.failed += 1
            logger.warning(f"HTTP {response.status_code} for {url}")
            return
        if not _is_html(response):
            self.stats.skipped += 1
            logger.info(f"Skipping non-HTML response for {url} ({response.headers.get('content-type')})")
            return

        loaded_url = str(response.url)
        html = response.text
        document = parse_html(html)
        page = FetchedPage(url=url, loaded_url=loaded_url, html=html, status_code=response.status_code, document=document)

        if self.config.enqueue_links:
            added = self._enqueue_links(document, loaded_url, start_host)
            logger.debug(f"Enqueued {added} links from {loaded_url}")

        await self.handler(page)
        self.stats.succeeded += 1

    def _enqueue_links(self, document: BeautifulSoup, base_url: str, start_host: str) -> int:
        added = 0
        for anchor in document.find_all("a", href=True):
            link = normalize_link(anchor["href"], base_url)
            if not link:
                continue
            if self.config.follow_internal_only and host_of(link) != start_host:
                continue
            if self._enqueue(link, start_host):
                added += 1
        return added
