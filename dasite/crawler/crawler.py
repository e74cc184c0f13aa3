"""Site crawler — breadth-first traversal that captures every same-host page."""

from __future__ import annotations

import logging
import time
from collections import deque
from pathlib import Path
from typing import Optional

from playwright.async_api import Page

from dasite.models.config import DasiteConfig
from dasite.models.crawl import CrawlResult
from dasite.url_utils import normalize_url, same_host, target_key

from .browser import browser_session, navigate
from .link_extractor import extract_links
from .screenshot import take_screenshot

logger = logging.getLogger(__name__)


class Crawler:
    """Crawls a site from a seed URL using an already-open page.

    The crawl loop:

    1. Pops the oldest queued URL (FIFO, so shallow pages come first)
    2. Skips it if its ``(hostname, path)`` key was already visited
    3. Navigates, captures ``current.png`` and extracts same-host links
    4. Queues links whose key is neither visited nor pending

    A failure on one page is logged and recorded; the crawl carries on.
    """

    def __init__(
        self,
        page: Page,
        output_dir: Path,
        wait_until: str = "networkidle",
        timeout_ms: int = 30000,
        retries: int = 2,
        max_pages: Optional[int] = None,
    ):
        self.page = page
        self.output_dir = Path(output_dir)
        self.wait_until = wait_until
        self.timeout_ms = timeout_ms
        self.retries = retries
        self.max_pages = max_pages

        self._visited: set[tuple[str, str]] = set()
        self._queued: set[tuple[str, str]] = set()

    @classmethod
    def from_config(cls, page: Page, config: DasiteConfig) -> "Crawler":
        return cls(
            page,
            config.output_path,
            wait_until=config.wait_until,
            timeout_ms=config.navigation_timeout_ms,
            retries=config.navigation_retries,
            max_pages=config.max_pages,
        )

    async def crawl(self, start_url: str) -> CrawlResult:
        """Execute the crawl and return what was visited and captured."""
        start_time = time.time()
        start_url = normalize_url(start_url)
        result = CrawlResult(start_url=start_url)
        self._visited = set()
        self._queued = set()
        logger.info("Starting site crawl from %s", start_url)

        queue: deque[str] = deque()
        self._enqueue(queue, start_url, start_url)

        while queue:
            if self.max_pages is not None and len(self._visited) >= self.max_pages:
                logger.info("Page limit of %d reached, %d URLs left unvisited", self.max_pages, len(queue))
                break

            url = queue.popleft()
            key = target_key(url)
            self._queued.discard(key)
            if key in self._visited:
                continue
            self._visited.add(key)
            result.visited.add(url)

            try:
                await navigate(
                    self.page, url,
                    wait_until=self.wait_until,
                    timeout_ms=self.timeout_ms,
                    retries=self.retries,
                )
                path = await take_screenshot(self.page, url, self.output_dir)
                result.screenshots.append(str(path))

                links = await extract_links(self.page, start_url)
                new_count = sum(1 for link in links if self._enqueue(queue, link, start_url))
                logger.info(
                    "Processed %d/%d pages (%s: %d links, %d new)",
                    len(self._visited), len(self._visited) + len(queue), url, len(links), new_count,
                )
            except Exception as e:
                logger.error("Error processing %s: %s", url, e)
                result.failed[url] = str(e)

        result.duration_seconds = round(time.time() - start_time, 2)
        logger.info(
            "Crawling completed! Visited %d pages in %.1fs (%d failed)",
            len(self._visited), result.duration_seconds, len(result.failed),
        )
        return result

    def _enqueue(self, queue: deque[str], url: str, start_url: str) -> bool:
        """Add a URL to the queue if it is new. Returns True if newly queued."""
        if not same_host(start_url, url):
            return False
        key = target_key(url)
        if key in self._visited or key in self._queued:
            return False
        self._queued.add(key)
        queue.append(url)
        return True


async def crawl_site(
    start_url: str,
    output_dir: Optional[Path] = None,
    headless: Optional[bool] = None,
    config: Optional[DasiteConfig] = None,
) -> CrawlResult:
    """Open a browser, crawl from ``start_url`` and close the browser again.

    ``output_dir`` and ``headless`` override the matching ``config`` values
    when given.
    """
    cfg = config or DasiteConfig()
    if output_dir is not None:
        cfg = cfg.model_copy(update={"output_dir": str(output_dir)})
    if headless is not None:
        cfg = cfg.model_copy(update={"headless": headless})

    async with browser_session(cfg) as page:
        crawler = Crawler.from_config(page, cfg)
        return await crawler.crawl(start_url)
