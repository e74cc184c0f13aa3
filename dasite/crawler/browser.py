"""Browser session setup and page navigation."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from dasite.errors import NavigationError
from dasite.models.config import DasiteConfig

logger = logging.getLogger(__name__)


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium for screenshot capture."""
    return await playwright.chromium.launch(headless=headless)


async def create_context(
    browser: Browser,
    viewport: dict,
    user_agent: Optional[str] = None,
) -> BrowserContext:
    """Create a browser context with deterministic rendering settings.

    The context starts with empty storage so cookies set during a crawl stay
    consistent for every page visited through it.
    """
    context_kwargs: dict = {
        "viewport": viewport,
        "locale": "en-US",
        "timezone_id": "UTC",
        "accept_downloads": True,
        "storage_state": {"cookies": [], "origins": []},
    }
    if user_agent:
        context_kwargs["user_agent"] = user_agent
    return await browser.new_context(**context_kwargs)


@asynccontextmanager
async def browser_session(config: DasiteConfig) -> AsyncIterator[Page]:
    """Yield a single page reused for a whole capture run.

    The browser is closed on exit even when a page visit raised.
    """
    async with async_playwright() as p:
        browser = await launch_browser(p, headless=config.headless)
        logger.debug("Browser launched (headless=%s)", config.headless)
        try:
            context = await create_context(
                browser,
                viewport={"width": config.viewport.width, "height": config.viewport.height},
                user_agent=config.user_agent,
            )
            page = await context.new_page()
            yield page
        finally:
            await browser.close()
            logger.debug("Browser closed")


async def navigate(
    page: Page,
    url: str,
    wait_until: str = "networkidle",
    timeout_ms: int = 30000,
    retries: int = 2,
) -> None:
    """Navigate to a URL, retrying on failure.

    Raises NavigationError once every attempt has failed.
    """
    last_error = ""
    for attempt in range(retries + 1):
        try:
            resp = await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
            if resp and resp.status >= 400:
                logger.warning("HTTP %d for %s", resp.status, url)
            return
        except Exception as e:
            last_error = str(e)
            if attempt < retries:
                logger.debug("Retry %d for %s: %s", attempt + 1, url, e)
                await asyncio.sleep(1)

    logger.warning("Navigation failed after %d retries: %s (%s)", retries, url, last_error)
    raise NavigationError(url, last_error)
