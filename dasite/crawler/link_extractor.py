"""Collects same-host, navigable links from a loaded page."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

from playwright.async_api import Page

from dasite.url_utils import normalize_url, target_key

logger = logging.getLogger(__name__)

_HREFS_JS = """() => Array.from(document.querySelectorAll('a[href]'))
    .map(a => a.getAttribute('href'))
    .filter(href => href !== null)"""

_SKIP_EXTENSIONS = (
    '.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico', '.webp',
    '.css', '.js', '.map', '.woff', '.woff2', '.ttf', '.eot',
    '.pdf', '.zip', '.tar', '.gz', '.mp3', '.mp4', '.webm',
    '.xml', '.rss', '.atom', '.json',
)


def _is_page_url(url: str) -> bool:
    """Filter out non-http schemes and static resources."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    path_lower = parsed.path.lower()
    return not any(path_lower.endswith(ext) for ext in _SKIP_EXTENSIONS)


def filter_links(hrefs: list[str], page_url: str, base_url: str) -> list[str]:
    """Resolve raw hrefs against the page location and keep same-host page links.

    Order follows the document; duplicates and the page's own URL are removed.
    """
    base_host = urlparse(base_url).hostname
    own_key = target_key(page_url)
    links: list[str] = []
    seen: set[str] = set()

    for raw in hrefs:
        href = (raw or "").strip()
        if not href or href.startswith("#"):
            continue
        if href.lower().startswith("javascript:"):
            continue
        try:
            url = normalize_url(urljoin(page_url, href))
            if not _is_page_url(url):
                continue
            if urlparse(url).hostname != base_host:
                continue
            if target_key(url) == own_key:
                continue
        except ValueError:
            logger.debug("Dropping malformed href on %s: %r", page_url, raw)
            continue
        if url in seen:
            continue
        seen.add(url)
        links.append(url)

    return links


async def extract_links(page: Page, base_url: str) -> list[str]:
    """Return same-host links found on the currently loaded page."""
    hrefs = await page.evaluate(_HREFS_JS)
    links = filter_links(hrefs or [], page.url, base_url)
    logger.debug("Found %d same-host links on %s", len(links), page.url)
    return links
