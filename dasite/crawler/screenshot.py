"""Screenshot capture into the per-URL output layout."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Page

from dasite.errors import CaptureError
from dasite.url_utils import derive_identity

logger = logging.getLogger(__name__)

CURRENT_FILENAME = "current.png"


def url_directory(url: str, output_dir: Path) -> Path:
    """Return the directory that holds the images for ``url``."""
    return Path(output_dir) / derive_identity(url)


async def take_screenshot(page: Page, url: str, output_dir: Path, full_page: bool = True) -> Path:
    """Capture the loaded page to ``<output_dir>/<identity>/current.png``.

    Existing ``current.png`` files are overwritten; ``baseline.png`` is never touched.
    """
    target_dir = url_directory(url, output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / CURRENT_FILENAME

    try:
        await page.screenshot(path=str(path), full_page=full_page)
    except Exception as e:
        raise CaptureError(f"Screenshot failed for {url}: {e}") from e
    logger.info("Screenshot saved to %s", path)
    return path
