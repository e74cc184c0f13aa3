"""Pytest configuration and shared fixtures."""

from pathlib import Path
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock

import pytest
from PIL import Image
from playwright.async_api import Page

from dasite.models.comparison import CompareSummary, ComparisonResult, Region, ThresholdDecision
from dasite.models.config import CompareOptions, DasiteConfig, ViewportConfig


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Output directory for a dasite run (not created up front)."""
    return tmp_path / "dasite"


@pytest.fixture
def dasite_config(output_dir: Path) -> DasiteConfig:
    """Create a test configuration that writes into a temp directory."""
    return DasiteConfig(
        output_dir=str(output_dir),
        viewport=ViewportConfig(width=800, height=600),
        navigation_timeout_ms=5000,
        navigation_retries=0,
    )


@pytest.fixture
def compare_options() -> CompareOptions:
    return CompareOptions()


@pytest.fixture
def temp_config_file(dasite_config: DasiteConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "dasite.json"
    dasite_config.save(config_file)
    return config_file


# ============================================================================
# Image Fixtures
# ============================================================================


def create_image(
    path: Path,
    size: tuple[int, int] = (40, 30),
    color: tuple[int, int, int] = (255, 255, 255),
    rect: Optional[tuple[int, int, int, int]] = None,
    rect_color: tuple[int, int, int] = (0, 0, 0),
) -> Path:
    """Write a solid PNG, optionally with a filled rectangle (x1, y1, x2, y2 inclusive)."""
    img = Image.new("RGBA", size, color + (255,))
    if rect is not None:
        x1, y1, x2, y2 = rect
        for y in range(y1, y2 + 1):
            for x in range(x1, x2 + 1):
                img.putpixel((x, y), rect_color + (255,))
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path)
    return path


@pytest.fixture
def image_factory():
    """Fixture that provides the create_image helper."""
    return create_image


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def changed_result(tmp_path: Path) -> ComparisonResult:
    """A comparison result with one changed region and real image files."""
    target = "example_com_about"
    base = create_image(tmp_path / target / "baseline.png")
    current = create_image(tmp_path / target / "current.png", rect=(5, 5, 14, 9))
    diff = create_image(tmp_path / target / "diff.png", rect=(5, 5, 14, 9), rect_color=(255, 0, 0))
    return ComparisonResult(
        target=target,
        baseline_path=str(base),
        current_path=str(current),
        diff_image_path=str(diff),
        diff_pixels=50,
        total_pixels=1200,
        diff_percentage=50 / 1200 * 100,
        changed=True,
        changed_regions=[Region(x1=5, y1=5, x2=14, y2=9, pixel_count=50)],
        width=40,
        height=30,
    )


@pytest.fixture
def unchanged_result(tmp_path: Path) -> ComparisonResult:
    target = "example_com_"
    base = create_image(tmp_path / target / "baseline.png")
    current = create_image(tmp_path / target / "current.png")
    return ComparisonResult(
        target=target,
        baseline_path=str(base),
        current_path=str(current),
        diff_image_path=None,
        total_pixels=1200,
        width=40,
        height=30,
    )


@pytest.fixture
def compare_summary(changed_result: ComparisonResult, unchanged_result: ComparisonResult) -> CompareSummary:
    return CompareSummary(
        results=[changed_result, unchanged_result],
        baselines_created=["example_com_new"],
        errors={"example_com_broken": "cannot identify image file"},
        message="1 baselines created, re-run to compare\nCompared 2 screenshots\nFound 1 differences",
    )


@pytest.fixture
def failed_decision() -> ThresholdDecision:
    return ThresholdDecision(
        passed=False,
        max_diff_percentage=4.17,
        threshold=0.0,
        message="Visual changes exceed threshold: max change 4.17% > threshold 0.00% (1 changed screenshot(s))",
    )


# ============================================================================
# Browser Fakes
# ============================================================================


class FakePage:
    """In-memory stand-in for a Playwright page over a fixed link graph.

    ``site`` maps a URL to the raw hrefs its document contains. Navigating to
    a URL listed in ``failing`` raises, as a refused connection would.
    """

    def __init__(self, site: dict[str, list[str]], failing: Optional[set[str]] = None):
        self.site = site
        self.failing = failing or set()
        self.url = "about:blank"
        self.visits: list[str] = []
        self.screenshots: list[str] = []

    async def goto(self, url: str, wait_until: str = "load", timeout: int = 30000):
        self.visits.append(url)
        if url in self.failing:
            raise Exception(f"net::ERR_CONNECTION_REFUSED at {url}")
        self.url = url
        return SimpleNamespace(status=200 if url in self.site else 404)

    async def evaluate(self, script: str):
        return list(self.site.get(self.url, []))

    async def screenshot(self, path: str, full_page: bool = True):
        self.screenshots.append(path)
        shade = (len(self.screenshots) * 37) % 256
        Image.new("RGBA", (20, 10), (shade, shade, shade, 255)).save(path)


@pytest.fixture
def link_graph() -> dict[str, list[str]]:
    """Seed links to A and B; A links back to seed and on to C; B has none."""
    return {
        "https://site.test/": ["/a", "b", "https://external.test/", "#top"],
        "https://site.test/a": ["/", "/c", "javascript:void(0)"],
        "https://site.test/b": [],
        "https://site.test/c": ["https://site.test/a#section"],
    }


@pytest.fixture
def fake_page(link_graph: dict[str, list[str]]) -> FakePage:
    return FakePage(link_graph)


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "https://example.com/"
    page.goto = AsyncMock()
    page.screenshot = AsyncMock()
    page.evaluate = AsyncMock(return_value=[])
    return page


@pytest.fixture
def page_factory():
    """Fixture that provides the FakePage class for custom link graphs."""
    return FakePage
