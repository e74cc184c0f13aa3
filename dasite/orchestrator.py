"""Run orchestrator — drives one capture-then-compare run against an output directory."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from dasite.baseline.store import BaselineStore
from dasite.comparator.threshold import evaluate_threshold
from dasite.crawler.browser import browser_session, navigate
from dasite.crawler.crawler import Crawler
from dasite.crawler.link_extractor import extract_links
from dasite.crawler.screenshot import take_screenshot
from dasite.models.baseline import BaselineVersion
from dasite.models.comparison import CompareSummary
from dasite.models.config import DasiteConfig
from dasite.models.crawl import CrawlResult
from dasite.models.run import RunOutcome
from dasite.reporter.export import export_report
from dasite.reporter.html_report import INDEX_FILENAME
from dasite.reporter.reporter import Reporter
from dasite.url_utils import normalize_url

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates one dasite invocation against an output directory."""

    def __init__(self, config: DasiteConfig):
        self.config = config
        self.store = BaselineStore(config.output_path)

    # ------------------------------------------------------------------
    # Capture + compare
    # ------------------------------------------------------------------

    def run(self, url: str) -> RunOutcome:
        """Capture ``url`` (crawling unless disabled), then compare and report."""
        return asyncio.run(self._run(url))

    async def _run(self, url: str) -> RunOutcome:
        start = time.time()
        url = normalize_url(url)
        outcome = RunOutcome(url=url)
        logger.info("=== Starting dasite run for %s ===", url)

        # Stage 1: Capture
        stage_start = time.time()
        if self.config.crawl:
            outcome.crawl = await self._crawl(url)
        else:
            outcome.crawl, outcome.additional_links = await self._capture_page(url)
        logger.info("--- Capture complete: %d screenshots in %.1fs ---",
                    outcome.crawl.pages_captured, time.time() - stage_start)

        # Stage 2: Compare
        targets = [Path(p).parent.name for p in outcome.crawl.screenshots]
        if self.config.compare and targets:
            outcome.summary, outcome.decision, outcome.reports = self._compare(targets)

        outcome.duration_seconds = round(time.time() - start, 2)
        logger.info("=== Run complete in %.1fs ===", outcome.duration_seconds)
        return outcome

    def capture(self, url: str) -> CrawlResult:
        """Capture only, without comparing."""
        return asyncio.run(self._capture(url))

    async def _capture(self, url: str) -> CrawlResult:
        url = normalize_url(url)
        if self.config.crawl:
            return await self._crawl(url)
        result, _ = await self._capture_page(url)
        return result

    async def _crawl(self, url: str) -> CrawlResult:
        async with browser_session(self.config) as page:
            crawler = Crawler.from_config(page, self.config)
            return await crawler.crawl(url)

    async def _capture_page(self, url: str) -> tuple[CrawlResult, list[str]]:
        """Capture a single page. Navigation errors propagate to the caller."""
        start = time.time()
        result = CrawlResult(start_url=url)
        async with browser_session(self.config) as page:
            await navigate(
                page, url,
                wait_until=self.config.wait_until,
                timeout_ms=self.config.navigation_timeout_ms,
                retries=self.config.navigation_retries,
            )
            path = await take_screenshot(page, url, self.config.output_path)
            links = await extract_links(page, url)

        result.visited.add(url)
        result.screenshots.append(str(path))
        result.duration_seconds = round(time.time() - start, 2)
        if links:
            logger.info("Found %d additional links", len(links))
        return result, links

    def compare_only(self) -> RunOutcome:
        """Compare every existing capture in the output directory against its baseline."""
        outcome = RunOutcome()
        outcome.summary, outcome.decision, outcome.reports = self._compare()
        return outcome

    def _compare(self, targets: Optional[list[str]] = None):
        logger.info("--- Comparing against baselines ---")
        summary = self.store.compare_all(self.config.compare_options, targets)
        for line in summary.message.splitlines():
            logger.info(line)

        decision = evaluate_threshold(summary.results, self.config.threshold)

        reports: dict[str, str] = {}
        if self.config.report and summary.results:
            reports = self._report(summary, decision)
        return summary, decision, reports

    def _report(self, summary: CompareSummary, decision) -> dict[str, str]:
        reporter = Reporter(self.config)
        return reporter.generate_reports(summary, decision)

    # ------------------------------------------------------------------
    # Baseline management
    # ------------------------------------------------------------------

    def accept(self, version: Optional[str] = None) -> int:
        """Promote current captures to baselines, optionally saving a named version."""
        return self.store.accept(version)

    def prune(self, older_than_days: float) -> int:
        return self.store.prune(older_than_days)

    def export_baselines(self, dest_dir: Path) -> int:
        return self.store.export_to(dest_dir)

    def import_baselines(self, source_dir: Path) -> int:
        logger.info("Importing baselines from %s", source_dir)
        return self.store.import_from(source_dir)

    def list_versions(self) -> list[BaselineVersion]:
        return self.store.list_versions()

    def restore_version(self, tag: str) -> int:
        return self.store.restore_version(tag)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    @property
    def index_report_path(self) -> Path:
        return Reporter(self.config).reports_dir / INDEX_FILENAME

    def export(self, report_path: Optional[Path], fmt: str = "pdf", output_path: Optional[Path] = None) -> Path:
        """Export an HTML report. Defaults to the index report of the output directory."""
        return export_report(Path(report_path) if report_path else self.index_report_path, fmt, output_path)
