"""Run outcome data structures returned by the orchestrator."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .comparison import CompareSummary, ThresholdDecision
from .crawl import CrawlResult


class RunOutcome(BaseModel):
    url: Optional[str] = None
    crawl: Optional[CrawlResult] = None
    summary: Optional[CompareSummary] = None
    decision: Optional[ThresholdDecision] = None
    reports: dict[str, str] = Field(default_factory=dict)  # format -> file path
    additional_links: list[str] = Field(default_factory=list)  # single-page mode only
    duration_seconds: float = 0.0

    @property
    def exit_code(self) -> int:
        """0 on success or a baseline-creating first run, 1 otherwise."""
        if self.crawl is not None and not self.crawl.screenshots:
            return 1
        if self.summary is not None and self.summary.errors:
            return 1
        if self.decision is not None and not self.decision.passed:
            return 1
        return 0
