"""Crawl result data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CrawlResult(BaseModel):
    start_url: str
    visited: set[str] = Field(default_factory=set)
    screenshots: list[str] = Field(default_factory=list)  # file paths
    failed: dict[str, str] = Field(default_factory=dict)  # url -> error message
    duration_seconds: float = 0.0

    @property
    def pages_captured(self) -> int:
        return len(self.screenshots)
