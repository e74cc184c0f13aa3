"""Comparison data structures produced by the image comparator and baseline store."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class Region(BaseModel):
    """Axis-aligned bounding box around a cluster of changed pixels."""

    x1: int
    y1: int
    x2: int
    y2: int
    pixel_count: int = 0

    @model_validator(mode="after")
    def check_bounds(self) -> "Region":
        if self.x1 > self.x2 or self.y1 > self.y2:
            raise ValueError(f"Invalid region bounds ({self.x1},{self.y1})-({self.x2},{self.y2})")
        return self

    @property
    def width(self) -> int:
        return self.x2 - self.x1 + 1

    @property
    def height(self) -> int:
        return self.y2 - self.y1 + 1


class ImageComparison(BaseModel):
    """Raw output of comparing two images."""

    diff_pixels: int = 0
    total_pixels: int = 0
    diff_percentage: float = 0.0
    changed_regions: list[Region] = Field(default_factory=list)
    width: int = 0
    height: int = 0


class ComparisonResult(BaseModel):
    """Comparison outcome for one crawl target."""

    target: str  # identity directory name
    baseline_path: str
    current_path: str
    diff_image_path: Optional[str] = None
    diff_pixels: int = 0
    total_pixels: int = 0
    diff_percentage: float = 0.0
    changed: bool = False
    changed_regions: list[Region] = Field(default_factory=list)
    width: int = 0
    height: int = 0


class CompareSummary(BaseModel):
    """Outcome of comparing every target in an output directory."""

    results: list[ComparisonResult] = Field(default_factory=list)
    baselines_created: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    message: str = ""

    @property
    def changed(self) -> list[ComparisonResult]:
        return [r for r in self.results if r.changed]

    @property
    def max_diff_percentage(self) -> float:
        return max((r.diff_percentage for r in self.changed), default=0.0)


class ThresholdDecision(BaseModel):
    passed: bool
    max_diff_percentage: float = 0.0
    threshold: float = 0.0
    message: str = ""
