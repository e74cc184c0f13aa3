"""Configuration models for dasite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class CompareOptions(BaseModel):
    """Knobs for the pixel comparison.

    ``pixel_threshold`` is the per-pixel sensitivity (Euclidean distance in RGB
    space) and is independent of the overall pass/fail ``threshold`` on
    :class:`DasiteConfig`.
    """

    highlight_color: str = "#FF0000"
    alpha: float = Field(default=0.5, ge=0.0, le=1.0)
    pixel_threshold: float = Field(default=0.0, ge=0.0)
    proximity: int = Field(default=20, ge=0)
    min_region_pixels: int = Field(default=10, ge=0)

    @field_validator("highlight_color")
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        value = v.strip()
        if not value.startswith("#"):
            value = "#" + value
        if len(value) != 7:
            raise ValueError(f"highlight_color must look like #RRGGBB, got '{v}'")
        int(value[1:], 16)
        return value.upper()

    @property
    def highlight_rgb(self) -> tuple[int, int, int]:
        c = self.highlight_color
        return int(c[1:3], 16), int(c[3:5], 16), int(c[5:7], 16)


class DasiteConfig(BaseModel):
    # Output
    output_dir: str = "./dasite"

    # Capture
    crawl: bool = True
    headless: bool = True
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    user_agent: Optional[str] = None
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "networkidle"
    navigation_timeout_ms: int = 30000
    navigation_retries: int = 2
    max_pages: Optional[int] = None  # None crawls until the queue is empty

    # Comparison
    compare: bool = True
    threshold: float = Field(default=0.0, ge=0.0)
    compare_options: CompareOptions = Field(default_factory=CompareOptions)

    # Reporting
    report: bool = True

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @classmethod
    def load(cls, path: str | Path) -> "DasiteConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
