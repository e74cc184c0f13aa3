"""Greedy clustering of changed pixels into bounding boxes.

The scan is a greedy single pass in raster order with one open region at a
time. A changed pixel joins the open region when it lies within ``proximity``
pixels of the region's bounding box on both axes; otherwise the open region is
closed (kept only if it holds more than ``min_pixels`` pixels) and a new one
starts at that pixel. Regions that only touch later in scan order are not
re-merged.

Pixels are consumed as horizontal runs: once the first pixel of a run has
joined or opened a region, every following pixel of the run is adjacent to
that region, so the result matches a pixel-by-pixel scan whenever
``proximity >= 1``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from dasite.models.comparison import Region


@dataclass
class _OpenRegion:
    x1: int
    y1: int
    x2: int
    y2: int
    pixel_count: int

    def is_near(self, x: int, y: int, proximity: int) -> bool:
        return (
            self.x1 - proximity <= x <= self.x2 + proximity
            and self.y1 - proximity <= y <= self.y2 + proximity
        )

    def extend(self, x_start: int, x_end: int, y: int) -> None:
        self.x1 = min(self.x1, x_start)
        self.x2 = max(self.x2, x_end)
        self.y1 = min(self.y1, y)
        self.y2 = max(self.y2, y)
        self.pixel_count += x_end - x_start + 1

    def to_region(self) -> Region:
        return Region(x1=self.x1, y1=self.y1, x2=self.x2, y2=self.y2, pixel_count=self.pixel_count)


def iter_runs(mask: np.ndarray) -> Iterator[tuple[int, int, int]]:
    """Yield ``(y, x_start, x_end)`` for each horizontal run of True, in raster order."""
    rows = np.flatnonzero(mask.any(axis=1))
    for y in rows:
        padded = np.concatenate(([0], mask[y].astype(np.int8), [0]))
        edges = np.diff(padded)
        starts = np.flatnonzero(edges == 1)
        ends = np.flatnonzero(edges == -1) - 1
        for xs, xe in zip(starts, ends):
            yield int(y), int(xs), int(xe)


def cluster_regions(mask: np.ndarray, proximity: int = 20, min_pixels: int = 10) -> list[Region]:
    """Cluster a boolean change mask (height x width) into bounding boxes."""
    regions: list[Region] = []
    current: _OpenRegion | None = None

    def close(region: _OpenRegion | None) -> None:
        if region is not None and region.pixel_count > min_pixels:
            regions.append(region.to_region())

    for y, run_start, run_end in iter_runs(mask):
        if proximity > 0:
            segments = [(run_start, run_end)]
        else:
            # With no slack even neighbouring pixels must already be inside the box
            segments = [(x, x) for x in range(run_start, run_end + 1)]

        for xs, xe in segments:
            if current is not None and current.is_near(xs, y, proximity):
                current.extend(xs, xe, y)
            else:
                close(current)
                current = _OpenRegion(xs, y, xe, y, xe - xs + 1)

    close(current)
    return regions
