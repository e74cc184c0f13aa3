"""Pixel-level image comparison with a highlighted diff overlay."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from dasite.models.comparison import ImageComparison
from dasite.models.config import CompareOptions

from .regions import cluster_regions

logger = logging.getLogger(__name__)


def load_rgba(path: str | Path) -> np.ndarray:
    """Decode an image file into a (height, width, 4) uint8 array."""
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"), dtype=np.uint8)


def change_mask(baseline: np.ndarray, current: np.ndarray, pixel_threshold: float = 0.0) -> np.ndarray:
    """Boolean mask of the overlapping extent where the RGB distance exceeds the threshold.

    Distance is Euclidean in RGB space: sqrt(dr^2 + dg^2 + db^2). Alpha is ignored.
    """
    height = min(baseline.shape[0], current.shape[0])
    width = min(baseline.shape[1], current.shape[1])
    a = baseline[:height, :width, :3].astype(np.int32)
    b = current[:height, :width, :3].astype(np.int32)
    distance = np.sqrt(((a - b) ** 2).sum(axis=2))
    return distance > pixel_threshold


def render_diff(
    current: np.ndarray,
    mask: np.ndarray,
    canvas_size: tuple[int, int],
    highlight_rgb: tuple[int, int, int],
    alpha: float,
) -> Image.Image:
    """Overlay the highlight colour on changed pixels of the current image.

    Unchanged pixels are copied through from ``current``; the canvas is
    ``canvas_size`` (width, height) and transparent where ``current`` has no pixels.
    """
    width, height = canvas_size
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[: current.shape[0], : current.shape[1]] = current

    overlap = canvas[: mask.shape[0], : mask.shape[1]]
    if mask.any():
        color = np.array(highlight_rgb, dtype=np.float64)
        changed = overlap[mask]
        blended = changed[:, :3].astype(np.float64) * (1.0 - alpha) + color * alpha
        changed[:, :3] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
        changed[:, 3] = 255
        overlap[mask] = changed

    return Image.fromarray(canvas, "RGBA")


def compare_arrays(
    baseline: np.ndarray,
    current: np.ndarray,
    options: Optional[CompareOptions] = None,
) -> tuple[ImageComparison, np.ndarray]:
    """Compare two decoded images. Returns the metrics and the change mask."""
    opts = options or CompareOptions()
    width = max(baseline.shape[1], current.shape[1])
    height = max(baseline.shape[0], current.shape[0])

    mask = change_mask(baseline, current, opts.pixel_threshold)
    total_pixels = int(mask.size)
    diff_pixels = int(mask.sum())
    diff_percentage = (diff_pixels / total_pixels * 100) if total_pixels else 0.0

    regions = []
    if diff_pixels:
        regions = cluster_regions(mask, proximity=opts.proximity, min_pixels=opts.min_region_pixels)

    comparison = ImageComparison(
        diff_pixels=diff_pixels,
        total_pixels=total_pixels,
        diff_percentage=diff_percentage,
        changed_regions=regions,
        width=width,
        height=height,
    )
    return comparison, mask


def compare_images(
    baseline_path: str | Path,
    current_path: str | Path,
    diff_path: Optional[str | Path] = None,
    options: Optional[CompareOptions] = None,
) -> ImageComparison:
    """Compare a baseline and a current screenshot.

    Images of different sizes are compared over their overlapping extent; the
    diff image covers the larger canvas. When ``diff_path`` is given the
    highlighted overlay is written there as PNG.
    """
    opts = options or CompareOptions()
    baseline = load_rgba(baseline_path)
    current = load_rgba(current_path)

    if baseline.shape[:2] != current.shape[:2]:
        logger.debug(
            "Size mismatch: baseline %dx%d, current %dx%d, comparing overlap only",
            baseline.shape[1], baseline.shape[0], current.shape[1], current.shape[0],
        )

    comparison, mask = compare_arrays(baseline, current, opts)

    if diff_path is not None:
        diff_path = Path(diff_path)
        diff_path.parent.mkdir(parents=True, exist_ok=True)
        diff_image = render_diff(
            current, mask, (comparison.width, comparison.height), opts.highlight_rgb, opts.alpha
        )
        diff_image.save(diff_path)

    logger.debug(
        "Compared %s: %d/%d pixels differ (%.4f%%), %d regions",
        current_path, comparison.diff_pixels, comparison.total_pixels,
        comparison.diff_percentage, len(comparison.changed_regions),
    )
    return comparison
