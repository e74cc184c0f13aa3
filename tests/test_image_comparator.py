"""Tests for pixel comparison and diff overlay rendering."""

import numpy as np
import pytest
from PIL import Image

from dasite.comparator.image_comparator import (
    change_mask,
    compare_arrays,
    compare_images,
    load_rgba,
    render_diff,
)
from dasite.models.config import CompareOptions


def _solid(width: int, height: int, rgb=(255, 255, 255)) -> np.ndarray:
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :, :3] = rgb
    arr[:, :, 3] = 255
    return arr


class TestCompareImages:

    def test_identical_images(self, tmp_path, image_factory):
        img = image_factory(tmp_path / "a.png", rect=(3, 3, 10, 10))
        result = compare_images(img, img, tmp_path / "diff.png")

        assert result.diff_pixels == 0
        assert result.diff_percentage == 0
        assert result.changed_regions == []
        assert result.total_pixels == 40 * 30

    def test_changed_rectangle(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png")
        cur = image_factory(tmp_path / "cur.png", rect=(5, 5, 14, 9))

        result = compare_images(base, cur)

        assert result.diff_pixels == 50
        assert result.diff_percentage == pytest.approx(50 / 1200 * 100)
        assert len(result.changed_regions) == 1
        region = result.changed_regions[0]
        assert (region.x1, region.y1, region.x2, region.y2) == (5, 5, 14, 9)
        assert region.pixel_count == 50

    def test_monotonic_in_rectangle_size(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png")
        previous_pixels, previous_pct = 0, 0.0
        for size in (2, 4, 8, 12):
            cur = image_factory(tmp_path / f"cur{size}.png", rect=(1, 1, size, size))
            result = compare_images(base, cur)
            assert result.diff_pixels > previous_pixels
            assert result.diff_percentage >= previous_pct
            previous_pixels, previous_pct = result.diff_pixels, result.diff_percentage

    def test_size_mismatch_compares_overlap(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png", size=(40, 30))
        cur = image_factory(tmp_path / "cur.png", size=(50, 20))

        result = compare_images(base, cur, tmp_path / "diff.png")

        assert result.total_pixels == 40 * 20
        assert result.diff_pixels == 0
        assert (result.width, result.height) == (50, 30)
        with Image.open(tmp_path / "diff.png") as diff:
            assert diff.size == (50, 30)

    def test_writes_diff_and_creates_parents(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png")
        cur = image_factory(tmp_path / "cur.png", rect=(0, 0, 4, 4))
        diff_path = tmp_path / "nested" / "dir" / "diff.png"

        compare_images(base, cur, diff_path)

        assert diff_path.exists()

    def test_no_diff_written_without_path(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png")
        compare_images(base, base)
        assert not (tmp_path / "diff.png").exists()

    def test_pixel_threshold_ignores_small_shifts(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png", color=(100, 100, 100))
        cur = image_factory(tmp_path / "cur.png", color=(103, 104, 100))  # distance 5

        assert compare_images(base, cur, options=CompareOptions(pixel_threshold=5)).diff_pixels == 0
        assert compare_images(base, cur, options=CompareOptions(pixel_threshold=4.9)).diff_pixels == 1200


class TestChangeMask:

    def test_alpha_ignored(self):
        a = _solid(4, 4)
        b = a.copy()
        b[:, :, 3] = 0
        assert not change_mask(a, b).any()

    def test_euclidean_distance(self):
        a = _solid(1, 1, (0, 0, 0))
        b = _solid(1, 1, (3, 4, 0))
        assert change_mask(a, b, 4.99).all()
        assert not change_mask(a, b, 5.0).any()

    def test_overlap_shape(self):
        assert change_mask(_solid(10, 5), _solid(6, 8)).shape == (5, 6)


class TestRenderDiff:

    def test_blends_changed_pixels(self):
        current = _solid(3, 1, (0, 0, 255))
        mask = np.array([[False, True, False]])

        diff = np.array(render_diff(current, mask, (3, 1), (255, 0, 0), 0.5))

        assert tuple(diff[0, 0]) == (0, 0, 255, 255)
        assert tuple(diff[0, 1]) == (128, 0, 128, 255)
        assert tuple(diff[0, 2]) == (0, 0, 255, 255)

    def test_full_alpha_paints_highlight(self):
        current = _solid(2, 2, (10, 20, 30))
        mask = np.ones((2, 2), dtype=bool)
        diff = np.array(render_diff(current, mask, (2, 2), (0, 255, 0), 1.0))
        assert (diff[:, :, :3] == (0, 255, 0)).all()

    def test_zero_alpha_is_passthrough(self):
        current = _solid(2, 2, (10, 20, 30))
        mask = np.ones((2, 2), dtype=bool)
        diff = np.array(render_diff(current, mask, (2, 2), (0, 255, 0), 0.0))
        assert (diff == current).all()

    def test_canvas_larger_than_current_is_transparent(self):
        current = _solid(2, 2)
        mask = np.zeros((2, 2), dtype=bool)
        diff = np.array(render_diff(current, mask, (4, 3), (255, 0, 0), 0.5))
        assert diff.shape == (3, 4, 4)
        assert diff[2, 3, 3] == 0


class TestCompareArrays:

    def test_empty_overlap(self):
        comparison, mask = compare_arrays(_solid(0, 5), _solid(5, 5))
        assert comparison.total_pixels == 0
        assert comparison.diff_percentage == 0.0
        assert mask.size == 0

    def test_custom_highlight(self, tmp_path, image_factory):
        base = image_factory(tmp_path / "base.png", color=(0, 0, 0))
        cur = image_factory(tmp_path / "cur.png", color=(0, 0, 0), rect=(0, 0, 0, 0), rect_color=(255, 255, 255))
        options = CompareOptions(highlight_color="00ff00", alpha=1.0, min_region_pixels=0)

        compare_images(base, cur, tmp_path / "diff.png", options)

        diff = load_rgba(tmp_path / "diff.png")
        assert tuple(diff[0, 0]) == (0, 255, 0, 255)
        assert tuple(diff[1, 1]) == (0, 0, 0, 255)
