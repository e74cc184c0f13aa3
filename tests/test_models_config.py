"""Tests for configuration models."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from dasite.models.config import CompareOptions, DasiteConfig, ViewportConfig


class TestDasiteConfig:

    def test_defaults(self):
        config = DasiteConfig()
        assert config.output_dir == "./dasite"
        assert config.crawl is True
        assert config.compare is True
        assert config.report is True
        assert config.threshold == 0.0
        assert config.headless is True
        assert config.wait_until == "networkidle"
        assert config.viewport == ViewportConfig(width=1280, height=720)
        assert config.output_path == Path("./dasite")

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            DasiteConfig(threshold=-1)

    def test_invalid_wait_until_rejected(self):
        with pytest.raises(ValidationError):
            DasiteConfig(wait_until="whenever")

    def test_save_and_load(self, tmp_path):
        config = DasiteConfig(output_dir="out", threshold=1.5, crawl=False, max_pages=5)
        path = tmp_path / "nested" / "dasite.json"
        config.save(path)

        loaded = DasiteConfig.load(path)
        assert loaded == config
        assert json.loads(path.read_text())["compare_options"]["proximity"] == 20

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DasiteConfig.load(tmp_path / "missing.json")

    def test_load_partial_file(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"threshold": 2, "viewport": {"width": 375}}))
        config = DasiteConfig.load(path)
        assert config.threshold == 2.0
        assert config.viewport.width == 375
        assert config.viewport.height == 720


class TestCompareOptions:

    def test_defaults(self):
        options = CompareOptions()
        assert options.highlight_color == "#FF0000"
        assert options.highlight_rgb == (255, 0, 0)
        assert options.alpha == 0.5
        assert options.pixel_threshold == 0.0
        assert options.proximity == 20
        assert options.min_region_pixels == 10

    @pytest.mark.parametrize("value,expected", [
        ("#00ff00", "#00FF00"),
        ("0000ff", "#0000FF"),
        (" #abcdef ", "#ABCDEF"),
    ])
    def test_color_normalized(self, value, expected):
        assert CompareOptions(highlight_color=value).highlight_color == expected

    @pytest.mark.parametrize("value", ["red", "#12345", "#GGGGGG"])
    def test_bad_color_rejected(self, value):
        with pytest.raises(ValidationError):
            CompareOptions(highlight_color=value)

    def test_alpha_range(self):
        with pytest.raises(ValidationError):
            CompareOptions(alpha=1.5)
