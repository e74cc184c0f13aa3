"""Report generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dasite.models.comparison import CompareSummary, ThresholdDecision
from dasite.models.config import DasiteConfig

from .html_report import generate_index_report, generate_target_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "results.json"


class Reporter:
    """Generates reports from comparison results."""

    def __init__(self, config: DasiteConfig):
        self.config = config

    @property
    def reports_dir(self) -> Path:
        return self.config.output_path / "reports"

    def generate_reports(
        self,
        summary: CompareSummary,
        decision: Optional[ThresholdDecision] = None,
        output_dir: Optional[Path] = None,
    ) -> dict[str, str]:
        """Generate the HTML and JSON reports. Returns format -> file path."""
        out_dir = output_dir or self.reports_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}
        logger.debug("Report output directory: %s", out_dir)

        for result in summary.results:
            generate_target_report(result, out_dir)
        logger.debug("Generated %d target reports", len(summary.results))

        path = generate_index_report(summary, out_dir, decision)
        generated["html"] = str(path)
        logger.info("HTML report: %s", path)

        path = out_dir / RESULTS_FILENAME
        generate_json_report(summary, decision, path)
        generated["json"] = str(path)
        logger.info("JSON report: %s", path)

        return generated
