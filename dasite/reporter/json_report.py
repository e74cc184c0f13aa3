"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from dasite.models.comparison import CompareSummary, ThresholdDecision


def generate_json_report(
    summary: CompareSummary,
    decision: Optional[ThresholdDecision],
    output_path: Path,
) -> None:
    """Write a machine-readable JSON report."""
    report = summary.model_dump()
    report["changed_count"] = len(summary.changed)
    report["max_diff_percentage"] = summary.max_diff_percentage
    report["decision"] = decision.model_dump() if decision is not None else None

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
