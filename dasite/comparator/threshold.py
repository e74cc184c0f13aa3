"""Pass/fail decision for a comparison run."""

from __future__ import annotations

import logging

from dasite.models.comparison import ComparisonResult, ThresholdDecision

logger = logging.getLogger(__name__)


def evaluate_threshold(results: list[ComparisonResult], threshold: float = 0.0) -> ThresholdDecision:
    """Fail when the largest change among changed targets exceeds ``threshold``.

    The comparison is strictly greater-than, so a change equal to the threshold
    passes. With the default of 0 any detected difference fails the run.
    """
    changed = [r for r in results if r.changed]
    max_diff = max((r.diff_percentage for r in changed), default=0.0)
    passed = not changed or max_diff <= threshold

    if not changed:
        message = "No changes detected"
    elif passed:
        message = (
            f"{len(changed)} changed screenshot(s), max change {max_diff:.2f}% "
            f"within threshold {threshold:.2f}%"
        )
    else:
        message = (
            f"Visual changes exceed threshold: max change {max_diff:.2f}% "
            f"> threshold {threshold:.2f}% ({len(changed)} changed screenshot(s))"
        )
        logger.warning(message)

    return ThresholdDecision(
        passed=passed,
        max_diff_percentage=max_diff,
        threshold=threshold,
        message=message,
    )
