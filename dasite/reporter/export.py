"""Export HTML reports to PDF, JSON or Markdown."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Optional

from playwright.async_api import async_playwright

from dasite.errors import ExportError

from .html_report import DATA_SCRIPT_ID

logger = logging.getLogger(__name__)

FORMAT_ALIASES = {
    "pdf": "pdf",
    "json": "json",
    "json5": "json",
    "markdown": "markdown",
    "md": "markdown",
}
EXTENSIONS = {"pdf": ".pdf", "json": ".json", "markdown": ".md"}

_DATA_RE = re.compile(
    rf'<script type="application/json" id="{DATA_SCRIPT_ID}">\s*(.*?)\s*</script>',
    re.DOTALL,
)


def resolve_format(fmt: str) -> str:
    """Map a user-supplied format name to its canonical form."""
    canonical = FORMAT_ALIASES.get(fmt.strip().lower())
    if canonical is None:
        raise ValueError(f"Unsupported export format: {fmt}")
    return canonical


def default_output_path(report_path: Path, fmt: str) -> Path:
    return Path(report_path).with_suffix(EXTENSIONS[resolve_format(fmt)])


def extract_report_data(report_html: str) -> dict:
    """Read back the JSON data block embedded in a dasite HTML report."""
    match = _DATA_RE.search(report_html)
    if not match:
        raise ExportError("Report does not contain embedded result data")
    try:
        return json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise ExportError(f"Embedded result data is not valid JSON: {e}") from e


def _result_markdown(result: dict, heading: str = "##") -> list[str]:
    status = "changed" if result.get("changed") else "unchanged"
    lines = [
        f"{heading} {result['target']}",
        "",
        f"- Status: **{status}**",
        f"- Changed: {result.get('diff_percentage', 0.0):.2f}% "
        f"({result.get('diff_pixels', 0)} of {result.get('total_pixels', 0)} pixels)",
        f"- Size: {result.get('width', 0)} x {result.get('height', 0)}",
    ]
    regions = result.get("changed_regions") or []
    if regions:
        lines += ["", "| # | Top left | Bottom right | Pixels |", "|---|---|---|---|"]
        for i, r in enumerate(regions, 1):
            lines.append(f"| {i} | ({r['x1']}, {r['y1']}) | ({r['x2']}, {r['y2']}) | {r['pixel_count']} |")
    lines.append("")
    return lines


def render_markdown(data: dict) -> str:
    """Render embedded report data (target or summary) as Markdown."""
    if data.get("kind") == "target":
        lines = ["# Visual Comparison", ""] + _result_markdown(data["result"])
        return "\n".join(lines)

    summary = data.get("summary") or {}
    results = summary.get("results") or []
    changed = [r for r in results if r.get("changed")]
    lines = ["# Visual Regression Report", ""]
    if summary.get("message"):
        lines += [summary["message"], ""]

    decision = data.get("decision")
    if decision:
        verdict = "PASSED" if decision.get("passed") else "FAILED"
        lines += [f"**{verdict}**: {decision.get('message', '')}", ""]

    lines += [
        "| Target | Status | Changed | Regions |",
        "|---|---|---|---|",
    ]
    for r in results:
        status = "changed" if r.get("changed") else "unchanged"
        lines.append(
            f"| {r['target']} | {status} | {r.get('diff_percentage', 0.0):.2f}% | {len(r.get('changed_regions') or [])} |"
        )
    for identity in summary.get("baselines_created") or []:
        lines.append(f"| {identity} | baseline created | - | - |")
    for identity, error in (summary.get("errors") or {}).items():
        lines.append(f"| {identity} | error: {error} | - | - |")
    lines.append("")

    if changed:
        lines += ["## Changes", ""]
        for r in changed:
            lines += _result_markdown(r, heading="###")
    return "\n".join(lines)


async def _render_pdf(report_path: Path, output_path: Path) -> None:
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await browser.new_page()
            await page.goto(report_path.resolve().as_uri(), wait_until="load")
            await page.pdf(path=str(output_path), format="A4", print_background=True)
        finally:
            await browser.close()


def export_report(report_path: Path, fmt: str = "pdf", output_path: Optional[Path] = None) -> Path:
    """Export an HTML report. Returns the written file path.

    Raises ValueError for an unknown format and FileNotFoundError when the
    report does not exist.
    """
    canonical = resolve_format(fmt)
    report_path = Path(report_path)
    if not report_path.exists():
        raise FileNotFoundError(f"Report not found: {report_path}")

    output_path = Path(output_path) if output_path else default_output_path(report_path, canonical)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if canonical == "pdf":
        try:
            asyncio.run(_render_pdf(report_path, output_path))
        except Exception as e:
            raise ExportError(f"PDF export failed: {e}") from e
    else:
        data = extract_report_data(report_path.read_text(encoding="utf-8"))
        if canonical == "json":
            with open(output_path, "w") as f:
                json.dump(data, f, indent=2)
        else:
            output_path.write_text(render_markdown(data), encoding="utf-8")

    logger.info("Exported %s report to %s", canonical, output_path)
    return output_path
