"""HTML report generator — self-contained pages with embedded before/after/diff images."""

from __future__ import annotations

import base64
import html
import json
import logging
from pathlib import Path
from typing import Optional

from dasite.models.comparison import CompareSummary, ComparisonResult, ThresholdDecision

logger = logging.getLogger(__name__)

DATA_SCRIPT_ID = "dasite-data"
REPORT_FILENAME = "report.html"
INDEX_FILENAME = "index.html"

_STYLE = """
  :root { --pass: #22c55e; --fail: #ef4444; --skip: #eab308; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; --accent: #6366f1; }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }
  .container { max-width: 1400px; margin: 0 auto; }
  h1 { font-size: 1.8rem; margin-bottom: 0.3rem; }
  h2 { font-size: 1rem; color: var(--muted); text-transform: uppercase; letter-spacing: 0.05em; margin: 1rem 0 0.4rem; padding-bottom: 0.25rem; border-bottom: 1px solid var(--border); }
  .meta { color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }
  .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(130px, 1fr)); gap: 0.8rem; margin-bottom: 1.5rem; }
  .stat { background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }
  .stat .value { font-size: 1.8rem; font-weight: 700; }
  .stat .label { font-size: 0.8rem; color: var(--muted); }
  .stat.pass .value { color: var(--pass); }
  .stat.fail .value { color: var(--fail); }
  .stat.skip .value { color: var(--skip); }
  .badge { display: inline-block; padding: 0.15rem 0.55rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; text-transform: uppercase; white-space: nowrap; }
  .badge.pass { background: #dcfce7; color: #166534; }
  .badge.fail { background: #fecaca; color: #991b1b; }
  .badge.skip { background: #fef9c3; color: #854d0e; }
  .decision { background: var(--card); border-radius: 8px; padding: 1rem 1.2rem; margin-bottom: 1.5rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }
  .decision.pass { border-left: 4px solid var(--pass); }
  .decision.fail { border-left: 4px solid var(--fail); }
  table { width: 100%; border-collapse: collapse; background: var(--card); border-radius: 8px; overflow: hidden; box-shadow: 0 1px 3px rgba(0,0,0,0.08); font-size: 0.88rem; }
  th, td { text-align: left; padding: 0.5rem 0.8rem; border-bottom: 1px solid #f1f5f9; }
  th { color: var(--muted); font-weight: 600; background: #f8fafc; }
  a { color: var(--accent); }
  .images-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 0.8rem; }
  .screenshot-item { text-align: center; }
  .screenshot-item img { width: 100%; border-radius: 6px; border: 1px solid var(--border); cursor: pointer; }
  .screenshot-item img.zoomed { position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; border-radius: 8px; padding: 1rem; }
  .screenshot-label { font-size: 0.75rem; color: var(--muted); margin-top: 0.2rem; }
  .missing { color: var(--muted); font-style: italic; padding: 2rem 0; }
"""


def _embed_image(path: Optional[str]) -> str:
    """Read an image file and return a base64 data URI, or empty string on failure."""
    if not path:
        return ""
    try:
        p = Path(path)
        if not p.exists() or p.stat().st_size == 0:
            return ""
        with open(p, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        suffix = p.suffix.lower()
        mime = "image/png" if suffix == ".png" else "image/jpeg" if suffix in (".jpg", ".jpeg") else "image/webp"
        return f"data:{mime};base64,{data}"
    except OSError as e:
        logger.debug("Could not embed %s: %s", path, e)
        return ""


def _data_script(payload: dict) -> str:
    """Serialize ``payload`` into an inline JSON block that export can read back."""
    data = json.dumps(payload, indent=2, default=str).replace("</", "<\\/")
    return f'<script type="application/json" id="{DATA_SCRIPT_ID}">\n{data}\n</script>'


def _page(title: str, body: str, payload: dict) -> str:
    return f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{html.escape(title)}</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="container">
{body}
</div>
{_data_script(payload)}
</body>
</html>'''


def _image_card(label: str, path: Optional[str]) -> str:
    data_uri = _embed_image(path)
    if not data_uri:
        return f'''
    <div class="screenshot-item">
      <div class="missing">No {html.escape(label.lower())} image</div>
      <div class="screenshot-label">{html.escape(label)}</div>
    </div>'''
    return f'''
    <div class="screenshot-item">
      <img src="{data_uri}" alt="{html.escape(label)}" loading="lazy" onclick="this.classList.toggle('zoomed')"/>
      <div class="screenshot-label">{html.escape(label)}</div>
    </div>'''


def _regions_table(result: ComparisonResult) -> str:
    if not result.changed_regions:
        return '<p class="meta">No changed regions above the minimum cluster size.</p>'
    rows = ""
    for i, region in enumerate(result.changed_regions, 1):
        rows += (
            f"<tr><td>{i}</td><td>({region.x1}, {region.y1})</td><td>({region.x2}, {region.y2})</td>"
            f"<td>{region.width} &times; {region.height}</td><td>{region.pixel_count}</td></tr>"
        )
    return f'''<table>
    <thead><tr><th>#</th><th>Top left</th><th>Bottom right</th><th>Size</th><th>Pixels</th></tr></thead>
    <tbody>{rows}</tbody>
  </table>'''


def generate_target_report(result: ComparisonResult, reports_dir: Path) -> Path:
    """Write ``<reports_dir>/<identity>/report.html`` for one comparison result."""
    output_path = Path(reports_dir) / result.target / REPORT_FILENAME
    output_path.parent.mkdir(parents=True, exist_ok=True)

    status = "fail" if result.changed else "pass"
    label = "CHANGED" if result.changed else "UNCHANGED"
    body = f'''
  <h1>Visual Comparison <span class="badge {status}">{label}</span></h1>
  <p class="meta">Target: {html.escape(result.target)} &middot; {result.width} &times; {result.height}px</p>

  <div class="summary">
    <div class="stat {status}"><div class="value">{result.diff_percentage:.2f}%</div><div class="label">Changed</div></div>
    <div class="stat"><div class="value">{result.diff_pixels}</div><div class="label">Changed Pixels</div></div>
    <div class="stat"><div class="value">{result.total_pixels}</div><div class="label">Compared Pixels</div></div>
    <div class="stat"><div class="value">{len(result.changed_regions)}</div><div class="label">Regions</div></div>
  </div>

  <h2>Images</h2>
  <div class="images-grid">
    {_image_card("Baseline", result.baseline_path)}
    {_image_card("Current", result.current_path)}
    {_image_card("Diff", result.diff_image_path)}
  </div>

  <h2>Changed Regions</h2>
  {_regions_table(result)}
'''
    payload = {"kind": "target", "result": result.model_dump()}
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(_page(f"Visual Comparison: {result.target}", body, payload))

    logger.debug("Target report: %s", output_path)
    return output_path


def generate_index_report(
    summary: CompareSummary,
    reports_dir: Path,
    decision: Optional[ThresholdDecision] = None,
) -> Path:
    """Write ``<reports_dir>/index.html`` linking every per-target report."""
    reports_dir = Path(reports_dir)
    reports_dir.mkdir(parents=True, exist_ok=True)
    output_path = reports_dir / INDEX_FILENAME

    rows = ""
    for r in sorted(summary.results, key=lambda r: (not r.changed, -r.diff_percentage, r.target)):
        status = "fail" if r.changed else "pass"
        link = f"{html.escape(r.target)}/{REPORT_FILENAME}"
        rows += (
            f'<tr><td><a href="{link}">{html.escape(r.target)}</a></td>'
            f'<td><span class="badge {status}">{"changed" if r.changed else "unchanged"}</span></td>'
            f"<td>{r.diff_percentage:.2f}%</td><td>{r.diff_pixels}</td><td>{len(r.changed_regions)}</td></tr>"
        )
    for identity in summary.baselines_created:
        rows += (
            f"<tr><td>{html.escape(identity)}</td><td><span class=\"badge skip\">baseline created</span></td>"
            "<td>&mdash;</td><td>&mdash;</td><td>&mdash;</td></tr>"
        )
    for identity, error in summary.errors.items():
        rows += (
            f"<tr><td>{html.escape(identity)}</td><td><span class=\"badge fail\">error</span></td>"
            f'<td colspan="3">{html.escape(error)}</td></tr>'
        )

    decision_section = ""
    if decision is not None:
        status = "pass" if decision.passed else "fail"
        decision_section = (
            f'<div class="decision {status}"><span class="badge {status}">{"passed" if decision.passed else "failed"}</span> '
            f"{html.escape(decision.message)}</div>"
        )

    body = f'''
  <h1>Visual Regression Report</h1>
  <p class="meta">{html.escape(summary.message).replace(chr(10), " &middot; ")}</p>

  <div class="summary">
    <div class="stat"><div class="value">{len(summary.results)}</div><div class="label">Compared</div></div>
    <div class="stat fail"><div class="value">{len(summary.changed)}</div><div class="label">Changed</div></div>
    <div class="stat pass"><div class="value">{len(summary.results) - len(summary.changed)}</div><div class="label">Unchanged</div></div>
    <div class="stat skip"><div class="value">{len(summary.baselines_created)}</div><div class="label">New Baselines</div></div>
    <div class="stat"><div class="value">{len(summary.errors)}</div><div class="label">Errors</div></div>
  </div>

  {decision_section}

  <table>
    <thead><tr><th>Target</th><th>Status</th><th>Changed</th><th>Pixels</th><th>Regions</th></tr></thead>
    <tbody>{rows}</tbody>
  </table>
'''
    payload = {
        "kind": "summary",
        "summary": summary.model_dump(),
        "decision": decision.model_dump() if decision is not None else None,
    }
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(_page("Visual Regression Report", body, payload))

    logger.debug("Index report: %s", output_path)
    return output_path
