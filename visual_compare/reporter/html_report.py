"""HTML report generator — produces a self-contained visual comparison report."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from visual_compare.artifacts import ArtifactLayout
from visual_compare.models.comparison import (
    PASS_THRESHOLD,
    ComparisonResult,
    RunResult,
    Status,
    sort_results,
    summarize,
)
from visual_compare.url_utils import page_url

from .regression_detector import Regression

logger = logging.getLogger(__name__)

_STATUS_TEXT = {Status.PASS: "Pass", Status.FAIL: "Fail", Status.ERROR: "Error"}


def _embed_image(path: Path) -> str:
    """Read an image file and return a base64 data URI, or empty string if unavailable."""
    try:
        if not path.exists() or path.stat().st_size == 0:
            return ""
        with open(path, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        return f"data:image/png;base64,{data}"
    except OSError as e:
        logger.warning("Could not embed %s: %s", path, e)
        return ""


def _image_cell(path: Path, label: str) -> str:
    data_uri = _embed_image(path)
    if not data_uri:
        return f'<div class="image-wrapper image-missing"><div class="placeholder">N/A</div><div class="image-label">{html.escape(label)}</div></div>'
    return f'''<div class="image-wrapper">
            <img src="{data_uri}" alt="{html.escape(label)}" onclick="openModal(this.src)"/>
            <div class="image-label">{html.escape(label)}</div>
          </div>'''


def _build_row(
    result: ComparisonResult,
    run_result: RunResult,
    layout: ArtifactLayout,
    baseline_label: str,
    candidate_label: str,
) -> str:
    """Build the table row for a single page."""
    status = result.status
    artifacts = layout.for_page(run_result.device, result.page_path)
    baseline_href = html.escape(page_url(run_result.baseline_url, result.page_path))
    candidate_href = html.escape(page_url(run_result.candidate_url, result.page_path))
    error_html = ""
    if result.error:
        error_html = f'<div class="row-error">{html.escape(result.error)}</div>'

    return f'''
    <tr class="row-{status.value}">
      <td>
        <div class="page-path">{html.escape(result.page_path)}</div>
        <a href="{baseline_href}" target="_blank" class="baseline">{html.escape(baseline_label)}</a> |
        <a href="{candidate_href}" target="_blank" class="candidate">{html.escape(candidate_label)}</a>
      </td>
      <td>{html.escape(result.similarity_label)}{error_html}</td>
      <td><span class="badge {status.value}">{_STATUS_TEXT[status]}</span></td>
      <td>
        <div class="image-container">
          {_image_cell(artifacts.baseline, baseline_label)}
          {_image_cell(artifacts.candidate, candidate_label)}
          {_image_cell(artifacts.diff, "Diff")}
        </div>
      </td>
    </tr>'''


def _build_regressions(regressions: list[Regression]) -> str:
    if not regressions:
        return ""
    items = ""
    for r in regressions:
        items += (f"<li><strong>{html.escape(r.page_path)}</strong>: "
                  f"{r.previous_status} ({html.escape(r.previous_similarity)}) &rarr; "
                  f"{r.current_status} ({html.escape(r.current_similarity)})</li>")
    return f'<div class="regressions"><h2>&#9888; Regressions ({len(regressions)})</h2><ul>{items}</ul></div>'


def generate_html_report(
    run_result: RunResult,
    layout: ArtifactLayout,
    output_path: Path,
    regressions: list[Regression] | None = None,
    baseline_label: str = "Staging",
    candidate_label: str = "Prod",
) -> None:
    """Generate a self-contained HTML report with every screenshot inlined.

    Rows are ordered worst first; counts come from the unsorted results.
    The output depends only on the arguments and the screenshot files, so
    rendering the same run twice yields the same bytes.
    """
    summary = summarize(run_result.results)
    device = html.escape(run_result.device)
    rows = "".join(
        _build_row(r, run_result, layout, baseline_label, candidate_label)
        for r in sort_results(run_result.results)
    )
    if not rows:
        rows = '<tr><td colspan="4" class="empty">No pages were compared.</td></tr>'

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visual Comparison Report &mdash; {device}</title>
<style>
  :root {{ --pass: #22c55e; --fail: #ef4444; --error: #f97316; --baseline: #f97316; --candidate: #2563eb; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }}
  .container {{ max-width: 1600px; margin: 0 auto; }}
  h1 {{ font-size: 1.8rem; margin-bottom: 0.3rem; }}
  h2.device {{ font-size: 1.1rem; color: var(--muted); margin-bottom: 1rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .baseline {{ color: var(--baseline); font-weight: 600; }}
  .candidate {{ color: var(--candidate); font-weight: 600; }}
  /* Summary cards */
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(130px, 1fr)); gap: 0.8rem; margin-bottom: 1rem; }}
  .stat {{ background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
  .stat .value {{ font-size: 1.8rem; font-weight: 700; }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.pass .value {{ color: var(--pass); }}
  .stat.fail .value {{ color: var(--fail); }}
  .stat.error .value {{ color: var(--error); }}
  .criteria {{ font-size: 0.9rem; font-weight: 600; margin-bottom: 1.5rem; }}
  /* Badges */
  .badge {{ display: inline-block; padding: 0.15rem 0.55rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; text-transform: uppercase; white-space: nowrap; }}
  .badge.pass {{ background: #dcfce7; color: #166534; }}
  .badge.fail {{ background: #fecaca; color: #991b1b; }}
  .badge.error {{ background: #fed7aa; color: #9a3412; }}
  .regressions {{ background: #fef2f2; border-radius: 8px; padding: 1.2rem; margin-bottom: 1.5rem; border-left: 4px solid var(--fail); }}
  .regressions h2 {{ color: var(--fail); font-size: 1rem; margin-bottom: 0.4rem; }}
  .regressions ul {{ margin-left: 1.2rem; font-size: 0.9rem; }}
  /* Results table */
  table {{ width: 100%; border-collapse: collapse; background: var(--card); box-shadow: 0 1px 3px rgba(0,0,0,0.08); }}
  th, td {{ border: 1px solid var(--border); padding: 0.5rem; text-align: center; vertical-align: middle; font-size: 0.88rem; }}
  th {{ background: #f1f5f9; }}
  .page-path {{ font-family: monospace; margin-bottom: 0.2rem; }}
  .row-error {{ color: var(--error); font-size: 0.78rem; margin-top: 0.2rem; }}
  .empty {{ color: var(--muted); padding: 1.5rem; }}
  .image-container {{ display: flex; justify-content: center; align-items: flex-start; gap: 0.8rem; }}
  .image-wrapper {{ display: flex; flex-direction: column; align-items: center; }}
  .image-wrapper img {{ width: 350px; cursor: pointer; border: 1px solid var(--border); border-radius: 4px; }}
  .image-missing .placeholder {{ width: 350px; padding: 2rem 0; border: 1px dashed var(--border); border-radius: 4px; color: var(--muted); }}
  .image-label {{ font-size: 0.8rem; font-weight: 600; margin-top: 0.2rem; }}
  /* Modal */
  .modal {{ display: none; position: fixed; z-index: 1000; left: 0; top: 0; width: 100%; height: 100%; background: rgba(0,0,0,0.85); }}
  .modal img {{ display: block; max-width: 90%; max-height: 90%; margin: 3% auto; }}
  .modal-close {{ position: absolute; top: 1rem; right: 2rem; font-size: 2rem; color: white; cursor: pointer; }}
</style>
</head>
<body>
<div class="container">
  <h1>Visual Comparison Report</h1>
  <h2 class="device">Device: {device}</h2>
  <p class="meta"><span class="baseline">{html.escape(baseline_label)}:</span> {html.escape(run_result.baseline_url)} &middot; <span class="candidate">{html.escape(candidate_label)}:</span> {html.escape(run_result.candidate_url)} &middot; Last Run: {html.escape(run_result.completed_at)} &middot; <a href="{html.escape(Path(output_path).name)}" download>Download Report</a></p>

  <div class="summary">
    <div class="stat"><div class="value">{summary.total}</div><div class="label">Total Pages Tested</div></div>
    <div class="stat pass"><div class="value">{summary.passed}</div><div class="label">Passed</div></div>
    <div class="stat fail"><div class="value">{summary.failed}</div><div class="label">Failed</div></div>
    <div class="stat error"><div class="value">{summary.errors}</div><div class="label">Errors</div></div>
  </div>
  <p class="criteria">Success criterion: a similarity score of {PASS_THRESHOLD:g}% or higher is a pass.</p>

  {_build_regressions(regressions or [])}

  <table>
    <thead>
      <tr><th>Page</th><th>Similarity</th><th>Status</th><th>Images</th></tr>
    </thead>
    <tbody>
      {rows}
    </tbody>
  </table>
</div>

<div id="modal" class="modal" onclick="closeModal()">
  <span class="modal-close">&times;</span>
  <img id="modal-image" alt="Enlarged screenshot">
</div>

<script>
function openModal(src) {{
  document.getElementById('modal-image').src = src;
  document.getElementById('modal').style.display = 'block';
}}
function closeModal() {{
  document.getElementById('modal').style.display = 'none';
}}
</script>
</body>
</html>'''

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
