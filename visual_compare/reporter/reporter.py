"""Report generation orchestration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from visual_compare.artifacts import ArtifactLayout
from visual_compare.models.comparison import RunResult
from visual_compare.models.config import CompareConfig

from .html_report import generate_html_report
from .json_report import generate_json_report
from .regression_detector import detect_regressions

logger = logging.getLogger(__name__)


def report_stem(device: str) -> str:
    return f"visual_comparison_report_{device}"


class Reporter:
    """Generates reports from comparison results."""

    def __init__(self, config: CompareConfig, layout: ArtifactLayout):
        self.config = config
        self.layout = layout

    def generate_reports(
        self,
        run_result: RunResult,
        previous_run: RunResult | None = None,
        output_dir: Path | None = None,
    ) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}
        stem = report_stem(run_result.device)
        logger.debug("Report output directory: %s", out_dir)

        regressions = []
        if previous_run:
            logger.debug("Detecting regressions against run %s...", previous_run.run_id)
            regressions = detect_regressions(previous_run, run_result)

        if "html" in self.config.report_formats:
            path = out_dir / f"{stem}.html"
            generate_html_report(
                run_result, self.layout, path,
                regressions=regressions,
                baseline_label=self.config.baseline.name.capitalize(),
                candidate_label=self.config.candidate.name.capitalize(),
            )
            generated["html"] = str(path)
            logger.info("HTML report: %s", path)

        if "json" in self.config.report_formats:
            path = out_dir / f"{stem}.json"
            generate_json_report(run_result, regressions, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated

    def load_previous_run(self, device: str, output_dir: Path | None = None) -> RunResult | None:
        """Load the JSON report a previous run left for this device, if any."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        path = out_dir / f"{report_stem(device)}.json"
        if not path.exists():
            return None
        try:
            with open(path) as f:
                data = json.load(f)
            return RunResult.model_validate(data)
        except Exception as e:
            logger.debug("Could not load previous run from %s: %s", path, e)
            return None
