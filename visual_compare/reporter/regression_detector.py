"""Regression detection — finds pages that passed last run and no longer do."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from visual_compare.models.comparison import RunResult, Status

logger = logging.getLogger(__name__)


@dataclass
class Regression:
    page_path: str
    previous_status: str
    current_status: str
    previous_similarity: str
    current_similarity: str
    error: str | None = None


def detect_regressions(previous: RunResult, current: RunResult) -> list[Regression]:
    """Compare two runs of the same device and list pass -> fail/error pages.

    Pages are matched by path; pages only present in one run are ignored.
    """
    if previous.device != current.device:
        logger.debug("Previous run is for device %s, not %s; skipping regression check",
                     previous.device, current.device)
        return []

    prev_by_path = {r.page_path: r for r in previous.results}
    regressions = []
    for result in current.results:
        prev = prev_by_path.get(result.page_path)
        if prev and prev.status == Status.PASS and result.status in (Status.FAIL, Status.ERROR):
            regressions.append(Regression(
                page_path=result.page_path,
                previous_status=prev.status.value,
                current_status=result.status.value,
                previous_similarity=prev.similarity_label,
                current_similarity=result.similarity_label,
                error=result.error,
            ))

    if regressions:
        logger.warning("Detected %d regressions", len(regressions))
    return regressions
