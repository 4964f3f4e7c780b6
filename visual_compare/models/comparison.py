"""Comparison result data structures and the pass/fail policy."""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Similarity at or above this percentage is a pass.
PASS_THRESHOLD = 95.0


class ErrorTag(str, Enum):
    MISSING_FILE = "MissingFile"
    SIZE_MISMATCH = "SizeMismatch"
    CAPTURE_ERROR = "CaptureError"
    DECODE_ERROR = "DecodeError"


class Status(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"


def classify(similarity: float | ErrorTag) -> Status:
    """Apply the threshold rule to a similarity value or error tag."""
    if isinstance(similarity, ErrorTag):
        return Status.ERROR
    return Status.PASS if similarity >= PASS_THRESHOLD else Status.FAIL


class ComparisonResult(BaseModel):
    """Outcome of comparing one page between the two environments."""

    model_config = ConfigDict(frozen=True)

    page_path: str
    similarity: Union[ErrorTag, float]
    error: Optional[str] = None

    @field_validator("similarity")
    @classmethod
    def check_range(cls, v):
        if isinstance(v, ErrorTag):
            return v
        if math.isnan(v) or not 0.0 <= v <= 100.0:
            raise ValueError(f"similarity must be within [0, 100], got {v}")
        return v

    @property
    def status(self) -> Status:
        return classify(self.similarity)

    @property
    def is_error(self) -> bool:
        return isinstance(self.similarity, ErrorTag)

    @property
    def similarity_label(self) -> str:
        if isinstance(self.similarity, ErrorTag):
            return self.similarity.value
        return f"{self.similarity:.2f}%"


class ReportSummary(BaseModel):
    passed: int = 0
    failed: int = 0
    errors: int = 0
    total: int = 0


def summarize(results: list[ComparisonResult]) -> ReportSummary:
    """Count results per status. Order of ``results`` does not matter."""
    statuses = [r.status for r in results]
    return ReportSummary(
        passed=statuses.count(Status.PASS),
        failed=statuses.count(Status.FAIL),
        errors=statuses.count(Status.ERROR),
        total=len(results),
    )


def _severity_key(result: ComparisonResult) -> tuple[int, float]:
    if isinstance(result.similarity, ErrorTag):
        return (0, 0.0)
    return (1, result.similarity)


def sort_results(results: list[ComparisonResult]) -> list[ComparisonResult]:
    """Order results worst first.

    Errors come first and keep their original relative order, followed by
    numeric results in ascending similarity. The sort is stable, so pages
    with equal similarity also keep their original order.
    """
    return sorted(results, key=_severity_key)


class RunResult(BaseModel):
    run_id: str
    device: str
    baseline_url: str
    candidate_url: str
    started_at: str
    completed_at: str
    duration_seconds: float = 0.0
    results: list[ComparisonResult] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)
