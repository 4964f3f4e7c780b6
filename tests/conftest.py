"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from visual_compare.artifacts import ArtifactLayout
from visual_compare.imaging.differ import PixelDiffer
from visual_compare.imaging.normalizer import ImageNormalizer
from visual_compare.comparator.page_comparator import PageComparator
from visual_compare.models.comparison import ComparisonResult, ErrorTag, RunResult, summarize
from visual_compare.models.config import CompareConfig, DeviceProfile, EnvironmentConfig

WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def small_device() -> DeviceProfile:
    """A small viewport so pixel diffs stay fast."""
    return DeviceProfile(name="Tiny", width=64, height=40)


@pytest.fixture
def compare_config(small_device: DeviceProfile, tmp_path: Path) -> CompareConfig:
    return CompareConfig(
        baseline=EnvironmentConfig(name="staging", base_url="https://staging.example.com"),
        candidate=EnvironmentConfig(name="prod", base_url="https://www.example.com"),
        pages=["/", "/apply/", "/about/"],
        device=small_device,
        screenshots_dir=str(tmp_path / "screenshots"),
        report_output_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def layout(tmp_path: Path) -> ArtifactLayout:
    return ArtifactLayout(tmp_path / "screenshots")


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def make_png() -> Callable[..., Path]:
    """Write a solid PNG, optionally with a filled block, and return its path."""

    def _make(
        path: Path,
        size: tuple[int, int],
        color: tuple = WHITE,
        block: tuple[int, int, int, int] | None = None,
        block_color: tuple = RED,
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGBA", size, color)
        if block:
            x, y, w, h = block
            img.paste(Image.new("RGBA", (w, h), block_color), (x, y))
        img.save(path, format="PNG")
        return path

    return _make


@pytest.fixture
def comparator(small_device: DeviceProfile) -> PageComparator:
    return PageComparator(
        ImageNormalizer(small_device.width, small_device.height),
        PixelDiffer(),
    )


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def make_run_result() -> Callable[..., RunResult]:
    """Build a RunResult with summary counts derived from the results."""

    def _make(results: list[ComparisonResult], device: str = "Desktop", run_id: str = "run_abc123") -> RunResult:
        return RunResult(
            run_id=run_id,
            device=device,
            baseline_url="https://staging.example.com",
            candidate_url="https://www.example.com",
            started_at="2025-01-01T00:00:00Z",
            completed_at="2025-01-01T00:05:00Z",
            duration_seconds=300.0,
            results=results,
            summary=summarize(results),
        )

    return _make


@pytest.fixture
def mixed_results() -> list[ComparisonResult]:
    return [
        ComparisonResult(page_path="/a/", similarity=ErrorTag.MISSING_FILE, error="Missing file(s): a.png"),
        ComparisonResult(page_path="/b/", similarity=92.0),
        ComparisonResult(page_path="/c/", similarity=ErrorTag.DECODE_ERROR),
        ComparisonResult(page_path="/d/", similarity=99.0),
    ]
