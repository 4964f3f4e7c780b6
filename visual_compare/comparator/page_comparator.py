"""Page comparator — normalizes, diffs and persists one page's screenshots."""

from __future__ import annotations

import logging
from pathlib import Path

from visual_compare.artifacts import PageArtifacts
from visual_compare.errors import ComparisonError, MissingArtifactError
from visual_compare.imaging.differ import PixelDiffer
from visual_compare.imaging.normalizer import ImageNormalizer, load_image
from visual_compare.models.comparison import ComparisonResult, ErrorTag

logger = logging.getLogger(__name__)


class PageComparator:
    """Runs the existence check → normalize → diff → persist sequence."""

    def __init__(self, normalizer: ImageNormalizer, differ: PixelDiffer):
        self.normalizer = normalizer
        self.differ = differ

    def compare(self, baseline_path: Path, candidate_path: Path, diff_path: Path) -> float:
        """Compare two screenshots and return the similarity percentage.

        Both inputs are resized in place. Raises a ``ComparisonError``
        subclass when the page cannot be compared; in that case no diff
        file is left behind.
        """
        diff_path.unlink(missing_ok=True)

        missing = [str(p) for p in (baseline_path, candidate_path) if not p.exists()]
        if missing:
            raise MissingArtifactError(f"Missing file(s): {', '.join(missing)}")

        self.normalizer.normalize(baseline_path)
        self.normalizer.normalize(candidate_path)

        baseline = load_image(baseline_path)
        candidate = load_image(candidate_path)
        outcome = self.differ.diff(baseline, candidate)

        diff_path.parent.mkdir(parents=True, exist_ok=True)
        outcome.diff_image.save(diff_path, format="PNG")
        logger.debug("Wrote diff %s (%d/%d pixels differ)",
                     diff_path, outcome.mismatched_pixels, outcome.total_pixels)
        return outcome.similarity

    def compare_page(self, page_path: str, artifacts: PageArtifacts) -> ComparisonResult:
        """Compare one page, converting every failure into an error-tagged result."""
        try:
            similarity = self.compare(artifacts.baseline, artifacts.candidate, artifacts.diff)
        except ComparisonError as e:
            if e.tag is ErrorTag.SIZE_MISMATCH:
                logger.error("Normalization invariant broken for %s: %s", page_path, e)
            else:
                logger.warning("%s: %s", page_path, e)
            return ComparisonResult(page_path=page_path, similarity=e.tag, error=str(e))
        except Exception as e:
            logger.exception("Unexpected failure comparing %s", page_path)
            return ComparisonResult(
                page_path=page_path, similarity=ErrorTag.CAPTURE_ERROR, error=str(e),
            )

        logger.info("%s: %.2f%% similar", page_path, similarity)
        return ComparisonResult(page_path=page_path, similarity=similarity)
