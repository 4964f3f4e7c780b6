"""Page-level comparison failures and the error tags they map to."""

from __future__ import annotations

from visual_compare.models.comparison import ErrorTag


class ComparisonError(Exception):
    """A failure that degrades a single page's result instead of the run."""

    tag: ErrorTag = ErrorTag.CAPTURE_ERROR


class MissingArtifactError(ComparisonError):
    tag = ErrorTag.MISSING_FILE


class ImageDecodeError(ComparisonError):
    tag = ErrorTag.DECODE_ERROR


class GeometryMismatchError(ComparisonError):
    """Two images reached the differ with different sizes.

    Normalization makes this unreachable in a normal run, so seeing it means
    the normalization step was skipped or broken.
    """

    tag = ErrorTag.SIZE_MISMATCH
