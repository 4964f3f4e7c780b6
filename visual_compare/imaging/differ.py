"""Pixel differ — per-pixel match classification and diff image rendering."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageChops
from pixelmatch.contrib.PIL import pixelmatch

from visual_compare.errors import GeometryMismatchError

RGB = tuple[int, int, int]

# Candidate darker than baseline, e.g. content added on the candidate side.
CANDIDATE_DIFF_COLOR: RGB = (0, 0, 255)
# Baseline darker than or as bright as candidate.
BASELINE_DIFF_COLOR: RGB = (255, 165, 0)

_WHITE = (255, 255, 255, 255)


@dataclass(frozen=True)
class DiffOutcome:
    diff_image: Image.Image
    mismatched_pixels: int
    total_pixels: int

    @property
    def similarity(self) -> float:
        return (self.total_pixels - self.mismatched_pixels) / self.total_pixels * 100


class PixelDiffer:
    """Compares two equally sized RGBA images with pixelmatch.

    Matching and anti-aliased pixels are left transparent in the diff image;
    mismatches are painted opaque in a colour that tells which side differs.
    Holds no mutable state, so one instance can serve several threads.
    """

    def __init__(
        self,
        threshold: float = 0.1,
        candidate_color: RGB = CANDIDATE_DIFF_COLOR,
        baseline_color: RGB = BASELINE_DIFF_COLOR,
        include_aa: bool = False,
    ):
        self.threshold = threshold
        self.candidate_color = candidate_color
        self.baseline_color = baseline_color
        self.include_aa = include_aa

    def diff(self, baseline: Image.Image, candidate: Image.Image) -> DiffOutcome:
        if baseline.size != candidate.size:
            raise GeometryMismatchError(
                f"Size mismatch: baseline {baseline.size} vs candidate {candidate.size}"
            )
        if baseline.mode != "RGBA":
            baseline = baseline.convert("RGBA")
        if candidate.mode != "RGBA":
            candidate = candidate.convert("RGBA")

        width, height = baseline.size
        marked = Image.new("RGBA", baseline.size, (0, 0, 0, 0))
        mismatched = pixelmatch(
            baseline,
            candidate,
            marked,
            threshold=self.threshold,
            includeAA=self.include_aa,
            diff_color=self.baseline_color,
            diff_mask=True,
        )
        # Only counted mismatches are drawn opaque on the mask.
        mismatch_mask = marked.getchannel("A").point(lambda a: 255 if a else 0)
        return DiffOutcome(
            diff_image=self.render(baseline, candidate, mismatch_mask),
            mismatched_pixels=mismatched,
            total_pixels=width * height,
        )

    def render(
        self, baseline: Image.Image, candidate: Image.Image, mismatch_mask: Image.Image,
    ) -> Image.Image:
        """Paint each masked pixel in the colour of the side that is darker there.

        Luminance is taken after flattening onto white, the same blending
        pixelmatch applies to translucent pixels. Ties go to the baseline colour.
        """
        base_luma = _luminance(baseline)
        cand_luma = _luminance(candidate)
        candidate_darker = ImageChops.subtract(base_luma, cand_luma).point(lambda v: 255 if v else 0)
        candidate_mask = ImageChops.multiply(mismatch_mask, candidate_darker)

        diff_image = Image.new("RGBA", baseline.size, (0, 0, 0, 0))
        diff_image.paste((*self.baseline_color, 255), mask=mismatch_mask)
        diff_image.paste((*self.candidate_color, 255), mask=candidate_mask)
        return diff_image


def _luminance(image: Image.Image) -> Image.Image:
    flattened = Image.alpha_composite(Image.new("RGBA", image.size, _WHITE), image)
    return flattened.convert("L")
