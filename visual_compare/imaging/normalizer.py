"""Image normalizer — fits screenshots onto a fixed transparent canvas."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from visual_compare.errors import ImageDecodeError

logger = logging.getLogger(__name__)

TRANSPARENT = (255, 255, 255, 0)


def load_image(path: Path) -> Image.Image:
    """Decode an artifact into an RGBA image."""
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise ImageDecodeError(f"Cannot decode {path}: {e}") from e


class ImageNormalizer:
    """Scales images to fit ``width`` x ``height`` and pads the remainder.

    The source is resized without cropping or distortion, centred, and the
    uncovered area is filled with fully transparent pixels, so every
    normalized image has exactly the target size.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def normalize_image(self, image: Image.Image) -> Image.Image:
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        if image.size == self.size:
            return image
        return ImageOps.pad(
            image,
            self.size,
            method=Image.Resampling.LANCZOS,
            color=TRANSPARENT,
        )

    def normalize(self, path: Path) -> None:
        """Normalize the artifact at ``path`` in place."""
        image = load_image(path)
        original_size = image.size
        normalized = self.normalize_image(image)
        normalized.save(path, format="PNG")
        logger.debug("Normalized %s from %dx%d to %dx%d",
                     path, original_size[0], original_size[1], self.width, self.height)
