"""Tests for the page comparator, including the full-size end-to-end scenario."""

from unittest.mock import Mock

import pytest
from PIL import Image

from visual_compare.artifacts import PageArtifacts
from visual_compare.comparator.page_comparator import PageComparator
from visual_compare.errors import MissingArtifactError
from visual_compare.imaging.differ import PixelDiffer
from visual_compare.imaging.normalizer import ImageNormalizer, load_image
from visual_compare.models.comparison import ErrorTag, Status


@pytest.fixture
def artifacts(layout) -> PageArtifacts:
    return layout.for_page("Tiny", "/apply/")


class TestCompare:
    def test_identical_pages(self, comparator, artifacts, make_png):
        make_png(artifacts.baseline, (200, 150))
        make_png(artifacts.candidate, (200, 150))
        similarity = comparator.compare(artifacts.baseline, artifacts.candidate, artifacts.diff)
        assert similarity == 100.0
        assert artifacts.diff.exists()

    def test_resizes_inputs_in_place(self, comparator, artifacts, make_png):
        make_png(artifacts.baseline, (200, 500))
        make_png(artifacts.candidate, (300, 150))
        comparator.compare(artifacts.baseline, artifacts.candidate, artifacts.diff)
        assert load_image(artifacts.baseline).size == (64, 40)
        assert load_image(artifacts.candidate).size == (64, 40)
        assert load_image(artifacts.diff).size == (64, 40)

    def test_creates_diff_directory(self, comparator, tmp_path, make_png):
        baseline = make_png(tmp_path / "a.png", (64, 40))
        candidate = make_png(tmp_path / "b.png", (64, 40))
        diff = tmp_path / "deep" / "nested" / "diff.png"
        comparator.compare(baseline, candidate, diff)
        assert diff.exists()

    @pytest.mark.parametrize("missing", ["baseline", "candidate"])
    def test_missing_file_raises_without_diff(self, comparator, artifacts, make_png, missing):
        for role in ("baseline", "candidate"):
            if role != missing:
                make_png(getattr(artifacts, role), (64, 40))
        with pytest.raises(MissingArtifactError, match="Missing file"):
            comparator.compare(artifacts.baseline, artifacts.candidate, artifacts.diff)
        assert not artifacts.diff.exists()

    def test_missing_file_removes_stale_diff(self, comparator, artifacts, make_png):
        make_png(artifacts.diff, (64, 40))
        make_png(artifacts.baseline, (64, 40))
        with pytest.raises(MissingArtifactError):
            comparator.compare(artifacts.baseline, artifacts.candidate, artifacts.diff)
        assert not artifacts.diff.exists()

    def test_missing_file_skips_normalization(self, artifacts, make_png):
        normalizer = Mock(spec=ImageNormalizer)
        differ = Mock(spec=PixelDiffer)
        make_png(artifacts.baseline, (64, 40))
        with pytest.raises(MissingArtifactError):
            PageComparator(normalizer, differ).compare(
                artifacts.baseline, artifacts.candidate, artifacts.diff,
            )
        normalizer.normalize.assert_not_called()
        differ.diff.assert_not_called()


class TestComparePage:
    def test_numeric_result(self, comparator, artifacts, make_png):
        make_png(artifacts.baseline, (64, 40))
        make_png(artifacts.candidate, (64, 40), block=(0, 0, 8, 8))
        result = comparator.compare_page("/apply/", artifacts)
        assert result.page_path == "/apply/"
        assert result.similarity == pytest.approx((2560 - 64) / 2560 * 100)
        assert result.status == Status.PASS
        assert result.error is None

    def test_large_change_fails(self, comparator, artifacts, make_png):
        make_png(artifacts.baseline, (64, 40))
        make_png(artifacts.candidate, (64, 40), block=(0, 0, 32, 40))
        result = comparator.compare_page("/apply/", artifacts)
        assert result.similarity == 50.0
        assert result.status == Status.FAIL

    def test_missing_file_tag(self, comparator, artifacts):
        result = comparator.compare_page("/apply/", artifacts)
        assert result.similarity is ErrorTag.MISSING_FILE
        assert result.status == Status.ERROR
        assert "Missing file" in result.error
        assert not artifacts.diff.exists()

    def test_decode_error_tag(self, comparator, artifacts, make_png):
        make_png(artifacts.baseline, (64, 40))
        artifacts.candidate.parent.mkdir(parents=True, exist_ok=True)
        artifacts.candidate.write_bytes(b"<html>not an image</html>")
        result = comparator.compare_page("/apply/", artifacts)
        assert result.similarity is ErrorTag.DECODE_ERROR
        assert not artifacts.diff.exists()

    def test_oversized_screenshot_is_decode_error(self, comparator, artifacts, make_png, monkeypatch):
        make_png(artifacts.baseline, (64, 40))
        make_png(artifacts.candidate, (64, 40))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        result = comparator.compare_page("/apply/", artifacts)
        assert result.similarity is ErrorTag.DECODE_ERROR

    def test_geometry_mismatch_tag(self, artifacts, make_png):
        # Normalizer that leaves sizes untouched breaks the size invariant.
        normalizer = Mock(spec=ImageNormalizer)
        make_png(artifacts.baseline, (64, 40))
        make_png(artifacts.candidate, (64, 41))
        result = PageComparator(normalizer, PixelDiffer()).compare_page("/apply/", artifacts)
        assert result.similarity is ErrorTag.SIZE_MISMATCH
        assert not artifacts.diff.exists()

    def test_unexpected_error_does_not_escape(self, artifacts, make_png):
        differ = Mock(spec=PixelDiffer)
        differ.diff.side_effect = RuntimeError("boom")
        make_png(artifacts.baseline, (64, 40))
        make_png(artifacts.candidate, (64, 40))
        result = PageComparator(ImageNormalizer(64, 40), differ).compare_page("/apply/", artifacts)
        assert result.similarity is ErrorTag.CAPTURE_ERROR
        assert result.error == "boom"


@pytest.mark.slow
class TestDesktopScenario:
    """Screenshots normalized to the default 1280x800 desktop canvas."""

    @pytest.fixture
    def desktop_comparator(self) -> PageComparator:
        return PageComparator(ImageNormalizer(1280, 800), PixelDiffer())

    def test_identical_small_pages(self, desktop_comparator, tmp_path, make_png):
        a = make_png(tmp_path / "staging.png", (400, 300))
        b = make_png(tmp_path / "prod.png", (400, 300))
        diff = tmp_path / "diff.png"
        assert desktop_comparator.compare(a, b, diff) == 100.0
        with Image.open(diff) as img:
            assert img.size == (1280, 800)
            assert img.getbbox() is None

    def test_red_block_on_scaled_page(self, desktop_comparator, tmp_path, make_png):
        a = make_png(tmp_path / "staging.png", (400, 300))
        b = make_png(tmp_path / "prod.png", (400, 300), block=(100, 100, 10, 10))
        diff = tmp_path / "diff.png"
        similarity = desktop_comparator.compare(a, b, diff)
        assert 99.5 < similarity < 100.0

        # 400x300 scales by 8/3 to 1067x800 and is centred 106px from the left,
        # so the block lands around x 373-400, y 267-293.
        diff_img = load_image(diff)
        bbox = diff_img.getbbox()
        assert bbox is not None
        left, top, right, bottom = bbox
        assert 362 <= left and right <= 411
        assert 256 <= top and bottom <= 304
        assert diff_img.getpixel((386, 280))[3] == 255

    def test_red_block_at_native_size(self, desktop_comparator, tmp_path, make_png):
        a = make_png(tmp_path / "staging.png", (1280, 800))
        b = make_png(tmp_path / "prod.png", (1280, 800), block=(600, 400, 10, 10))
        diff = tmp_path / "diff.png"
        similarity = desktop_comparator.compare(a, b, diff)
        assert similarity == pytest.approx(100 - 100 * 100 / (1280 * 800))
        assert load_image(diff).getbbox() == (600, 400, 610, 410)
