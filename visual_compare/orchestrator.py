"""Pipeline orchestrator — coordinates capture, comparison, and report stages."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path

import httpx
from playwright.async_api import Page, async_playwright

from visual_compare.artifacts import ArtifactLayout, PageArtifacts
from visual_compare.capture.image_probe import ImageProbe, PageImageReport
from visual_compare.capture.screenshot import ScreenshotCapturer, create_context
from visual_compare.comparator.page_comparator import PageComparator
from visual_compare.imaging.differ import PixelDiffer
from visual_compare.imaging.normalizer import ImageNormalizer
from visual_compare.models.comparison import ComparisonResult, ErrorTag, RunResult, summarize
from visual_compare.models.config import CompareConfig
from visual_compare.reporter.reporter import Reporter
from visual_compare.url_utils import page_url

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates one comparison pass over the configured pages."""

    def __init__(
        self,
        config: CompareConfig,
        capturer: ScreenshotCapturer | None = None,
        comparator: PageComparator | None = None,
    ):
        self.config = config
        self.device = config.device
        self.layout = ArtifactLayout(
            Path(config.screenshots_dir),
            baseline_dir=config.baseline.name,
            candidate_dir=config.candidate.name,
        )
        self.capturer = capturer or ScreenshotCapturer(
            navigation_timeout_ms=config.navigation_timeout_seconds * 1000,
            full_page=config.full_page,
        )
        self.comparator = comparator or PageComparator(
            ImageNormalizer(self.device.width, self.device.height),
            PixelDiffer(threshold=config.pixel_threshold),
        )
        self.reporter = Reporter(config, self.layout)

    def run_full_pipeline(self) -> dict:
        """Capture both environments, compare every page and write the reports."""
        return asyncio.run(self._run_pipeline(capture=True))

    def run_compare_only(self) -> dict:
        """Compare screenshots already on disk and write the reports."""
        return asyncio.run(self._run_pipeline(capture=False))

    async def _run_pipeline(self, capture: bool) -> dict:
        start = time.time()
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        run_id = f"run_{uuid.uuid4().hex[:8]}"
        logger.info("=== Starting visual comparison %s (%s, %d pages) ===",
                    run_id, self.device.name, len(self.config.pages))
        self.layout.ensure_dirs(self.device.name)

        semaphore = asyncio.Semaphore(self.config.max_parallel_comparisons)
        if capture:
            results = await self._capture_and_compare(semaphore)
        else:
            results = list(await asyncio.gather(
                *(self._compare(p, True, semaphore) for p in self.config.pages)
            ))

        duration = time.time() - start
        run_result = RunResult(
            run_id=run_id,
            device=self.device.name,
            baseline_url=self.config.baseline.base_url,
            candidate_url=self.config.candidate.base_url,
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            duration_seconds=round(duration, 2),
            results=results,
            summary=summarize(results),
        )

        previous_run = self.reporter.load_previous_run(self.device.name)
        reports = self.reporter.generate_reports(run_result, previous_run=previous_run)
        logger.info("=== Comparison complete in %.1fs: %d passed, %d failed, %d errors ===",
                    duration, run_result.summary.passed, run_result.summary.failed,
                    run_result.summary.errors)

        return {
            "run_id": run_id,
            "duration": run_result.duration_seconds,
            "results": run_result.summary.model_dump(),
            "reports": reports,
        }

    async def _capture_and_compare(self, semaphore: asyncio.Semaphore) -> list[ComparisonResult]:
        """Capture pages one by one in a single browser page.

        Each page's comparison starts on a worker thread as soon as its two
        screenshots exist, bounded by ``semaphore``.
        """
        pending: list[asyncio.Task] = []
        pages = self.config.pages

        try:
            async with async_playwright() as p:
                logger.debug("Launching Chromium for capture...")
                browser = await p.chromium.launch(headless=True)
                try:
                    context = await create_context(browser, self.device, self.config.user_agent)
                    page = await context.new_page()
                    for index, page_path in enumerate(pages):
                        logger.info("Capturing page [%d/%d]: %s", index + 1, len(pages), page_path)
                        captured = await self._capture_page(page, page_path)
                        pending.append(asyncio.create_task(
                            self._compare(page_path, captured, semaphore)
                        ))
                finally:
                    await browser.close()
        except Exception as e:
            logger.error("Browser session failed: %s", e)

        # Pages the browser never reached still get a result, never from
        # screenshots an earlier run left behind.
        for page_path in pages[len(pending):]:
            self._discard_screenshots(page_path)
            pending.append(asyncio.create_task(self._compare(page_path, False, semaphore)))

        return list(await asyncio.gather(*pending))

    async def _capture_page(self, page: Page, page_path: str) -> bool:
        artifacts = self.layout.for_page(self.device.name, page_path)
        targets = [
            (page_url(self.config.baseline.base_url, page_path), artifacts.baseline),
            (page_url(self.config.candidate.base_url, page_path), artifacts.candidate),
        ]
        ok = True
        for url, destination in targets:
            try:
                ok = await self.capturer.capture(page, url, destination) and ok
            except Exception:
                logger.exception("Capture of %s raised", url)
                destination.unlink(missing_ok=True)
                ok = False
        return ok

    def _discard_screenshots(self, page_path: str) -> None:
        artifacts = self.layout.for_page(self.device.name, page_path)
        for path in (artifacts.baseline, artifacts.candidate):
            path.unlink(missing_ok=True)

    async def _compare(
        self, page_path: str, captured: bool, semaphore: asyncio.Semaphore,
    ) -> ComparisonResult:
        artifacts: PageArtifacts = self.layout.for_page(self.device.name, page_path)
        async with semaphore:
            result = await asyncio.to_thread(self.comparator.compare_page, page_path, artifacts)
        if captured:
            return result
        # A failed capture is never reported as a similarity.
        artifacts.diff.unlink(missing_ok=True)
        detail = f" ({result.error})" if result.error else ""
        return ComparisonResult(
            page_path=page_path,
            similarity=ErrorTag.CAPTURE_ERROR,
            error=f"Screenshot capture failed{detail}",
        )

    def run_image_check(self) -> list[PageImageReport]:
        """Probe every <img> on each configured page of the baseline environment."""
        return asyncio.run(self._run_image_check())

    async def _run_image_check(self) -> list[PageImageReport]:
        reports: list[PageImageReport] = []
        timeout = httpx.Timeout(self.config.image_probe_timeout_seconds)
        async with httpx.AsyncClient(timeout=timeout) as client:
            probe = ImageProbe(client, self.config.tracking_patterns)
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    context = await create_context(browser, self.device, self.config.user_agent)
                    page = await context.new_page()
                    for page_path in self.config.pages:
                        url = page_url(self.config.baseline.base_url, page_path)
                        logger.info("Navigating to: %s", url)
                        try:
                            await page.goto(
                                url, wait_until="domcontentloaded",
                                timeout=self.config.navigation_timeout_seconds * 1000,
                            )
                            reports.append(await probe.check_page(page, url))
                        except Exception as e:
                            logger.error("Image check failed for %s: %s", url, e)
                            reports.append(PageImageReport(page_url=url, error=str(e)))
                finally:
                    await browser.close()
        return reports
