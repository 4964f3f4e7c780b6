"""Image probe — finds broken <img> sources on a page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

import httpx
from playwright.async_api import Page
from pydantic import BaseModel, Field

from visual_compare.utils.concurrency import gather_all

logger = logging.getLogger(__name__)


class BrokenImage(BaseModel):
    index: int  # 1-based position among the page's <img> elements
    url: str = ""
    reason: str


class PageImageReport(BaseModel):
    page_url: str
    total_found: int = 0
    checked: int = 0
    missing_src: int = 0
    skipped_tracking: int = 0
    broken: list[BrokenImage] = Field(default_factory=list)
    error: Optional[str] = None  # set when the page itself could not be loaded

    @property
    def passed(self) -> bool:
        return not self.broken and self.error is None


@dataclass
class CollectedImages:
    total_found: int = 0
    urls: list[tuple[int, str]] = field(default_factory=list)
    missing_src: list[int] = field(default_factory=list)
    skipped_tracking: int = 0


def resolve_image_url(src: str, page_url: str) -> str:
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith("http"):
        return src
    return urljoin(page_url, src)


async def collect_image_urls(
    page: Page, page_url: str, tracking_patterns: list[str],
) -> CollectedImages:
    """Read every <img src> on the loaded page."""
    images = page.locator("img")
    count = await images.count()
    collected = CollectedImages(total_found=count)

    for i in range(count):
        src = await images.nth(i).get_attribute("src")
        if not src:
            logger.warning("Image %d is missing a src attribute", i + 1)
            collected.missing_src.append(i + 1)
            continue
        if src.startswith("data:"):
            continue

        url = resolve_image_url(src, page_url)
        if any(pattern in url for pattern in tracking_patterns):
            logger.debug("Skipping tracking pixel: %s", url)
            collected.skipped_tracking += 1
            continue
        collected.urls.append((i + 1, url))
    return collected


class ImageProbe:
    """Checks image URLs concurrently; one failure never affects the others."""

    def __init__(self, client: httpx.AsyncClient, tracking_patterns: list[str] | None = None):
        self.client = client
        self.tracking_patterns = tracking_patterns or []

    async def _fetch(self, url: str) -> int:
        response = await self.client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.status_code

    async def check_urls(self, urls: list[tuple[int, str]]) -> list[BrokenImage]:
        settled = await gather_all(self._fetch(url) for _, url in urls)
        broken = []
        for (index, url), outcome in zip(urls, settled):
            if outcome.ok:
                logger.debug("Image %d loaded: %s (%s)", index, url, outcome.value)
                continue
            err = outcome.error
            if isinstance(err, httpx.HTTPStatusError):
                reason = f"Status: {err.response.status_code}"
            else:
                reason = str(err) or type(err).__name__
            logger.warning("Image %d failed: %s (%s)", index, url, reason)
            broken.append(BrokenImage(index=index, url=url, reason=reason))
        return broken

    async def check_page(self, page: Page, page_url: str) -> PageImageReport:
        """Probe every image of an already-loaded page."""
        collected = await collect_image_urls(page, page_url, self.tracking_patterns)
        broken = [
            BrokenImage(index=i, reason="missing src attribute")
            for i in collected.missing_src
        ]
        broken.extend(await self.check_urls(collected.urls))

        report = PageImageReport(
            page_url=page_url,
            total_found=collected.total_found,
            checked=len(collected.urls),
            missing_src=len(collected.missing_src),
            skipped_tracking=collected.skipped_tracking,
            broken=broken,
        )
        logger.info("%s: %d images checked, %d broken, %d tracking pixels skipped",
                    page_url, report.checked, len(report.broken), report.skipped_tracking)
        return report
