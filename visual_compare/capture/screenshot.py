"""Screenshot capture — navigates a Playwright page and stores full-page PNGs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page

from visual_compare.models.config import DeviceProfile

logger = logging.getLogger(__name__)


async def create_context(
    browser: Browser,
    device: DeviceProfile,
    user_agent: Optional[str] = None,
) -> BrowserContext:
    """Create a browser context sized to the device viewport."""
    context_kwargs: dict = {
        "viewport": {"width": device.width, "height": device.height},
    }
    if user_agent:
        context_kwargs["user_agent"] = user_agent
    return await browser.new_context(**context_kwargs)


class ScreenshotCapturer:
    """Captures one screenshot per URL, reporting failure by leaving no file."""

    def __init__(
        self,
        navigation_timeout_ms: int = 60000,
        wait_until: str = "networkidle",
        full_page: bool = True,
    ):
        self.navigation_timeout_ms = navigation_timeout_ms
        self.wait_until = wait_until
        self.full_page = full_page

    async def capture(self, page: Page, url: str, destination: Path) -> bool:
        """Navigate to ``url`` and save a screenshot to ``destination``.

        Any previous file at ``destination`` is removed first so a failed
        capture never leaves a stale image behind. Never raises.
        """
        destination.unlink(missing_ok=True)
        try:
            logger.info("Navigating to: %s", url)
            await page.goto(url, wait_until=self.wait_until, timeout=self.navigation_timeout_ms)
            destination.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(destination), full_page=self.full_page)
            logger.info("Screenshot captured: %s", destination)
            return True
        except Exception as e:
            logger.error("Failed to capture screenshot for %s: %s", url, e)
            return False
