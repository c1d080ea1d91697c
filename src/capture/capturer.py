"""Screenshot capture — render configured pages with Playwright into the images directory."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from playwright.async_api import BrowserContext, async_playwright

from src.models.config import CaptureConfig, CapturePage, ViewportConfig

logger = logging.getLogger(__name__)


def screenshot_path(output_dir: Path, viewport: ViewportConfig, page: CapturePage) -> Path:
    """``<output>/<viewport>/<page name>.png`` so logical paths match across branches."""
    name = page.name.strip("/")
    if not name.lower().endswith(".png"):
        name += ".png"
    return output_dir / viewport.name / name


class ScreenshotCapturer:
    """Captures one screenshot per configured page and viewport."""

    def __init__(self, config: CaptureConfig, output_dir: Path):
        self.config = config
        self.output_dir = output_dir

    def capture(self) -> list[Path]:
        return asyncio.run(self.capture_async())

    async def capture_async(self) -> list[Path]:
        if not self.config.pages:
            logger.warning("No pages configured for capture")
            return []

        start = time.time()
        captured: list[Path] = []
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            for viewport in self.config.viewports:
                context = await browser.new_context(
                    viewport={"width": viewport.width, "height": viewport.height},
                    user_agent=self.config.user_agent,
                )
                captured.extend(await self._capture_viewport(context, viewport))
                await context.close()
            await browser.close()

        logger.info("Captured %d screenshot(s) in %.1fs", len(captured), time.time() - start)
        return captured

    async def _capture_viewport(self, context: BrowserContext, viewport: ViewportConfig) -> list[Path]:
        captured = []
        page = await context.new_page()
        wait_until = "networkidle" if self.config.wait_for_idle else "load"
        for target in self.config.pages:
            dest = screenshot_path(self.output_dir, viewport, target)
            dest.parent.mkdir(parents=True, exist_ok=True)
            try:
                await page.goto(target.url, wait_until=wait_until)
                await page.screenshot(path=str(dest), full_page=target.full_page)
            except Exception as e:
                logger.warning("Screenshot failed for %s (%s): %s", target.url, viewport.name, e)
                continue
            logger.info("Captured %s (%s)", target.name, viewport.name)
            captured.append(dest)
        await page.close()
        return captured
