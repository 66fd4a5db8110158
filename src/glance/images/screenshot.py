"""Web page screenshots through an ephemeral headless Chromium.

Every capture launches its own browser and tears it down before
returning, whether or not the capture succeeded. Concurrent launches are
bounded by a semaphore shared by all captures of one ``WebpageScreenshotter``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from glance.errors import AcquisitionFailure, ImageAcquisitionError
from glance.images.types import (
    ImageAsset,
    ImageMimeType,
    ImageSourceKind,
    WebpageSource,
)

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 30000
DEFAULT_MAX_CONCURRENT_RENDERS = 2
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

BrowserLauncher = Callable[[], AbstractAsyncContextManager[Any]]


def chromium_launcher(*, headless: bool = True) -> BrowserLauncher:
    """Build a launcher that starts a fresh Playwright Chromium per use."""

    @asynccontextmanager
    async def launch() -> AsyncIterator[Any]:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=headless, args=CHROMIUM_ARGS)
            try:
                yield browser
            finally:
                await browser.close()

    return launch


class WebpageScreenshotter:
    """Renders a URL and captures it as PNG."""

    def __init__(
        self,
        *,
        launcher: BrowserLauncher | None = None,
        max_concurrent_renders: int = DEFAULT_MAX_CONCURRENT_RENDERS,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if max_concurrent_renders < 1:
            raise ValueError("max_concurrent_renders must be >= 1")
        self._launcher = launcher or chromium_launcher()
        self._render_slots = asyncio.Semaphore(max_concurrent_renders)
        self._navigation_timeout_ms = navigation_timeout_ms
        self._user_agent = user_agent

    async def acquire(self, source: WebpageSource) -> ImageAsset:
        async with self._render_slots:
            try:
                data = await self._capture(source)
            except PlaywrightError as e:
                raise ImageAcquisitionError(
                    AcquisitionFailure.RENDER_FAILURE,
                    f"Failed to render {source.url}",
                    details=str(e),
                ) from e

        if not data:
            raise ImageAcquisitionError(
                AcquisitionFailure.RENDER_FAILURE,
                f"Screenshot of {source.url} was empty",
            )

        logger.info(
            "screenshot_captured",
            extra={"url": source.url, "bytes": len(data)},
        )
        return ImageAsset(
            data=data,
            mime_type=ImageMimeType.PNG,
            source_kind=ImageSourceKind.SCREENSHOT,
        )

    async def _capture(self, source: WebpageSource) -> bytes:
        logger.debug("screenshot_starting", extra={"url": source.url})
        async with self._launcher() as browser:
            context = await browser.new_context(
                viewport={
                    "width": source.viewport_width,
                    "height": source.viewport_height,
                },
                user_agent=self._user_agent,
            )
            page = await context.new_page()
            try:
                await page.goto(
                    source.url,
                    wait_until="networkidle",
                    timeout=self._navigation_timeout_ms,
                )
            except PlaywrightTimeoutError as e:
                raise ImageAcquisitionError(
                    AcquisitionFailure.RENDER_TIMEOUT,
                    f"Timed out loading {source.url}",
                    details=str(e),
                ) from e
            if source.wait_for_ms > 0:
                await asyncio.sleep(source.wait_for_ms / 1000)
            return await page.screenshot(type="png", full_page=source.full_page)
