"""Lifecycle management for the Playwright-controlled Chrome session."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Playwright,
    async_playwright,
)

from .config import ConvertConfig
from .errors import NavigationError
from .sites import GENERIC_ADAPTER, SiteAdapter

logger = logging.getLogger("url2md")


class RenderSession:
    """Lazily launched browser reused across page loads within one run.

    The browser is started on the first ``load`` and kept alive until
    ``shutdown``. A disconnected browser is replaced on the next ``acquire``.
    """

    def __init__(self, config: ConvertConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        """Return the live browser, launching a new one when required."""
        if self._browser is not None and self._browser.is_connected():
            return self._browser
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        logger.info("Launching browser %s", self.config.chrome_path)
        self._browser = await self._playwright.chromium.launch(
            executable_path=self.config.chrome_path,
            headless=self.config.headless,
            args=[f"--user-agent={self.config.user_agent}"],
        )
        return self._browser

    async def load(self, url: str, adapter: SiteAdapter = GENERIC_ADAPTER) -> str:
        """Navigate to a URL in a fresh tab and return the rendered HTML."""
        browser = await self.acquire()
        page = await browser.new_page()
        timeout_ms = self.config.navigation_timeout * 1000
        try:
            logger.debug("Loading %s in browser", url)
            try:
                await page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")
                await page.wait_for_load_state("networkidle", timeout=timeout_ms)
            except PlaywrightError as exc:
                raise NavigationError(url, str(exc), cause=exc) from exc

            if adapter.needs_preparation:
                await adapter.prepare(page)
                if self.config.settle_delay:
                    await page.wait_for_timeout(int(self.config.settle_delay * 1000))

            return await page.content()
        finally:
            await page.close()

    async def shutdown(self) -> None:
        """Close the browser and stop the driver; safe to call repeatedly."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if browser is not None:
            logger.debug("Closing browser")
            await browser.close()
        if playwright is not None:
            await playwright.stop()

    async def __aenter__(self) -> "RenderSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
