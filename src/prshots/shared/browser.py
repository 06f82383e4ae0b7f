"""Playwright browser manager — shared connection to an already running Chromium."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from types import TracebackType
from typing import AsyncIterator

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)


class BrowserManager:
    """Connects to a remote Chromium over the DevTools protocol.

    Pages open in the browser's existing default context, so a session that
    is already signed in to GitHub is reused. Leaving the ``async with``
    block disconnects; the remote browser itself keeps running.

    Usage::

        async with BrowserManager("http://localhost:9222") as bm:
            async with bm.page() as page:
                await page.goto("https://github.com")
    """

    def __init__(self, endpoint: str = "http://localhost:9222") -> None:
        self.endpoint = endpoint
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def __aenter__(self) -> "BrowserManager":
        self._pw = await async_playwright().start()
        try:
            self._browser = await self._pw.chromium.connect_over_cdp(self.endpoint)
        except Exception:
            await self._pw.stop()
            self._pw = None
            raise
        if self._browser.contexts:
            self._context = self._browser.contexts[0]
        else:
            self._context = await self._browser.new_context()
        logger.info("Connected to browser at %s", self.endpoint)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        # For CDP connections close() only drops the connection.
        if self._browser:
            await self._browser.close()
        if self._pw:
            await self._pw.stop()
        logger.info("Disconnected from browser")

    async def new_page(self) -> Page:
        assert self._context is not None, "BrowserManager not entered"
        return await self._context.new_page()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open a fresh tab and close it on every exit path."""
        page = await self.new_page()
        try:
            yield page
        finally:
            await page.close()
