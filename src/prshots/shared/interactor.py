"""Expand-then-capture sequence for a single GitHub pull request page."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Page

from prshots.schemas.config import Timings

logger = logging.getLogger(__name__)

LOAD_MORE_SELECTOR = "button.ajax-pagination-btn"
SHOW_RESOLVED_SELECTOR = "span.Details-content--closed"

# Clicks every match inside the page in one round trip; returns how many matched.
_TRIGGER_ALL_JS = """(selector) => {
    const nodes = Array.from(document.querySelectorAll(selector));
    nodes.forEach(node => {
        try {
            node.click();
        } catch (e) {
            // One stale node must not stop the rest
        }
    });
    return nodes.length;
}"""


class PageInteractor:
    """Reveals all lazily loaded content on a page, then screenshots it.

    Each step is safe to run when there is nothing to expand. Both expand
    loops are capped at ``timings.max_expand_iterations``; hitting the cap
    just stops trying.
    """

    def __init__(self, timings: Timings | None = None) -> None:
        self.timings = timings or Timings()

    async def trigger_all_matching(self, page: Page, selector: str) -> int:
        """Click every element matching ``selector`` in a single evaluate call.

        Per-element click failures are ignored inside the page. Returns the
        number of elements found.
        """
        count = await page.evaluate(_TRIGGER_ALL_JS, selector)
        return int(count or 0)

    async def expand_pagination(self, page: Page) -> int:
        """Keep pressing the "Load more…" button until it disappears.

        The button is re-located each time since the timeline subtree is
        replaced after every load. Returns the number of click attempts.
        """
        attempts = 0
        for _ in range(self.timings.max_expand_iterations):
            button = await page.query_selector(LOAD_MORE_SELECTOR)
            if button is None:
                break
            attempts += 1
            logger.debug("Clicking 'Load more' (%d) on %s", attempts, page.url)
            try:
                await button.click()
            except Exception as exc:
                logger.warning("'Load more' click failed on %s: %s", page.url, exc)
            await page.wait_for_timeout(self.timings.load_more_settle_ms)
        return attempts

    async def expand_resolved(self, page: Page) -> int:
        """Open every collapsed "Show resolved" conversation, batch by batch.

        Returns the number of passes that found something to click.
        """
        passes = 0
        for _ in range(self.timings.max_expand_iterations):
            clicked = await self.trigger_all_matching(page, SHOW_RESOLVED_SELECTOR)
            if not clicked:
                break
            passes += 1
            logger.debug("Expanded %d resolved thread(s) on %s", clicked, page.url)
            await page.wait_for_timeout(self.timings.resolved_settle_ms)
        return passes

    async def capture(self, page: Page, output_path: Path) -> None:
        """Full-page screenshot, falling back once to a viewport-only capture."""
        try:
            await page.screenshot(path=str(output_path), full_page=True)
        except Exception as exc:
            logger.warning(
                "Full-page screenshot failed for %s: %s — retrying viewport only",
                output_path.name, exc,
            )
            await page.wait_for_timeout(self.timings.screenshot_retry_ms)
            await page.screenshot(path=str(output_path), full_page=False)

    async def prepare_and_capture(self, page: Page, url: str, output_path: Path) -> None:
        """Navigate, expand everything, fix the viewport and write ``output_path``."""
        await page.goto(
            url, wait_until="networkidle", timeout=self.timings.navigation_timeout_ms,
        )
        await self.expand_pagination(page)
        await self.expand_resolved(page)
        await page.set_viewport_size(
            {"width": self.timings.viewport_width, "height": self.timings.viewport_height}
        )
        await self.capture(page, output_path)
        logger.info("Screenshot saved: %s", output_path)
