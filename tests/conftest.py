"""Shared test fixtures."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from prshots.schemas.config import CaptureConfig, Timings
from prshots.schemas.pull_request import PullRequestRecord

# Zero delays so retry and settle waits don't slow the suite down
FAST_TIMINGS = Timings(
    load_more_settle_ms=0,
    resolved_settle_ms=0,
    screenshot_retry_ms=0,
    job_retry_ms=0,
)


def make_page(url: str = "about:blank") -> MagicMock:
    """A Playwright ``Page`` stand-in with nothing left to expand."""
    page = MagicMock()
    page.url = url
    page.goto = AsyncMock()
    page.query_selector = AsyncMock(return_value=None)
    page.evaluate = AsyncMock(return_value=0)
    page.wait_for_timeout = AsyncMock()
    page.set_viewport_size = AsyncMock()
    page.screenshot = AsyncMock()
    page.close = AsyncMock()
    return page


class FakeBrowser:
    """Drop-in for ``BrowserManager`` that hands out mock pages."""

    def __init__(self, endpoint: str = "http://localhost:9222") -> None:
        self.endpoint = endpoint
        self.entered = False
        self.exited = False
        self.pages: list[MagicMock] = []

    async def __aenter__(self) -> "FakeBrowser":
        self.entered = True
        return self

    async def __aexit__(self, *args: object) -> None:
        self.exited = True

    @asynccontextmanager
    async def page(self) -> AsyncIterator[MagicMock]:
        page = make_page()
        self.pages.append(page)
        try:
            yield page
        finally:
            await page.close()


@pytest.fixture
def timings() -> Timings:
    return FAST_TIMINGS


@pytest.fixture
def capture_config(tmp_path) -> CaptureConfig:
    return CaptureConfig(
        token="ghp_test",
        owner="octo",
        repo="hello",
        author="alice",
        output_directory=str(tmp_path / "shots"),
        batch_size=2,
        timings=FAST_TIMINGS,
    )


@pytest.fixture
def record() -> PullRequestRecord:
    return PullRequestRecord(
        number=42,
        title="Fix: a/b <bug>",
        canonical_url="https://github.com/octo/hello/pull/42",
    )
