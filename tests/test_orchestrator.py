"""Tests for the CaptureOrchestrator — search, batching and outcome collection."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from prshots.capture.orchestrator import CaptureOrchestrator
from prshots.schemas.config import CaptureConfig
from prshots.schemas.pull_request import PullRequestRecord
from prshots.shared.interactor import PageInteractor
from prshots.shared.progress import CaptureProgress

from conftest import FakeBrowser


def _records(*numbers: int) -> list[PullRequestRecord]:
    return [
        PullRequestRecord(
            number=n, title=f"Change {n}", canonical_url=f"https://github.com/octo/hello/pull/{n}",
        )
        for n in numbers
    ]


def _search(records: list[PullRequestRecord]) -> MagicMock:
    search = MagicMock()
    search.fetch_all = AsyncMock(return_value=records)
    return search


class _Browsers:
    """browser_factory that remembers every FakeBrowser it builds."""

    def __init__(self) -> None:
        self.built: list[FakeBrowser] = []

    def __call__(self, endpoint: str) -> FakeBrowser:
        browser = FakeBrowser(endpoint)
        self.built.append(browser)
        return browser


def _interactor(fail_urls: dict[str, int] | None = None) -> MagicMock:
    """Interactor mock; ``fail_urls`` maps a URL to how many times it should fail."""
    remaining = dict(fail_urls or {})

    async def prepare(page, url: str, path: Path) -> None:
        if remaining.get(url, 0) > 0:
            remaining[url] -= 1
            raise RuntimeError(f"could not load {url}")

    interactor = MagicMock(spec=PageInteractor)
    interactor.prepare_and_capture = AsyncMock(side_effect=prepare)
    return interactor


class TestCaptureOrchestrator:
    @pytest.mark.asyncio
    async def test_all_succeed(self, capture_config: CaptureConfig) -> None:
        browsers = _Browsers()
        search = _search(_records(1, 2, 3))
        orch = CaptureOrchestrator(
            capture_config, search=search, browser_factory=browsers, interactor=_interactor(),
        )

        summary = await orch.run()

        search.fetch_all.assert_awaited_once_with("octo", "hello", "alice")
        assert summary.ok
        assert [o.number for o in summary.succeeded] == [1, 2, 3]
        assert len(browsers.built) == 1
        browser = browsers.built[0]
        assert browser.endpoint == "http://localhost:9222"
        assert browser.exited
        # two pages per pull request, every one closed
        assert len(browser.pages) == 6
        assert all(p.close.await_count == 1 for p in browser.pages)
        assert Path(capture_config.output_directory).is_dir()

    @pytest.mark.asyncio
    async def test_no_records_skips_browser(self, capture_config: CaptureConfig) -> None:
        browsers = _Browsers()
        orch = CaptureOrchestrator(capture_config, search=_search([]), browser_factory=browsers)

        summary = await orch.run()

        assert summary.total == 0
        assert browsers.built == []
        assert not Path(capture_config.output_directory).exists()

    @pytest.mark.asyncio
    async def test_flaky_job_recovers_on_retry(self, capture_config: CaptureConfig) -> None:
        interactor = _interactor({"https://github.com/octo/hello/pull/2/files": 1})
        orch = CaptureOrchestrator(
            capture_config, search=_search(_records(1, 2)),
            browser_factory=_Browsers(), interactor=interactor,
        )

        summary = await orch.run()

        assert summary.ok
        # PR 2 ran details, files (fail), then details and files again
        urls = [c.args[1] for c in interactor.prepare_and_capture.await_args_list]
        assert urls.count("https://github.com/octo/hello/pull/2") == 2
        assert urls.count("https://github.com/octo/hello/pull/2/files") == 2

    @pytest.mark.asyncio
    async def test_failed_job_is_collected_not_fatal(self, capture_config: CaptureConfig) -> None:
        interactor = _interactor({"https://github.com/octo/hello/pull/2": 2})
        browsers = _Browsers()
        orch = CaptureOrchestrator(
            capture_config, search=_search(_records(1, 2, 3)),
            browser_factory=browsers, interactor=interactor,
        )

        summary = await orch.run()

        assert not summary.ok
        assert [o.number for o in summary.succeeded] == [1, 3]
        [failed] = summary.failed
        assert failed.number == 2
        assert failed.error.startswith("details page failed")
        assert browsers.built[0].exited

    @pytest.mark.asyncio
    async def test_browser_released_on_unexpected_error(
        self, capture_config: CaptureConfig, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        browsers = _Browsers()
        monkeypatch.setattr(
            "prshots.capture.orchestrator.run_in_batches",
            AsyncMock(side_effect=RuntimeError("scheduler exploded")),
        )
        orch = CaptureOrchestrator(
            capture_config, search=_search(_records(1)),
            browser_factory=browsers, interactor=_interactor(),
        )

        with pytest.raises(RuntimeError, match="scheduler exploded"):
            await orch.run()
        assert browsers.built[0].exited

    @pytest.mark.asyncio
    async def test_plan_uses_search_only(self, capture_config: CaptureConfig) -> None:
        browsers = _Browsers()
        orch = CaptureOrchestrator(capture_config, search=_search(_records(5)), browser_factory=browsers)
        records = await orch.plan()
        assert [r.number for r in records] == [5]
        assert browsers.built == []


class TestRunReporting:
    @pytest.mark.asyncio
    async def test_no_records_is_logged(
        self, capture_config: CaptureConfig, caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO, logger="prshots")
        orch = CaptureOrchestrator(capture_config, search=_search([]), browser_factory=_Browsers())

        await orch.run()

        assert "No matching pull requests by alice in octo/hello" in caplog.text

    @pytest.mark.asyncio
    async def test_found_count_is_logged_and_shown(
        self,
        capture_config: CaptureConfig,
        caplog: pytest.LogCaptureFixture,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        caplog.set_level(logging.INFO, logger="prshots")
        log_event = MagicMock()
        monkeypatch.setattr(CaptureProgress, "log_event", log_event)
        orch = CaptureOrchestrator(
            capture_config, search=_search(_records(1, 2, 3)),
            browser_factory=_Browsers(), interactor=_interactor(),
        )

        await orch.run()

        assert "Found 3 pull request(s)" in caplog.text
        log_event.assert_called_once()
        assert log_event.call_args.args[0].startswith("Found 3 pull request(s)")

    @pytest.mark.asyncio
    async def test_failure_lines_name_the_pr_once(
        self, capture_config: CaptureConfig, caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO, logger="prshots")
        interactor = _interactor({"https://github.com/octo/hello/pull/2": 2})
        orch = CaptureOrchestrator(
            capture_config, search=_search(_records(2)),
            browser_factory=_Browsers(), interactor=interactor,
        )

        await orch.run()

        mentions = [r.getMessage() for r in caplog.records if "PR #2" in r.getMessage()]
        assert any("failed after retry" in m for m in mentions)
        for message in mentions:
            assert message.count("PR #2") == 1, message
