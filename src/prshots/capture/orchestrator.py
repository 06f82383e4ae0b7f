"""Capture orchestrator — search, then screenshot every match in bounded batches."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from prshots.capture.job import PullRequestJob
from prshots.schemas.config import CaptureConfig
from prshots.schemas.pull_request import JobOutcome, PullRequestRecord, RunSummary
from prshots.shared.browser import BrowserManager
from prshots.shared.interactor import PageInteractor
from prshots.shared.progress import CaptureProgress, console
from prshots.shared.scheduler import JobThunk, retry_once, run_in_batches
from prshots.shared.search import SearchClient

logger = logging.getLogger(__name__)


class CaptureOrchestrator:
    """Coordinates a capture run.

    Flow:
        search (all pages) → open browser connection → batches of
        retry-wrapped pull request jobs → disconnect
    """

    def __init__(
        self,
        config: CaptureConfig,
        *,
        search: SearchClient | None = None,
        browser_factory: Callable[[str], BrowserManager] = BrowserManager,
        interactor: PageInteractor | None = None,
    ) -> None:
        self.config = config
        self._search = search
        self._browser_factory = browser_factory
        self.interactor = interactor or PageInteractor(config.timings)

    async def plan(self) -> list[PullRequestRecord]:
        """Fetch every pull request the run would capture."""
        cfg = self.config
        if self._search is not None:
            return await self._search.fetch_all(cfg.owner, cfg.repo, cfg.author)
        async with SearchClient(cfg.token, per_page=cfg.per_page) as search:
            return await search.fetch_all(cfg.owner, cfg.repo, cfg.author)

    async def run(self) -> RunSummary:
        """Execute the full run and return per pull request outcomes."""
        records = await self.plan()
        if not records:
            logger.info(
                "No matching pull requests by %s in %s/%s",
                self.config.author, self.config.owner, self.config.repo,
            )
            console.print(
                f"[yellow]No pull requests by {self.config.author} "
                f"in {self.config.owner}/{self.config.repo}.[/]"
            )
            return RunSummary()

        out_dir = Path(self.config.output_directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Found %d pull request(s); saving screenshots to %s", len(records), out_dir)

        with CaptureProgress() as progress:
            progress.log_event(f"Found {len(records)} pull request(s); saving screenshots to {out_dir}")
            progress.print_phase(
                f"Capturing {len(records)} pull request(s), {self.config.batch_size} at a time"
            )
            progress.start(len(records))
            async with self._browser_factory(self.config.browser_endpoint) as browser:
                job = PullRequestJob(browser, self.interactor, out_dir)
                thunks = [self._make_task(job, record, progress) for record in records]
                outcomes = await run_in_batches(
                    thunks, self.config.batch_size, on_batch=progress.start_batch,
                )

        summary = RunSummary(outcomes=outcomes)
        logger.info(
            "Run finished: %d captured, %d failed", len(summary.succeeded), len(summary.failed),
        )
        return summary

    def _make_task(
        self,
        job: PullRequestJob,
        record: PullRequestRecord,
        progress: CaptureProgress,
    ) -> JobThunk[JobOutcome]:
        """Wrap one record's job in the retry policy, turning the final error into an outcome."""

        async def task() -> JobOutcome:
            try:
                await retry_once(
                    lambda: job.run(record),
                    delay_ms=self.config.timings.job_retry_ms,
                    label=f"PR #{record.number}",
                )
            except Exception as exc:
                logger.error("PR #%d failed after retry: %s", record.number, exc)
                progress.fail_pr(record.number, str(exc))
                return JobOutcome(
                    number=record.number, title=record.title, succeeded=False, error=str(exc),
                )
            progress.finish_pr(record.number, record.title)
            return JobOutcome(number=record.number, title=record.title, succeeded=True)

        return task
