"""One pull request job — screenshots of the conversation and files views."""

from __future__ import annotations

import logging
from pathlib import Path

from prshots.schemas.pull_request import PullRequestRecord, View
from prshots.shared.browser import BrowserManager
from prshots.shared.interactor import PageInteractor

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """A pull request view could not be captured."""

    def __init__(self, number: int, view: View, cause: BaseException) -> None:
        super().__init__(f"{view.value} page failed: {cause}")
        self.number = number
        self.view = view
        self.cause = cause


class PullRequestJob:
    """Captures both views of a pull request, one page at a time.

    Views are processed sequentially so a single job never holds more than
    one tab; concurrency across pull requests is the scheduler's business.
    """

    VIEWS = (View.DETAILS, View.FILES)

    def __init__(
        self,
        browser: BrowserManager,
        interactor: PageInteractor,
        output_dir: Path,
    ) -> None:
        self.browser = browser
        self.interactor = interactor
        self.output_dir = Path(output_dir)

    def output_path(self, record: PullRequestRecord, view: View) -> Path:
        return self.output_dir / record.artifact_name(view)

    async def capture_view(self, record: PullRequestRecord, view: View) -> Path:
        url = record.url_for(view)
        path = self.output_path(record, view)
        logger.info("PR #%d (%s) %s page: %s", record.number, record.title, view.value, url)
        try:
            async with self.browser.page() as page:
                await self.interactor.prepare_and_capture(page, url, path)
        except Exception as exc:
            raise CaptureError(record.number, view, exc) from exc
        return path

    async def run(self, record: PullRequestRecord) -> list[Path]:
        """Write ``<stem>_details.png`` and ``<stem>_files.png``; return their paths."""
        return [await self.capture_view(record, view) for view in self.VIEWS]
