"""Pull request records, screenshot naming and per-job outcomes."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

# Characters that are not allowed in file names on at least one major platform,
# plus inner whitespace so names survive unquoted shell use.
_FORBIDDEN = re.compile(r'[/\\:*?"<>|\s]')


def build_search_query(owner: str, repo: str, author: str) -> str:
    """Issue-search query selecting pull requests in ``owner/repo`` by ``author``."""
    return f"is:pr repo:{owner}/{repo} author:{author}"


def sanitize_filename(title: str) -> str:
    """Trim surrounding whitespace, then replace path-hostile characters with ``_``.

    ``"Fix: a/b <bug>"`` becomes ``"Fix__a_b__bug_"``. Total and idempotent.
    """
    return _FORBIDDEN.sub("_", title.strip())


class View(str, Enum):
    """The two pull request pages that get captured."""

    DETAILS = "details"
    FILES = "files"


class PullRequestRecord(BaseModel):
    """One pull request returned by the search endpoint."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    canonical_url: str

    @classmethod
    def from_search_item(cls, item: dict[str, Any]) -> "PullRequestRecord":
        """Build a record from a ``search/issues`` item.

        Issue search items expose the web URL of a pull request under
        ``pull_request.html_url``; plain ``html_url`` is used as a fallback.
        """
        pr_links = item.get("pull_request") or {}
        url = pr_links.get("html_url") or item["html_url"]
        return cls(number=item["number"], title=item.get("title") or "", canonical_url=url)

    @property
    def filename_stem(self) -> str:
        return f"PR_{self.number}_{sanitize_filename(self.title)}"

    @property
    def details_url(self) -> str:
        return self.canonical_url

    @property
    def files_url(self) -> str:
        url = self.canonical_url.rstrip("/")
        return url if url.endswith("/files") else url + "/files"

    def url_for(self, view: View) -> str:
        return self.files_url if view is View.FILES else self.details_url

    def artifact_name(self, view: View) -> str:
        return f"{self.filename_stem}_{view.value}.png"


class JobOutcome(BaseModel):
    """Result of one pull request job after retries are exhausted."""

    number: int
    title: str = ""
    succeeded: bool
    error: str = ""


class RunSummary(BaseModel):
    """Aggregated outcomes of a capture run — logged, never persisted."""

    outcomes: list[JobOutcome] = []

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> list[JobOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[JobOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def ok(self) -> bool:
        return not self.failed
