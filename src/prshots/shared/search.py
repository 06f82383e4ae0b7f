"""GitHub issue-search client — pages through every pull request by an author."""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from prshots.schemas.pull_request import PullRequestRecord, build_search_query

logger = logging.getLogger(__name__)

SEARCH_URL = "https://api.github.com/search/issues"
DEFAULT_PER_PAGE = 40


class SearchClient:
    """Thin async wrapper around the ``search/issues`` endpoint.

    Usage::

        async with SearchClient(token) as search:
            records = await search.fetch_all("octo", "repo", "alice")
    """

    def __init__(
        self,
        token: str,
        *,
        per_page: int = DEFAULT_PER_PAGE,
        http: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.per_page = per_page
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def __aenter__(self) -> "SearchClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _fetch_page(self, query: str, page: int) -> list[dict] | None:
        """Return the page's items, or ``None`` when the payload is unusable."""
        params = {"q": query, "per_page": self.per_page, "page": page}
        logger.info("Searching pull requests: page %d (%s)", page, query)
        resp = await self._http.get(SEARCH_URL, params=params, headers=self._headers)

        try:
            data = resp.json()
        except ValueError:
            logger.error(
                "Unexpected search response (HTTP %d, not JSON): %.200s",
                resp.status_code, resp.text,
            )
            return None

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.error("Unexpected search response (HTTP %d): %s", resp.status_code, data)
            return None
        return items

    async def fetch_all(self, owner: str, repo: str, author: str) -> list[PullRequestRecord]:
        """Collect every pull request in ``owner/repo`` authored by ``author``.

        Pages are requested in order starting at 1 until one comes back short.
        A malformed page stops pagination without raising; whatever was
        collected up to that point is returned.
        """
        query = build_search_query(owner, repo, author)
        records: list[PullRequestRecord] = []
        page = 1
        pages_read = 0
        while True:
            items = await self._fetch_page(query, page)
            if items is None:
                break
            pages_read += 1
            records.extend(PullRequestRecord.from_search_item(item) for item in items)
            if len(items) < self.per_page:
                break
            page += 1

        logger.info("Found %d pull request(s) across %d page(s)", len(records), pages_read)
        return records
