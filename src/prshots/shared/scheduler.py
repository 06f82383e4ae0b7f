"""Bounded-concurrency batch runner and the single-retry policy."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

JobThunk = Callable[[], Awaitable[T]]
"""A zero-argument coroutine factory; calling it starts the job."""

BatchCallback = Callable[[int, int], None]
"""Called with (batch_index, batch_size) before each batch is launched."""


async def retry_once(thunk: JobThunk[T], *, delay_ms: int = 2000, label: str = "job") -> T:
    """Run ``thunk``; on failure wait ``delay_ms`` and run it exactly once more.

    The second failure propagates unchanged. No backoff — flaky rendering
    either settles within a couple of seconds or not at all.
    """
    try:
        return await thunk()
    except Exception as exc:
        logger.warning("%s failed: %s — retrying in %d ms", label, exc, delay_ms)
    await asyncio.sleep(delay_ms / 1000)
    return await thunk()


async def run_in_batches(
    thunks: Sequence[JobThunk[T]],
    batch_size: int,
    *,
    on_batch: BatchCallback | None = None,
) -> list[T | BaseException]:
    """Run ``thunks`` in consecutive groups of at most ``batch_size``.

    Every member of a group runs concurrently; the next group starts only
    after the whole group has settled, so at most ``batch_size`` jobs are
    ever in flight. A failing member never cancels its siblings.

    Returns one entry per thunk, in input order: its result, or the
    exception it raised.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    results: list[Any] = []
    for index, start in enumerate(range(0, len(thunks), batch_size)):
        batch = thunks[start:start + batch_size]
        if on_batch is not None:
            on_batch(index, len(batch))
        logger.debug("Launching batch %d with %d job(s)", index + 1, len(batch))
        results.extend(
            await asyncio.gather(*(thunk() for thunk in batch), return_exceptions=True)
        )
    return results
