"""APScheduler-based scheduler for periodic index rebuilds.

Each job pulls a fresh dataset from a content provider and runs a shadow-index
reindex with it. A failed run is logged and the next run starts from scratch
with a new shadow index.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Awaitable, Callable, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from indexkit.indexing.index import SearchIndex
from indexkit.indexing.rebuild import IndexContent

log = structlog.get_logger()

ContentProvider = Callable[[], Awaitable[IndexContent]]


class RebuildScheduler:
    """Schedules periodic `SearchIndex.reindex` runs using AsyncIOScheduler."""

    def __init__(self) -> None:
        self._scheduler = AsyncIOScheduler()
        self._started = False

    def start(self) -> None:
        """Start the underlying scheduler if not already started."""
        if not self._started:
            self._scheduler.start(paused=False)
            self._started = True

    def shutdown(self, *, wait: bool = True) -> None:
        """Shut down the scheduler."""
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False

    def schedule_reindex(
        self,
        index: SearchIndex,
        provider: ContentProvider,
        *,
        interval: timedelta = timedelta(hours=1),
        wait: bool = True,
        job_id: Optional[str] = None,
        replace_existing: bool = True,
    ) -> str:
        """Schedule periodic rebuilds of `index` from `provider()`.

        Parameters
        ----------
        index: SearchIndex
            Production index to rebuild.
        provider: ContentProvider
            Coroutine function returning the full dataset for each run.
        interval: timedelta
            How often to rebuild (default one hour).
        wait: bool
            Wait for every task of a run to be published before it ends.
        job_id: Optional[str]
            Explicit job id; defaults to ``reindex:<index name>``.
        replace_existing: bool
            If True, replace any existing job with the same id.

        Returns the job id.
        """
        jid = job_id or f"reindex:{index.name}"

        async def _job() -> None:
            try:
                content = await provider()
                await index.reindex(content, wait=wait)
            except Exception:
                log.exception("scheduler.reindex_failed", index=index.name, job_id=jid)
                raise

        trigger = IntervalTrigger(seconds=int(interval.total_seconds()))
        self._scheduler.add_job(
            _job,
            trigger=trigger,
            id=jid,
            replace_existing=replace_existing,
            max_instances=1,
            coalesce=True,
        )
        return jid

    def cancel(self, job_id: str) -> None:
        self._scheduler.remove_job(job_id)
