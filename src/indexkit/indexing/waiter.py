"""Polling for asynchronous task completion.

Every write on the search service returns a task id. The task is processed
in the background and reports ``status == "published"`` once its effects are
visible. :class:`TaskWaiter` polls the owning index until that happens.
"""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, Optional

import structlog

from indexkit.client.options import RequestOptions
from indexkit.exceptions import InvalidArgumentError, TaskTimeoutError

if TYPE_CHECKING:
    from indexkit.indexing.index import SearchIndex

log = structlog.get_logger()

PUBLISHED = "published"


def validate_task_id(task_id: Any) -> None:
    if task_id is None or str(task_id).strip() == "":
        raise InvalidArgumentError("taskID cannot be empty")


class TaskWaiter:
    """Poll a task until it is published, backing off every 10 polls.

    Parameters
    ----------
    base_interval: float
        Seconds slept between the first polls. The sleep grows by one
        base_interval for every 10 polls and never shrinks.
    max_attempts: int | None
        Optional cap on the number of polls. Unset means poll forever, which
        blocks indefinitely on a task that never publishes.
    sleep:
        Coroutine function used to sleep; injectable for tests.
    """

    def __init__(
        self,
        base_interval: float = 0.1,
        *,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.base_interval = base_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def delay_for(self, retry: int) -> float:
        return self.base_interval * math.ceil(retry / 10)

    def delays(self) -> Iterator[float]:
        """Infinite sequence of sleeps taken after each unsuccessful poll."""
        retry = 1
        while True:
            retry += 1
            yield self.delay_for(retry)

    async def wait(
        self,
        index: SearchIndex,
        task_id: Any,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        """Block until `task_id` on `index` is published; return the final status."""
        validate_task_id(task_id)
        attempts = 0
        delays = self.delays()
        while True:
            attempts += 1
            res = await index.get_task(task_id, options)
            if res.get("status") == PUBLISHED:
                log.debug("task.published", index=index.name, task_id=task_id, polls=attempts)
                return res
            if self.max_attempts is not None and attempts >= self.max_attempts:
                log.warning(
                    "task.wait_exhausted", index=index.name, task_id=task_id, polls=attempts
                )
                raise TaskTimeoutError(task_id, attempts)
            delay = next(delays)
            log.debug("task.poll", index=index.name, task_id=task_id, attempt=attempts, sleep=delay)
            await self._sleep(delay)
