"""Handles returned by every write call."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from indexkit.client.options import RequestOptions

if TYPE_CHECKING:
    from indexkit.indexing.index import SearchIndex


class IndexingResponse:
    """Pairs a write reply's task id with the index that has to be polled for it.

    Responses are independent: several can be awaited concurrently, each one
    only polls its own task.
    """

    def __init__(self, raw: Dict[str, Any], index: SearchIndex) -> None:
        self.raw = raw
        self.index = index

    @property
    def task_id(self) -> Any:
        return self.raw.get("taskID")

    async def wait(self, options: Optional[RequestOptions] = None) -> IndexingResponse:
        await self.index.wait_task(self.task_id, options)
        return self

    def rebind(self, index: SearchIndex) -> IndexingResponse:
        """Point this response at `index`, e.g. after its owner was renamed by a move."""
        self.index = index
        return self

    def __getitem__(self, key: str) -> Any:
        return self.raw[key]

    def __repr__(self) -> str:
        return f"IndexingResponse(index={self.index.name!r}, task_id={self.task_id!r})"


async def wait_all(responses: Iterable[IndexingResponse]) -> None:
    """Await every response in order."""
    for response in responses:
        await response.wait()
