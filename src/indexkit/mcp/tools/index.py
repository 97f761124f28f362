"""Index tools for FastMCP.

Search, batched writes, atomic object replacement and task tracking on a
named index.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP

from indexkit.indexing.index import SearchIndex
from indexkit.indexing.waiter import TaskWaiter


def register_index_tools(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register index tools on the given FastMCP instance.

    Reads the dispatcher from state.dispatcher and indexing behaviour from
    state.settings.search.
    """

    def _make_index(
        state_obj: Any, index_name: str, waiter: Optional[TaskWaiter] = None
    ) -> SearchIndex:
        dispatcher = getattr(state_obj, "dispatcher", None)
        settings = getattr(state_obj, "settings", None)
        if dispatcher is None or settings is None:
            raise RuntimeError(
                "Search service is not configured. Set INDEXKIT_SEARCH__BASE_URL, "
                "INDEXKIT_SEARCH__APP_ID, INDEXKIT_SEARCH__API_KEY."
            )
        return SearchIndex(index_name, dispatcher, settings.search, waiter=waiter)

    def _task_summary(responses: List[Any]) -> Dict[str, Any]:
        return {
            "task_ids": [r.task_id for r in responses],
            "requests": len(responses),
        }

    @mcp.tool
    async def index_search(index_name: str, query: str) -> Dict[str, Any]:
        """Run a full-text query against an index and return the raw result."""
        index = _make_index(get_state(), index_name)
        return await index.search(query)

    @mcp.tool
    async def index_save_objects(
        index_name: str, objects: List[Dict[str, Any]], wait: bool = False
    ) -> Dict[str, Any]:
        """Add or replace objects. Every object must carry an objectID.

        Parameters
        ----------
        index_name: str
            Target index.
        objects: list[dict]
            Records to save; sent in batches of the configured batch size.
        wait: bool
            If True, return only after every batch is published.
        """
        index = _make_index(get_state(), index_name)
        responses = await index.save_objects(objects)
        if wait:
            for r in responses:
                await r.wait()
        return _task_summary(responses)

    @mcp.tool
    async def index_delete_objects(index_name: str, object_ids: List[str]) -> Dict[str, Any]:
        """Delete objects by objectID."""
        index = _make_index(get_state(), index_name)
        response = await index.delete_objects(object_ids)
        return _task_summary([response])

    @mcp.tool
    async def index_replace_all_objects(
        index_name: str, objects: List[Dict[str, Any]], wait: bool = True
    ) -> Dict[str, Any]:
        """Atomically replace every object of an index, keeping its settings, synonyms and rules."""
        index = _make_index(get_state(), index_name)
        responses = await index.replace_all_objects(objects, wait=wait)
        return _task_summary(responses)

    @mcp.tool
    async def index_get_task(index_name: str, task_id: int) -> Dict[str, Any]:
        """Return the current status of a task."""
        index = _make_index(get_state(), index_name)
        return await index.get_task(task_id)

    @mcp.tool
    async def index_wait_task(
        index_name: str, task_id: int, max_attempts: Optional[int] = None
    ) -> Dict[str, Any]:
        """Wait until a task is published.

        Without `max_attempts` the configured cap applies; if none is
        configured this waits until the task is published.
        """
        state = get_state()
        index = _make_index(state, index_name)
        if max_attempts is not None:
            waiter = TaskWaiter(
                index.config.wait_task_time_before_retry, max_attempts=max_attempts
            )
            index = _make_index(state, index_name, waiter)
        return await index.wait_task(task_id)
