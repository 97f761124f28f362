"""Batched mutations, task waiting and shadow-index rebuilds."""

from .batch import ActionTag, build_batch, chunked, ensure_object_ids
from .index import SearchIndex
from .rebuild import IndexContent, RebuildCoordinator, make_shadow_name
from .response import IndexingResponse, wait_all
from .waiter import TaskWaiter

__all__ = [
    "ActionTag",
    "IndexContent",
    "IndexingResponse",
    "RebuildCoordinator",
    "SearchIndex",
    "TaskWaiter",
    "build_batch",
    "chunked",
    "ensure_object_ids",
    "make_shadow_name",
    "wait_all",
]
