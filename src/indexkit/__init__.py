"""Client-side batching, task tracking and atomic rebuilds for a hosted search index."""

from indexkit.client.dispatcher import Dispatcher, HttpDispatcher
from indexkit.client.options import RequestOptions
from indexkit.config import SearchConfig, Settings, load_settings
from indexkit.indexing import (
    ActionTag,
    IndexContent,
    IndexingResponse,
    RebuildCoordinator,
    SearchIndex,
    TaskWaiter,
)

__version__ = "0.1.0"

__all__ = [
    "ActionTag",
    "Dispatcher",
    "HttpDispatcher",
    "IndexContent",
    "IndexingResponse",
    "RebuildCoordinator",
    "RequestOptions",
    "SearchConfig",
    "SearchIndex",
    "Settings",
    "TaskWaiter",
    "load_settings",
]
