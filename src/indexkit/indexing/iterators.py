"""Lazy, restartable browse iteration over objects, synonyms and rules.

All three share one contract: fetch a page for a cursor, get back the hits
and the next cursor, stop when there is no next cursor. Each ``async for``
starts again from the first page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from indexkit.client.dispatcher import Dispatcher, api_path
from indexkit.client.options import RequestOptions, with_options

Page = Tuple[List[Dict[str, Any]], Optional[Any]]


class PageIterator(ABC):
    """Base for cursor-paginated browse iterators."""

    def __init__(
        self,
        index_name: str,
        dispatcher: Dispatcher,
        options: Optional[RequestOptions] = None,
    ) -> None:
        self.index_name = index_name
        self._dispatcher = dispatcher
        self._options = options

    @abstractmethod
    async def _fetch_page(self, cursor: Optional[Any]) -> Page:
        """Return the hits for `cursor` and the cursor of the following page."""

    async def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        cursor: Optional[Any] = None
        while True:
            hits, cursor = await self._fetch_page(cursor)
            for hit in hits:
                yield hit
            if cursor is None:
                return


class ObjectIterator(PageIterator):
    """Browse every record of an index using the service's opaque cursor."""

    async def _fetch_page(self, cursor: Optional[Any]) -> Page:
        opts = with_options(self._options)
        if cursor is not None:
            opts.add_body_parameter("cursor", cursor)
        res = await self._dispatcher.read(
            "POST", api_path("/1/indexes/%s/browse", self.index_name), opts
        )
        hits = res.get("hits") or []
        return list(hits), res.get("cursor") or None


class _SearchPageIterator(PageIterator):
    # Synonyms and rules have no cursor endpoint; page numbers stand in for one.
    resource: str = ""
    hits_per_page = 1000

    async def _fetch_page(self, cursor: Optional[Any]) -> Page:
        page = int(cursor or 0)
        opts = with_options(self._options)
        opts.add_body_parameter("hitsPerPage", self.hits_per_page)
        opts.add_body_parameter("page", page)
        res = await self._dispatcher.read(
            "POST",
            api_path("/1/indexes/%s/" + self.resource + "/search", self.index_name),
            opts,
        )
        hits = []
        for hit in res.get("hits") or []:
            item = dict(hit)
            item.pop("_highlightResult", None)
            hits.append(item)
        next_cursor = page + 1 if len(hits) >= self.hits_per_page else None
        return hits, next_cursor


class SynonymIterator(_SearchPageIterator):
    resource = "synonyms"


class RuleIterator(_SearchPageIterator):
    resource = "rules"
