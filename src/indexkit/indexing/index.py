"""Index handle exposing object, synonym, rule, settings and task operations.

Every write returns an :class:`IndexingResponse` (or a list of them for
chunked writes). Validation happens before anything is dispatched; errors
raised by the dispatcher propagate unchanged.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from urllib.parse import urlencode

import structlog

from indexkit.client.dispatcher import Dispatcher, api_path
from indexkit.client.options import RequestOptions, with_options
from indexkit.config import SearchConfig
from indexkit.exceptions import InvalidArgumentError
from indexkit.indexing.batch import (
    OBJECT_ID,
    ActionTag,
    BatchEntry,
    Record,
    build_batch,
    chunked,
    ensure_object_ids,
)
from indexkit.indexing.iterators import ObjectIterator, RuleIterator, SynonymIterator
from indexkit.indexing.rebuild import IndexContent, RebuildCoordinator
from indexkit.indexing.response import IndexingResponse
from indexkit.indexing.waiter import TaskWaiter, validate_task_id

log = structlog.get_logger()


def _require_id(value: Any, what: str) -> str:
    if value is None or str(value).strip() == "":
        raise InvalidArgumentError(f"{what} cannot be empty")
    return str(value)


def _encode_query(params: Mapping[str, Any]) -> str:
    out: Dict[str, str] = {}
    for key, value in params.items():
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        elif isinstance(value, (list, dict)):
            out[key] = json.dumps(value, separators=(",", ":"))
        else:
            out[key] = str(value)
    return urlencode(out)


class SearchIndex:
    """A named index on the search service.

    The handle is immutable: `move` returns a response bound to a new handle
    for the destination name instead of renaming this one.
    """

    def __init__(
        self,
        name: str,
        dispatcher: Dispatcher,
        config: SearchConfig,
        *,
        waiter: Optional[TaskWaiter] = None,
    ) -> None:
        self._name = _require_id(name, "index name")
        self._dispatcher = dispatcher
        self._config = config
        self._waiter = waiter or TaskWaiter(
            config.wait_task_time_before_retry, max_attempts=config.max_wait_attempts
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> SearchConfig:
        return self._config

    def with_name(self, name: str) -> SearchIndex:
        """Return a handle for `name` sharing this handle's dispatcher, config and waiter."""
        return SearchIndex(name, self._dispatcher, self._config, waiter=self._waiter)

    def __repr__(self) -> str:
        return f"SearchIndex({self._name!r})"

    # ----- helpers -----

    def _path(self, suffix: str = "", *args: Any) -> str:
        return api_path("/1/indexes/%s" + suffix, self._name, *args)

    def _forward_defaults(self) -> Dict[str, Any]:
        fwd = self._config.default_forward_to_replicas
        return {"forwardToReplicas": fwd} if isinstance(fwd, bool) else {}

    async def _write(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
        *,
        forward: bool = False,
    ) -> IndexingResponse:
        raw = await self._dispatcher.write(
            method,
            path,
            body,
            options,
            self._forward_defaults() if forward else None,
        )
        return IndexingResponse(raw, self)

    # ----- search and reads -----

    async def search(self, query: str, options: Optional[RequestOptions] = None) -> Dict[str, Any]:
        opts = with_options(options).add_body_parameter("query", query)
        return await self._dispatcher.read("POST", self._path("/query"), opts)

    async def get_object(
        self, object_id: Any, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        oid = _require_id(object_id, "objectID")
        return await self._dispatcher.read("GET", self._path("/%s", oid), options)

    async def get_objects(
        self,
        object_ids: Iterable[Any],
        *,
        attributes_to_retrieve: Optional[Sequence[str]] = None,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        requests: List[Dict[str, Any]] = []
        for oid in object_ids:
            req: Dict[str, Any] = {"indexName": self._name, OBJECT_ID: str(oid)}
            if attributes_to_retrieve:
                req["attributesToRetrieve"] = list(attributes_to_retrieve)
            requests.append(req)
        opts = with_options(options).add_body_parameter("requests", requests)
        return await self._dispatcher.read("POST", api_path("/1/indexes/*/objects"), opts)

    def browse(self, options: Optional[RequestOptions] = None) -> ObjectIterator:
        return ObjectIterator(self._name, self._dispatcher, options)

    # ----- object writes -----

    async def batch(
        self, requests: Sequence[BatchEntry], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        log.debug("index.batch", index=self._name, size=len(requests))
        return await self._write(
            "POST", self._path("/batch"), {"requests": list(requests)}, options
        )

    async def _chunked_batch(
        self,
        records: List[Record],
        action: ActionTag,
        options: Optional[RequestOptions],
    ) -> List[IndexingResponse]:
        # Chunks go out one at a time, in input order.
        responses: List[IndexingResponse] = []
        for chunk in chunked(build_batch(records, action), self._config.batch_size):
            responses.append(await self.batch(chunk, options))
        return responses

    async def save_object(
        self, obj: Record, options: Optional[RequestOptions] = None
    ) -> List[IndexingResponse]:
        return await self.save_objects([obj], options)

    async def save_objects(
        self, objects: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> List[IndexingResponse]:
        """Add or replace objects, split into batches of `config.batch_size`."""
        records = list(objects)
        ensure_object_ids(
            records,
            "save_objects",
            "All objects must have an unique objectID (like a primary key) to be valid.",
        )
        return await self._chunked_batch(records, ActionTag.ADD_OBJECT, options)

    async def partial_update_object(
        self, obj: Record, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        return await self.partial_update_objects([obj], options)

    async def partial_update_objects(
        self, objects: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        """Update attributes of existing objects; missing objects are not created."""
        records = list(objects)
        ensure_object_ids(records, "partial_update_objects")
        return await self.batch(build_batch(records, ActionTag.UPDATE_OBJECT_NO_CREATE), options)

    async def partial_update_or_create_object(
        self, obj: Record, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        return await self.partial_update_or_create_objects([obj], options)

    async def partial_update_or_create_objects(
        self, objects: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        records = list(objects)
        ensure_object_ids(records, "partial_update_or_create_objects")
        return await self.batch(build_batch(records, ActionTag.UPSERT_OBJECT), options)

    async def delete_object(
        self, object_id: Any, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        return await self.delete_objects([object_id], options)

    async def delete_objects(
        self, object_ids: Iterable[Any], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        records = [{OBJECT_ID: _require_id(oid, "objectID")} for oid in object_ids]
        return await self.batch(build_batch(records, ActionTag.DELETE_OBJECT), options)

    async def delete_by(
        self, filters: Mapping[str, Any], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        """Delete every object matching the given query parameters (filters, facetFilters...)."""
        return await self._write(
            "POST", self._path("/deleteByQuery"), {"params": _encode_query(filters)}, options
        )

    async def clear(self, options: Optional[RequestOptions] = None) -> IndexingResponse:
        return await self._write("POST", self._path("/clear"), {}, options)

    async def replace_all_objects(
        self, objects: Iterable[Record], *, wait: bool = False
    ) -> List[IndexingResponse]:
        """Swap in a new object set atomically, keeping settings, synonyms and rules."""
        return await RebuildCoordinator(self).replace_all_objects(objects, wait=wait)

    async def reindex(self, content: IndexContent, *, wait: bool = False) -> List[IndexingResponse]:
        """Replace objects and any supplied settings, synonyms or rules atomically."""
        return await RebuildCoordinator(self).reindex(content, wait=wait)

    # ----- settings and index operations -----

    async def get_settings(self, options: Optional[RequestOptions] = None) -> Dict[str, Any]:
        opts = with_options(options).add_query_parameter("getVersion", 2)
        return await self._dispatcher.read("GET", self._path("/settings"), opts)

    async def set_settings(
        self, settings: Mapping[str, Any], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        return await self._write(
            "PUT", self._path("/settings"), dict(settings), options, forward=True
        )

    async def copy_to(
        self,
        destination: str,
        *,
        scope: Optional[Sequence[str]] = None,
        options: Optional[RequestOptions] = None,
    ) -> IndexingResponse:
        """Copy this index (or only the resource kinds in `scope`) to `destination`."""
        body: Dict[str, Any] = {
            "operation": "copy",
            "destination": _require_id(destination, "destination"),
        }
        if scope:
            body["scope"] = list(scope)
        return await self._write("POST", self._path("/operation"), body, options)

    async def move(
        self, destination: str, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        """Rename this index onto `destination`, replacing whatever lived there.

        The returned response is bound to a handle for `destination`; this
        handle's name no longer exists on the service afterwards.
        """
        body = {"operation": "move", "destination": _require_id(destination, "destination")}
        raw = await self._dispatcher.write("POST", self._path("/operation"), body, options, None)
        return IndexingResponse(raw, self.with_name(destination))

    # ----- synonyms -----

    async def search_synonyms(
        self, query: str, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        opts = with_options(options).add_body_parameter("query", query)
        return await self._dispatcher.read("POST", self._path("/synonyms/search"), opts)

    async def get_synonym(
        self, object_id: Any, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        oid = _require_id(object_id, "objectID")
        return await self._dispatcher.read("GET", self._path("/synonyms/%s", oid), options)

    async def save_synonym(
        self, synonym: Record, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        return await self.save_synonyms([synonym], options)

    async def save_synonyms(
        self, synonyms: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        items = [dict(s) for s in synonyms]
        ensure_object_ids(
            items, "save_synonyms", "All synonyms must have an unique objectID to be valid."
        )
        return await self._write(
            "POST", self._path("/synonyms/batch"), items, options, forward=True
        )

    async def replace_all_synonyms(
        self, synonyms: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        """Save `synonyms` and let the service drop every synonym not in the set."""
        opts = with_options(options).add_query_parameter("replaceExistingSynonyms", True)
        return await self.save_synonyms(synonyms, opts)

    async def delete_synonym(
        self, object_id: Any, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        oid = _require_id(object_id, "objectID")
        return await self._write(
            "DELETE", self._path("/synonyms/%s", oid), None, options, forward=True
        )

    async def clear_synonyms(self, options: Optional[RequestOptions] = None) -> IndexingResponse:
        return await self._write(
            "POST", self._path("/synonyms/clear"), {}, options, forward=True
        )

    def browse_synonyms(self, options: Optional[RequestOptions] = None) -> SynonymIterator:
        return SynonymIterator(self._name, self._dispatcher, options)

    # ----- rules -----

    async def search_rules(
        self, query: str, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        opts = with_options(options).add_body_parameter("query", query)
        return await self._dispatcher.read("POST", self._path("/rules/search"), opts)

    async def get_rule(
        self, object_id: Any, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        oid = _require_id(object_id, "objectID")
        return await self._dispatcher.read("GET", self._path("/rules/%s", oid), options)

    async def save_rule(
        self, rule: Record, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        return await self.save_rules([rule], options)

    async def save_rules(
        self, rules: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        items = [dict(r) for r in rules]
        ensure_object_ids(items, "save_rules", "All rules must have an unique objectID to be valid.")
        return await self._write("POST", self._path("/rules/batch"), items, options, forward=True)

    async def replace_all_rules(
        self, rules: Iterable[Record], options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        """Save `rules` and let the service drop every rule not in the set."""
        opts = with_options(options).add_query_parameter("clearExistingRules", True)
        return await self.save_rules(rules, opts)

    async def delete_rule(
        self, object_id: Any, options: Optional[RequestOptions] = None
    ) -> IndexingResponse:
        oid = _require_id(object_id, "objectID")
        return await self._write(
            "DELETE", self._path("/rules/%s", oid), None, options, forward=True
        )

    async def clear_rules(self, options: Optional[RequestOptions] = None) -> IndexingResponse:
        return await self._write("POST", self._path("/rules/clear"), {}, options, forward=True)

    def browse_rules(self, options: Optional[RequestOptions] = None) -> RuleIterator:
        return RuleIterator(self._name, self._dispatcher, options)

    # ----- tasks -----

    async def get_task(
        self, task_id: Any, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        validate_task_id(task_id)
        return await self._dispatcher.read("GET", self._path("/task/%s", task_id), options)

    async def wait_task(
        self, task_id: Any, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        return await self._waiter.wait(self, task_id, options)
