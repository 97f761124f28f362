"""Zero-downtime index rebuilds through a shadow index.

A rebuild stages the new dataset in a temporary index next to production and
then moves it over the production name in one operation. Until the move,
production keeps serving the old data; after it, it serves the new data.

The orchestration is not transactional. If any step fails the error
propagates, nothing already sent is undone, and the shadow index (logged as
``shadow``) is left on the service for the caller to inspect or delete.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Mapping, Optional, Sequence
from uuid import uuid4

import structlog

from indexkit.indexing.batch import ensure_object_ids
from indexkit.indexing.response import IndexingResponse, wait_all

if TYPE_CHECKING:
    from indexkit.indexing.index import SearchIndex

log = structlog.get_logger()

RESOURCE_SCOPES = ("settings", "synonyms", "rules")


def make_shadow_name(production: str) -> str:
    """Unique temporary index name derived from the production name."""
    return f"{production}_tmp_{uuid4().hex[:16]}"


@dataclass
class IndexContent:
    """Full dataset for a rebuild.

    Attributes
    ----------
    objects:
        Every record the rebuilt index should contain.
    settings:
        If given, replaces the settings copied from production.
    synonyms / rules:
        If given, saved on top of the synonyms/rules copied from production.
    """

    objects: Iterable[Mapping[str, Any]]
    settings: Optional[Mapping[str, Any]] = None
    synonyms: Optional[Sequence[Mapping[str, Any]]] = None
    rules: Optional[Sequence[Mapping[str, Any]]] = None


class RebuildCoordinator:
    """Runs shadow-index rebuilds for one production index."""

    def __init__(
        self,
        index: SearchIndex,
        *,
        shadow_namer: Callable[[str], str] = make_shadow_name,
    ) -> None:
        self.index = index
        self._shadow_namer = shadow_namer

    def _new_shadow(self) -> SearchIndex:
        return self.index.with_name(self._shadow_namer(self.index.name))

    async def reindex(self, content: IndexContent, *, wait: bool = False) -> List[IndexingResponse]:
        """Rebuild the index from `content` and promote it atomically.

        Returns every response in the order it was produced; the move is last.
        With `wait`, every staging task is published before the move is sent
        and the move itself is awaited too.
        """
        # Nothing is sent unless every record, synonym and rule has an objectID.
        objects = list(content.objects)
        ensure_object_ids(objects, "reindex")
        ensure_object_ids(
            content.synonyms or [], "reindex", "All synonyms must have an unique objectID to be valid."
        )
        ensure_object_ids(
            content.rules or [], "reindex", "All rules must have an unique objectID to be valid."
        )

        shadow = self._new_shadow()
        log.info("rebuild.start", index=self.index.name, shadow=shadow.name, mode="reindex")
        responses: List[IndexingResponse] = []

        # Seed the shadow with production's tuning resources unless all of
        # them are about to be supplied anyway.
        if not (content.settings and content.synonyms and content.rules):
            responses.append(await self.index.copy_to(shadow.name, scope=RESOURCE_SCOPES))

        if content.settings:
            responses.append(await shadow.set_settings(content.settings))
        if content.synonyms:
            responses.append(await shadow.save_synonyms(content.synonyms))
        if content.rules:
            responses.append(await shadow.save_rules(content.rules))

        responses.extend(await shadow.save_objects(objects))
        return await self._promote(shadow, responses, wait=wait)

    async def replace_all_objects(
        self, objects: Iterable[Mapping[str, Any]], *, wait: bool = False
    ) -> List[IndexingResponse]:
        """Replace every object while keeping settings, synonyms and rules as they are."""
        records = list(objects)
        ensure_object_ids(records, "replace_all_objects")
        shadow = self._new_shadow()
        log.info("rebuild.start", index=self.index.name, shadow=shadow.name, mode="objects")
        responses = [await self.index.copy_to(shadow.name, scope=RESOURCE_SCOPES)]
        responses.extend(await shadow.save_objects(records))
        return await self._promote(shadow, responses, wait=wait)

    async def _promote(
        self, shadow: SearchIndex, responses: List[IndexingResponse], *, wait: bool
    ) -> List[IndexingResponse]:
        if wait:
            await wait_all(responses)
        log.info("rebuild.promote", index=self.index.name, shadow=shadow.name, staged=len(responses))
        move = await shadow.move(self.index.name)
        # The shadow name is gone now; its pending tasks are tracked under production.
        for response in responses:
            if response.index is shadow:
                response.rebind(move.index)
        if wait:
            await move.wait()
        responses.append(move)
        log.info("rebuild.done", index=self.index.name, responses=len(responses))
        return responses
