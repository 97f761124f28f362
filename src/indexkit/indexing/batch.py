"""Batch assembly for object write operations.

Turns records plus an action into batch entries and splits entry lists into
chunks no larger than the configured batch size. Everything here is pure;
dispatching is done by the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from indexkit.exceptions import InvalidArgumentError, InvalidRecordError

OBJECT_ID = "objectID"

Record = Mapping[str, Any]
BatchEntry = Dict[str, Any]


class ActionTag(str, Enum):
    """Batch actions and their wire names."""

    ADD_OBJECT = "addObject"
    UPDATE_OBJECT_NO_CREATE = "partialUpdateObjectNoCreate"
    UPSERT_OBJECT = "partialUpdateObject"
    DELETE_OBJECT = "deleteObject"


def has_object_id(record: Record) -> bool:
    value = record.get(OBJECT_ID)
    if value is None:
        return False
    return str(value).strip() != ""


def ensure_object_ids(records: Iterable[Record], operation: str, message: Optional[str] = None) -> None:
    """Raise InvalidRecordError unless every record carries a non-empty objectID.

    The whole input is checked before anything is sent, so a batch either
    goes out complete or not at all.
    """
    missing = sum(1 for r in records if not has_object_id(r))
    if missing:
        raise InvalidRecordError(
            operation,
            message
            or f"All objects must have an unique objectID to be valid ({missing} missing).",
        )


def build_batch(records: Iterable[Record], action: ActionTag) -> List[BatchEntry]:
    """Wrap each record in a batch entry for `action`, preserving order."""
    tag = ActionTag(action).value
    return [{"action": tag, "body": dict(r)} for r in records]


def chunked(entries: Sequence[BatchEntry], size: int) -> Iterator[List[BatchEntry]]:
    """Yield consecutive slices of at most `size` entries.

    Empty input yields nothing; only the last chunk may be short.
    """
    if size < 1:
        raise InvalidArgumentError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(entries), size):
        yield list(entries[start : start + size])
