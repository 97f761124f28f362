import math

import pytest

from indexkit.exceptions import InvalidArgumentError, InvalidRecordError
from indexkit.indexing.batch import ActionTag, build_batch, chunked, ensure_object_ids

from conftest import make_records


@pytest.mark.parametrize("n", [0, 1, 9, 10, 11, 25, 100])
@pytest.mark.parametrize("size", [1, 3, 10])
def test_chunked_covers_input_in_order(n: int, size: int) -> None:
    entries = build_batch(make_records(n), ActionTag.ADD_OBJECT)
    chunks = list(chunked(entries, size))

    assert len(chunks) == math.ceil(n / size)
    assert all(1 <= len(c) <= size for c in chunks)
    assert [e for c in chunks for e in c] == entries


def test_chunked_25_by_10_gives_10_10_5() -> None:
    entries = build_batch(make_records(25), ActionTag.ADD_OBJECT)
    assert [len(c) for c in chunked(entries, 10)] == [10, 10, 5]


def test_chunked_rejects_non_positive_size() -> None:
    with pytest.raises(InvalidArgumentError):
        list(chunked([], 0))


def test_build_batch_uses_wire_action_names() -> None:
    rec = {"objectID": "a", "title": "A"}
    assert build_batch([rec], ActionTag.ADD_OBJECT) == [{"action": "addObject", "body": rec}]
    assert build_batch([rec], ActionTag.UPDATE_OBJECT_NO_CREATE)[0]["action"] == (
        "partialUpdateObjectNoCreate"
    )
    assert build_batch([rec], ActionTag.UPSERT_OBJECT)[0]["action"] == "partialUpdateObject"
    assert build_batch([rec], ActionTag.DELETE_OBJECT)[0]["action"] == "deleteObject"


def test_build_batch_copies_records() -> None:
    rec = {"objectID": "a"}
    entry = build_batch([rec], ActionTag.ADD_OBJECT)[0]
    entry["body"]["extra"] = 1
    assert rec == {"objectID": "a"}


@pytest.mark.parametrize("bad", [{}, {"objectID": ""}, {"objectID": "  "}, {"objectID": None}])
def test_ensure_object_ids_names_operation(bad: dict) -> None:
    records = make_records(3) + [bad]
    with pytest.raises(InvalidRecordError) as exc_info:
        ensure_object_ids(records, "save_objects")
    assert exc_info.value.operation == "save_objects"
    assert "save_objects" in str(exc_info.value)


def test_ensure_object_ids_accepts_numeric_ids() -> None:
    ensure_object_ids([{"objectID": 0}, {"objectID": 12}], "save_objects")
