from __future__ import annotations

from typing import Any

import pytest

from graphpatch.domain.errors import PatchValidationError
from graphpatch.domain.patching.operations import (
    AddOperation,
    MoveOperation,
    ReplaceOperation,
    TestOperation,
    validate_patch,
)


def test_valid_document_is_parsed_into_typed_operations() -> None:
    operations = validate_patch(
        [
            {"op": "add", "path": "/first_name", "value": "Jimmy"},
            {"op": "move", "from": "/first_name", "path": "/last_name"},
            {"op": "test", "path": "/last_name", "value": None},
        ]
    )

    assert isinstance(operations[0], AddOperation)
    assert isinstance(operations[1], MoveOperation)
    assert operations[1].from_ == "/first_name"
    assert isinstance(operations[2], TestOperation)
    assert operations[2].value is None


def test_typed_operations_pass_through() -> None:
    typed = ReplaceOperation(op="replace", path="/title", value="Hobbit")

    (operation,) = validate_patch([typed])

    assert isinstance(operation, ReplaceOperation)
    assert operation.value == "Hobbit"


def test_unknown_members_are_ignored() -> None:
    (operation,) = validate_patch([{"op": "remove", "path": "/title", "comment": "cleanup"}])

    assert operation.op == "remove"


@pytest.mark.parametrize(
    "document",
    [
        [{"op": "frobnicate", "path": "/title"}],
        [{"op": "add", "path": "/title"}],
        [{"op": "replace", "path": "title", "value": 1}],
        [{"op": "move", "path": "/title"}],
        [{"path": "/title", "value": 1}],
        "not a list",
    ],
)
def test_invalid_documents_raise(document: Any) -> None:
    with pytest.raises(PatchValidationError) as excinfo:
        validate_patch(document)

    assert excinfo.value.errors
