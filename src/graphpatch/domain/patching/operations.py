"""Pydantic models describing RFC6902 patch documents."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from graphpatch.domain.errors import PatchValidationError

# RFC6901: any characters except that "~" must be followed by "0" or "1"
POINTER_PATTERN: Final[str] = r"^(/([^~/]|~[01])*)*$"

Pointer = Annotated[str, Field(pattern=POINTER_PATTERN)]

type Verb = Literal["add", "remove", "replace", "move", "copy", "test"]

VERBS: Final[tuple[Verb, ...]] = ("add", "remove", "replace", "move", "copy", "test")


class PatchOperationBase(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    path: Pointer


class AddOperation(PatchOperationBase):
    op: Literal["add"]
    value: Any


class RemoveOperation(PatchOperationBase):
    op: Literal["remove"]


class ReplaceOperation(PatchOperationBase):
    op: Literal["replace"]
    value: Any


class MoveOperation(PatchOperationBase):
    op: Literal["move"]
    from_: Pointer = Field(alias="from")


class CopyOperation(PatchOperationBase):
    op: Literal["copy"]
    from_: Pointer = Field(alias="from")


class TestOperation(PatchOperationBase):
    __test__ = False  # keep pytest from collecting this class

    op: Literal["test"]
    value: Any


PatchOperation = (
    AddOperation
    | RemoveOperation
    | ReplaceOperation
    | MoveOperation
    | CopyOperation
    | TestOperation
)

PatchDocument = list[Annotated[PatchOperation, Field(discriminator="op")]]

# Compiled once at import; TypeAdapter validation is safe to share across calls.
PATCH_DOCUMENT_ADAPTER: Final[TypeAdapter[PatchDocument]] = TypeAdapter(PatchDocument)


def validate_patch(operations: Sequence[PatchOperation | Any]) -> list[PatchOperation]:
    """Validate a patch document and return typed operations.

    Already-typed operations pass through unchanged; mappings are parsed. The
    pydantic error list is surfaced unchanged on :class:`PatchValidationError`.
    """

    if isinstance(operations, str | bytes) or not isinstance(operations, Sequence):
        raise PatchValidationError(
            [{"type": "list_type", "loc": (), "msg": "Patch document must be a list"}]
        )
    raw = [
        op.model_dump(by_alias=True) if isinstance(op, PatchOperationBase) else op
        for op in operations
    ]
    try:
        return PATCH_DOCUMENT_ADAPTER.validate_python(raw)
    except PydanticValidationError as exc:
        raise PatchValidationError(exc.errors()) from exc
