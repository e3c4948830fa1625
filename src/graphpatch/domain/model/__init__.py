"""Public domain model surface."""

from __future__ import annotations

from graphpatch.domain.model.document import (
    ABSENT,
    APPEND_MARKER,
    Document,
    copy_value,
    is_array_index,
    to_plain,
)
from graphpatch.domain.model.entity import Entity, coerce_id, new_id
from graphpatch.domain.model.schema import (
    EntitySchema,
    FieldKind,
    FieldSpec,
    SchemaDeclarationError,
    SchemaRegistry,
    UnknownEntityTypeError,
    array_of,
    embedded,
    reference,
    scalar,
)

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "coerce_id",
    "new_id",
    # documents
    "ABSENT",
    "APPEND_MARKER",
    "Document",
    "copy_value",
    "is_array_index",
    "to_plain",
    # schema
    "EntitySchema",
    "FieldKind",
    "FieldSpec",
    "SchemaDeclarationError",
    "SchemaRegistry",
    "UnknownEntityTypeError",
    "array_of",
    "embedded",
    "reference",
    "scalar",
]
