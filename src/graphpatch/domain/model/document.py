"""Schema-described entities mutated through dotted native paths.

A document's ``data`` holds scalars, embedded mappings, lists, and references.
A reference is a ``UUID`` until it is populated, after which the slot holds the
referenced :class:`Document` itself. Serialization turns populated references
back into ids, so population never changes what gets stored.

Native paths are relative to the owning document and never cross into another
entity: ``"address.city"``, ``"phone_numbers.1"``, ``"books.-"``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Final, Literal
from uuid import UUID

from graphpatch.domain.errors import BrokenPathError, InvalidIndexError
from graphpatch.domain.model.entity import Entity, coerce_id, new_id
from graphpatch.domain.model.schema import FieldKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from graphpatch.domain.model.schema import EntitySchema, FieldSpec


APPEND_MARKER: Final[str] = "-"

# RFC6901 array indices: no sign, no leading zeros, ASCII digits only
ARRAY_INDEX: Final = re.compile(r"0|[1-9][0-9]*")


class _Absent(Enum):
    ABSENT = "absent"

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> Literal[False]:
        return False


ABSENT: Final = _Absent.ABSENT
"""Sentinel for fields that are unset, as opposed to set to ``None``."""


@dataclass(eq=False, kw_only=True)
class Document(Entity):
    """A persisted entity described by an :class:`EntitySchema`."""

    schema: EntitySchema = field(repr=False)
    data: dict[str, object] = field(default_factory=dict[str, object])

    @property
    def entity_type(self) -> str:
        return self.schema.name

    # reading -----------------------------------------------------------------

    def get(self, path: str) -> object:
        """Return the value at ``path`` or :data:`ABSENT` when it is unset."""

        if not path:
            return self
        node: object = self.data
        for segment in path.split("."):
            node = _child(node, segment)
            if node is ABSENT:
                return ABSENT
        return node

    def is_set(self, path: str) -> bool:
        return self.get(path) is not ABSENT

    # mutation ----------------------------------------------------------------

    def set_field(self, path: str, value: object) -> None:
        """Assign ``value`` at ``path``; array slots must already exist."""

        container, key = self._parent(path)
        if isinstance(container, list):
            container[_list_index(container, key, allow_end=False)] = value
        else:
            container[key] = value

    def insert(self, path: str, value: object) -> None:
        """Insert into an array, shifting later elements right."""

        container, key = self._parent(path)
        if not isinstance(container, list):
            raise InvalidIndexError(f"{self._describe(path)} is not an array position")
        container.insert(_list_index(container, key, allow_end=True), value)

    def detach(self, path: str) -> object:
        """Remove and return an array element; later elements shift left."""

        container, key = self._parent(path)
        if not isinstance(container, list):
            raise InvalidIndexError(f"{self._describe(path)} is not an array position")
        return container.pop(_list_index(container, key, allow_end=False))

    def unset(self, path: str) -> None:
        """Clear ``path`` so that it reads as :data:`ABSENT`.

        Array slots cannot be absent; they are set to ``None`` in place.
        """

        container, key = self._parent(path)
        if isinstance(container, list):
            container[_list_index(container, key, allow_end=False)] = None
        else:
            container.pop(key, None)

    # serialization -----------------------------------------------------------

    def to_record(self) -> dict[str, object]:
        """Return the storable form of ``data`` (references as id strings)."""

        return {name: to_plain(value) for name, value in self.data.items()}

    @classmethod
    def from_record(
        cls,
        schema: EntitySchema,
        record: Mapping[str, object],
        *,
        entity_id: UUID | None = None,
    ) -> Document:
        """Build a document from stored or client-supplied data.

        Without an explicit ``entity_id`` an id-shaped ``"id"`` key is used, and
        a fresh id is generated otherwise.
        """

        values = dict(record)
        supplied_id = coerce_id(values.pop("id", None))
        data = {name: _coerce(schema.field(name), value) for name, value in values.items()}
        return cls(id=entity_id or supplied_id or new_id(), schema=schema, data=data)

    # helpers -----------------------------------------------------------------

    def _parent(self, path: str) -> tuple[dict[str, object] | list[object], str]:
        if not path:
            raise BrokenPathError(f"{self.entity_type} cannot be assigned as a field of itself")
        *parents, key = path.split(".")
        node: object = self.data
        for segment in parents:
            node = _child(node, segment)
            if not isinstance(node, dict | list):
                raise BrokenPathError(
                    f"{self._describe(path)}: {segment!r} does not exist, create the parent first"
                )
        return node, key  # pyright: ignore[reportUnknownVariableType]

    def _describe(self, path: str) -> str:
        return f"{self.entity_type}({self.id}).{path}"


def is_array_index(segment: str) -> bool:
    return ARRAY_INDEX.fullmatch(segment) is not None


def _child(node: object, segment: str) -> object:
    if isinstance(node, dict):
        return node.get(segment, ABSENT)  # pyright: ignore[reportUnknownMemberType]
    if isinstance(node, list) and is_array_index(segment):
        index = int(segment)
        if index < len(node):  # pyright: ignore[reportUnknownArgumentType]
            return node[index]  # pyright: ignore[reportUnknownVariableType]
    return ABSENT


def _list_index(container: list[object], key: str, *, allow_end: bool) -> int:
    if key == APPEND_MARKER and allow_end:
        return len(container)
    if not is_array_index(key):
        raise InvalidIndexError(f"Invalid index value: {key!r} for array operation")
    index = int(key)
    limit = len(container) if allow_end else len(container) - 1
    if index > limit:
        raise InvalidIndexError(
            f"Index {index} is out of range for array of length {len(container)}"
        )
    return index


def _coerce(spec: FieldSpec | None, value: object) -> object:
    if spec is None or value is None:
        return value
    if spec.kind is FieldKind.REFERENCE:
        return coerce_id(value) or value
    if spec.kind is FieldKind.ARRAY and isinstance(value, list):
        return [_coerce(spec.item, item) for item in value]  # pyright: ignore[reportUnknownVariableType]
    if spec.kind is FieldKind.EMBEDDED and isinstance(value, dict):
        return {name: _coerce(spec.child(name), sub) for name, sub in value.items()}  # pyright: ignore[reportUnknownVariableType]
    return value


def to_plain(value: object) -> object:
    """Return a JSON-compatible copy with documents and ids as id strings."""

    if isinstance(value, Document):
        return str(value.id)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {str(key): to_plain(sub) for key, sub in value.items()}  # pyright: ignore[reportUnknownVariableType]
    if isinstance(value, list | tuple):
        return [to_plain(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
    return value


def copy_value(value: object) -> object:
    """Copy containers deeply while keeping referenced documents shared."""

    if isinstance(value, dict):
        return {key: copy_value(sub) for key, sub in value.items()}  # pyright: ignore[reportUnknownVariableType]
    if isinstance(value, list):
        return [copy_value(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
    return value
