"""Explicit type descriptions for patchable entities.

A schema is built once per entity type and answers, for every field, whether it
holds a scalar, an embedded object, a reference to another entity, or an array
of one of those. The resolver consults it instead of guessing from values, so
empty and null fields classify the same way as populated ones.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class FieldKind(StrEnum):
    SCALAR = "scalar"
    EMBEDDED = "embedded"
    REFERENCE = "reference"
    ARRAY = "array"


class UnknownEntityTypeError(LookupError):
    """Raised when a registry has no schema for the requested type name."""


class SchemaDeclarationError(ValueError):
    """Raised for declarations that do not describe a field."""


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Tagged description of a single field."""

    kind: FieldKind
    target: str | None = None
    item: FieldSpec | None = None
    fields: Mapping[str, FieldSpec] = field(default_factory=dict[str, "FieldSpec"])

    def __post_init__(self) -> None:
        if self.kind is FieldKind.REFERENCE and not self.target:
            raise SchemaDeclarationError("reference fields need a target type")
        if self.kind is FieldKind.ARRAY and self.item is None:
            raise SchemaDeclarationError("array fields need an item spec")

    @property
    def is_reference(self) -> bool:
        return self.kind is FieldKind.REFERENCE

    @property
    def is_reference_array(self) -> bool:
        return self.kind is FieldKind.ARRAY and self.item is not None and self.item.is_reference

    def child(self, name: str) -> FieldSpec | None:
        """Return the spec of an embedded sub-field, if declared."""
        if self.kind is not FieldKind.EMBEDDED:
            return None
        return self.fields.get(name)


def scalar() -> FieldSpec:
    return FieldSpec(FieldKind.SCALAR)


def reference(target: str) -> FieldSpec:
    return FieldSpec(FieldKind.REFERENCE, target=target)


def array_of(item: FieldSpec) -> FieldSpec:
    return FieldSpec(FieldKind.ARRAY, item=item)


def embedded(fields: Mapping[str, FieldSpec] | None = None, /, **named: FieldSpec) -> FieldSpec:
    merged = dict(fields or {})
    merged.update(named)
    return FieldSpec(FieldKind.EMBEDDED, fields=merged)


@dataclass(frozen=True, slots=True)
class EntitySchema:
    """Field layout of one entity type."""

    name: str
    fields: Mapping[str, FieldSpec]

    def field(self, name: str) -> FieldSpec | None:
        return self.fields.get(name)


class SchemaRegistry:
    """Registry of entity schemas keyed by type name."""

    def __init__(self, schemas: Iterable[EntitySchema] = ()) -> None:
        self._schemas: dict[str, EntitySchema] = {}
        for schema in schemas:
            self.register(schema)

    def register(self, schema: EntitySchema) -> EntitySchema:
        self._schemas[schema.name] = schema
        return schema

    def get(self, name: str) -> EntitySchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise UnknownEntityTypeError(f"No schema registered for {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[EntitySchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)

    @classmethod
    def from_declarations(
        cls,
        declarations: Mapping[str, Mapping[str, object]],
    ) -> SchemaRegistry:
        """Build a registry from a plain mapping (e.g. loaded from JSON).

        ``"scalar"`` (or a scalar type name) declares a scalar, ``{"ref": "Type"}``
        a reference, ``[decl]`` an array, and any other mapping an embedded object.
        Reference targets must name a declared type.
        """

        registry = cls()
        for type_name, fields in declarations.items():
            parsed = {
                name: _parse_declaration(decl, f"{type_name}.{name}")
                for name, decl in fields.items()
            }
            registry.register(EntitySchema(name=type_name, fields=parsed))
        for schema in registry:
            for target in _reference_targets(schema.fields.values()):
                if target not in registry:
                    raise SchemaDeclarationError(
                        f"{schema.name} references undeclared type {target!r}"
                    )
        return registry


SCALAR_TYPE_NAMES: Final[frozenset[str]] = frozenset(
    {"scalar", "string", "number", "integer", "boolean", "date", "mixed"}
)


def _parse_declaration(decl: object, where: str) -> FieldSpec:
    if isinstance(decl, str):
        if decl.lower() not in SCALAR_TYPE_NAMES:
            raise SchemaDeclarationError(f"{where}: unknown scalar type {decl!r}")
        return scalar()
    if isinstance(decl, list):
        if len(decl) != 1:  # pyright: ignore[reportUnknownArgumentType]
            raise SchemaDeclarationError(f"{where}: array declarations take exactly one item")
        return array_of(_parse_declaration(decl[0], f"{where}[]"))  # pyright: ignore[reportUnknownArgumentType]
    if isinstance(decl, Mapping):
        mapping: Mapping[str, object] = decl  # pyright: ignore[reportUnknownVariableType]
        if "ref" in mapping:
            target = mapping["ref"]
            if not isinstance(target, str) or not target:
                raise SchemaDeclarationError(f"{where}: 'ref' must name a type")
            return reference(target)
        return embedded(
            {name: _parse_declaration(sub, f"{where}.{name}") for name, sub in mapping.items()}
        )
    raise SchemaDeclarationError(f"{where}: cannot interpret {decl!r}")


def _reference_targets(specs: Iterable[FieldSpec]) -> Iterator[str]:
    for spec in specs:
        if spec.target is not None:
            yield spec.target
        if spec.item is not None:
            yield from _reference_targets((spec.item,))
        yield from _reference_targets(spec.fields.values())
