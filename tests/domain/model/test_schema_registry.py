from __future__ import annotations

import pytest

from graphpatch.domain.model import (
    EntitySchema,
    FieldKind,
    SchemaDeclarationError,
    SchemaRegistry,
    UnknownEntityTypeError,
    array_of,
    embedded,
    reference,
    scalar,
)
from tests.helpers.library import library_registry


def test_declarations_build_tagged_fields() -> None:
    author = library_registry().get("Author")

    assert author.fields["first_name"].kind is FieldKind.SCALAR
    assert author.fields["address"].kind is FieldKind.EMBEDDED
    assert author.fields["publisher"].is_reference
    assert author.fields["publisher"].target == "Publisher"
    assert author.fields["books"].is_reference_array
    phone_numbers = author.fields["phone_numbers"]
    assert phone_numbers.kind is FieldKind.ARRAY
    assert not phone_numbers.is_reference_array


def test_undeclared_reference_target_is_rejected() -> None:
    with pytest.raises(SchemaDeclarationError, match="undeclared type 'Ghost'"):
        SchemaRegistry.from_declarations({"Book": {"author": {"ref": "Ghost"}}})


@pytest.mark.parametrize("decl", ["float", ["string", "string"], 42, {"ref": ""}])
def test_invalid_declarations(decl: object) -> None:
    with pytest.raises(SchemaDeclarationError):
        SchemaRegistry.from_declarations({"Thing": {"field": decl}})


def test_registry_lookup_by_name() -> None:
    schema = EntitySchema(
        name="Shelf",
        fields={
            "label": scalar(),
            "location": embedded(room=scalar()),
            "books": array_of(reference("Book")),
        },
    )
    registry = SchemaRegistry([schema])

    assert "Shelf" in registry
    assert registry.get("Shelf") is schema
    assert len(registry) == 1
    with pytest.raises(UnknownEntityTypeError):
        registry.get("Book")


def test_field_spec_requires_details() -> None:
    with pytest.raises(SchemaDeclarationError):
        reference("")
