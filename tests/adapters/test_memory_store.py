from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

import pytest

from graphpatch.domain.errors import EntityNotFoundError
from graphpatch.domain.ports.persistence import EntityStore
from tests.helpers.library import seed

if TYPE_CHECKING:
    from graphpatch.adapters.memory import InMemoryEntityStore
    from graphpatch.domain.model import SchemaRegistry


def test_memory_store_satisfies_the_port(store: InMemoryEntityStore) -> None:
    assert isinstance(store, EntityStore)


def test_load_returns_a_fresh_copy(store: InMemoryEntityStore, registry: SchemaRegistry) -> None:
    schema = registry.get("Author")
    seeded = seed(store, registry, "Author", first_name="JRR", phone_numbers=["1"])

    loaded = asyncio.run(store.load(schema, seeded.id))
    loaded.set_field("first_name", "Jimmy")
    loaded.insert("phone_numbers.-", "2")

    assert loaded is not seeded
    assert store.get(schema, seeded.id).to_record() == {
        "first_name": "JRR",
        "phone_numbers": ["1"],
    }
    assert store.stats.loads == 1


def test_persist_overwrites_the_record(
    store: InMemoryEntityStore,
    registry: SchemaRegistry,
) -> None:
    schema = registry.get("Author")
    seeded = seed(store, registry, "Author", first_name="JRR")
    seeded.set_field("first_name", "Jimmy")

    asyncio.run(store.persist(seeded))

    assert store.get(schema, seeded.id).get("first_name") == "Jimmy"
    assert store.stats.persists == 1


def test_missing_entities_raise(store: InMemoryEntityStore, registry: SchemaRegistry) -> None:
    with pytest.raises(EntityNotFoundError):
        asyncio.run(store.load(registry.get("Book"), uuid.uuid4()))
