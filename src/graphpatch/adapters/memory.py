"""In-memory entity store.

Documents are kept as serialized records, so every load hands out a fresh
object exactly like a database round-trip would.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from graphpatch.domain.errors import EntityNotFoundError
from graphpatch.domain.model import Document

if TYPE_CHECKING:
    from uuid import UUID

    from graphpatch.domain.model import EntitySchema


@dataclass(slots=True)
class StoreStats:
    loads: int = 0
    persists: int = 0


@dataclass(slots=True)
class InMemoryEntityStore:
    records: dict[tuple[str, UUID], dict[str, object]] = field(default_factory=dict)
    stats: StoreStats = field(default_factory=StoreStats)

    async def load(self, schema: EntitySchema, entity_id: UUID) -> Document:
        self.stats.loads += 1
        record = self.records.get((schema.name, entity_id))
        if record is None:
            raise EntityNotFoundError(f"No {schema.name} with id {entity_id}")
        return Document.from_record(schema, copy.deepcopy(record), entity_id=entity_id)

    async def persist(self, document: Document) -> None:
        self.stats.persists += 1
        self.records[(document.entity_type, document.id)] = document.to_record()

    def add(self, document: Document) -> Document:
        """Store ``document`` synchronously (seeding fixtures, scripts)."""

        self.records[(document.entity_type, document.id)] = document.to_record()
        return document

    def get(self, schema: EntitySchema, entity_id: UUID) -> Document:
        """Synchronous load that does not count towards :attr:`stats`."""

        record = self.records.get((schema.name, entity_id))
        if record is None:
            raise EntityNotFoundError(f"No {schema.name} with id {entity_id}")
        return Document.from_record(schema, copy.deepcopy(record), entity_id=entity_id)


if TYPE_CHECKING:
    from graphpatch.domain.ports.persistence import EntityStore

    _store_check: EntityStore = InMemoryEntityStore()
