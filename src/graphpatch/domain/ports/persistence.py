"""Ports for loading and persisting patchable documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from graphpatch.domain.model import Document, EntitySchema


@runtime_checkable
class EntityStore(Protocol):
    """Minimal persistence contract: one entity by id.

    Failures raised by implementations propagate unchanged through the engine.
    """

    async def load(self, schema: EntitySchema, entity_id: UUID) -> Document: ...

    async def persist(self, document: Document) -> None: ...
