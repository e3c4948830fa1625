"""Document store backed by a SQLAlchemy session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import select

from graphpatch.adapters.sqlalchemy.mappings import document_table
from graphpatch.domain.errors import EntityNotFoundError
from graphpatch.domain.model import Document

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.orm import Session

    from graphpatch.domain.model import EntitySchema


class SqlAlchemyDocumentStore:
    """Load and persist documents as JSON rows.

    Writes are flushed into the session; committing is left to the unit of work.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    async def load(self, schema: EntitySchema, entity_id: UUID) -> Document:
        body = self._fetch_body(schema.name, entity_id)
        if body is None:
            raise EntityNotFoundError(f"No {schema.name} with id {entity_id}")
        return Document.from_record(schema, body, entity_id=entity_id)

    async def persist(self, document: Document) -> None:
        self.add(document)

    def add(self, document: Document) -> None:
        body = document.to_record()
        exists = self._fetch_body(document.entity_type, document.id) is not None
        if exists:
            stmt = (
                document_table.update()
                .where(document_table.c.id == document.id)
                .values(body=body)
            )
        else:
            stmt = document_table.insert().values(
                id=document.id,
                entity_type=document.entity_type,
                body=body,
            )
        self.session.execute(stmt)

    def _fetch_body(self, entity_type: str, entity_id: UUID) -> dict[str, Any] | None:
        stmt = (
            select(document_table.c.body)
            .where(document_table.c.id == entity_id)
            .where(document_table.c.entity_type == entity_type)
        )
        body = self.session.execute(stmt).scalar_one_or_none()
        if body is None:
            return None
        return cast(dict[str, Any], body)


if TYPE_CHECKING:
    from graphpatch.domain.ports.persistence import EntityStore

    _session_stub = cast("Session", object())
    _store_check: EntityStore = SqlAlchemyDocumentStore(_session_stub)
