"""SQLAlchemy table metadata for stored documents."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Column, Index, String, Table, Uuid, orm

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Documents are stored whole; references inside ``body`` are id strings.
document_table = Table(
    "document",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("entity_type", String, nullable=False),
    Column("body", JSON, nullable=False),
)

Index("ix_document_entity_type", document_table.c.entity_type)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the document metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
