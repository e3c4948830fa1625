"""SQLAlchemy adapter package for graphpatch."""

from __future__ import annotations

from .mappings import create_all_tables, document_table, mapper_registry
from .repositories import SqlAlchemyDocumentStore
from .unit_of_work import (
    SqlAlchemyDocumentUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyDocumentStore",
    "SqlAlchemyDocumentUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "document_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
]
