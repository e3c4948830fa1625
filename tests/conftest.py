from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from graphpatch.adapters.memory import InMemoryEntityStore
from graphpatch.adapters.sqlalchemy.mappings import create_all_tables
from graphpatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDocumentUnitOfWork,
    shutdown,
    startup,
)
from tests.helpers.library import library_registry

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from graphpatch.domain.model import SchemaRegistry


@pytest.fixture
def registry() -> SchemaRegistry:
    return library_registry()


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyDocumentUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyDocumentUnitOfWork:
        return SqlAlchemyDocumentUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
