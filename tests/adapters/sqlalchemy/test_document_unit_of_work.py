from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from graphpatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDocumentUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from graphpatch.domain.errors import EntityNotFoundError
from tests.helpers.library import make_document

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine

    from graphpatch.domain.model import SchemaRegistry


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyDocumentUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_committed_documents_survive_the_session(
    sqlite_engine: Engine,
    registry: SchemaRegistry,
) -> None:
    startup(engine=sqlite_engine, force=True)
    author = make_document(registry, "Author", first_name="JRR")

    with SqlAlchemyDocumentUnitOfWork() as uow:
        asyncio.run(uow.repositories.documents.persist(author))
        uow.commit()

    with SqlAlchemyDocumentUnitOfWork() as uow:
        loaded = asyncio.run(uow.repositories.documents.load(registry.get("Author"), author.id))

    assert loaded.get("first_name") == "JRR"


def test_exceptions_roll_back(sqlite_engine: Engine, registry: SchemaRegistry) -> None:
    startup(engine=sqlite_engine, force=True)
    author = make_document(registry, "Author", first_name="JRR")

    with pytest.raises(RuntimeError), SqlAlchemyDocumentUnitOfWork() as uow:
        asyncio.run(uow.repositories.documents.persist(author))
        raise RuntimeError("boom")

    with SqlAlchemyDocumentUnitOfWork() as uow, pytest.raises(EntityNotFoundError):
        asyncio.run(uow.repositories.documents.load(registry.get("Author"), author.id))
