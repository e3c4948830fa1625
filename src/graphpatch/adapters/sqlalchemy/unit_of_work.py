"""Session management for the SQLAlchemy document store.

The adapter binds one engine per process. :func:`startup` creates the document
table and binds the engine; every unit of work then opens its own session and
exposes a :class:`SqlAlchemyDocumentStore` on top of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from graphpatch.adapters.sqlalchemy.mappings import create_all_tables
from graphpatch.adapters.sqlalchemy.repositories import SqlAlchemyDocumentStore
from graphpatch.config import get_database_config
from graphpatch.domain.ports.unit_of_work import DocumentRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter is used before :func:`startup` or bound twice."""


@dataclass(frozen=True, slots=True)
class _Binding:
    engine: Engine
    sessions: sessionmaker[Session]


class _Adapter:
    def __init__(self) -> None:
        self.binding: _Binding | None = None

    def bind(self, engine: Engine) -> None:
        self.binding = _Binding(
            engine=engine,
            sessions=sessionmaker(bind=engine, expire_on_commit=False),
        )

    def release(self) -> None:
        if self.binding is not None:
            self.binding.engine.dispose()
        self.binding = None

    def sessions(self) -> sessionmaker[Session]:
        if self.binding is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised; call "
                "graphpatch.adapters.sqlalchemy.startup() first"
            )
        return self.binding.sessions


_ADAPTER = _Adapter()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind ``engine`` (or one built from configuration) and create the tables.

    Rebinding requires ``force=True``; the previously bound engine is left to
    its owner.
    """

    if _ADAPTER.binding is not None and not force:
        raise StartupError("SQLAlchemy adapter already initialised; pass force=True to rebind")
    if engine is None:
        config = get_database_config()
        engine = create_engine(database_uri or config.uri, echo=config.echo)
    create_all_tables(engine)
    _ADAPTER.bind(engine)
    log.debug("SQLAlchemy adapter bound to %s", engine.url)
    return engine


def configured_engine() -> Engine | None:
    return _ADAPTER.binding.engine if _ADAPTER.binding is not None else None


def is_started() -> bool:
    return _ADAPTER.binding is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it (tests, interpreter exit)."""

    _ADAPTER.release()


class SqlAlchemyDocumentUnitOfWork:
    """One session per ``with`` block; leaving without :meth:`commit` discards writes."""

    def __init__(self) -> None:
        self._sessions = _ADAPTER.sessions()
        self._session: Session | None = None
        self._repositories: DocumentRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already active")
        self._session = self._sessions()
        self._repositories = DocumentRepositories(
            documents=SqlAlchemyDocumentStore(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not active; enter it with a with-block")
        return self._session

    @property
    def repositories(self) -> DocumentRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not active; enter it with a with-block")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from graphpatch.domain.ports.unit_of_work import DocumentUnitOfWork

    _uow_check: DocumentUnitOfWork = SqlAlchemyDocumentUnitOfWork()
