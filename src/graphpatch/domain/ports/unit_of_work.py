"""Transaction boundary around the entity store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from graphpatch.domain.ports.persistence import EntityStore


@dataclass(slots=True)
class DocumentRepositories:
    """Stores reachable inside one unit of work."""

    documents: EntityStore


@runtime_checkable
class DocumentUnitOfWork(Protocol):
    """Context manager owning the writes of one patch run.

    Writes made through :attr:`repositories` become durable on :meth:`commit`;
    leaving the block because of an exception rolls them back.
    """

    @property
    def repositories(self) -> DocumentRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
