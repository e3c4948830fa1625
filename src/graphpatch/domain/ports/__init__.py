"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import EntityStore
from .unit_of_work import DocumentRepositories, DocumentUnitOfWork

__all__ = [
    "DocumentRepositories",
    "DocumentUnitOfWork",
    "EntityStore",
]
