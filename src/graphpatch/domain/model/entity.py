"""
Base building blocks:
identity shared by every persisted entity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


def coerce_id(value: object) -> UUID | None:
    """Return ``value`` as an entity id if it is shaped like one."""

    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            return None
    return None


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)

    @property
    def entity_type(self) -> str:
        return type(self).__name__
