"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, Any

from graphpatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDocumentUnitOfWork,
    is_started,
    startup,
)
from graphpatch.domain.patching.engine import PatchEngine, PatchOptions
from graphpatch.domain.ports.unit_of_work import DocumentUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from graphpatch.domain.model import SchemaRegistry
    from graphpatch.domain.patching.engine import PatchOutcome
    from graphpatch.domain.patching.operations import PatchOperation
    from graphpatch.domain.ports.persistence import EntityStore

UnitOfWorkFactory = Callable[[], DocumentUnitOfWork]


log = getLogger(__name__)


def patch_stored_entity(
    entity_type: str,
    entity_id: UUID,
    operations: Sequence[PatchOperation | Any],
    *,
    registry: SchemaRegistry,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    options: PatchOptions | None = None,
) -> PatchOutcome:
    """Load a stored entity, apply ``operations`` and commit when persisting.

    Without a ``unit_of_work_factory`` the SQLAlchemy adapter is started (if it
    is not running yet) and used.
    """

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyDocumentUnitOfWork
    effective_options = options or PatchOptions()
    log.info("Patching stored %s(%s)", entity_type, entity_id)

    with unit_of_work_factory() as uow:
        store = uow.repositories.documents
        outcome = asyncio.run(
            _load_and_apply(
                store,
                registry,
                entity_type,
                entity_id,
                operations,
                effective_options,
            )
        )
        if effective_options.auto_persist:
            uow.commit()
            log.info("Committed %s document(s)", len(outcome.persisted))

    return outcome


async def _load_and_apply(
    store: EntityStore,
    registry: SchemaRegistry,
    entity_type: str,
    entity_id: UUID,
    operations: Sequence[PatchOperation | Any],
    options: PatchOptions,
) -> PatchOutcome:
    entity = await store.load(registry.get(entity_type), entity_id)
    return await PatchEngine(store, registry, options).apply_async(entity, operations)
