"""Patch engine: validation, authorization, per-operation mutation, persistence."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from graphpatch.domain.errors import TestFailedError
from graphpatch.domain.patching.executors import ExecutionContext, execute
from graphpatch.domain.patching.middleware import (
    MiddlewareChain,
    MiddlewareContext,
    MiddlewareResult,
    MiddlewareRule,
)
from graphpatch.domain.patching.operations import validate_patch
from graphpatch.domain.patching.persist import persist_all
from graphpatch.domain.patching.resolve import ReferenceResolver
from graphpatch.domain.patching.save_queue import SaveQueue

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphpatch.domain.model import Document, SchemaRegistry
    from graphpatch.domain.patching.operations import PatchOperation
    from graphpatch.domain.patching.rules import RuleSet
    from graphpatch.domain.ports.persistence import EntityStore


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PatchOptions:
    auto_persist: bool = False
    autopopulate: bool = True
    rules: RuleSet | None = None
    middleware: tuple[MiddlewareRule, ...] = ()
    abort_on_test_failure: bool = False


@dataclass(frozen=True, slots=True)
class PatchOutcome:
    """Result of one patch run.

    ``failed_tests`` lists the pointers of ``test`` operations that did not
    match; the run continues past them unless ``abort_on_test_failure`` is set.
    """

    entity: Document
    applied: int
    failed_tests: tuple[str, ...] = ()
    persisted: tuple[Document, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed_tests


class PatchEngine:
    def __init__(
        self,
        store: EntityStore,
        registry: SchemaRegistry,
        options: PatchOptions | None = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.options = options or PatchOptions()

    def apply(
        self,
        entity: Document,
        operations: Sequence[PatchOperation | Any],
        options: PatchOptions | None = None,
    ) -> PatchOutcome:
        """Synchronous wrapper around :meth:`apply_async`."""

        return asyncio.run(self.apply_async(entity, operations, options))

    async def apply_async(
        self,
        entity: Document,
        operations: Sequence[PatchOperation | Any],
        options: PatchOptions | None = None,
    ) -> PatchOutcome:
        """Apply ``operations`` to ``entity`` in order.

        Structural validation and the rule check run over the whole document
        before anything is mutated. A failure after that leaves the operations
        before it applied in memory; nothing is rolled back.
        """

        effective = options or self.options
        validated = validate_patch(operations)
        if effective.rules is not None:
            effective.rules.check(validated)

        queue = SaveQueue()
        resolver = ReferenceResolver(
            entity,
            store=self.store,
            registry=self.registry,
            save_queue=queue,
            autopopulate=effective.autopopulate,
        )
        context = ExecutionContext(
            resolver=resolver,
            store=self.store,
            auto_persist=effective.auto_persist,
        )
        chain = MiddlewareChain(effective.middleware)
        log.info(
            "Applying %s operation(s) to %s(%s)",
            len(validated),
            entity.entity_type,
            entity.id,
        )

        failed_tests: list[str] = []
        for operation in validated:
            log.debug("Applying %s %s", operation.op, operation.path)
            if await _apply_operation(context, chain, operation):
                continue
            log.info("Test failed at %s", operation.path)
            if effective.abort_on_test_failure:
                raise TestFailedError(operation.path)
            failed_tests.append(operation.path)

        persisted: tuple[Document, ...] = ()
        if effective.auto_persist:
            persisted = await persist_all(self.store, queue)

        log.info(
            "Finished patch of %s(%s): applied=%s, failed_tests=%s, persisted=%s",
            entity.entity_type,
            entity.id,
            len(validated),
            len(failed_tests),
            len(persisted),
        )
        return PatchOutcome(
            entity=entity,
            applied=len(validated),
            failed_tests=tuple(failed_tests),
            persisted=persisted,
        )


async def _apply_operation(
    context: ExecutionContext,
    chain: MiddlewareChain,
    operation: PatchOperation,
) -> bool:
    selected = chain.select(operation) if chain else None
    if selected is None:
        return await execute(context, operation)

    rule, match = selected
    record = await context.resolver.resolve(operation.path)
    middleware_context = MiddlewareContext(
        entity=record.owner,
        operation=operation,
        record=record,
        match=match,
    )
    if await chain.run(rule, middleware_context) is MiddlewareResult.HANDLED:
        # custom handlers may restructure anything below the operation's parent
        context.resolver.invalidate(record.owner, record.container_path)
        return True
    return await execute(context, middleware_context.operation)


def apply_patch(
    entity: Document,
    operations: Sequence[PatchOperation | Any],
    *,
    store: EntityStore,
    registry: SchemaRegistry,
    options: PatchOptions | None = None,
) -> PatchOutcome:
    """Apply a patch document to ``entity`` (synchronous entry point)."""

    return PatchEngine(store, registry, options).apply(entity, operations)


async def apply_patch_async(
    entity: Document,
    operations: Sequence[PatchOperation | Any],
    *,
    store: EntityStore,
    registry: SchemaRegistry,
    options: PatchOptions | None = None,
) -> PatchOutcome:
    return await PatchEngine(store, registry, options).apply_async(entity, operations)
