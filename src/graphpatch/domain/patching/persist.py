"""Persist every document touched during a patch run."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from graphpatch.domain.model import Document
    from graphpatch.domain.patching.save_queue import SaveQueue
    from graphpatch.domain.ports.persistence import EntityStore


log = getLogger(__name__)


async def persist_all(store: EntityStore, queue: SaveQueue) -> tuple[Document, ...]:
    """Persist queued documents concurrently.

    The first failure propagates; documents already persisted stay persisted and
    nothing is retried.
    """

    documents = tuple(queue)
    if not documents:
        return ()
    log.debug("Persisting %s document(s)", len(documents))
    await asyncio.gather(*(store.persist(document) for document in documents))
    return documents
