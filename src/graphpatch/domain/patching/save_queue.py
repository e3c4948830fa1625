"""Identity-deduplicated set of documents touched during one patch run."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graphpatch.domain.model import Document


class SaveQueue:
    def __init__(self) -> None:
        self._entries: dict[int, Document] = {}

    def push(self, document: Document) -> bool:
        """Queue ``document``; return ``False`` if this object is already queued."""

        key = id(document)
        if key in self._entries:
            return False
        self._entries[key] = document
        return True

    def __contains__(self, document: object) -> bool:
        return id(document) in self._entries and self._entries[id(document)] is document

    def __iter__(self) -> Iterator[Document]:
        return iter(tuple(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
