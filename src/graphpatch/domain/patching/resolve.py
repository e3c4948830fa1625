"""Resolve JSON pointers against a graph of lazily loaded documents.

The resolver walks a pointer one segment at a time, tracking the document that
owns the current node. Crossing a reference loads its target (once per run,
through an identity map) and makes it the new owner; every owner reached this
way is pushed onto the save queue. Each visited prefix is memoized so the
executors can mutate without walking again.

A record always describes a slot inside the document that owns it: the record
of ``/author`` points at the ``author`` field of the root, and carries the
loaded author in ``target`` once a longer path has crossed it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from graphpatch.domain.errors import BrokenPathError, InvalidIndexError, UnknownFieldError
from graphpatch.domain.model import ABSENT, APPEND_MARKER, Document, FieldKind, is_array_index
from graphpatch.domain.patching.pointer import join_native, join_pointer, split_pointer

if TYPE_CHECKING:
    from graphpatch.domain.model import FieldSpec, SchemaRegistry
    from graphpatch.domain.patching.save_queue import SaveQueue
    from graphpatch.domain.ports.persistence import EntityStore


log = getLogger(__name__)


class NodeKind(StrEnum):
    ROOT = "root"
    LEAF = "leaf"
    EMBEDDED = "embedded"
    ARRAY = "array"
    REFERENCE_ARRAY = "reference_array"
    UNRESOLVED = "unresolved"


ARRAY_KINDS = frozenset({NodeKind.ARRAY, NodeKind.REFERENCE_ARRAY})


@dataclass(frozen=True, slots=True)
class ResolutionRecord:
    pointer: str
    native_path: str
    owner: Document
    kind: NodeKind
    spec: FieldSpec | None = None
    container: NodeKind | None = None
    target: Document | None = None

    @property
    def in_array(self) -> bool:
        return self.container in ARRAY_KINDS

    @property
    def in_reference_array(self) -> bool:
        return self.container is NodeKind.REFERENCE_ARRAY

    @property
    def key(self) -> str:
        return self.native_path.rsplit(".", 1)[-1]

    @property
    def container_path(self) -> str:
        """Native path of the enclosing array or object (``""`` for top-level fields)."""
        return self.native_path.rpartition(".")[0]

    def read(self) -> object:
        return self.owner.get(self.native_path)


class ReferenceResolver:
    """Pointer resolution for one patch run."""

    def __init__(
        self,
        root: Document,
        *,
        store: EntityStore,
        registry: SchemaRegistry,
        save_queue: SaveQueue,
        autopopulate: bool = True,
    ) -> None:
        self.root = root
        self._store = store
        self._registry = registry
        self._save_queue = save_queue
        self._autopopulate = autopopulate
        self._identity: dict[tuple[str, UUID], Document] = {}
        self._records: dict[str, ResolutionRecord] = {}
        self._adopt(root)
        self._records[""] = ResolutionRecord(
            pointer="",
            native_path="",
            owner=root,
            kind=NodeKind.ROOT,
            target=root,
        )

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    async def resolve(self, pointer: str) -> ResolutionRecord:
        """Return the record for ``pointer``, loading references on the way."""

        cached = self._records.get(pointer)
        if cached is not None:
            return cached
        segments = split_pointer(pointer)
        start = len(segments)
        while start > 0 and join_pointer(segments[:start]) not in self._records:
            start -= 1
        record = self._records[join_pointer(segments[:start])]
        for depth in range(start, len(segments)):
            final = depth == len(segments) - 1
            record = await self._step(record, segments[depth], final=final)
            self._records[record.pointer] = record
        return record

    def invalidate(self, owner: Document, native_path: str) -> None:
        """Forget records at or below ``native_path`` of ``owner``.

        Records are matched by the document they live in, not by pointer text:
        the same slot can be reached through several pointers (a back-reference
        to the root, two books sharing an author). Everything resolved through a
        forgotten record goes with it.
        """

        stale = {
            key
            for key, record in self._records.items()
            if key and record.owner is owner and _within(record.native_path, native_path)
        }
        prefixes = tuple(key + "/" for key in stale)
        for key in list(self._records):
            if key in stale or key.startswith(prefixes):
                del self._records[key]

    def adopt(self, document: Document) -> None:
        """Register a document created during the run with the identity map."""

        self._identity.setdefault((document.entity_type, document.id), document)

    # walking -----------------------------------------------------------------

    async def _step(
        self,
        parent: ResolutionRecord,
        segment: str,
        *,
        final: bool,
    ) -> ResolutionRecord:
        owner, base, spec = await self._enter(parent)
        pointer = join_pointer([*_segments_of(parent.pointer), segment])

        if not base:
            child_spec = owner.schema.field(segment)
            if child_spec is None:
                raise UnknownFieldError(f"{owner.entity_type} has no field {segment!r} ({pointer})")
            container = NodeKind.ROOT
        else:
            node = owner.get(base)
            if node is ABSENT or node is None:
                raise BrokenPathError(
                    f"Cannot resolve {pointer}: {parent.pointer} does not exist, "
                    "create the parent first"
                )
            if isinstance(node, list) and spec is not None and spec.kind is FieldKind.ARRAY:
                _check_index(segment, pointer, final=final)
                if spec.is_reference_array and not final:
                    await self._populate_array(node, spec)  # pyright: ignore[reportUnknownArgumentType]
                child_spec = spec.item
                container = (
                    NodeKind.REFERENCE_ARRAY if spec.is_reference_array else NodeKind.ARRAY
                )
            elif isinstance(node, dict) and spec is not None and spec.kind is FieldKind.EMBEDDED:
                child_spec = spec.child(segment)
                if child_spec is None:
                    raise UnknownFieldError(
                        f"{owner.entity_type}.{base} has no field {segment!r} ({pointer})"
                    )
                container = NodeKind.EMBEDDED
            else:
                raise BrokenPathError(
                    f"Cannot resolve {pointer}: {parent.pointer} is not an object or array"
                )

        native_path = join_native(base, segment)
        return ResolutionRecord(
            pointer=pointer,
            native_path=native_path,
            owner=owner,
            kind=_classify(child_spec, owner.get(native_path)),
            spec=child_spec,
            container=container,
        )

    async def _enter(self, parent: ResolutionRecord) -> tuple[Document, str, FieldSpec | None]:
        """Return (owner, base path, spec) to continue walking below ``parent``."""

        node = parent.read()
        if isinstance(node, Document):
            if node is not parent.owner:
                self._cross(parent, node)
            return node, "", None
        if parent.spec is not None and parent.spec.is_reference and isinstance(node, UUID):
            if not self._autopopulate:
                raise BrokenPathError(
                    f"Cannot resolve below {parent.pointer}: reference is not populated"
                )
            target = await self._load(_target_of(parent.spec), node)
            parent.owner.set_field(parent.native_path, target)
            self._cross(parent, target)
            return target, "", None
        return parent.owner, parent.native_path, parent.spec

    def _cross(self, parent: ResolutionRecord, target: Document) -> None:
        self._adopt(target)
        self._records[parent.pointer] = replace(parent, kind=NodeKind.ROOT, target=target)

    def _adopt(self, document: Document) -> None:
        self.adopt(document)
        if self._save_queue.push(document):
            log.debug("Queued %s(%s) for saving", document.entity_type, document.id)

    async def _populate_array(self, items: list[object], spec: FieldSpec) -> None:
        item_spec = spec.item
        if item_spec is None:
            return
        pending = {item for item in items if isinstance(item, UUID)}
        if not pending:
            return
        target = _target_of(item_spec)
        ordered = list(pending)
        loaded = await asyncio.gather(*(self._load(target, entity_id) for entity_id in ordered))
        by_id = dict(zip(ordered, loaded, strict=True))
        for index, item in enumerate(items):
            if isinstance(item, UUID):
                items[index] = by_id[item]

    async def _load(self, type_name: str, entity_id: UUID) -> Document:
        key = (type_name, entity_id)
        known = self._identity.get(key)
        if known is not None:
            return known
        schema = self._registry.get(type_name)
        log.debug("Populating %s(%s)", type_name, entity_id)
        document = await self._store.load(schema, entity_id)
        # a concurrent load may have registered the same entity meanwhile
        return self._identity.setdefault(key, document)


def _within(path: str, prefix: str) -> bool:
    return not prefix or path == prefix or path.startswith(prefix + ".")


def _segments_of(pointer: str) -> tuple[str, ...]:
    return split_pointer(pointer) if pointer else ()


def _target_of(spec: FieldSpec) -> str:
    if spec.target is None:
        raise BrokenPathError("reference field without a target type")
    return spec.target


def _check_index(segment: str, pointer: str, *, final: bool) -> None:
    if segment == APPEND_MARKER:
        if not final:
            raise BrokenPathError(
                f"Cannot resolve {pointer}: {APPEND_MARKER!r} is only valid as the last segment"
            )
        return
    if not is_array_index(segment):
        raise InvalidIndexError(f"Invalid index value: {segment!r} in {pointer}")


def _classify(spec: FieldSpec | None, value: object) -> NodeKind:
    if value is ABSENT:
        return NodeKind.UNRESOLVED
    if spec is None:
        return NodeKind.LEAF
    if spec.is_reference:
        return NodeKind.ROOT if isinstance(value, Document) else NodeKind.LEAF
    if spec.kind is FieldKind.ARRAY:
        return NodeKind.REFERENCE_ARRAY if spec.is_reference_array else NodeKind.ARRAY
    if spec.kind is FieldKind.EMBEDDED:
        return NodeKind.EMBEDDED
    return NodeKind.LEAF
