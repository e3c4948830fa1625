"""Default mutation semantics for each patch verb."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, cast

from graphpatch.domain.errors import (
    BrokenPathError,
    ConfigurationError,
    InvalidIndexError,
    InvalidPointerError,
    InvalidValueError,
    UnknownFieldError,
)
from graphpatch.domain.model import (
    ABSENT,
    APPEND_MARKER,
    Document,
    FieldKind,
    coerce_id,
    copy_value,
    is_array_index,
    to_plain,
)
from graphpatch.domain.patching.operations import (
    AddOperation,
    CopyOperation,
    MoveOperation,
    RemoveOperation,
    ReplaceOperation,
    TestOperation,
)

if TYPE_CHECKING:
    from graphpatch.domain.model import EntitySchema, FieldSpec
    from graphpatch.domain.patching.operations import PatchOperation
    from graphpatch.domain.patching.resolve import ReferenceResolver, ResolutionRecord
    from graphpatch.domain.ports.persistence import EntityStore


log = getLogger(__name__)


@dataclass(slots=True)
class ExecutionContext:
    """What the executors need from the running patch."""

    resolver: ReferenceResolver
    store: EntityStore
    auto_persist: bool = False


type Executor = Callable[[ExecutionContext, Any], Awaitable[bool]]


async def apply_replace(context: ExecutionContext, operation: ReplaceOperation) -> bool:
    record = await context.resolver.resolve(operation.path)
    _require_field(record)
    value = await _prepare(
        context,
        record.spec,
        operation.value,
        allow_create=record.in_reference_array,
        pointer=record.pointer,
    )
    record.owner.set_field(record.native_path, value)
    context.resolver.invalidate(record.owner, record.native_path)
    return True


async def apply_remove(context: ExecutionContext, operation: RemoveOperation) -> bool:
    record = await context.resolver.resolve(operation.path)
    _require_field(record)
    if record.in_array:
        record.owner.detach(record.native_path)
        context.resolver.invalidate(record.owner, record.container_path)
        return True
    if record.read() is ABSENT:
        raise BrokenPathError(f"Cannot remove {record.pointer}: nothing is set there")
    record.owner.unset(record.native_path)
    context.resolver.invalidate(record.owner, record.native_path)
    return True


async def apply_add(context: ExecutionContext, operation: AddOperation) -> bool:
    record = await context.resolver.resolve(operation.path)
    _require_field(record)
    await _place(context, record, operation.value)
    return True


async def apply_copy(context: ExecutionContext, operation: CopyOperation) -> bool:
    source = await context.resolver.resolve(operation.from_)
    value = _read_source(source)
    target = await context.resolver.resolve(operation.path)
    _require_field(target)
    await _place(context, target, copy_value(value))
    return True


async def apply_move(context: ExecutionContext, operation: MoveOperation) -> bool:
    """Place the ``from`` value at ``path`` and clear ``from``.

    The source is cleared with the absent sentinel (``None`` for array slots),
    not removed array-aware. It is cleared before the value is placed so that
    an insertion into the same array cannot shift a different element into
    the cleared slot.
    """

    if operation.path.startswith(operation.from_ + "/"):
        raise InvalidPointerError(
            f"Cannot move {operation.from_} into its own child {operation.path}"
        )
    source = await context.resolver.resolve(operation.from_)
    _require_field(source)
    value = _read_source(source)
    target = await context.resolver.resolve(operation.path)
    _require_field(target)
    if target.in_array:
        _check_insert_position(target)
    prepared = await _prepare(
        context,
        target.spec,
        value,
        allow_create=target.in_reference_array,
        pointer=target.pointer,
    )
    source.owner.unset(source.native_path)
    context.resolver.invalidate(source.owner, source.native_path)
    _store(context, target, prepared)
    return True


async def apply_test(context: ExecutionContext, operation: TestOperation) -> bool:
    record = await context.resolver.resolve(operation.path)
    actual = record.read()
    if actual is ABSENT:
        return False
    expected = to_plain(operation.value)
    if actual is record.owner:
        # the whole document compares by its fields, optionally with its id
        whole = record.owner.to_record()
        if isinstance(expected, dict) and "id" in expected:
            whole["id"] = str(record.owner.id)
        return json_equal(whole, expected)
    return json_equal(to_plain(actual), expected)


EXECUTORS: Final[Mapping[str, Executor]] = {
    "add": apply_add,
    "remove": apply_remove,
    "replace": apply_replace,
    "move": apply_move,
    "copy": apply_copy,
    "test": apply_test,
}


async def execute(context: ExecutionContext, operation: PatchOperation) -> bool:
    """Run the default executor for ``operation``; ``False`` means a failed test."""

    return await EXECUTORS[operation.op](context, operation)


# helpers ---------------------------------------------------------------------


def _require_field(record: ResolutionRecord) -> None:
    if not record.pointer:
        raise InvalidPointerError("Operations cannot replace or remove the whole document")


def _read_source(record: ResolutionRecord) -> object:
    value = record.read()
    if value is ABSENT:
        raise BrokenPathError(f"Cannot read {record.pointer}: nothing is set there")
    return value


async def _place(context: ExecutionContext, record: ResolutionRecord, value: object) -> None:
    """Write with ``add`` semantics: insert into arrays, set everywhere else."""

    if record.in_array:
        _check_insert_position(record)
    prepared = await _prepare(
        context,
        record.spec,
        value,
        allow_create=record.in_reference_array,
        pointer=record.pointer,
    )
    _store(context, record, prepared)


def _store(context: ExecutionContext, record: ResolutionRecord, value: object) -> None:
    if record.in_array:
        record.owner.insert(record.native_path, value)
        context.resolver.invalidate(record.owner, record.container_path)
    else:
        record.owner.set_field(record.native_path, value)
        context.resolver.invalidate(record.owner, record.native_path)


def _check_insert_position(record: ResolutionRecord) -> None:
    key = record.key
    if key == APPEND_MARKER:
        return
    items = record.owner.get(record.container_path)
    size = len(cast(list[object], items)) if isinstance(items, list) else 0
    if not is_array_index(key) or int(key) > size:
        raise InvalidIndexError(f"Invalid index value: {key!r} for array add at {record.pointer}")


async def _prepare(
    context: ExecutionContext,
    spec: FieldSpec | None,
    value: object,
    *,
    allow_create: bool,
    pointer: str,
) -> object:
    """Shape client data for storage in a slot described by ``spec``."""

    if isinstance(value, Document) or spec is None:
        return copy_value(value)
    if spec.is_reference:
        return await _reference(context, spec, value, allow_create=allow_create, pointer=pointer)
    if spec.kind is FieldKind.ARRAY and isinstance(value, list):
        items = cast(list[object], value)
        return [
            await _prepare(
                context,
                spec.item,
                item,
                allow_create=spec.is_reference_array,
                pointer=pointer,
            )
            for item in items
        ]
    if spec.kind is FieldKind.EMBEDDED and isinstance(value, Mapping):
        mapping = cast(Mapping[str, object], value)
        return {
            name: await _prepare(
                context,
                spec.child(name),
                sub,
                allow_create=False,
                pointer=pointer,
            )
            for name, sub in mapping.items()
        }
    return copy_value(value)


async def _reference(
    context: ExecutionContext,
    spec: FieldSpec,
    value: object,
    *,
    allow_create: bool,
    pointer: str,
) -> object:
    if value is None or isinstance(value, Document):
        return value
    entity_id = coerce_id(value)
    if entity_id is not None:
        return entity_id
    if not isinstance(value, Mapping) or not allow_create:
        raise InvalidValueError(
            f"{pointer} holds {spec.target} references; got {type(value).__name__} value"
        )
    if not context.auto_persist:
        raise ConfigurationError(
            f"Adding a new {spec.target} at {pointer} creates an entity and requires auto_persist"
        )
    schema = context.resolver.registry.get(spec.target or "")
    document = await _create(context, schema, cast(Mapping[str, object], value), pointer=pointer)
    await context.store.persist(document)
    context.resolver.adopt(document)
    log.debug("Created %s(%s) for %s", document.entity_type, document.id, pointer)
    return document


async def _create(
    context: ExecutionContext,
    schema: EntitySchema,
    fields: Mapping[str, object],
    *,
    pointer: str,
) -> Document:
    """Build a new entity from client data; its id is always generated."""

    if "id" in fields:
        raise InvalidValueError(
            f"{pointer} creates a new {schema.name} and cannot take an id; "
            "reference an existing entity by its id instead"
        )
    data: dict[str, object] = {}
    for name, value in fields.items():
        field_spec = schema.field(name)
        if field_spec is None:
            raise UnknownFieldError(f"{schema.name} has no field {name!r} ({pointer})")
        data[name] = await _prepare(
            context,
            field_spec,
            value,
            allow_create=False,
            pointer=f"{pointer}/{name}",
        )
    return Document(schema=schema, data=data)


def json_equal(left: object, right: object) -> bool:
    """Compare JSON values without Python's ``True == 1`` conflation."""

    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        left_map = cast(dict[str, object], left)
        right_map = cast(dict[str, object], right)
        return left_map.keys() == right_map.keys() and all(
            json_equal(left_map[key], right_map[key]) for key in left_map
        )
    if isinstance(left, list) and isinstance(right, list):
        left_items = cast(list[object], left)
        right_items = cast(list[object], right)
        return len(left_items) == len(right_items) and all(
            json_equal(a, b) for a, b in zip(left_items, right_items, strict=True)
        )
    if isinstance(left, dict | list) or isinstance(right, dict | list):
        return False
    return left == right
