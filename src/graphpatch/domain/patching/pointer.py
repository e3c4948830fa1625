"""Translate JSON Pointers to and from dotted native paths."""

from __future__ import annotations

from jsonpointer import JsonPointer, JsonPointerException

from graphpatch.domain.errors import InvalidPointerError

NATIVE_SEPARATOR = "."


def split_pointer(pointer: str) -> tuple[str, ...]:
    """Return the unescaped segments of ``pointer`` (``""`` has none)."""

    try:
        parts = JsonPointer(pointer).parts
    except JsonPointerException as exc:
        raise InvalidPointerError(f"Invalid JSON pointer {pointer!r}: {exc}") from exc
    for part in parts:
        if NATIVE_SEPARATOR in part:
            raise InvalidPointerError(
                f"Invalid JSON pointer {pointer!r}: segment {part!r} contains {NATIVE_SEPARATOR!r}"
            )
    return tuple(parts)


def join_pointer(segments: tuple[str, ...] | list[str]) -> str:
    return JsonPointer.from_parts(list(segments)).path


def to_native_path(pointer: str) -> str:
    """Convert ``/address/city`` into ``address.city``."""

    return NATIVE_SEPARATOR.join(split_pointer(pointer))


def from_native_path(native_path: str) -> str:
    """Convert ``address.city`` back into ``/address/city``."""

    if not native_path:
        return ""
    return join_pointer(native_path.split(NATIVE_SEPARATOR))


def join_native(*parts: str) -> str:
    return NATIVE_SEPARATOR.join(part for part in parts if part)
