from __future__ import annotations

import pytest

from graphpatch.domain.errors import InvalidPointerError
from graphpatch.domain.patching.pointer import (
    from_native_path,
    join_native,
    split_pointer,
    to_native_path,
)


@pytest.mark.parametrize(
    ("pointer", "native"),
    [
        ("", ""),
        ("/first_name", "first_name"),
        ("/address/city", "address.city"),
        ("/books/0/name", "books.0.name"),
        ("/books/-", "books.-"),
    ],
)
def test_to_native_path(pointer: str, native: str) -> None:
    assert to_native_path(pointer) == native
    assert from_native_path(native) == pointer


def test_escaped_segments_are_unescaped() -> None:
    assert split_pointer("/a~1b/m~0n") == ("a/b", "m~n")
    assert from_native_path(to_native_path("/m~0n")) == "/m~0n"


@pytest.mark.parametrize("pointer", ["first_name", "/bad~2escape", "/first.name"])
def test_invalid_pointers_raise(pointer: str) -> None:
    with pytest.raises(InvalidPointerError):
        to_native_path(pointer)


def test_join_native_skips_empty_base() -> None:
    assert join_native("", "first_name") == "first_name"
    assert join_native("address", "city") == "address.city"
