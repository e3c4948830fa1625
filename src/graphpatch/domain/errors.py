"""Error taxonomy for patch application.

Validation and authorization failures are raised before anything is touched.
Every other error may surface after earlier operations already mutated the
in-memory graph; nothing is rolled back automatically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphpatch.domain.patching.operations import PatchOperation


class PatchError(Exception):
    """Base class for all patch application failures."""


class PatchValidationError(PatchError):
    """Raised when a patch document is not structurally valid RFC6902."""

    def __init__(self, errors: Sequence[Any]) -> None:
        self.errors = list(errors)
        count = len(self.errors)
        super().__init__(f"Patch document failed validation ({count} error(s))")


class AuthorizationError(PatchError):
    """Raised when the rule set rejects one or more operations."""

    def __init__(self, operations: Sequence[PatchOperation]) -> None:
        self.operations = tuple(operations)
        rejected = ", ".join(f"{op.op} {op.path}" for op in self.operations)
        super().__init__(f"Patch failed rule check: {rejected}")


class InvalidPointerError(PatchError):
    """Raised for JSON pointers that cannot be translated to a native path."""


class BrokenPathError(PatchError):
    """Raised when an intermediate path segment does not exist."""


class UnknownFieldError(BrokenPathError):
    """Raised when a path names a field the schema does not declare."""


class InvalidIndexError(PatchError):
    """Raised for array segments that are not a usable index."""


class InvalidValueError(PatchError):
    """Raised when a value cannot be stored in the targeted field."""


class ConfigurationError(PatchError):
    """Raised when an operation needs an option the call did not enable."""


class TestFailedError(PatchError):
    """Raised for a failed ``test`` operation when aborting on test failure."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Test operation failed at {path}")


class PersistenceError(PatchError):
    """Base class for storage failures raised by graphpatch adapters."""


class EntityNotFoundError(PersistenceError):
    """Raised when a store has no entity for the requested type and id."""
