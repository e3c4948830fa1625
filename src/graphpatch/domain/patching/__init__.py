"""Patch application subsystem."""

from __future__ import annotations

from .engine import PatchEngine, PatchOptions, PatchOutcome, apply_patch, apply_patch_async
from .middleware import MiddlewareContext, MiddlewareResult, MiddlewareRule
from .operations import (
    AddOperation,
    CopyOperation,
    MoveOperation,
    PatchOperation,
    RemoveOperation,
    ReplaceOperation,
    TestOperation,
    validate_patch,
)
from .pointer import from_native_path, to_native_path
from .resolve import NodeKind, ReferenceResolver, ResolutionRecord
from .rules import Rule, RuleMode, RuleSet
from .save_queue import SaveQueue

__all__ = [
    "AddOperation",
    "CopyOperation",
    "MiddlewareContext",
    "MiddlewareResult",
    "MiddlewareRule",
    "MoveOperation",
    "NodeKind",
    "PatchEngine",
    "PatchOperation",
    "PatchOptions",
    "PatchOutcome",
    "ReferenceResolver",
    "RemoveOperation",
    "ReplaceOperation",
    "ResolutionRecord",
    "Rule",
    "RuleMode",
    "RuleSet",
    "SaveQueue",
    "TestOperation",
    "apply_patch",
    "apply_patch_async",
    "from_native_path",
    "to_native_path",
    "validate_patch",
]
