"""Rule-based authorization of whole patch documents.

A rule names a path pattern and the verbs it applies to. In blacklist mode any
operation matched by a rule is rejected; in whitelist mode every operation must
be matched by at least one rule. Patterns are pointer globs where ``*`` stands
for one segment and ``**`` for any number of segments; a pattern also covers
everything below the location it names. Compiled regular expressions are
searched against the raw pointer instead.

``move`` is checked against its ``from`` pointer too, since it clears it.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, cast

from graphpatch.domain.errors import AuthorizationError
from graphpatch.domain.patching.operations import VERBS, MoveOperation

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphpatch.domain.patching.operations import PatchOperation


log = getLogger(__name__)


class RuleMode(StrEnum):
    BLACKLIST = "blacklist"
    WHITELIST = "whitelist"


def compile_path_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a pointer glob (or pass through a compiled regex)."""

    if isinstance(pattern, re.Pattern):
        return pattern
    if pattern in {"", "/"}:
        return re.compile(r"(?:/.*)?")
    pieces: list[str] = []
    for segment in pattern.split("/")[1:]:
        if segment == "**":
            pieces.append(r"(?:/[^/]*)*")
        elif segment == "*":
            pieces.append(r"/[^/]+")
        else:
            pieces.append("/" + re.escape(segment))
    return re.compile("".join(pieces) + r"(?:/.*)?")


@dataclass(frozen=True, slots=True)
class Rule:
    path: str | re.Pattern[str]
    verbs: frozenset[str] = frozenset(VERBS)
    invoke: Callable[[PatchOperation], bool] | None = None
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "verbs", frozenset(self.verbs))
        unknown = self.verbs - set(VERBS)
        if unknown:
            raise ValueError(f"Unknown patch verbs in rule: {', '.join(sorted(unknown))}")
        object.__setattr__(self, "_regex", compile_path_pattern(self.path))

    def matches(self, operation: PatchOperation, pointer: str) -> bool:
        if operation.op not in self.verbs:
            return False
        if isinstance(self.path, re.Pattern):
            found = self._regex.search(pointer) is not None
        else:
            found = self._regex.fullmatch(pointer) is not None
        if not found:
            return False
        return self.invoke is None or bool(self.invoke(operation))

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> Rule:
        """Build a rule from ``{"path": ..., "op": [...]}`` configuration."""

        path = data.get("path")
        if not isinstance(path, str):
            raise ValueError("Rule needs a string 'path'")
        verbs = data.get("op", VERBS)
        if isinstance(verbs, str):
            verbs = (verbs,)
        if not isinstance(verbs, Iterable):
            raise ValueError("Rule 'op' must be a verb or a list of verbs")
        return cls(path=path, verbs=frozenset(str(verb) for verb in cast(Iterable[object], verbs)))


@dataclass(frozen=True, slots=True)
class RuleSet:
    rules: tuple[Rule, ...] = ()
    mode: RuleMode = RuleMode.BLACKLIST

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "mode", RuleMode(self.mode))

    def permits(self, operation: PatchOperation) -> bool:
        pointers = _checked_pointers(operation)
        if self.mode is RuleMode.BLACKLIST:
            return not any(
                rule.matches(operation, pointer) for rule in self.rules for pointer in pointers
            )
        return all(
            any(rule.matches(operation, pointer) for rule in self.rules) for pointer in pointers
        )

    def rejected(self, operations: Sequence[PatchOperation]) -> list[PatchOperation]:
        return [operation for operation in operations if not self.permits(operation)]

    def check(self, operations: Sequence[PatchOperation]) -> None:
        """Raise :class:`AuthorizationError` if any operation is not permitted."""

        rejected = self.rejected(operations)
        if rejected:
            log.warning(
                "Rejected %s of %s operation(s) in %s mode",
                len(rejected),
                len(operations),
                self.mode,
            )
            raise AuthorizationError(rejected)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> RuleSet:
        """Build a rule set from ``{"mode": ..., "rules": [...]}`` configuration."""

        raw_rules = data.get("rules", [])
        if not isinstance(raw_rules, list):
            raise ValueError("'rules' must be a list")
        rules = tuple(
            Rule.from_mapping(cast(Mapping[str, object], item))
            for item in cast(list[object], raw_rules)
            if isinstance(item, Mapping)
        )
        mode = data.get("mode", RuleMode.BLACKLIST)
        return cls(rules=rules, mode=RuleMode(str(mode)))


def _checked_pointers(operation: PatchOperation) -> tuple[str, ...]:
    if isinstance(operation, MoveOperation):
        return (operation.path, operation.from_)
    return (operation.path,)
