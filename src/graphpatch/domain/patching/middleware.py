"""Per-operation interceptors selected by verb and pointer pattern.

The first rule whose verbs contain the operation's verb and whose pattern
matches the raw pointer handles the operation. Its handler either performs the
mutation itself and answers ``HANDLED``, or answers ``DELEGATE`` to have the
default executor run with ``context.operation`` (which it may have replaced,
e.g. to rewrite the value).
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from graphpatch.domain.patching.operations import VERBS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphpatch.domain.model import Document
    from graphpatch.domain.patching.operations import PatchOperation
    from graphpatch.domain.patching.resolve import ResolutionRecord


log = getLogger(__name__)


class MiddlewareResult(StrEnum):
    HANDLED = "handled"
    DELEGATE = "delegate"


@dataclass(slots=True)
class MiddlewareContext:
    entity: Document
    operation: PatchOperation
    record: ResolutionRecord
    match: re.Match[str]

    @property
    def captures(self) -> tuple[str | None, ...]:
        return self.match.groups()

    @property
    def named_captures(self) -> dict[str, str | None]:
        return self.match.groupdict()


type MiddlewareHandler = Callable[
    [MiddlewareContext], MiddlewareResult | Awaitable[MiddlewareResult]
]


@dataclass(frozen=True, slots=True)
class MiddlewareRule:
    pattern: str | re.Pattern[str]
    handler: MiddlewareHandler
    verbs: frozenset[str] = frozenset(VERBS)
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "verbs", frozenset(self.verbs))
        regex = self.pattern if isinstance(self.pattern, re.Pattern) else re.compile(self.pattern)
        object.__setattr__(self, "_regex", regex)

    def match(self, operation: PatchOperation) -> re.Match[str] | None:
        if operation.op not in self.verbs:
            return None
        return self._regex.search(operation.path)


class MiddlewareChain:
    """Ordered middleware rules; first match wins."""

    def __init__(self, rules: Iterable[MiddlewareRule] = ()) -> None:
        self._rules: Sequence[MiddlewareRule] = tuple(rules)

    def __bool__(self) -> bool:
        return bool(self._rules)

    def select(self, operation: PatchOperation) -> tuple[MiddlewareRule, re.Match[str]] | None:
        for rule in self._rules:
            found = rule.match(operation)
            if found is not None:
                return rule, found
        return None

    async def run(
        self,
        rule: MiddlewareRule,
        context: MiddlewareContext,
    ) -> MiddlewareResult:
        operation = context.operation
        log.debug("Middleware %r handles %s %s", rule.pattern, operation.op, operation.path)
        outcome = rule.handler(context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return MiddlewareResult(outcome)
