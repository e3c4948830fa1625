"""Patch engine defaults read from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from graphpatch.domain.patching.engine import PatchOptions

from .env import env_flag

if TYPE_CHECKING:
    from graphpatch.domain.patching.middleware import MiddlewareRule
    from graphpatch.domain.patching.rules import RuleSet


@dataclass(frozen=True, slots=True)
class PatchConfig:
    auto_persist: bool = False
    autopopulate: bool = True

    def to_options(
        self,
        *,
        rules: RuleSet | None = None,
        middleware: tuple[MiddlewareRule, ...] = (),
        abort_on_test_failure: bool = False,
    ) -> PatchOptions:
        return PatchOptions(
            auto_persist=self.auto_persist,
            autopopulate=self.autopopulate,
            rules=rules,
            middleware=middleware,
            abort_on_test_failure=abort_on_test_failure,
        )


def get_patch_config() -> PatchConfig:
    return PatchConfig(
        auto_persist=env_flag("GRAPHPATCH_AUTO_PERSIST", default=False),
        autopopulate=env_flag("GRAPHPATCH_AUTOPOPULATE", default=True),
    )
