from __future__ import annotations

import pytest

from graphpatch.config import InvalidSettingError, env_flag, get_patch_config
from graphpatch.domain.patching import Rule, RuleSet


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("TRUE", True), ("on", True), ("0", False), ("no", False), ("  ", True)],
)
def test_env_flag_parses_booleans(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
    expected: bool,
) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_flag("EXAMPLE_FLAG", default=True) is expected


def test_env_flag_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", "sometimes")

    with pytest.raises(InvalidSettingError, match="EXAMPLE_FLAG"):
        env_flag("EXAMPLE_FLAG", default=False)


def test_patch_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GRAPHPATCH_AUTO_PERSIST", raising=False)
    monkeypatch.delenv("GRAPHPATCH_AUTOPOPULATE", raising=False)

    config = get_patch_config()

    assert not config.auto_persist
    assert config.autopopulate


def test_patch_config_builds_options(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRAPHPATCH_AUTO_PERSIST", "yes")
    monkeypatch.setenv("GRAPHPATCH_AUTOPOPULATE", "off")
    rules = RuleSet(rules=(Rule("/title"),))

    options = get_patch_config().to_options(rules=rules, abort_on_test_failure=True)

    assert options.auto_persist
    assert not options.autopopulate
    assert options.rules is rules
    assert options.abort_on_test_failure
    assert options.middleware == ()
