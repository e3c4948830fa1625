from __future__ import annotations

import re

import pytest

from graphpatch.domain.errors import AuthorizationError
from graphpatch.domain.patching.operations import validate_patch
from graphpatch.domain.patching.rules import Rule, RuleMode, RuleSet, compile_path_pattern


@pytest.mark.parametrize(
    ("pattern", "pointer", "expected"),
    [
        ("/first_name", "/first_name", True),
        ("/first_name", "/first_name_x", False),
        ("/address", "/address/city", True),
        ("/address/*", "/address/city", True),
        ("/address/*", "/address", False),
        ("/books/*/name", "/books/3/name", True),
        ("/books/*/name", "/books/3/year", False),
        ("/books/**", "/books", True),
        ("/books/**", "/books/0/author/first_name", True),
        ("/**/name", "/books/0/name", True),
        ("", "/anything/at/all", True),
    ],
)
def test_path_patterns(pattern: str, pointer: str, expected: bool) -> None:
    assert (compile_path_pattern(pattern).fullmatch(pointer) is not None) is expected


def test_rule_honours_verbs_and_regexes() -> None:
    (replace,) = validate_patch([{"op": "replace", "path": "/first_name", "value": "x"}])

    assert Rule("/first_name").matches(replace, replace.path)
    assert not Rule("/first_name", verbs=frozenset({"remove"})).matches(replace, replace.path)
    assert Rule(re.compile(r"name$")).matches(replace, replace.path)


def test_rule_rejects_unknown_verbs() -> None:
    with pytest.raises(ValueError, match="frobnicate"):
        Rule("/title", verbs=frozenset({"frobnicate"}))


def test_blacklist_rejects_matching_operations() -> None:
    rules = RuleSet(rules=(Rule("/blacklistedField"),))
    operations = validate_patch(
        [
            {"op": "replace", "path": "/title", "value": "ok"},
            {"op": "replace", "path": "/blacklistedField", "value": "x"},
        ]
    )

    assert rules.rejected(operations) == [operations[1]]
    with pytest.raises(AuthorizationError) as excinfo:
        rules.check(operations)
    assert excinfo.value.operations == (operations[1],)


def test_whitelist_requires_a_matching_rule() -> None:
    rules = RuleSet(rules=(Rule("/title", verbs=frozenset({"replace"})),), mode=RuleMode.WHITELIST)
    allowed = validate_patch([{"op": "replace", "path": "/title", "value": "ok"}])
    denied = validate_patch([{"op": "remove", "path": "/title"}])

    rules.check(allowed)
    with pytest.raises(AuthorizationError):
        rules.check(denied)


def test_move_is_checked_against_its_source() -> None:
    rules = RuleSet(rules=(Rule("/blacklistedField"),))
    operations = validate_patch([{"op": "move", "from": "/blacklistedField", "path": "/title"}])

    with pytest.raises(AuthorizationError):
        rules.check(operations)


def test_rule_predicate_narrows_matches() -> None:
    rules = RuleSet(rules=(Rule("/title", invoke=lambda op: getattr(op, "value", None) == "bad"),))

    rules.check(validate_patch([{"op": "replace", "path": "/title", "value": "good"}]))
    with pytest.raises(AuthorizationError):
        rules.check(validate_patch([{"op": "replace", "path": "/title", "value": "bad"}]))


def test_rule_set_from_mapping() -> None:
    rules = RuleSet.from_mapping(
        {"mode": "whitelist", "rules": [{"path": "/title", "op": ["replace", "test"]}]}
    )

    assert rules.mode is RuleMode.WHITELIST
    assert rules.rules[0].verbs == frozenset({"replace", "test"})
    assert Rule.from_mapping({"path": "/title", "op": "add"}).verbs == frozenset({"add"})
