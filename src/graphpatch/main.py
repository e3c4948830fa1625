#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any, cast
from uuid import UUID

from dotenv import load_dotenv

from graphpatch.app import patch_stored_entity
from graphpatch.common.logging import configure_logging
from graphpatch.config import SettingsError, get_patch_config
from graphpatch.domain.errors import AuthorizationError, PatchError, PatchValidationError
from graphpatch.domain.model import SchemaDeclarationError, SchemaRegistry
from graphpatch.domain.patching.rules import RuleSet

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply a JSON patch to a stored entity")
    parser.add_argument(
        "--schema",
        type=Path,
        required=True,
        help="JSON file declaring the entity types",
    )
    parser.add_argument("--type", dest="entity_type", required=True, help="Entity type name")
    parser.add_argument("--id", dest="entity_id", required=True, help="Entity id (UUID)")
    parser.add_argument(
        "--rules",
        type=Path,
        help='JSON file with {"mode": ..., "rules": [...]} authorization rules',
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Apply in memory and print the result without persisting",
    )
    parser.add_argument(
        "--no-autopopulate",
        action="store_true",
        help="Fail instead of loading references that are not populated",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("patch", help="Patch document file, or - to read stdin")
    return parser.parse_args(list(argv))


def _read_json(source: str | Path) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    with Path(source).open() as handle:
        return json.load(handle)


def _load_registry(path: Path) -> SchemaRegistry:
    declarations = _read_json(path)
    if not isinstance(declarations, dict):
        raise ValueError(f"Schema file {path} must contain a JSON object")
    return SchemaRegistry.from_declarations(cast(dict[str, Any], declarations))


def _load_rules(path: Path | None) -> RuleSet | None:
    if path is None:
        return None
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"Rules file {path} must contain a JSON object")
    return RuleSet.from_mapping(cast(dict[str, object], data))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(verbose=parsed_args.verbose)

    try:
        entity_id = UUID(parsed_args.entity_id)
        registry = _load_registry(parsed_args.schema)
        rules = _load_rules(parsed_args.rules)
        operations = _read_json(parsed_args.patch)
        if not isinstance(operations, list):
            raise ValueError("Patch document must be a JSON array")
        config = get_patch_config()
    except (OSError, ValueError, SchemaDeclarationError, SettingsError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    if parsed_args.dry_run:
        config = replace(config, auto_persist=False)
    if parsed_args.no_autopopulate:
        config = replace(config, autopopulate=False)
    options = config.to_options(rules=rules)

    try:
        outcome = patch_stored_entity(
            parsed_args.entity_type,
            entity_id,
            cast(list[Any], operations),
            registry=registry,
            options=options,
        )
    except (PatchValidationError, AuthorizationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except (PatchError, LookupError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    entity = outcome.entity
    print(json.dumps({"id": str(entity.id), **entity.to_record()}, indent=2, default=str))
    if not outcome.ok:
        for path in outcome.failed_tests:
            print(f"Test failed: {path}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
