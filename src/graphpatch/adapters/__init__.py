"""Adapters implementing the domain ports."""

from __future__ import annotations

from .memory import InMemoryEntityStore, StoreStats

__all__ = ["InMemoryEntityStore", "StoreStats"]
