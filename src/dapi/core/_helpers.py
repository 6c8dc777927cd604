"""Shared helpers for the core package."""

from __future__ import annotations

from typing import Any


def identity_index(items: list[Any], target: Any) -> int | None:
    """Index of the first element that *is* *target* (not merely equal)."""
    for index, item in enumerate(items):
        if item is target:
            return index
    return None
