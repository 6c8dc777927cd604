"""Per-key decoration lifecycle.

A facade key is either called directly (undecorated) or through a
composed chain (decorated). The state is always computed from the
registries, never set directly by callers.
"""

from __future__ import annotations

from enum import StrEnum


class DecorationState(StrEnum):
    """How a facade key dispatches its calls."""

    UNDECORATED = "undecorated"
    DECORATED = "decorated"


def compute_decoration_state(decorator_count: int, hook_count: int) -> DecorationState:
    """A key stays decorated while it has any decorator or any hook."""
    if decorator_count or hook_count:
        return DecorationState.DECORATED
    return DecorationState.UNDECORATED
