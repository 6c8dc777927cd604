"""Callable shapes and hook phases.

A Dapi function takes the dependency bundle as its first argument.
Decorators receive the next link of the chain plus the same arguments.
Hooks only see the user-facing arguments.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

DapiFn = Callable[..., Any | Awaitable[Any]]
"""``(deps, *args, **kwargs) -> R | Awaitable[R]``."""

DecoratorFn = Callable[..., Any | Awaitable[Any]]
"""``(next, deps, *args, **kwargs) -> R | Awaitable[R]``."""

HookFn = Callable[..., None]
"""``(*args, **kwargs) -> None``."""

Remover = Callable[[], None]


class HookPhase(StrEnum):
    """When a hook runs relative to the hooked call."""

    PRE = "pre"
    POST = "post"
