"""Hook registry: ordered pre/post callbacks per facade key.

Hooks never change a call's arguments or result. The registry
synthesizes a single decorator per key that runs them around the call;
the decoration engine places it innermost, next to the raw function.

A future returned by the call is handed back as is, with the post-hooks
attached as a done callback. Other awaitables are wrapped in a coroutine
that runs the post-hooks after awaiting them.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from dapi.core._helpers import identity_index
from dapi.domain.types import DecoratorFn, HookFn, HookPhase


@dataclass
class HookRecord:
    """Pre and post hooks of a single key, in registration order."""

    pre: list[HookFn] = field(default_factory=list)
    post: list[HookFn] = field(default_factory=list)

    def phase(self, phase: HookPhase) -> list[HookFn]:
        return self.pre if phase is HookPhase.PRE else self.post

    @property
    def empty(self) -> bool:
        return not self.pre and not self.post

    def __len__(self) -> int:
        return len(self.pre) + len(self.post)


class HookRegistry:
    """Per-key hook storage.

    Records are created on first registration and deleted as soon as both
    of their lists are empty, so ``key in registry`` means "has hooks".
    """

    def __init__(self) -> None:
        self._records: dict[str, HookRecord] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: str) -> HookRecord | None:
        return self._records.get(key)

    def count(self, key: str) -> int:
        record = self._records.get(key)
        return len(record) if record is not None else 0

    def add(self, phase: HookPhase, key: str, hook: HookFn) -> None:
        record = self._records.setdefault(key, HookRecord())
        record.phase(phase).append(hook)

    def remove(self, phase: HookPhase, key: str, hook: HookFn) -> bool:
        """Remove the first identity match of *hook*.

        Returns True when the key's record was dropped as a result.
        """
        record = self._records.get(key)
        if record is None:
            return False

        hooks = record.phase(phase)
        index = identity_index(hooks, hook)
        if index is not None:
            del hooks[index]

        if record.empty:
            del self._records[key]
            return True
        return False

    def decorator_for(self, key: str) -> DecoratorFn | None:
        """Build the hook decorator for *key*, or None when it has no hooks.

        The decorator reads the hook lists when it is invoked, so hooks
        added to an already-decorated key take effect on the next call.
        """
        if key not in self._records:
            return None

        def hook_decorator(
            next_call: Callable[..., Any], deps: Any, *args: Any, **kwargs: Any
        ) -> Any:
            record = self._records.get(key)
            pre = tuple(record.pre) if record is not None else ()
            post = tuple(record.post) if record is not None else ()

            _run_hooks(pre, args, kwargs)
            result = next_call(deps, *args, **kwargs)

            if asyncio.isfuture(result):
                on_done = functools.partial(_post_hooks_on_done, post, args, kwargs)
                result.add_done_callback(on_done)
                return result
            if inspect.isawaitable(result):
                return _post_hooks_after(result, post, args, kwargs)

            _run_hooks(post, args, kwargs)
            return result

        hook_decorator.__qualname__ = f"hook_decorator[{key}]"
        return hook_decorator


def _run_hooks(hooks: Iterable[HookFn], args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
    for hook in hooks:
        hook(*args, **kwargs)


async def _post_hooks_after(
    pending: Awaitable[Any],
    post: tuple[HookFn, ...],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> Any:
    # Post-hooks only run on success; a failing call skips them.
    value = await pending
    _run_hooks(post, args, kwargs)
    return value


def _post_hooks_on_done(
    post: tuple[HookFn, ...],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    future: asyncio.Future[Any],
) -> None:
    # Futures are handed back untouched; hooks follow the settled result.
    if future.cancelled() or future.exception() is not None:
        return
    _run_hooks(post, args, kwargs)
