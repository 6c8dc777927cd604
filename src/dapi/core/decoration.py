"""Decoration engine: per-key decorator chains and state transitions.

Chain layout, outermost first::

    decorator_1 -> decorator_2 -> ... -> decorator_n -> hook_decorator -> fn

The first registered decorator runs first on the way in and last on the
way out. The hook decorator sits next to the raw function so hooks see
the real invocation, after any decorator had the chance to
short-circuit or rewrite the arguments.

The composed callable is rebuilt whenever a key's decorators or hook
presence change. Calls resolve it at invocation time, so an in-flight
call keeps the chain it started with and the next call sees the new one.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from dapi.core._helpers import identity_index
from dapi.core.hooks import HookRegistry
from dapi.domain.lifecycle import DecorationState, compute_decoration_state
from dapi.domain.types import DecoratorFn

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[str, DecorationState], None]


class DecorationEngine:
    """Owns the decorator lists and the current call of every key.

    Parameters:
        fns: The Dapi functions being decorated.
        hooks: Hook registry consulted for the innermost hook decorator.
        on_transition: Called with ``(key, new_state)`` after a key flips
            between undecorated and decorated.
    """

    def __init__(
        self,
        fns: Mapping[str, Callable[..., Any]],
        hooks: HookRegistry,
        *,
        on_transition: TransitionCallback | None = None,
    ) -> None:
        self._fns = fns
        self._hooks = hooks
        self._on_transition = on_transition
        self._decorators: dict[str, list[DecoratorFn]] = {}
        self._decorated: set[str] = set()
        self._calls: dict[str, Callable[..., Any]] = dict(fns)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def call_for(self, key: str) -> Callable[..., Any]:
        """Current call for *key*: the raw function or its composed chain."""
        return self._calls[key]

    def state(self, key: str) -> DecorationState:
        if key in self._decorated:
            return DecorationState.DECORATED
        return DecorationState.UNDECORATED

    def decorators(self, key: str) -> tuple[DecoratorFn, ...]:
        return tuple(self._decorators.get(key, ()))

    @property
    def decorated_keys(self) -> frozenset[str]:
        return frozenset(self._decorated)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, key: str, decorator: DecoratorFn) -> None:
        """Append *decorator* to *key*. The caller validates *key*."""
        self._decorators.setdefault(key, []).append(decorator)
        self.refresh(key)

    def remove(self, key: str, decorator: DecoratorFn) -> None:
        """Remove the first identity match of *decorator*; no-op if absent."""
        decorators = self._decorators.get(key)
        if decorators is not None:
            index = identity_index(decorators, decorator)
            if index is not None:
                del decorators[index]
            if not decorators:
                del self._decorators[key]
        self.refresh(key)

    def refresh(self, key: str) -> None:
        """Re-evaluate *key* after its decorators or hooks changed."""
        if key not in self._fns:
            return

        current = self.state(key)
        target = compute_decoration_state(
            len(self._decorators.get(key, ())),
            self._hooks.count(key),
        )

        if target is DecorationState.DECORATED:
            self._calls[key] = self._compose(key)
            self._decorated.add(key)
        else:
            self._calls[key] = self._fns[key]
            self._decorated.discard(key)

        if target is not current:
            logger.debug("Key %s is now %s", key, target)
            if self._on_transition is not None:
                self._on_transition(key, target)

    def _compose(self, key: str) -> Callable[..., Any]:
        chain: list[DecoratorFn] = list(self._decorators.get(key, ()))
        hook_decorator = self._hooks.decorator_for(key)
        if hook_decorator is not None:
            chain.append(hook_decorator)

        return functools.reduce(
            lambda inner, decorator: functools.partial(decorator, inner),
            reversed(chain),
            self._fns[key],
        )
