"""Facade builder: one stable callable per Dapi function.

A :class:`FacadeEntry` never changes for the lifetime of its wrapper.
Every call re-reads two pieces of mutable state: the dependency cell and
the key's current call (plain or decorated). That is what lets a
reference taken before ``set_dependencies()`` or ``add_decorator()``
observe the change.

While an entry runs, :func:`current_dapi` returns the owning wrapper.
Coroutine results are wrapped so the same holds while they are awaited.
Futures are returned as they are; their callbacks already run in the
context captured when they were added.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Coroutine, Mapping
from contextvars import ContextVar
from typing import Any

_current_dapi: ContextVar[Any] = ContextVar("_current_dapi", default=None)


def current_dapi() -> Any:
    """The wrapper whose facade call is running, or None outside a call."""
    return _current_dapi.get()


class DependencyCell:
    """Owned, mutable holder for a wrapper's dependency bundle."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def get(self) -> Any:
        return self.value

    def set(self, value: Any) -> None:
        self.value = value


class FacadeEntry:
    """Dependency-elided callable for a single Dapi function.

    Parameters:
        key: Name of the function in the definition.
        fn: The Dapi function; used for metadata only.
        cell: Dependency cell read on every call.
        resolve: Returns the key's current call, ``(deps, *args, **kwargs)``.
        receiver: Wrapper exposed through :func:`current_dapi`.
    """

    def __init__(
        self,
        key: str,
        fn: Callable[..., Any],
        cell: DependencyCell,
        resolve: Callable[[str], Callable[..., Any]],
        receiver: Any,
    ) -> None:
        self.key = key
        self._cell = cell
        self._resolve = resolve
        self._receiver = receiver
        self.__name__ = getattr(fn, "__name__", key)
        self.__qualname__ = getattr(fn, "__qualname__", key)
        self.__doc__ = getattr(fn, "__doc__", None)
        self.__signature__ = _elide_first_parameter(fn)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        token = _current_dapi.set(self._receiver)
        try:
            result = self._resolve(self.key)(self._cell.get(), *args, **kwargs)
        finally:
            _current_dapi.reset(token)

        # Only coroutines are rewrapped; futures and other awaitables pass through.
        if inspect.iscoroutine(result):
            return _awaited_with_receiver(self._receiver, result)
        return result

    def __repr__(self) -> str:
        return f"<FacadeEntry {self.key}>"


def build_facade(
    fns: Mapping[str, Callable[..., Any]],
    cell: DependencyCell,
    resolve: Callable[[str], Callable[..., Any]],
    receiver: Any,
) -> dict[str, FacadeEntry]:
    """Create one entry per function, preserving definition order."""
    return {key: FacadeEntry(key, fn, cell, resolve, receiver) for key, fn in fns.items()}


async def _awaited_with_receiver(receiver: Any, pending: Coroutine[Any, Any, Any]) -> Any:
    token = _current_dapi.set(receiver)
    try:
        return await pending
    finally:
        _current_dapi.reset(token)


def _elide_first_parameter(fn: Callable[..., Any]) -> inspect.Signature | None:
    """Signature of *fn* without its leading dependencies parameter."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    params = list(signature.parameters.values())
    if params and params[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        params = params[1:]
    return signature.replace(parameters=params)
