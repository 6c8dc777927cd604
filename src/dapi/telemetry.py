"""Call timing for facade methods.

Telemetry is off by default and costs one ``ContextVar.get`` per traced
call while off. Once enabled, every call through :func:`traced_decorator`
opens a :class:`Span`; spans opened while another one is active become its
children, so nested facade calls (a Dapi function calling another facade
through its dependencies) form a tree. Each traced span is logged as
``span.complete`` when it ends.

:func:`trace_span` marks stages inside a traced call. It only records
under an active span.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import time
from collections.abc import Awaitable, Callable, Generator, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog

from dapi.domain.types import DecoratorFn

_telemetry_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)

log = structlog.get_logger("dapi.telemetry")


@dataclass
class Span:
    """A timed unit of work with nested children."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        """Tree form; empty annotations and children are omitted."""
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def _active(span: Span) -> Iterator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Record a stage named *name* under the active span.

    Yields None when telemetry is off or no span is active.
    """
    parent = _current_span.get() if _telemetry_enabled.get() else None
    if parent is None:
        yield None
        return

    with _active(parent.child(name)) as span:
        try:
            yield span
        finally:
            span.end()


def _complete(span: Span, *, ok: bool) -> None:
    span.end()
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        children=len(span.children),
    )


async def _complete_when_awaited(span: Span, pending: Awaitable[Any]) -> Any:
    with _active(span):
        try:
            value = await pending
        except Exception:
            _complete(span, ok=False)
            raise
    _complete(span, ok=True)
    return value


def _complete_on_done(span: Span, future: asyncio.Future[Any]) -> None:
    _complete(span, ok=not future.cancelled() and future.exception() is None)


def traced_decorator(name: str) -> DecoratorFn:
    """Return a facade decorator that times each call in a span named *name*.

    Awaitable results are timed until they settle; futures are returned
    unchanged and closed from a done callback. Errors propagate after the
    span is logged with ``ok=False``.
    """

    def decorator(next_call: Callable[..., Any], deps: Any, *args: Any, **kwargs: Any) -> Any:
        if not _telemetry_enabled.get():
            return next_call(deps, *args, **kwargs)

        parent = _current_span.get()
        span = parent.child(name) if parent is not None else Span(name=name)
        with _active(span):
            try:
                result = next_call(deps, *args, **kwargs)
            except Exception:
                _complete(span, ok=False)
                raise

        if asyncio.isfuture(result):
            result.add_done_callback(functools.partial(_complete_on_done, span))
            return result
        if inspect.isawaitable(result):
            return _complete_when_awaited(span, result)
        _complete(span, ok=True)
        return result

    decorator.__qualname__ = f"traced_decorator[{name}]"
    return decorator


def enable_telemetry() -> None:
    """Turn span recording on for the current context."""
    _telemetry_enabled.set(True)


def disable_telemetry() -> None:
    _telemetry_enabled.set(False)


def is_telemetry_enabled() -> bool:
    return _telemetry_enabled.get()


def get_current_span() -> Span | None:
    """The active span, for manual annotation; None while telemetry is off."""
    if not _telemetry_enabled.get():
        return None
    return _current_span.get()
