"""Tests for facade entries and the receiver context."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

import anyio
import pytest

from dapi.core.facade import DependencyCell, FacadeEntry, build_facade, current_dapi


def _add(deps: dict[str, int], x: int, *, scale: int = 1) -> int:
    """Add the configured base to *x*."""
    return (deps["base"] + x) * scale


async def _async_add(deps: dict[str, int], x: int) -> int:
    return deps["base"] + x


class TestDependencyCell:
    def test_get_set(self) -> None:
        cell = DependencyCell({"a": 1})
        cell.set({"a": 2})
        assert cell.get() == {"a": 2}


class TestFacadeEntry:
    def _entry(self, fn: Any = _add, receiver: Any = None) -> tuple[FacadeEntry, DependencyCell]:
        cell = DependencyCell({"base": 10})
        calls = {"add": fn}
        return FacadeEntry("add", fn, cell, calls.__getitem__, receiver), cell

    def test_injects_dependencies(self) -> None:
        entry, _ = self._entry()
        assert entry(1) == 11
        assert entry(1, scale=2) == 22

    def test_reads_cell_on_every_call(self) -> None:
        entry, cell = self._entry()
        cell.set({"base": 100})
        assert entry(1) == 101

    def test_resolves_call_on_every_call(self) -> None:
        cell = DependencyCell({"base": 10})
        calls: dict[str, Any] = {"add": _add}
        entry = FacadeEntry("add", _add, cell, calls.__getitem__, None)
        calls["add"] = lambda deps, x: -x
        assert entry(1) == -1

    def test_metadata(self) -> None:
        entry, _ = self._entry()
        assert entry.__name__ == "_add"
        assert entry.__doc__ == "Add the configured base to *x*."
        assert list(inspect.signature(entry).parameters) == ["x", "scale"]
        assert repr(entry) == "<FacadeEntry add>"

    def test_receiver_only_during_call(self) -> None:
        receiver = object()
        seen: list[Any] = []
        entry, _ = self._entry(lambda deps, x: seen.append(current_dapi()), receiver)

        entry(1)

        assert seen == [receiver]
        assert current_dapi() is None

    def test_receiver_reset_after_error(self) -> None:
        def failing(deps: Any, x: int) -> None:
            raise ValueError(x)

        entry, _ = self._entry(failing, object())
        with pytest.raises(ValueError):
            entry(1)
        assert current_dapi() is None

    def test_async_result(self) -> None:
        receiver = object()
        entry, _ = self._entry(_async_add, receiver)

        async def main() -> tuple[int, Any]:
            value = await entry(5)
            return value, current_dapi()

        assert anyio.run(main) == (15, None)

    def test_future_result_passes_through(self) -> None:
        async def main() -> None:
            fut = asyncio.get_running_loop().create_future()
            entry, _ = self._entry(lambda deps, x: fut, object())
            assert entry(1) is fut
            fut.set_result(2)
            assert await entry(1) == 2

        anyio.run(main)


class TestBuildFacade:
    def test_preserves_order(self) -> None:
        fns = {"b": _add, "a": _async_add}
        facade = build_facade(fns, DependencyCell({}), fns.__getitem__, None)
        assert list(facade) == ["b", "a"]
        assert all(isinstance(entry, FacadeEntry) for entry in facade.values())
