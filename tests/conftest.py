"""Shared pytest fixtures for dapi tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest

from dapi import DapiDefinition, DapiWrapper


async def _async_pair(_deps: Any, a1: str, a2: str) -> list[str]:
    return [a1, a2]


@pytest.fixture
def deps() -> dict[str, Any]:
    return {"foo": "bar", "opts": {"extra": "extra"}}


@pytest.fixture
def command1() -> Mock:
    """Synchronous Dapi function returning its two arguments."""
    return Mock(side_effect=lambda _deps, a1, a2: [a1, a2])


@pytest.fixture
def command2() -> Mock:
    """Synchronous Dapi function without arguments."""
    return Mock(return_value=None)


@pytest.fixture
def command3() -> Mock:
    """Asynchronous Dapi function returning its two arguments."""
    return Mock(side_effect=_async_pair)


@pytest.fixture
def definition(
    deps: dict[str, Any],
    command1: Mock,
    command2: Mock,
    command3: Mock,
) -> DapiDefinition:
    return DapiDefinition(
        dependencies=deps,
        fns={"command1": command1, "command2": command2, "command3": command3},
        type="test",
    )


@pytest.fixture
def api(definition: DapiDefinition) -> DapiWrapper:
    return DapiWrapper(definition)


@pytest.fixture
def make_decorator() -> Callable[[], Mock]:
    """Factory of recording decorators that only forward the call."""

    def make() -> Mock:
        return Mock(side_effect=lambda next_call, *args, **kwargs: next_call(*args, **kwargs))

    return make
