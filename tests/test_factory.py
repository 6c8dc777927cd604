"""Tests for dapi_mixin() and create_dapi()."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest

from dapi import (
    DapiDefinition,
    DapiWrapper,
    DefinitionError,
    create_dapi,
    current_dapi,
    dapi_mixin,
)


class _Emitter:
    """Host with a tiny event API."""

    def __init__(self, label: str = "emitter") -> None:
        self.label = label
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def emit(self, event: str, *args: Any) -> None:
        self.events.append((event, args))

    def base_method(self) -> str:
        return "base"


class TestDapiMixin:
    def test_returns_wrapper_subclass(self, definition: DapiDefinition) -> None:
        Api = dapi_mixin(definition)
        assert issubclass(Api, DapiWrapper)
        assert Api.__name__ == "DapiWrapper"
        assert Api.__qualname__ == "DapiWrapper[test]"

    def test_validates_once_at_class_creation(self, command1: Mock) -> None:
        with pytest.raises(DefinitionError, match="must have a type"):
            dapi_mixin({"dependencies": {}, "fns": {"command1": command1}})

    def test_instances_call_functions(
        self, definition: DapiDefinition, deps: dict[str, Any], command1: Mock
    ) -> None:
        api = dapi_mixin(definition)()
        assert api.command1("a1", "a2") == ["a1", "a2"]
        assert command1.call_args.args == (deps, "a1", "a2")

    def test_host_factory_receives_constructor_arguments(self, definition: DapiDefinition) -> None:
        Api = dapi_mixin(definition, _Emitter)
        api = Api("custom")
        assert isinstance(api.host, _Emitter)
        assert api.label == "custom"
        assert api.base_method() == "base"

    def test_subclass_methods(self, definition: DapiDefinition) -> None:
        class Api(dapi_mixin(definition, _Emitter)):  # type: ignore[misc]
            def test_method(self) -> str:
                return "test"

        api = Api()
        assert api.test_method() == "test"
        assert api.base_method() == "base"
        assert api.command1("a1", "a2") == ["a1", "a2"]

    def test_custom_base(self, definition: DapiDefinition) -> None:
        class Base(DapiWrapper):
            def describe(self) -> str:
                return f"{self.type}:{len(self.facade)}"

        api = dapi_mixin(definition, base=Base)()
        assert isinstance(api, Base)
        assert api.describe() == "test:3"

    def test_instances_are_independent(self, definition: DapiDefinition) -> None:
        Api = dapi_mixin(definition)
        first = Api()
        second = Api()

        first.set_dependencies({"foo": "first"})
        first.add_decorator("command1", lambda next_call, *args: "decorated")

        assert second.get_dependencies()["foo"] == "bar"
        assert second.command1("a1", "a2") == ["a1", "a2"]
        assert first.get_definition() is second.get_definition()

    def test_decorator_reaches_host_through_receiver(self, definition: DapiDefinition) -> None:
        api = dapi_mixin(definition, _Emitter)()

        def announce(next_call: Callable[..., Any], deps: Any, *args: Any) -> Any:
            result = next_call(deps, *args)
            current_dapi().host.emit("command1", *args)
            return result

        api.add_decorator("command1", announce)
        api.command1("a1", "a2")

        assert api.host.events == [("command1", ("a1", "a2"))]


class TestCreateDapi:
    def test_from_mapping(self) -> None:
        api = create_dapi(
            {"type": "calc", "dependencies": {"k": 3}, "fns": {"mul": lambda d, x: d["k"] * x}}
        )
        assert api.mul(2) == 6
        assert api.type == "calc"

    def test_with_host(self, definition: DapiDefinition) -> None:
        api = create_dapi(definition, _Emitter)
        assert api.label == "emitter"

    def test_with_plugin_manager(self, definition: DapiDefinition) -> None:
        pm = Mock()
        api = create_dapi(definition, plugin_manager=pm)
        pm.notify.assert_called_once_with("dapi_wrapper_created", wrapper=api)

    def test_invalid_definition(self) -> None:
        with pytest.raises(DefinitionError, match="dependencies"):
            create_dapi({"type": "calc", "fns": {"mul": lambda d, x: x}})
