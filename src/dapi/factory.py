"""Wrapper factories.

``dapi_mixin()`` binds a definition to a new :class:`DapiWrapper`
subclass, the way a mixin would, but composes with the host object
instead of inheriting from it. ``create_dapi()`` builds one instance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from dapi.domain.definition import DapiDefinition, check_definition
from dapi.wrapper import DapiWrapper

if TYPE_CHECKING:
    from dapi.plugins.manager import PluginManager


def dapi_mixin(
    definition: DapiDefinition | Mapping[str, Any],
    host_factory: Callable[..., Any] | None = None,
    *,
    base: type[DapiWrapper] = DapiWrapper,
) -> type[DapiWrapper]:
    """Create a :class:`DapiWrapper` subclass bound to *definition*.

    The definition is validated here, once. Instances share it, so
    ``set_dependencies()`` on one instance is reflected in the definition
    seen by the others (their own dependency cells are unaffected).

    Constructor arguments of the returned class are forwarded to
    *host_factory*, whose result becomes the instance's ``host``.

    Raises:
        DefinitionError: If the definition is incomplete.
    """
    bound = DapiDefinition.coerce(definition)
    check_definition(bound)

    class BoundDapiWrapper(base):  # type: ignore[valid-type,misc]
        def __init__(
            self,
            *args: Any,
            plugin_manager: PluginManager | None = None,
            **kwargs: Any,
        ) -> None:
            host = host_factory(*args, **kwargs) if host_factory is not None else None
            super().__init__(bound, host, plugin_manager=plugin_manager)

    BoundDapiWrapper.__name__ = base.__name__
    BoundDapiWrapper.__qualname__ = f"{base.__qualname__}[{bound.type}]"
    return BoundDapiWrapper


def create_dapi(
    definition: DapiDefinition | Mapping[str, Any],
    host_factory: Callable[..., Any] | None = None,
    *,
    plugin_manager: PluginManager | None = None,
) -> DapiWrapper:
    """Build a wrapper for *definition*, composing with ``host_factory()`` if given."""
    return dapi_mixin(definition, host_factory)(plugin_manager=plugin_manager)
