"""DapiWrapper: a facade over Dapi functions with injected dependencies.

Each Dapi function ``fn(deps, *args, **kwargs)`` becomes a facade method
``wrapper.fn(*args, **kwargs)``. The dependency bundle is read when the
method is called, so ``set_dependencies()`` and ``update_dependencies()``
affect every later call, including calls through references taken
earlier.

Facade methods can be intercepted with decorators and pre/post hooks.
Registration and removal are synchronous; each call uses the chain that
was current when it started.

Attribute lookup order: the wrapper's own attributes, then the facade,
then the optional ``host`` object the wrapper composes with.

Usage::

    api = DapiWrapper(
        {"type": "calc", "dependencies": {}, "fns": {"double": lambda deps, x: x * 2}}
    )
    api.double(5)  # 10
    remove = api.add_decorator("double", lambda next, deps, x: next(deps, x) + 1)
    api.double(5)  # 11
    remove()
    api.double(5)  # 10
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from dapi.core.decoration import DecorationEngine
from dapi.core.facade import DependencyCell, FacadeEntry, build_facade
from dapi.core.hooks import HookRegistry
from dapi.domain.definition import DapiDefinition, check_definition, is_unset
from dapi.domain.errors import DependenciesError, InvalidTargetError
from dapi.domain.lifecycle import DecorationState
from dapi.domain.types import DecoratorFn, HookFn, HookPhase, Remover

if TYPE_CHECKING:
    from dapi.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class DapiWrapper:
    """Facade over the functions of a :class:`DapiDefinition`.

    Parameters:
        definition: The definition (or an equivalent mapping). Its type,
            fns, and dependencies must be set.
        host: Optional object whose attributes the wrapper exposes when
            neither the wrapper nor the facade defines them.
        plugin_manager: Optional :class:`PluginManager` notified of the
            wrapper's lifecycle events.

    Raises:
        DefinitionError: If the definition is incomplete.
    """

    def __init__(
        self,
        definition: DapiDefinition | Mapping[str, Any],
        host: Any = None,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        definition = DapiDefinition.coerce(definition)
        check_definition(definition)
        assert definition.fns is not None

        self._definition = definition
        self._type: str = definition.type or ""
        self._name = definition.name
        self._host = host
        self._plugin_manager = plugin_manager
        self._deps = DependencyCell(_owned(definition.dependencies))
        self._hooks = HookRegistry()
        self._engine = DecorationEngine(
            definition.fns,
            self._hooks,
            on_transition=self._on_transition,
        )
        self._facade: dict[str, FacadeEntry] = build_facade(
            definition.fns,
            self._deps,
            self._engine.call_for,
            self,
        )

        for key in self._facade:
            if hasattr(type(self), key):
                logger.warning(
                    "Dapi function %r is shadowed by a %s attribute; "
                    "reach it through invoke() or facade[...]",
                    key,
                    type(self).__name__,
                )

        self._notify("dapi_wrapper_created", wrapper=self)

    # ------------------------------------------------------------------
    # Facade access
    # ------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails. Read __dict__ directly so a
        # half-constructed instance cannot recurse.
        facade = self.__dict__.get("_facade")
        if facade is not None and name in facade:
            return facade[name]

        host = self.__dict__.get("_host")
        if host is not None:
            return getattr(host, name)

        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self._facade})

    @property
    def facade(self) -> Mapping[str, FacadeEntry]:
        """Read-only ``key -> facade callable`` mapping."""
        return MappingProxyType(self._facade)

    def invoke(self, key: str, *args: Any, **kwargs: Any) -> Any:
        """Call the facade method *key* (useful when an attribute shadows it)."""
        entry = self._facade.get(key)
        if entry is None:
            msg = f"{type(self).__name__!r} has no Dapi function {key!r}"
            raise AttributeError(msg)
        return entry(*args, **kwargs)

    @property
    def type(self) -> str:
        return self._type

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def host(self) -> Any:
        return self._host

    # ------------------------------------------------------------------
    # Dependencies and definition
    # ------------------------------------------------------------------

    def get_dependencies(self) -> Any:
        return self._deps.get()

    def set_dependencies(self, dependencies: Any) -> None:
        """Replace the dependencies injected into every subsequent call.

        The definition's ``dependencies`` field is updated in place too.

        Raises:
            DependenciesError: If *dependencies* is None or otherwise unset.
        """
        if is_unset(dependencies):
            msg = "Dependencies must be defined"
            raise DependenciesError(msg, {"dependencies": dependencies})

        self._deps.set(dependencies)
        self._definition.dependencies = dependencies
        logger.debug("Dependencies replaced on %s", self._type)
        self._notify("dapi_dependencies_changed", wrapper=self, dependencies=dependencies)

    def update_dependencies(self, partial: Mapping[str, Any] | None) -> None:
        """Shallow-merge *partial* over the current dependencies.

        Dict bundles are merged, pydantic models are copied with
        ``model_copy(update=...)``, dataclasses go through
        ``dataclasses.replace()``, and any other object is shallow-copied
        before the attributes are set.

        Raises:
            DependenciesError: If *partial* is None or otherwise unset.
        """
        if is_unset(partial):
            msg = "Dependencies must be defined"
            raise DependenciesError(msg, {"dependencies": partial})
        assert partial is not None

        self.set_dependencies(_merge(self._deps.get(), dict(partial)))

    def get_definition(self) -> DapiDefinition:
        return self._definition

    # ------------------------------------------------------------------
    # Decorators
    # ------------------------------------------------------------------

    def add_decorator(self, key: str, decorator: DecoratorFn) -> Remover:
        """Wrap the facade method *key* with *decorator*.

        The decorator is called as ``decorator(next, deps, *args, **kwargs)``
        and must return ``next(deps, *args, **kwargs)`` (or a value derived
        from it). The first decorator added is the outermost.

        Returns:
            A remover that takes out exactly this decorator. Calling it more
            than once has no further effect.

        Raises:
            InvalidTargetError: If *key* is not a callable attribute, or is
                callable but not one of the definition's functions.
        """
        target = self._facade[key] if key in self._facade else getattr(self, key, None)
        if not callable(target):
            msg = "Cannot decorate non-function property"
            raise InvalidTargetError(msg, {"key": key})

        if key not in self._facade:
            msg = "Cannot decorate non-Dapi function property"
            raise InvalidTargetError(msg, {"key": key})

        self._engine.add(key, decorator)
        return _once(lambda: self.remove_decorator(key, decorator))

    def remove_decorator(self, key: str, decorator: DecoratorFn) -> None:
        """Remove the first registration of *decorator* on *key*; no-op if absent."""
        self._engine.remove(key, decorator)

    def decorate_all(self, decorator: DecoratorFn) -> Remover:
        """Add *decorator* to every facade method.

        Returns:
            A single remover that takes the decorator off every key.
        """
        removers = [self.add_decorator(key, decorator) for key in self._facade]

        def remove_all() -> None:
            for remover in removers:
                remover()

        return remove_all

    def is_decorated(self, key: str) -> bool:
        return self._engine.state(key) is DecorationState.DECORATED

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def add_hook(self, phase: HookPhase | str, key: str, hook: HookFn) -> Remover:
        """Run *hook* before (``"pre"``) or after (``"post"``) calls to *key*.

        Hooks receive the call's user-facing arguments, never the
        dependency bundle. Post-hooks of an awaitable call run once it
        completes successfully; they are skipped if it raises.

        Raises:
            InvalidTargetError: If *key* is not one of the definition's functions.
        """
        phase = HookPhase(phase)
        if key not in self._facade:
            msg = "Cannot hook to non-function property"
            raise InvalidTargetError(msg, {"key": key})

        self._hooks.add(phase, key, hook)
        self._engine.refresh(key)
        return _once(lambda: self.remove_hook(phase, key, hook))

    def remove_hook(self, phase: HookPhase | str, key: str, hook: HookFn) -> None:
        """Remove the first registration of *hook*; no-op if absent."""
        phase = HookPhase(phase)
        self._hooks.remove(phase, key, hook)
        self._engine.refresh(key)

    def add_pre_hook(self, key: str, hook: HookFn) -> Remover:
        return self.add_hook(HookPhase.PRE, key, hook)

    def add_post_hook(self, key: str, hook: HookFn) -> Remover:
        return self.add_hook(HookPhase.POST, key, hook)

    def remove_pre_hook(self, key: str, hook: HookFn) -> None:
        self.remove_hook(HookPhase.PRE, key, hook)

    def remove_post_hook(self, key: str, hook: HookFn) -> None:
        self.remove_hook(HookPhase.POST, key, hook)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self, indent: int | None = None) -> str:
        """The definition as JSON. Functions render as their qualified names."""
        return self._definition.to_json(indent=indent)

    def __str__(self) -> str:
        return f"{self._type}\n{self.to_json(indent=2)}"

    def __repr__(self) -> str:
        keys = ", ".join(self._facade)
        return f"<{type(self).__name__} type={self._type!r} name={self._name!r} fns=[{keys}]>"

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_transition(self, key: str, state: DecorationState) -> None:
        if state is DecorationState.DECORATED:
            self._notify("dapi_key_decorated", wrapper=self, key=key)
        else:
            self._notify("dapi_key_undecorated", wrapper=self, key=key)

    def _notify(self, hook_name: str, **payload: Any) -> None:
        pm = self.__dict__.get("_plugin_manager")
        if pm is not None:
            pm.notify(hook_name, **payload)


def _once(remove: Remover) -> Remover:
    done = False

    def remover() -> None:
        nonlocal done
        if done:
            return
        done = True
        remove()

    return remover


def _owned(dependencies: Any) -> Any:
    # Mappings are copied; any other bundle is shared with the definition.
    if isinstance(dependencies, Mapping):
        return dict(dependencies)
    return dependencies


def _merge(current: Any, partial: dict[str, Any]) -> Any:
    if isinstance(current, Mapping):
        return {**current, **partial}
    if isinstance(current, BaseModel):
        return current.model_copy(update=partial)
    if dataclasses.is_dataclass(current) and not isinstance(current, type):
        return dataclasses.replace(current, **partial)

    merged = copy.copy(current)
    for name, value in partial.items():
        setattr(merged, name, value)
    return merged
