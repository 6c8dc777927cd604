"""Plugin discovery, registration, and wrapper event dispatch.

Plugins are pluggy hookimpl holders found under the ``dapi.plugins``
entry-point group or registered directly. Wrappers built with a manager
report their lifecycle through :meth:`PluginManager.notify`.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

import pluggy

from dapi.plugins.hookspecs import PROJECT_NAME, DapiHookSpec

if TYPE_CHECKING:
    from dapi.config.settings import DapiSettings

ENTRY_POINT_GROUP = "dapi.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Thin layer over :class:`pluggy.PluginManager` for dapi hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(DapiHookSpec)
        self._discovered = False

    @classmethod
    def from_settings(cls, settings: DapiSettings) -> PluginManager:
        """Manager with the tracing plugin and/or entry points, as *settings* ask."""
        from dapi.plugins.builtins.tracing import TracingPlugin

        manager = cls()
        if settings.telemetry:
            manager.register_plugin(TracingPlugin(), name="tracing")
        if settings.plugins_autoload:
            manager.discover_and_load()
        return manager

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def discover_and_load(self) -> list[str]:
        """Load ``dapi.plugins`` entry points; return every registered name."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        logger.debug("Loaded %d entry-point plugin(s) from %s", count, ENTRY_POINT_GROUP)
        for plugin in list(self._pm.get_plugins()):
            if inspect.isclass(plugin) and self._has_hook_impls(plugin):
                self._replace_with_instance(plugin)
        self._discovered = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> str:
        """Register *plugin* under *name* (default: its class name)."""
        registered = self._pm.register(plugin, name=name or type(plugin).__name__)
        logger.debug("Registered plugin: %s", registered)
        return registered or ""

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether entry points have been discovered."""
        return self._discovered

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def notify(self, hook_name: str, **payload: Any) -> None:
        """Call hook *hook_name* on every plugin.

        A failing plugin is logged and skipped; the caller never sees it.
        """
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _replace_with_instance(self, plugin_cls: type) -> None:
        # Entry points may name a class; its hookimpls need a bound self.
        name = self._pm.get_name(plugin_cls) or plugin_cls.__name__
        self._pm.unregister(plugin_cls)
        try:
            instance = plugin_cls()
        except Exception:
            logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
            return
        self._pm.register(instance, name=name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Whether *cls* defines any ``@hookimpl`` method (marked ``dapi_impl``)."""
        marker = f"{PROJECT_NAME}_impl"
        return any(
            callable(member) and getattr(member, marker, None)
            for name, member in inspect.getmembers(cls)
            if not name.startswith("_")
        )
