"""Pluggy hook specifications for wrapper lifecycle events.

Wrappers built with a plugin manager dispatch these synchronously, right
after the change they describe. Facade calls themselves are never routed
through pluggy; use decorators or hooks for that.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from dapi.wrapper import DapiWrapper

PROJECT_NAME = "dapi"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class DapiHookSpec:
    """Hook specifications for the dapi plugin system."""

    @hookspec
    def dapi_wrapper_created(self, wrapper: DapiWrapper) -> None:
        """Called once a wrapper's facade is built."""

    @hookspec
    def dapi_key_decorated(self, wrapper: DapiWrapper, key: str) -> None:
        """Called when a facade key gains its first decorator or hook."""

    @hookspec
    def dapi_key_undecorated(self, wrapper: DapiWrapper, key: str) -> None:
        """Called when a facade key loses its last decorator and hook."""

    @hookspec
    def dapi_dependencies_changed(self, wrapper: DapiWrapper, dependencies: Any) -> None:
        """Called after ``set_dependencies()`` or ``update_dependencies()``."""
