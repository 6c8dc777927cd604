"""Built-in tracing plugin.

Decorates every facade method of each new wrapper with
:func:`dapi.telemetry.traced_decorator`, naming spans ``"{type}.{key}"``.
Spans are only recorded while telemetry is enabled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from weakref import WeakKeyDictionary

from dapi.plugins.hookspecs import hookimpl
from dapi.telemetry import traced_decorator

if TYPE_CHECKING:
    from dapi.domain.types import DecoratorFn
    from dapi.wrapper import DapiWrapper

logger = logging.getLogger(__name__)


class TracingPlugin:
    """Attach a traced decorator to every Dapi function."""

    def __init__(self) -> None:
        self._attached: WeakKeyDictionary[DapiWrapper, dict[str, DecoratorFn]] = (
            WeakKeyDictionary()
        )

    @hookimpl
    def dapi_wrapper_created(self, wrapper: DapiWrapper) -> None:
        decorators: dict[str, DecoratorFn] = {}
        for key in wrapper.facade:
            decorator = traced_decorator(f"{wrapper.type}.{key}")
            wrapper.add_decorator(key, decorator)
            decorators[key] = decorator
        self._attached[wrapper] = decorators
        logger.debug("Tracing %d facade methods of %s", len(decorators), wrapper.type)

    def detach(self, wrapper: DapiWrapper) -> None:
        """Remove the traced decorators this plugin added to *wrapper*."""
        for key, decorator in self._attached.pop(wrapper, {}).items():
            wrapper.remove_decorator(key, decorator)
