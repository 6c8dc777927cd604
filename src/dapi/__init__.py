"""dapi: build complex systems out of pure functions.

A Dapi function takes its dependencies as the first argument. A
:class:`DapiWrapper` exposes a set of them as methods with the
dependencies injected, and lets callers intercept those methods with
decorators and pre/post hooks.
"""

from dapi.core.facade import current_dapi
from dapi.domain.definition import DapiDefinition
from dapi.domain.errors import (
    DapiError,
    DefinitionError,
    DependenciesError,
    InvalidTargetError,
)
from dapi.domain.lifecycle import DecorationState
from dapi.domain.types import DapiFn, DecoratorFn, HookFn, HookPhase, Remover
from dapi.factory import create_dapi, dapi_mixin
from dapi.wrapper import DapiWrapper

__version__ = "1.1.1"

__all__ = [
    "DapiDefinition",
    "DapiError",
    "DapiFn",
    "DapiWrapper",
    "DecorationState",
    "DecoratorFn",
    "DefinitionError",
    "DependenciesError",
    "HookFn",
    "HookPhase",
    "InvalidTargetError",
    "Remover",
    "create_dapi",
    "current_dapi",
    "dapi_mixin",
]
