"""Error taxonomy.

Every library error is a ``TypeError`` so callers that guard against
misuse with ``except TypeError`` keep working. Errors raised by Dapi
functions, decorators, or hooks are never wrapped; they reach the caller
unchanged.
"""

from __future__ import annotations

from typing import Any


class DapiError(TypeError):
    """Base class for errors raised by dapi itself.

    Attributes:
        detail: Offending values, keyed by name (e.g. ``{"key": "foo"}``).
    """

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = dict(detail or {})


class DefinitionError(DapiError):
    """A definition is missing its type, functions, or dependencies."""


class DependenciesError(DapiError):
    """Falsy dependencies were passed to a dependency setter."""


class InvalidTargetError(DapiError):
    """A decorator or hook targets something that is not a Dapi function."""
