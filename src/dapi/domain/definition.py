"""Dapi definitions: dependencies, functions, and metadata.

A definition is handed to a wrapper once. It is immutable by convention,
with one deliberate exception: ``DapiWrapper.set_dependencies()``
reassigns ``definition.dependencies`` in place, so the definition always
reflects the dependencies a wrapper is currently injecting.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError, field_serializer
from pydantic_core import to_jsonable_python

from dapi.domain.errors import DefinitionError


class DapiDefinition(BaseModel):
    """Description of a Dapi facade.

    Attributes:
        dependencies: Bundle injected as the first argument of every function.
        fns: Dapi functions keyed by the facade method name.
        type: Tag naming the kind of facade (e.g. ``"repository"``).
        name: Optional instance name.
    """

    dependencies: Any = None
    fns: dict[str, Callable[..., Any]] | None = None
    type: str | None = None
    name: str | None = None

    @classmethod
    def coerce(cls, value: DapiDefinition | Mapping[str, Any]) -> DapiDefinition:
        """Return *value* itself if it is a definition, else validate the mapping.

        Raises:
            DefinitionError: If a field has the wrong shape, such as a
                non-callable entry in ``fns``.
        """
        if isinstance(value, DapiDefinition):
            return value

        fields = dict(value)
        try:
            return cls.model_validate(fields)
        except ValidationError as exc:
            field = str(exc.errors()[0]["loc"][0])
            msg = f"Definition field `{field}` is invalid"
            raise DefinitionError(msg, {field: fields.get(field)}) from exc

    @field_serializer("fns")
    def _serialize_fns(self, fns: dict[str, Callable[..., Any]] | None) -> dict[str, str] | None:
        if fns is None:
            return None
        return {key: _callable_name(fn) for key, fn in fns.items()}

    @field_serializer("dependencies")
    def _serialize_dependencies(self, dependencies: Any) -> Any:
        return to_jsonable_python(dependencies, serialize_unknown=True)

    def to_json(self, indent: int | None = None) -> str:
        """Textual form: functions render as their qualified names."""
        return self.model_dump_json(indent=indent)


def check_definition(definition: DapiDefinition) -> None:
    """Raise :class:`DefinitionError` unless type, fns, and dependencies are set.

    Checks run in that order; the first failure wins.
    """
    if is_unset(definition.type):
        msg = "Definition must have a type"
        raise DefinitionError(msg, {"type": definition.type})

    if is_unset(definition.fns):
        msg = "Definition must have a dictionary (`fns`) of Dapi functions"
        raise DefinitionError(msg, {"fns": definition.fns})

    if is_unset(definition.dependencies):
        msg = "Definition must have dependencies"
        raise DefinitionError(msg, {"dependencies": definition.dependencies})


def _callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


def is_unset(value: Any) -> bool:
    """Whether *value* counts as missing.

    ``None``, ``False``, zero, and empty strings are missing. Containers are
    present even when empty, so ``dependencies={}`` is a valid bundle.
    """
    if value is None:
        return True
    if isinstance(value, bool | int | float | str | bytes):
        return not value
    return False
