"""
Optional capabilities a model may offer to the pipeline.

Stages ask `isinstance(entity, Validatable)` rather than inspecting types by
hand. A model that does not implement a capability simply skips that check.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter

DEFAULT_IDENTITY_FIELD = "id"


@runtime_checkable
class Validatable(Protocol):
    def validate_upload(self) -> dict[str, str] | None:
        """Return field -> message for every problem, or None/{} when valid."""
        ...


@runtime_checkable
class Ownable(Protocol):
    def owner_id(self) -> Any:
        ...


def identity_field(model_type: type[BaseModel]) -> str:
    return getattr(model_type, "__identity_field__", DEFAULT_IDENTITY_FIELD)


def identity_of(entity: Any) -> Any:
    return getattr(entity, identity_field(type(entity)), None)


def coerce_identity(model_type: type[BaseModel], raw: Any) -> Any:
    """
    Convert a raw path parameter to the identity field's declared type.

    Raises pydantic.ValidationError when the value can't be converted.
    """
    field = model_type.model_fields.get(identity_field(model_type))
    if field is None or field.annotation is None:
        return raw
    return TypeAdapter(field.annotation).validate_python(raw)


def identity_unset(value: Any) -> bool:
    """True for identities the store should generate: None, or 0 for int keys."""
    if value is None:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value == 0


def field_values(entity: BaseModel) -> dict[str, Any]:
    """
    Every field of `entity` by name, including ones declared Field(exclude=True).

    model_dump() leaves excluded fields out, so stores persist this instead and
    exclusion only applies when a result is serialized.
    """
    return dict(entity)
