"""
Schema adapter built on pydantic.

A compiled schema is a pydantic model class and a validated driver is an
instance of it.  Raw schemas may be given as a model class or as a mapping of
``field name -> annotation | (annotation, default)``::

    schema = {
        "name":    str,
        "connect": (Callable[..., Any], driver_field(tags=["async"])),
        "close":   (Callable[[], None], lambda: None),
    }

Field flags the registry cares about (tags, forbidden presence) are stored in
``json_schema_extra`` via ``driver_field``.
"""

from __future__ import annotations

import collections.abc
import inspect
import types
from dataclasses import dataclass
from typing import Annotated, Any, Iterable, Mapping, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model, model_validator
from pydantic.fields import FieldInfo
from pydantic_core import PydanticCustomError, PydanticUndefined

from services.error import DriverValidationError, SchemaError

ASYNC_TAG = "async"
FORBIDDEN = "forbidden"

# pydantic error types rendered with a friendlier reason
_REASONS = {
    "missing": "is required",
    "extra_forbidden": "is not allowed",
    FORBIDDEN: "is not allowed",
}


def _extra(info: FieldInfo) -> dict:
    extra = info.json_schema_extra
    return extra if isinstance(extra, dict) else {}


# ---------------------------------------------------------------------------
# Base for all compiled driver schemas — unknown keys are a validation error
# ---------------------------------------------------------------------------

class DriverModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="before")
    @classmethod
    def reject_forbidden_fields(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            for name, info in cls.model_fields.items():
                if name in data and _extra(info).get("presence") == FORBIDDEN:
                    raise PydanticCustomError(FORBIDDEN, '"{field}" is not allowed', {"field": name})
        return data


def driver_field(
    default: Any = PydanticUndefined,
    *,
    tags: Iterable[str] = (),
    forbidden: bool = False,
    **kwargs: Any,
) -> Any:
    """``pydantic.Field`` with driver flags.

    Args:
        default:   Default value; omit for a required field.
        tags:      Free-form tags, e.g. ``["async"]`` for coroutine functions.
        forbidden: The field must never be supplied (it defaults to ``None``).
        **kwargs:  Passed through to ``pydantic.Field``.
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    tags = list(tags)
    if tags:
        extra["tags"] = tags
    if forbidden:
        extra["presence"] = FORBIDDEN
        if default is PydanticUndefined and "default_factory" not in kwargs:
            default = None
    return Field(default, json_schema_extra=extra or None, **kwargs)


def _field_definition(value: Any) -> tuple:
    if isinstance(value, tuple):
        return value
    return (value, ...)


def compile_schema(raw: Any = None, name: str = "Driver") -> type[BaseModel]:
    """Compile *raw* into a model class that always has a required ``id`` field."""
    if raw is None:
        raw = {}

    if isinstance(raw, type) and issubclass(raw, BaseModel):
        model = raw
    elif isinstance(raw, Mapping):
        definitions = {key: _field_definition(value) for key, value in raw.items()}
        model = create_model(name, __base__=DriverModel, **definitions)
    else:
        raise SchemaError(f"Cannot compile a driver schema from {type(raw).__name__}")

    if "id" not in model.model_fields:
        model = create_model(model.__name__, __base__=model, id=(str, Field(min_length=1)))
    return model


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDescription:
    """What the registry needs to know about one top-level schema field."""
    name: str
    annotation: Any
    is_function: bool
    has_default: bool
    is_required: bool
    is_forbidden: bool
    is_async: bool
    default: Any = None
    tags: tuple[str, ...] = ()


def is_function_type(annotation: Any) -> bool:
    """Return True for ``Callable`` annotations, including ``Callable | None``."""
    if annotation is collections.abc.Callable:
        return True
    origin = get_origin(annotation)
    if origin is collections.abc.Callable:
        return True
    if origin is Annotated:
        return is_function_type(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        return any(is_function_type(arg) for arg in get_args(annotation) if arg is not type(None))
    return False


def describe_schema(model: type[BaseModel]) -> dict[str, FieldDescription]:
    descriptions: dict[str, FieldDescription] = {}
    for name, info in model.model_fields.items():
        extra = _extra(info)
        tags = tuple(extra.get("tags", ()))
        default = None if info.default is PydanticUndefined else info.default
        descriptions[name] = FieldDescription(
            name=name,
            annotation=info.annotation,
            is_function=is_function_type(info.annotation),
            # a None default counts as no default
            has_default=default is not None or info.default_factory is not None,
            is_required=info.is_required(),
            is_forbidden=extra.get("presence") == FORBIDDEN,
            is_async=inspect.iscoroutinefunction(default) or ASYNC_TAG in tags,
            default=default,
            tags=tags,
        )
    return descriptions


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _first_error(errors: list[dict]) -> tuple[str, str]:
    if not errors:
        return "", "is invalid"
    err = errors[0]
    kind = err.get("type", "")
    if kind == FORBIDDEN:
        return str(err.get("ctx", {}).get("field", "")), _REASONS[FORBIDDEN]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return field, _REASONS.get(kind, err.get("msg", "is invalid"))


def validate_value(value: Any, model: type[BaseModel], options: Mapping[str, Any] | None = None) -> BaseModel:
    """Validate *value* against *model*; ``options`` go to ``model_validate``.

    Raises:
        DriverValidationError: naming the first offending field and reason,
            e.g. ``"id" is required``.
    """
    try:
        driver = model.model_validate(value, **dict(options or {}))
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        field, reason = _first_error(errors)
        message = f'"{field}" {reason}' if field else reason
        raise DriverValidationError(message, field=field, reason=reason, errors=errors) from exc

    # schemas declaring their own id still need a non-empty string
    driver_id = getattr(driver, "id", None)
    if not isinstance(driver_id, str):
        raise DriverValidationError('"id" must be a string', field="id", reason="must be a string")
    if not driver_id:
        raise DriverValidationError('"id" is not allowed to be empty', field="id", reason="is not allowed to be empty")
    return driver
