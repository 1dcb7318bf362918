"""Typed parameter tables for tools and the shared argument coercion routine."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..exceptions import ValidationError

logger = logging.getLogger("mcp-atlassian-server.tools.params")

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off"}


class ParamKind(str, Enum):
    """JSON schema type of a tool parameter."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class CoercionError(ValueError):
    """Raised internally when a raw value does not fit a parameter kind."""


@dataclass(frozen=True)
class ParameterSpec:
    """A single named tool parameter.

    A required parameter never has a default; an optional one always has one
    (possibly ``""``, ``0`` or ``False``). Both rules are checked on creation.
    """

    name: str
    kind: ParamKind
    description: str
    required: bool = False
    default: Any = None

    def __post_init__(self) -> None:
        if self.required and self.default is not None:
            raise ValueError(
                f"Required parameter '{self.name}' must not have a default"
            )
        if not self.required and self.default is None:
            raise ValueError(f"Optional parameter '{self.name}' needs a default")
        if not self.required:
            # Defaults must survive their own coercion
            coerce_value(self.kind, self.default)

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": self.kind.value,
            "description": self.description,
        }
        if not self.required:
            schema["default"] = self.default
        return schema


def string(
    name: str, description: str, *, required: bool = False, default: Any = None
) -> ParameterSpec:
    return ParameterSpec(name, ParamKind.STRING, description, required, default)


def number(
    name: str, description: str, *, required: bool = False, default: Any = None
) -> ParameterSpec:
    return ParameterSpec(name, ParamKind.NUMBER, description, required, default)


def boolean(
    name: str, description: str, *, required: bool = False, default: Any = None
) -> ParameterSpec:
    return ParameterSpec(name, ParamKind.BOOLEAN, description, required, default)


def coerce_value(kind: ParamKind, value: Any) -> Any:
    """Convert a raw JSON value to the Python type of ``kind``.

    Raises:
        CoercionError: If the value cannot be represented as ``kind``.
    """
    if kind is ParamKind.STRING:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise CoercionError(f"expected string, got {type(value).__name__}")

    if kind is ParamKind.NUMBER:
        if isinstance(value, bool):
            raise CoercionError("expected number, got bool")
        if isinstance(value, (int, float)):
            number_value = value
        elif isinstance(value, str):
            try:
                number_value = float(value.strip())
            except ValueError as e:
                raise CoercionError(f"expected number, got '{value}'") from e
        else:
            raise CoercionError(f"expected number, got {type(value).__name__}")
        if isinstance(number_value, float):
            if not math.isfinite(number_value):
                raise CoercionError("expected a finite number")
            if number_value.is_integer():
                return int(number_value)
        return number_value

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise CoercionError(f"expected boolean, got {value!r}")


def coerce_arguments(
    specs: Iterable[ParameterSpec], raw: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Coerce a raw argument mapping against a tool's parameter table.

    Every declared parameter is present in the result. Unknown keys are
    dropped.

    Raises:
        ValidationError: If a required parameter is missing, blank or of the
            wrong kind.
    """
    raw = raw or {}
    arguments: dict[str, Any] = {}
    for spec in specs:
        value = raw.get(spec.name)
        if spec.required:
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Missing required parameter: {spec.name}")
            try:
                arguments[spec.name] = coerce_value(spec.kind, value)
            except CoercionError as e:
                raise ValidationError(
                    f"Invalid value for parameter '{spec.name}': "
                    f"expected {spec.kind.value}"
                ) from e
            continue

        if value is None:
            arguments[spec.name] = spec.default
            continue
        try:
            arguments[spec.name] = coerce_value(spec.kind, value)
        except CoercionError as e:
            logger.debug(f"Falling back to default for '{spec.name}': {e}")
            arguments[spec.name] = spec.default
    return arguments
