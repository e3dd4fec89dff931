"""Parameter types, structured error messages and property definitions.

Values are type-checked by cleaning them the way incoming request
parameters are cleaned and comparing the string form of the cleaned value
with the original: any difference means the value carried something the
declared type does not allow.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict

NULL_ALLOWED = True
NULL_NOT_ALLOWED = False

FORMAT_MOODLE = 0
FORMAT_HTML = 1
FORMAT_PLAIN = 2
FORMAT_MARKDOWN = 4
TEXT_FORMATS = [FORMAT_MOODLE, FORMAT_HTML, FORMAT_PLAIN, FORMAT_MARKDOWN]


class ParamType(str, Enum):
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    TEXT = "text"
    NOTAGS = "notags"
    ALPHANUMEXT = "alphanumext"
    RAW = "raw"


class InvalidParameterError(ValueError):
    """Raised when a value does not satisfy its declared parameter type."""


@dataclass(frozen=True)
class ErrorMessage:
    """Language-agnostic validation failure: a string identifier and its parameters."""

    code: str
    component: str = "error"
    params: Any = None

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "component": self.component, "params": self.params}

    def __str__(self) -> str:
        if self.params is None:
            return f"{self.component}/{self.code}"
        return f"{self.component}/{self.code} ({self.params})"


REQUIRED_MESSAGE = ErrorMessage("requiredelement", "form")
INVALID_DATA_MESSAGE = ErrorMessage("invaliddata", "error")


class PropertyDefinition(BaseModel):
    """Declared schema of a single persistent property.

    A property is optional when ``default`` was supplied, whatever its value;
    ``default=None`` therefore declares an optional property that resolves to
    null.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    type: Optional[ParamType] = None
    default: Any = None
    null: bool = NULL_NOT_ALLOWED
    choices: Optional[List[Any]] = None
    message: Any = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    @property
    def has_type(self) -> bool:
        return "type" in self.model_fields_set and self.type is not None


_TAG_RE = re.compile(r"<[^>]*>")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_ALPHANUMEXT_RE = re.compile(r"[^A-Za-z0-9_-]")
_TRUE_WORDS = {"yes", "on", "true"}
_FALSE_WORDS = {"no", "off", "false"}


def _as_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def clean_param(value: Any, param_type: Optional[ParamType]) -> Any:
    """Coerce ``value`` to ``param_type``, discarding whatever does not fit."""
    if param_type is None or param_type is ParamType.RAW:
        return value

    if param_type is ParamType.INT:
        if isinstance(value, (bool, int, float)):
            return int(value)
        match = _LEADING_INT_RE.match(str(value))
        return int(match.group(1)) if match else 0

    if param_type is ParamType.FLOAT:
        if isinstance(value, (bool, int, float)):
            return float(value)
        match = _LEADING_FLOAT_RE.match(str(value))
        return float(match.group(1)) if match else 0.0

    if param_type is ParamType.BOOL:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_WORDS:
                return 1
            if lowered in _FALSE_WORDS:
                return 0
            return 0 if value in ("", "0") else 1
        return 1 if value else 0

    if param_type in (ParamType.TEXT, ParamType.NOTAGS):
        return _TAG_RE.sub("", _as_string(value))

    if param_type is ParamType.ALPHANUMEXT:
        return _ALPHANUMEXT_RE.sub("", _as_string(value))

    raise InvalidParameterError(f"Unknown parameter type: {param_type!r}")


def validate_param(value: Any, param_type: Optional[ParamType], null: bool = NULL_NOT_ALLOWED) -> Any:
    """Return the cleaned value, or raise when cleaning would alter it."""
    if value is None:
        if null == NULL_ALLOWED:
            return None
        raise InvalidParameterError("Null value not allowed.")

    if not isinstance(value, (str, int, float, bool)):
        raise InvalidParameterError(f"Invalid value type {type(value).__name__}, expected scalar.")

    cleaned = clean_param(value, param_type)
    if _as_string(cleaned) != _as_string(value):
        raise InvalidParameterError(f"Invalid {param_type.value if param_type else 'raw'} value: {value!r}")
    return cleaned


__all__ = [
    "ErrorMessage",
    "FORMAT_HTML",
    "FORMAT_MARKDOWN",
    "FORMAT_MOODLE",
    "FORMAT_PLAIN",
    "INVALID_DATA_MESSAGE",
    "InvalidParameterError",
    "NULL_ALLOWED",
    "NULL_NOT_ALLOWED",
    "ParamType",
    "PropertyDefinition",
    "REQUIRED_MESSAGE",
    "TEXT_FORMATS",
    "clean_param",
    "validate_param",
]
