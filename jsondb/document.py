from __future__ import annotations

import copy
import math
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, JsonValue, StrictInt, StrictStr, TypeAdapter, ValidationError

from .errors import InvalidValueError, ValueTypeError

AUTO_INCREMENT = "auto_increment"
CONSTRAINTS = "constraints"
RESERVED_KEYS = frozenset({AUTO_INCREMENT, CONSTRAINTS})

UNIQUE = "unique"

_VALUE_ADAPTER: TypeAdapter[JsonValue] = TypeAdapter(JsonValue)
_RECORD_ADAPTER: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(dict[str, JsonValue])


class ReservedSections(BaseModel):
    """
    The reserved top-level sections of the on-disk document:
      {
        "auto_increment": { "<category>": <last issued id> },
        "constraints": { "<category>": { "<constraint type>": ["<field>", ...] } },
        "<category>": { "<id>": {...record...} },
        ...
      }

    Categories are not modelled; only the reserved sections are validated.
    """

    model_config = ConfigDict(extra="ignore")

    auto_increment: dict[str, StrictInt] = Field(default_factory=dict)
    constraints: dict[str, dict[str, list[StrictStr]]] = Field(default_factory=dict)

    @classmethod
    def from_disk_doc(cls, doc: Mapping[str, Any]) -> "ReservedSections":
        return cls.model_validate(doc)


def new_document() -> dict[str, JsonValue]:
    return {AUTO_INCREMENT: {}}


def _reject_non_finite(value: Any, where: str) -> None:
    # NaN and +-inf pass JsonValue but have no JSON encoding.
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidValueError(f"{where} is not JSON-serializable: {value!r} is not a finite number")
    if isinstance(value, dict):
        for k, v in value.items():
            _reject_non_finite(v, f"{where}.{k}")
    elif isinstance(value, list):
        for i, v in enumerate(value):
            _reject_non_finite(v, f"{where}[{i}]")


def validate_value(value: Any) -> JsonValue:
    """Return value if it is representable as JSON, else raise InvalidValueError."""
    try:
        out = _VALUE_ADAPTER.validate_python(value, strict=True)
    except ValidationError as e:
        raise InvalidValueError(f"value is not JSON-serializable: {e.errors()[0]['msg']}") from e
    _reject_non_finite(out, "value")
    return copy.deepcopy(out)


def validate_record(record: Any) -> dict[str, JsonValue]:
    if not isinstance(record, Mapping):
        raise InvalidValueError(f"record must be a mapping, got {type(record).__name__}")
    try:
        out = _RECORD_ADAPTER.validate_python(dict(record), strict=True)
    except ValidationError as e:
        raise InvalidValueError(f"record is not JSON-serializable: {e.errors()[0]['msg']}") from e
    _reject_non_finite(out, "record")
    return copy.deepcopy(out)


def as_int(value: Any, *, where: str | None = None) -> int:
    # bool is an int subclass but never a valid counter.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueTypeError("integer", value, where=where)
    return value


def as_str(value: Any, *, where: str | None = None) -> str:
    if not isinstance(value, str):
        raise ValueTypeError("string", value, where=where)
    return value


def as_mapping(value: Any, *, where: str | None = None) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueTypeError("mapping", value, where=where)
    return value


def same_value(a: Any, b: Any) -> bool:
    """
    JSON equality: True and 1 are different values, 1 and 1.0 are not.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(same_value(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    return a == b
