"""Value classification and record helpers for loosely-typed rows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class ValueKind(str, Enum):
    """Tag describing the shape of one loosely-typed value."""

    NULL = "null"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    STRING = "string"
    DATETIME = "datetime"
    DATE = "date"
    LIST = "list"
    MAP = "map"
    OTHER = "other"


def value_kind(value: Any) -> ValueKind:
    """Classify a value; `bool` and `datetime` are checked before their base types."""

    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, Decimal):
        return ValueKind.DECIMAL
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, datetime):
        return ValueKind.DATETIME
    if isinstance(value, date):
        return ValueKind.DATE
    if is_record(value):
        return ValueKind.MAP
    if is_sequence(value):
        return ValueKind.LIST
    return ValueKind.OTHER


def is_record(value: Any) -> bool:
    """True for mappings and dataclass instances."""

    if isinstance(value, Mapping):
        return True
    return is_dataclass(value) and not isinstance(value, type)


def is_sequence(value: Any) -> bool:
    """True for lists and tuples; strings and bytes are scalars here."""

    return isinstance(value, (list, tuple))


def as_record(obj: Any) -> Optional[Dict[str, Any]]:
    """Return a name/value dict view of a mapping, dataclass, or plain object."""

    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return dict(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {field.name: getattr(obj, field.name) for field in fields(obj)}
    attributes = getattr(obj, "__dict__", None)
    if isinstance(attributes, dict):
        return {name: value for name, value in attributes.items() if not name.startswith("_")}
    raise TypeError(f"Cannot read {type(obj).__name__} as a record.")


def get_value(obj: Any, key: str) -> Any:
    """Look up one field by name, falling back to a case-insensitive match."""

    record = as_record(obj)
    if record is None:
        raise KeyError(f"No key {key!r} exists in None")
    if key in record:
        return record[key]
    lowered = key.lower()
    for name, value in record.items():
        if name.lower() == lowered:
            return value
    raise KeyError(f"No key {key!r} exists in {record!r}")
