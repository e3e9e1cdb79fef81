"""Project loosely-typed records onto dataclass shapes by field name."""

from __future__ import annotations

import json
import types
from dataclasses import MISSING, Field, fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
from typing import Any, Mapping, Optional, Sequence, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .comparers import DateTimeComparer
from .errors import DataAccessError, ErrorKind

T = TypeVar("T")

SUPPORTED_CODECS = frozenset({"json", "enum", "epoch"})

_dates = DateTimeComparer()


def project_rows(rows: Sequence[Mapping[str, Any]], shape: Optional[Type[Any]] = None) -> list[Any]:
    """Convert records to `shape`.

    `None` and `dict` keep the records as they are; dataclass shapes are
    filled field by field.
    """

    if shape is None or shape is dict:
        return list(rows)
    _require_dataclass_shape(shape)
    return [project_record(shape, row) for row in rows]


def project_record(shape: Type[T], record: Mapping[str, Any]) -> T:
    """Build one `shape` instance from a record.

    Each field takes the column named by `metadata["column"]`, else the
    column with the field's name, else a case-insensitive match. Fields
    without a column keep their defaults.
    """

    lowered = {str(key).lower(): key for key in record}
    hints = _shape_type_hints(shape)
    kwargs: dict[str, Any] = {}
    for field in _shape_fields(shape):
        if not field.init:
            continue
        column = _column_for(field, record, lowered)
        if column is None:
            if field.default is MISSING and field.default_factory is MISSING:
                raise DataAccessError(
                    ErrorKind.TYPE_CONVERSION_FAILURE,
                    f"No column for required field {field.name!r} of {shape.__name__}.",
                )
            continue
        kwargs[field.name] = deserialize_field_value(
            record[column],
            annotation=hints.get(field.name, field.type),
            codec=_field_codec(field),
            field_name=field.name,
        )
    return shape(**kwargs)


def _column_for(field: Field[Any], record: Mapping[str, Any], lowered: Mapping[str, Any]) -> Any:
    column = field.metadata.get("column")
    if isinstance(column, str) and column in record:
        return column
    if field.name in record:
        return field.name
    return lowered.get(field.name.lower())


@lru_cache(maxsize=None)
def _shape_fields(shape: Type[Any]) -> tuple[Field[Any], ...]:
    _require_dataclass_shape(shape)
    return tuple(fields(shape))


@lru_cache(maxsize=None)
def _shape_type_hints(shape: Type[Any]) -> dict[str, Any]:
    _require_dataclass_shape(shape)
    try:
        return dict(get_type_hints(shape, include_extras=True))
    except Exception:
        return {}


def deserialize_field_value(
    value: Any,
    *,
    annotation: Any,
    codec: str | None,
    field_name: str,
) -> Any:
    """Convert one raw column value to the annotated field type."""

    if value is None:
        return None

    enum_type = _enum_type(annotation)
    if enum_type is not None or codec == "enum":
        return _deserialize_enum(value, enum_type=enum_type, field_name=field_name)

    if _is_json_field(annotation, codec):
        return _deserialize_json(value, field_name=field_name)

    base = _unwrap_optional(annotation)
    if codec == "epoch" or base in (datetime, date):
        return _deserialize_datetime(value, as_date=base is date, field_name=field_name)

    if base is Decimal and not isinstance(value, Decimal):
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise DataAccessError(
                ErrorKind.TYPE_CONVERSION_FAILURE,
                f"Cannot convert {value!r} to Decimal for field {field_name!r}.",
            ) from exc

    return value


def _deserialize_enum(
    value: Any,
    *,
    enum_type: type[Enum] | None,
    field_name: str,
) -> Any:
    if enum_type is None:
        raise ValueError(
            f"Field {field_name!r} uses enum codec but has no Enum annotation."
        )
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as exc:
        if isinstance(value, str) and value in enum_type.__members__:
            return enum_type[value]
        raise DataAccessError(
            ErrorKind.TYPE_CONVERSION_FAILURE,
            f"Cannot deserialize value {value!r} to enum {enum_type.__name__} "
            f"for field {field_name!r}.",
        ) from exc


def _deserialize_json(value: Any, *, field_name: str) -> Any:
    if isinstance(value, (dict, list)):
        return value
    text: str | None
    if isinstance(value, str):
        text = value
    elif isinstance(value, (bytes, bytearray, memoryview)):
        text = bytes(value).decode("utf-8")
    else:
        return value

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DataAccessError(
            ErrorKind.TYPE_CONVERSION_FAILURE,
            f"Cannot deserialize JSON for field {field_name!r}: {text!r}.",
        ) from exc


def _deserialize_datetime(value: Any, *, as_date: bool, field_name: str) -> Any:
    if as_date and isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        converted = _dates.as_datetime(value)
    except DataAccessError as exc:
        raise DataAccessError(
            ErrorKind.TYPE_CONVERSION_FAILURE,
            f"Cannot convert {value!r} to datetime for field {field_name!r}.",
        ) from exc
    return converted.date() if as_date else converted


def _field_codec(field: Field[Any]) -> str | None:
    codec = field.metadata.get("codec")
    if codec is None:
        return None
    if not isinstance(codec, str):
        raise TypeError(
            f"Field {field.name!r} metadata codec must be a string, got {type(codec).__name__}."
        )
    normalized = codec.strip().lower()
    if normalized in SUPPORTED_CODECS:
        return normalized
    raise ValueError(
        f"Unsupported codec {codec!r} on field {field.name!r}. "
        "Supported codecs: 'json', 'enum', 'epoch'."
    )


def _enum_type(annotation: Any) -> type[Enum] | None:
    base = _unwrap_optional(annotation)
    if isinstance(base, type) and issubclass(base, Enum):
        return base
    return None


def _is_json_field(annotation: Any, codec: str | None) -> bool:
    if codec == "json":
        return True
    if codec in ("enum", "epoch"):
        return False

    base = _unwrap_optional(annotation)
    if base in {dict, list}:
        return True

    origin = get_origin(base)
    return origin in {dict, list}


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation

    if origin not in {Union, types.UnionType}:
        return annotation

    all_args = get_args(annotation)
    args = [arg for arg in all_args if arg is not type(None)]
    if len(args) == 1 and len(all_args) == 2:
        return args[0]
    return annotation


def _require_dataclass_shape(shape: Type[Any]) -> None:
    if not (isinstance(shape, type) and is_dataclass(shape)):
        name = getattr(shape, "__name__", repr(shape))
        raise TypeError(f"{name} must be a dataclass or dict.")
