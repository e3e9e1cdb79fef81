"""Turn DB-API cursor rows into records, tables, and output values."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from .errors import DataAccessError, ErrorKind
from .parameters import ParameterBinding, output_bindings
from .types import Record, Records

TABLE_NAME_PREFIX = "table"


def column_names(description: Any) -> list[str]:
    """Return column names from a DB-API `cursor.description`."""

    if not description:
        return []
    return [column[0] for column in description]


def row_to_record(columns: Sequence[str], row: Any) -> Record:
    """Normalize one row to an ordered name/value record.

    Tuple and list rows are paired with `columns`; rows exposing `keys()`
    (such as `sqlite3.Row`) are paired with their own keys. A column name
    repeated with the same value collapses to one entry; a repeated name
    with a different value fails with `CONFLICTING_COLUMN`.
    """

    if isinstance(row, Mapping):
        return dict(row)

    if isinstance(row, (tuple, list)):
        if not columns:
            raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
        return _pair(columns, row)

    keys = getattr(row, "keys", None)
    if callable(keys):
        return _pair(list(keys()), tuple(row))

    raise TypeError(f"Unsupported row type: {type(row)}")


def _pair(columns: Sequence[str], values: Sequence[Any]) -> Record:
    record: Record = {}
    for name, value in zip(columns, values, strict=True):
        if name in record:
            if record[name] != value:
                raise DataAccessError(
                    ErrorKind.CONFLICTING_COLUMN,
                    f"Column {name!r} appears twice with values "
                    f"{record[name]!r} and {value!r}.",
                )
            continue
        record[name] = value
    return record


def rows_to_records(description: Any, rows: Sequence[Any]) -> Records:
    """Normalize every fetched row of one result set."""

    columns = column_names(description)
    return [row_to_record(columns, row) for row in rows]


def first_value(row: Any) -> Any:
    """Return the first column of a row, or `None` for no row."""

    if row is None:
        return None
    if isinstance(row, Mapping):
        return next(iter(row.values()), None)
    return row[0] if len(row) else None


def table_name(index: int, table_names: Optional[Sequence[str]] = None) -> str:
    """Name the `index`-th result set, defaulting to `table<index>`."""

    if table_names and index < len(table_names):
        return table_names[index]
    return f"{TABLE_NAME_PREFIX}{index}"


def outputs_by_position(bindings: Sequence[ParameterBinding], values: Optional[Sequence[Any]]) -> Dict[str, Any]:
    """Read output bindings back from a `callproc` result sequence."""

    result: Dict[str, Any] = {}
    for index, binding in enumerate(bindings):
        if not binding.is_output:
            continue
        if values is not None and index < len(values):
            result[binding.name] = values[index]
        else:
            result[binding.name] = None
    return result


def outputs_by_name(bindings: Sequence[ParameterBinding], record: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Read output bindings from a result record, matching names case-insensitively."""

    lowered = {str(key).lower(): value for key, value in (record or {}).items()}
    return {binding.name: lowered.get(binding.name.lower()) for binding in output_bindings(bindings)}
