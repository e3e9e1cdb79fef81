"""Row-by-row merge of parallel result tables."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Type, Union

from .codecs import project_rows
from .errors import DataAccessError, ErrorKind
from .types import Records, RowMapping

TableInput = Union[Sequence[Sequence[RowMapping]], Mapping[str, Sequence[RowMapping]]]


class MergeStrategy(str, Enum):
    """How a column that already holds a different value is resolved."""

    OVERRIDE = "override"
    STRICT = "strict"
    IGNORE = "ignore"


def merge_tables(
    tables: TableInput,
    strategy: MergeStrategy | str = MergeStrategy.OVERRIDE,
    *,
    shape: Optional[Type[Any]] = None,
) -> list[Any]:
    """Merge tables by row index into one record per row.

    The first table seeds the result. Later tables add their columns to the
    record at the same index: `OVERRIDE` keeps the last value, `IGNORE`
    keeps the first, and `STRICT` fails on any differing value or on
    tables of different lengths.

    Raises:
        DataAccessError: `ROW_COUNT_MISMATCH` or `CONFLICTING_COLUMN`
            under `STRICT`.
    """

    strategy = MergeStrategy(strategy)
    table_list = list(tables.values()) if isinstance(tables, Mapping) else list(tables)
    if not table_list:
        return []

    if strategy is MergeStrategy.STRICT:
        counts = [len(table) for table in table_list]
        if len(set(counts)) > 1:
            raise DataAccessError(
                ErrorKind.ROW_COUNT_MISMATCH,
                f"Tables have different row counts: {counts}.",
            )

    merged: Records = [dict(row) for row in table_list[0]]
    for table in table_list[1:]:
        for index, row in enumerate(table):
            if index >= len(merged):
                if strategy is MergeStrategy.STRICT:
                    raise DataAccessError(ErrorKind.ROW_COUNT_MISMATCH, f"No matching row {index}.")
                merged.append({})
            _merge_row(merged[index], row, strategy, index)

    return project_rows(merged, shape)


def _merge_row(target: dict[str, Any], row: RowMapping, strategy: MergeStrategy, index: int) -> None:
    for column, value in row.items():
        if column not in target:
            target[column] = value
            continue
        if target[column] == value:
            continue
        if strategy is MergeStrategy.OVERRIDE:
            target[column] = value
        elif strategy is MergeStrategy.STRICT:
            raise DataAccessError(
                ErrorKind.CONFLICTING_COLUMN,
                f"Conflicting values of column {column!r} in row {index}: "
                f"{target[column]!r} != {value!r}.",
            )
