from __future__ import annotations

import sqlite3
import unittest
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlbridge.core.codecs import project_record, project_rows
from sqlbridge.core.errors import DataAccessError, ErrorKind
from sqlbridge.core.materialize import (
    first_value,
    outputs_by_name,
    outputs_by_position,
    row_to_record,
    rows_to_records,
    table_name,
)
from sqlbridge.core.parameters import Direction, ParameterBinding


class Status(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


@dataclass
class Account:
    id: int
    name: str
    status: Status = Status.ACTIVE
    balance: Optional[Decimal] = None
    created: Optional[datetime] = None
    opened_on: Optional[date] = None
    tags: list[str] = field(default_factory=list)
    owner: Optional[str] = field(default=None, metadata={"column": "owner_name"})
    extra: Any = field(default=None, metadata={"codec": "json"})


class RowToRecordTests(unittest.TestCase):
    def test_tuple_rows_pair_with_columns(self) -> None:
        description = (("id", None), ("name", None))
        records = rows_to_records(description, [(1, "a"), (2, "b")])
        self.assertEqual(records, [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}])

    def test_duplicate_column_same_value_collapses(self) -> None:
        self.assertEqual(row_to_record(["id", "id", "x"], (1, 1, 2)), {"id": 1, "x": 2})

    def test_duplicate_column_different_value_conflicts(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            row_to_record(["id", "id"], (1, 2))
        self.assertIs(ctx.exception.kind, ErrorKind.CONFLICTING_COLUMN)

    def test_mapping_rows_and_keyed_rows(self) -> None:
        self.assertEqual(row_to_record([], {"a": 1}), {"a": 1})

        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        try:
            row = conn.execute("SELECT 1 AS a, 'B' AS b, 1 AS a").fetchone()
            self.assertEqual(row_to_record([], row), {"a": 1, "b": "B"})

            row = conn.execute("SELECT 1 AS a, 2 AS a").fetchone()
            with self.assertRaises(DataAccessError) as ctx:
                row_to_record([], row)
            self.assertIs(ctx.exception.kind, ErrorKind.CONFLICTING_COLUMN)
        finally:
            conn.close()

    def test_unsupported_rows(self) -> None:
        with self.assertRaises(TypeError):
            row_to_record([], (1,))
        with self.assertRaises(TypeError):
            row_to_record(["a"], 5)
        with self.assertRaises(ValueError):
            row_to_record(["a", "b"], (1,))

    def test_helpers(self) -> None:
        self.assertIsNone(first_value(None))
        self.assertEqual(first_value((3, 4)), 3)
        self.assertEqual(first_value({"n": 9}), 9)
        self.assertEqual(table_name(0), "table0")
        self.assertEqual(table_name(1, ["users"]), "table1")
        self.assertEqual(table_name(0, ["users"]), "users")


class OutputValueTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bindings = [
            ParameterBinding("id", 1),
            ParameterBinding("total", None, direction=Direction.OUT, type_tag="Int32"),
        ]

    def test_outputs_by_position(self) -> None:
        self.assertEqual(outputs_by_position(self.bindings, [1, 42]), {"total": 42})
        self.assertEqual(outputs_by_position(self.bindings, None), {"total": None})

    def test_outputs_by_name(self) -> None:
        self.assertEqual(outputs_by_name(self.bindings, {"TOTAL": 7}), {"total": 7})
        self.assertEqual(outputs_by_name(self.bindings, None), {"total": None})


class ProjectionTests(unittest.TestCase):
    def test_none_and_dict_shapes_skip_projection(self) -> None:
        rows = [{"a": 1}]
        self.assertEqual(project_rows(rows), rows)
        self.assertEqual(project_rows(rows, dict), rows)

    def test_projects_by_field_name_with_codecs(self) -> None:
        record = {
            "ID": 1,
            "name": "alice",
            "status": "blocked",
            "balance": "12.50",
            "created": 36000,
            "opened_on": "2024-02-03T10:00:00",
            "tags": '["a", "b"]',
            "owner_name": "bob",
            "extra": b'{"k": 1}',
            "ignored": "column",
        }

        account = project_record(Account, record)

        self.assertEqual(account.id, 1)
        self.assertEqual(account.name, "alice")
        self.assertIs(account.status, Status.BLOCKED)
        self.assertEqual(account.balance, Decimal("12.50"))
        self.assertEqual(account.created, datetime(1970, 1, 1, 10, 0, 0))
        self.assertEqual(account.opened_on, date(2024, 2, 3))
        self.assertEqual(account.tags, ["a", "b"])
        self.assertEqual(account.owner, "bob")
        self.assertEqual(account.extra, {"k": 1})

    def test_missing_optional_columns_keep_defaults(self) -> None:
        (account,) = project_rows([{"id": 2, "name": "x", "balance": None}], Account)
        self.assertIs(account.status, Status.ACTIVE)
        self.assertIsNone(account.balance)
        self.assertEqual(account.tags, [])

    def test_missing_required_column_fails(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            project_record(Account, {"id": 1})
        self.assertIs(ctx.exception.kind, ErrorKind.TYPE_CONVERSION_FAILURE)

    def test_bad_values_fail_conversion(self) -> None:
        for column, value in (("status", "unknown"), ("balance", "abc"), ("created", "not a date")):
            with self.subTest(column=column):
                with self.assertRaises(DataAccessError) as ctx:
                    project_record(Account, {"id": 1, "name": "x", column: value})
                self.assertIs(ctx.exception.kind, ErrorKind.TYPE_CONVERSION_FAILURE)

    def test_non_dataclass_shape_rejected(self) -> None:
        with self.assertRaises(TypeError):
            project_rows([{"a": 1}], int)


if __name__ == "__main__":
    unittest.main()
