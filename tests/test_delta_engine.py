from __future__ import annotations

import logging
import unittest
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlbridge.core.comparers import NULL_DATETIME_VALUE, EquivalenceRegistry
from sqlbridge.core.delta import CompositeDelta, Delta
from sqlbridge.core.diff import (
    DeltaEngine,
    diff,
    diff_collections,
    format_property_table,
    keyed_records,
    log_deltas,
)
from sqlbridge.core.errors import DataAccessError, ErrorKind


@dataclass
class Item:
    id: int
    name: str
    price: float


class DeltaTests(unittest.TestCase):
    def test_equal_values_cannot_form_delta(self) -> None:
        with self.assertRaises(ValueError):
            Delta.shared("x", 1, 1)
        with self.assertRaises(ValueError):
            Delta(None, None)

    def test_construction_uses_plain_inequality(self) -> None:
        stamp = datetime(1970, 1, 1, 10)
        delta = Delta.shared("d", "36000", stamp)
        self.assertTrue(delta.has_difference())
        self.assertEqual(diff({"d": "36000"}, {"d": stamp}), {})

    def test_missing_counterparts(self) -> None:
        left = Delta.missing_left("k")
        right = Delta.missing_right("k")
        self.assertTrue(left.is_missing_left)
        self.assertTrue(right.is_missing_right)
        self.assertTrue(left.has_difference())
        self.assertEqual(str(left), "Missing Left Value: 'k'")
        self.assertEqual(str(right), "Missing Right Value: 'k'")

    def test_str_of_value_mismatch(self) -> None:
        self.assertEqual(
            str(Delta.shared("x", 1, "2")),
            "'x': LEFT value 1 of int != RIGHT value '2' of str",
        )


class DiffTests(unittest.TestCase):
    def test_equal_records_yield_nothing(self) -> None:
        self.assertEqual(diff({"x": 1}, {"x": 1}), {})

    def test_value_mismatch(self) -> None:
        result = diff({"x": 1}, {"x": 2})
        self.assertEqual(list(result), ["x"])
        delta = result["x"]
        self.assertIsInstance(delta, Delta)
        self.assertEqual((delta.left_value, delta.right_value), (1, 2))

    def test_keys_on_one_side_only_are_ignored(self) -> None:
        self.assertEqual(diff({"x": 1, "only_left": 1}, {"x": 1, "only_right": 2}), {})

    def test_epoch_string_equals_datetime(self) -> None:
        self.assertEqual(diff({"d": "36000"}, {"d": datetime(1970, 1, 1, 10)}), {})
        self.assertEqual(diff({"d": "1970-01-01T10:00:00Z"}, {"d": datetime(1970, 1, 1, 10)}), {})

    def test_date_equivalence_needs_registered_comparer(self) -> None:
        result = diff({"d": "36000"}, {"d": datetime(1970, 1, 1, 10)}, registry=EquivalenceRegistry())
        self.assertIn("d", result)

    def test_number_equivalence_and_trimmed_strings(self) -> None:
        left = {"a": 0.1 + 0.2, "b": Decimal("2.50"), "c": " text ", "d": 5}
        right = {"a": 0.3, "b": "2.5", "c": "text", "d": "5"}
        self.assertEqual(diff(left, right), {})

    def test_always_equal_sentinels(self) -> None:
        left = {"a": None, "b": "", "c": NULL_DATETIME_VALUE, "d": None, "e": 0.0}
        right = {"a": None, "b": None, "c": None, "d": 0, "e": None}
        self.assertEqual(diff(left, right), {})

    def test_booleans_never_match_sentinels(self) -> None:
        result = diff({"flag": None}, {"flag": False})
        self.assertEqual(result["flag"].right_value, False)

    def test_one_side_null(self) -> None:
        result = diff({"x": None}, {"x": "value"})
        self.assertEqual((result["x"].left_value, result["x"].right_value), (None, "value"))

    def test_nested_records_become_composite(self) -> None:
        result = diff({"user": {"name": "a", "age": 3}}, {"user": {"name": "b", "age": 3}})
        nested = result["user"]
        self.assertIsInstance(nested, CompositeDelta)
        self.assertEqual(list(nested), ["name"])
        (delta,) = nested["name"]
        self.assertEqual((delta.left_value, delta.right_value), ("a", "b"))

    def test_sequences_compare_by_position(self) -> None:
        result = diff({"tags": ["a", "b", "c"]}, {"tags": ["a", "x"]})
        nested = result["tags"]
        self.assertIsInstance(nested, CompositeDelta)
        self.assertEqual(set(nested), {1, 2})
        self.assertTrue(nested[2][0].is_missing_right)

    def test_sequences_of_records(self) -> None:
        result = diff({"rows": [{"v": 1}, {"v": 2}]}, {"rows": [{"v": 1}, {"v": 3}]})
        self.assertEqual(list(result["rows"]), [1])

    def test_dataclass_records(self) -> None:
        result = diff(Item(1, "a", 1.0), Item(1, "b", 1.0))
        self.assertEqual(list(result), ["name"])

    def test_conversion_failure_propagates(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            diff({"d": "not a date"}, {"d": datetime(2020, 1, 1)})
        self.assertIs(ctx.exception.kind, ErrorKind.TYPE_CONVERSION_FAILURE)


class DiffCollectionsTests(unittest.TestCase):
    def test_single_key_reports_missing_and_changed(self) -> None:
        left = [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}, {"id": 3, "name": "c"}]
        right = [{"id": 2, "name": "B"}, {"id": 3, "name": "c"}, {"id": 4, "name": "d"}]

        result = diff_collections(left, right, "id")

        self.assertEqual(set(result), {1, 2, 4})
        (missing_right,) = result[1]
        (missing_left,) = result[4]
        self.assertTrue(missing_right.is_missing_right)
        self.assertTrue(missing_left.is_missing_left)
        (changed,) = result[2]
        self.assertEqual((changed.left_value, changed.right_value), ("b", "B"))

    def test_positional_and_composite_keys(self) -> None:
        left = [{"a": 1, "b": 1, "v": 1}, {"a": 1, "b": 2, "v": 2}]
        right = [{"a": 1, "b": 2, "v": 2}, {"a": 1, "b": 1, "v": 9}]

        by_position = diff_collections(left, right)
        self.assertEqual(set(by_position), {0, 1})

        by_key = diff_collections(left, right, "a", "b")
        self.assertEqual(list(by_key), [(1, 1)])

    def test_key_arity_and_duplicates(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            diff_collections([], [], "a", "b", "c", "d", "e")
        self.assertIs(ctx.exception.kind, ErrorKind.UNSUPPORTED_KEY_ARITY)

        with self.assertRaises(DataAccessError) as ctx:
            keyed_records([{"id": 1}, {"id": 1}], "id")
        self.assertIs(ctx.exception.kind, ErrorKind.DUPLICATE_KEY)

    def test_four_keys_supported_case_insensitively(self) -> None:
        rows = [{"A": 1, "B": 2, "C": 3, "D": 4}]
        self.assertEqual(list(keyed_records(rows, "a", "b", "c", "d")), [(1, 2, 3, 4)])

    def test_custom_engine_registry(self) -> None:
        engine = DeltaEngine(EquivalenceRegistry())
        result = engine.diff_collections([{"id": 1, "p": 0.1 + 0.2}], [{"id": 1, "p": 0.3}], "id")
        self.assertIn(1, result)


class ReportingTests(unittest.TestCase):
    def test_log_deltas_writes_one_line_per_key(self) -> None:
        deltas = diff_collections([{"id": 1, "v": 1}], [{"id": 1, "v": 2}, {"id": 2, "v": 3}], "id")
        with self.assertLogs("sqlbridge.core.diff", level="INFO") as logs:
            log_deltas(deltas)
        self.assertEqual(len(logs.records), 2)

        custom = logging.getLogger("tests.delta")
        with self.assertLogs(custom, level="WARNING") as logs:
            log_deltas(diff({"x": 1}, {"x": 2}), log=custom, level=logging.WARNING)
        self.assertIn("LEFT value 1", logs.output[0])

    def test_format_property_table(self) -> None:
        table = format_property_table(["id", "name"], {"id": 1, "name": "alpha"}, Item(22, "b", 0.0))
        self.assertEqual(
            table.splitlines(),
            [
                "| id | name  |",
                "| 1  | alpha |",
                "| 22 | b     |",
            ],
        )


if __name__ == "__main__":
    unittest.main()
