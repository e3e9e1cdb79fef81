from __future__ import annotations

import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlbridge.core.comparers import (
    DateTimeComparer,
    EquivalenceRegistry,
    NumberComparer,
    default_registry,
    from_unix_seconds,
)
from sqlbridge.core.errors import DataAccessError, ErrorKind
from sqlbridge.core.values import ValueKind, get_value, value_kind


class ValueKindTests(unittest.TestCase):
    def test_classification_order(self) -> None:
        self.assertIs(value_kind(None), ValueKind.NULL)
        self.assertIs(value_kind(True), ValueKind.BOOL)
        self.assertIs(value_kind(3), ValueKind.INTEGER)
        self.assertIs(value_kind(1.5), ValueKind.FLOAT)
        self.assertIs(value_kind(Decimal("1")), ValueKind.DECIMAL)
        self.assertIs(value_kind("x"), ValueKind.STRING)
        self.assertIs(value_kind(datetime(2020, 1, 1)), ValueKind.DATETIME)
        self.assertIs(value_kind(date(2020, 1, 1)), ValueKind.DATE)
        self.assertIs(value_kind({"a": 1}), ValueKind.MAP)
        self.assertIs(value_kind([1]), ValueKind.LIST)
        self.assertIs(value_kind(b"x"), ValueKind.OTHER)

    def test_get_value_falls_back_to_case_insensitive(self) -> None:
        self.assertEqual(get_value({"Name": "a"}, "name"), "a")
        with self.assertRaises(KeyError):
            get_value({"Name": "a"}, "other")


class DateTimeComparerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.compare = DateTimeComparer()

    def test_epoch_helpers(self) -> None:
        self.assertEqual(from_unix_seconds(36000), datetime(1970, 1, 1, 10))
        aware = datetime(1970, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        self.assertTrue(self.compare(36000, aware))

    def test_epoch_and_iso_strings_equal_datetime(self) -> None:
        expected = datetime(1970, 1, 1, 10)
        self.assertTrue(self.compare(36000, expected))
        self.assertTrue(self.compare("36000", expected))
        self.assertTrue(self.compare("1970-01-01T10:00:00Z", expected))
        self.assertTrue(self.compare(date(1970, 1, 1), datetime(1970, 1, 1)))
        self.assertFalse(self.compare(36001, expected))

    def test_nulls(self) -> None:
        self.assertTrue(self.compare(None, None))
        self.assertFalse(self.compare(None, 0))

    def test_conversion_failures(self) -> None:
        for value in ("yesterday", True, 1.5):
            with self.subTest(value=value):
                with self.assertRaises(DataAccessError) as ctx:
                    self.compare(value, datetime(1970, 1, 1))
                self.assertIs(ctx.exception.kind, ErrorKind.TYPE_CONVERSION_FAILURE)


class NumberComparerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.compare = NumberComparer()

    def test_rounds_to_eight_digits(self) -> None:
        self.assertTrue(self.compare(0.1 + 0.2, 0.3))
        self.assertTrue(self.compare(Decimal("1.000000001"), "1"))
        self.assertFalse(self.compare(Decimal("1.00000001"), "1"))

    def test_bankers_rounding(self) -> None:
        compare = NumberComparer(digits=0)
        self.assertTrue(compare("2.5", 2))
        self.assertTrue(compare("3.5", 4))

    def test_tolerates_currency_formatting(self) -> None:
        self.assertTrue(self.compare("$1,234.50", 1234.5))

    def test_unparseable_number(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            self.compare("abc", 1.0)
        self.assertIs(ctx.exception.kind, ErrorKind.TYPE_CONVERSION_FAILURE)


class EquivalenceRegistryTests(unittest.TestCase):
    def test_lookup_in_both_orders(self) -> None:
        calls = []

        def comparer(left, right):  # noqa: ANN001,ANN202
            calls.append((left, right))
            return True

        registry = EquivalenceRegistry()
        registry.register(ValueKind.INTEGER, ValueKind.STRING, comparer)

        self.assertTrue(registry.equivalent(1, "x"))
        self.assertTrue(registry.equivalent("y", 2))
        self.assertEqual(calls, [(1, "x"), (2, "y")])
        self.assertIn((ValueKind.STRING, ValueKind.INTEGER), registry)
        self.assertFalse(registry.equivalent(1.0, "x"))

    def test_unregister_and_copy(self) -> None:
        registry = default_registry()
        copy = registry.copy()
        copy.unregister(ValueKind.FLOAT, ValueKind.STRING)

        self.assertTrue(registry.equivalent(1.5, "1.50"))
        self.assertFalse(copy.equivalent(1.5, "1.50"))
        self.assertEqual(len(copy), len(registry) - 1)

    def test_default_registry_pairs(self) -> None:
        registry = default_registry()
        self.assertTrue(registry.equivalent("1970-01-01T10:00:00Z", datetime(1970, 1, 1, 10)))
        self.assertTrue(registry.equivalent(datetime(1970, 1, 1, 10), 36000))
        self.assertTrue(registry.equivalent(Decimal("2.10"), 2.1))
        self.assertFalse(registry.equivalent(1, "1"))


if __name__ == "__main__":
    unittest.main()
