"""Structural diff of expected vs actual records with cross-type equivalence."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlbridge").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlbridge import diff, diff_collections, format_property_table, log_deltas


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    # 1) Epoch seconds vs datetime, string vs Decimal, and null vs "" are equal.
    expected = {"created": 36000, "price": "12.50", "note": None, "tags": ["a", "b"]}
    actual = {"created": datetime(1970, 1, 1, 10), "price": Decimal("12.5"), "note": "", "tags": ["a", "c"]}
    log_deltas(diff(expected, actual))

    # 2) Collections correlated by a composite key.
    left = [{"region": "eu", "id": 1, "qty": 3}, {"region": "us", "id": 1, "qty": 5}]
    right = [{"region": "eu", "id": 1, "qty": 4}, {"region": "apac", "id": 7, "qty": 1}]
    log_deltas(diff_collections(left, right, "region", "id"))

    print(format_property_table(["region", "id", "qty"], *left))


if __name__ == "__main__":
    main()
