"""Row-by-row merge of parallel result tables under each merge strategy."""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlbridge").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlbridge import DataAccessError, MergeStrategy, merge_tables


def main() -> None:
    profiles = [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]
    balances = [{"id": 1, "balance": 10}, {"id": 2, "balance": 20, "name": "robert"}]

    # Tables as returned by Database.query_multiple are merged by row index.
    tables = {"table0": profiles, "table1": balances}
    print("Override:", merge_tables(tables, MergeStrategy.OVERRIDE))
    print("Ignore:", merge_tables(tables, MergeStrategy.IGNORE))
    try:
        merge_tables(tables, MergeStrategy.STRICT)
    except DataAccessError as exc:
        print("Strict:", exc.kind.value, "-", exc)


if __name__ == "__main__":
    main()
