"""Transaction scope: several commands, committed or rolled back once."""

from __future__ import annotations

import logging
import sqlite3
import sys
import tempfile
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlbridge").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlbridge import DB_CONNECTION_STRING_KEY, DataAccessError, Database, Settings, SQLiteDialect


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    with tempfile.TemporaryDirectory() as tmp:
        settings = Settings({DB_CONNECTION_STRING_KEY: str(Path(tmp) / "bank.db")})
        db = Database(sqlite3.connect, SQLiteDialect(), settings=settings)
        db.execute_non_query("CREATE TABLE accounts (id INTEGER PRIMARY KEY, balance INTEGER)")
        db.execute_non_query("INSERT INTO accounts VALUES (1, 100), (2, 0)")

        # 1) auto_commit=True commits when the scope closes.
        with db.transaction("transfer", auto_commit=True) as scope:
            scope.execute("UPDATE accounts SET balance = balance - @amount WHERE id = @id", [40, 1])
            scope.execute("UPDATE accounts SET balance = balance + @amount WHERE id = @id", [40, 2])
        print("After transfer:", db.query("SELECT * FROM accounts ORDER BY id"))

        # 2) A failing command rolls the whole scope back and re-raises.
        try:
            with db.transaction("broken", auto_commit=True) as scope:
                scope.execute("UPDATE accounts SET balance = 0 WHERE id = @id", [1])
                scope.execute("UPDATE accounts SET balance = @a WHERE id = @id", [1])
        except DataAccessError as exc:
            print("Rolled back:", exc.kind.value)
        print("Unchanged:", db.query("SELECT * FROM accounts ORDER BY id"))


if __name__ == "__main__":
    main()
