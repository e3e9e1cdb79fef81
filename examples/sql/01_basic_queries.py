"""Basic command execution with sqlbridge Database over sqlite3."""

from __future__ import annotations

import sqlite3
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlbridge").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlbridge import DB_CONNECTION_STRING_KEY, Database, Settings, SQLiteDialect


@dataclass
class User:
    id: int
    email: str
    age: Optional[int] = None


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        # 1) Each call opens, commits, and closes its own connection to this file.
        settings = Settings({DB_CONNECTION_STRING_KEY: str(Path(tmp) / "app.db")})
        db = Database(sqlite3.connect, SQLiteDialect(), settings=settings)

        db.execute_non_query("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, age INTEGER)")

        # 2) Positional arguments bind to distinct @placeholders in order.
        for user_id, email, age in ((1, "alice@example.com", 25), (2, "bob@example.com", None)):
            db.execute_non_query(
                "INSERT INTO users (id, email, age) VALUES (@id, @email, @age)",
                [user_id, email, age],
            )

        # 3) List arguments expand into @ids0, @ids1, ...
        print("By ids:", db.query("SELECT * FROM users WHERE id IN (@ids)", [[1, 2]]))

        # 4) Named arguments and typed rows.
        print("Typed:", db.query("SELECT * FROM users WHERE age IS NULL OR age > @min", {"min": 20}, shape=User))
        print("Count:", db.execute_scalar("SELECT COUNT(*) FROM users"))


if __name__ == "__main__":
    main()
