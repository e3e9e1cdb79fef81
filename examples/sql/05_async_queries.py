"""Async execution with AsyncDatabase; sync drivers such as sqlite3 also work."""

from __future__ import annotations

import asyncio
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

from sqlbridge import DB_CONNECTION_STRING_KEY, AsyncDatabase, Settings, SQLiteDialect


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        settings = Settings({DB_CONNECTION_STRING_KEY: str(Path(tmp) / "async.db")})
        db = AsyncDatabase(sqlite3.connect, SQLiteDialect(), settings=settings)

        await db.execute_non_query("CREATE TABLE events (id INTEGER PRIMARY KEY, kind TEXT)")
        async with db.transaction("seed", auto_commit=True) as scope:
            for kind in ("login", "logout", "login"):
                await scope.execute("INSERT INTO events (kind) VALUES (@kind)", [kind])

        print("Logins:", await db.execute_scalar("SELECT COUNT(*) FROM events WHERE kind = @k", ["login"]))
        print("All:", await db.query("SELECT * FROM events ORDER BY id"))


if __name__ == "__main__":
    asyncio.run(main())
