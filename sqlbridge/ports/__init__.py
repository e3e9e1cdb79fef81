"""Public port exports for concrete adapter implementations."""

from .db_api import AsyncDatabase, Database, Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, SQLServerDialect

__all__ = [
    "Database",
    "AsyncDatabase",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "SQLServerDialect",
]
