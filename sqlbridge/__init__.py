"""Relational data access over DB-API drivers with a structural diff engine."""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .ports import AsyncDatabase, Database, Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, SQLServerDialect

__all__ = [
    *_core_all,
    "AsyncDatabase",
    "Database",
    "Dialect",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLServerDialect",
]
