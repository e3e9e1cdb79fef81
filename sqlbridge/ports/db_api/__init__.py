"""DB-API adapter and dialect exports."""

from .async_database import AsyncDatabase
from .command import AsyncCommand, Command
from .context import ConnectionKind, DbTransaction, ExecutionContext, TransactionState, classify_connection
from .database import Database
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, SQLServerDialect

__all__ = [
    "AsyncCommand",
    "AsyncDatabase",
    "Command",
    "ConnectionKind",
    "Database",
    "DbTransaction",
    "Dialect",
    "ExecutionContext",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "TransactionState",
    "classify_connection",
]
