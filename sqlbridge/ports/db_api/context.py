"""Connection classification and the execution context handed to commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ...core._async_utils import _maybe_await, _maybe_call
from ...core.errors import DataAccessError, ErrorKind


class ConnectionKind(str, Enum):
    """Observed shape of the `connection` argument of an execute call."""

    DEFAULT = "default"
    CONNECTION_STRING = "connection_string"
    CONNECTION = "connection"
    TRANSACTION = "transaction"


class TransactionState(str, Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class DbTransaction:
    """Transaction handle bound to one DB-API connection.

    DB-API transactions are implicit on the connection; this handle records
    the outcome so commit or rollback happens at most once.
    """

    def __init__(self, connection: Any, name: Optional[str] = None):
        self.connection = connection
        self.name = name
        self.state = TransactionState.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.state is TransactionState.ACTIVE

    def ensure_active(self) -> None:
        if not self.is_active:
            label = f" {self.name!r}" if self.name else ""
            raise RuntimeError(f"transaction{label} is {self.state.value}")

    def commit(self) -> None:
        self.ensure_active()
        self.connection.commit()
        self.state = TransactionState.COMMITTED

    def rollback(self) -> None:
        self.ensure_active()
        # marked first so a failing rollback is never retried
        self.state = TransactionState.ROLLED_BACK
        self.connection.rollback()

    async def acommit(self) -> None:
        self.ensure_active()
        await _maybe_await(self.connection.commit())
        self.state = TransactionState.COMMITTED

    async def arollback(self) -> None:
        self.ensure_active()
        self.state = TransactionState.ROLLED_BACK
        await _maybe_await(self.connection.rollback())

    def __repr__(self) -> str:
        return f"DbTransaction(name={self.name!r}, state={self.state.value!r})"


@dataclass(frozen=True)
class ExecutionContext:
    """Connection (and optional transaction) a command runs against.

    `owned=True` means the executor opened the connection and must close it.
    """

    connection: Any
    transaction: Optional[DbTransaction] = None
    owned: bool = False
    kind: ConnectionKind = ConnectionKind.CONNECTION


def classify_connection(connection: Any) -> ConnectionKind:
    """Classify a connection-like argument.

    Raises:
        DataAccessError: `UNSUPPORTED_CONNECTION_KIND` for anything that is
            not `None`, a string, a `DbTransaction`, or an object with a
            callable `cursor`.
    """

    if connection is None:
        return ConnectionKind.DEFAULT
    if isinstance(connection, str):
        return ConnectionKind.CONNECTION_STRING
    if isinstance(connection, DbTransaction):
        return ConnectionKind.TRANSACTION
    if callable(getattr(connection, "cursor", None)):
        return ConnectionKind.CONNECTION
    raise DataAccessError(
        ErrorKind.UNSUPPORTED_CONNECTION_KIND,
        f"Connection type of {type(connection).__name__} is not supported yet.",
    )


def needs_open(connection: Any) -> bool:
    """True for a borrowed connection that reports `closed` and can `open()`."""

    return bool(getattr(connection, "closed", False)) and callable(getattr(connection, "open", None))


def close_connection(connection: Any) -> None:
    close = getattr(connection, "close", None)
    if callable(close):
        close()


async def aclose_connection(connection: Any) -> None:
    await _maybe_call(connection, "close")
