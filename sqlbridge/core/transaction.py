"""Transaction scope: one connection, one transaction, many commands."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Type, TypeVar

from .contracts import TransactionalDatabasePort
from .types import QueryParams

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMMAND_DESC_LENGTH = 50
DEFAULT_TIMEOUT_SECONDS = 30


def describe_command(command: str, length: int = COMMAND_DESC_LENGTH) -> str:
    """Shorten command text for log lines."""

    text = " ".join(command.split())
    return text if len(text) <= length else text[:length] + "..."


class TransactionScope:
    """Run several commands in one transaction and settle it exactly once.

    The connection is opened and the transaction begun on creation. A
    failing command rolls the transaction back before the failure
    propagates. `close()` commits when `auto_commit` is set and rolls back
    otherwise, then always closes the connection. Leaving a `with` block
    by an exception never commits.
    """

    def __init__(
        self,
        db: TransactionalDatabasePort,
        name: Optional[str] = None,
        *,
        auto_commit: bool = False,
        connection_string: Optional[str] = None,
        timeout_seconds: Optional[int] = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.name = name
        self.auto_commit = auto_commit
        self._closed = False
        self.connection = db.open_connection(connection_string, timeout_seconds=timeout_seconds)
        try:
            self.transaction = db.begin_transaction(self.connection, name)
        except BaseException:
            db.close_connection(self.connection)
            raise

    @property
    def is_active(self) -> bool:
        return not self._closed and self.transaction.is_active

    def _require_active(self) -> None:
        if not self.is_active:
            raise RuntimeError(f"transaction scope {self._label()} is not active")

    def _label(self) -> str:
        return repr(self.name) if self.name else "<unnamed>"

    def _run(self, command: str, operation: Callable[[], T]) -> T:
        self._require_active()
        try:
            result = operation()
        except BaseException:
            logger.warning(
                "Failed to execute %s in transaction %s",
                describe_command(command),
                self._label(),
            )
            self._rollback_quietly()
            raise
        logger.debug("Executed %s in transaction %s", describe_command(command), self._label())
        return result

    def execute(self, command: str, params: QueryParams = None) -> int:
        """Execute a statement inside the transaction; roll back if it fails."""

        return self._run(
            command,
            lambda: self.db.execute_non_query(command, params, connection=self.transaction),
        )

    def execute_scalar(self, command: str, params: QueryParams = None) -> Any:
        return self._run(
            command,
            lambda: self.db.execute_scalar(command, params, connection=self.transaction),
        )

    def query(self, command: str, params: QueryParams = None, *, shape: Optional[Type[Any]] = None) -> list[Any]:
        return self._run(
            command,
            lambda: self.db.query(command, params, shape=shape, connection=self.transaction),
        )

    def commit(self) -> None:
        self._require_active()
        self.transaction.commit()
        logger.info("Committed transaction %s", self._label())

    def rollback(self) -> None:
        self._require_active()
        self.transaction.rollback()
        logger.info("Rolled back transaction %s", self._label())

    def _rollback_quietly(self) -> None:
        if not self.transaction.is_active:
            return
        try:
            self.transaction.rollback()
        except Exception:
            logger.exception("Failed to roll back transaction %s", self._label())

    def close(self) -> None:
        """Commit or roll back if still pending, then close the connection."""

        if self._closed:
            return
        self._closed = True
        try:
            if self.transaction.is_active:
                if self.auto_commit:
                    self.transaction.commit()
                    logger.info("Committed transaction %s", self._label())
                else:
                    self.transaction.rollback()
                    logger.info("Rolled back transaction %s", self._label())
        except Exception:
            logger.exception("Failed to settle transaction %s", self._label())
        finally:
            try:
                self.db.close_connection(self.connection)
            except Exception:
                logger.exception("Failed to close connection of transaction %s", self._label())

    def __enter__(self) -> TransactionScope:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            self._rollback_quietly()
        self.close()
