"""Async transaction scope mirroring `TransactionScope`."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar

from .contracts import AsyncTransactionalDatabasePort
from .transaction import DEFAULT_TIMEOUT_SECONDS, describe_command
from .types import QueryParams

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncTransactionScope:
    """Async transaction scope; opened by `await scope.open()` or `async with`."""

    def __init__(
        self,
        db: AsyncTransactionalDatabasePort,
        name: Optional[str] = None,
        *,
        auto_commit: bool = False,
        connection_string: Optional[str] = None,
        timeout_seconds: Optional[int] = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.name = name
        self.auto_commit = auto_commit
        self.connection_string = connection_string
        self.timeout_seconds = timeout_seconds
        self.connection: Any = None
        self.transaction: Any = None
        self._closed = False

    async def open(self) -> AsyncTransactionScope:
        if self.connection is not None:
            return self
        connection = await self.db.open_connection(
            self.connection_string,
            timeout_seconds=self.timeout_seconds,
        )
        try:
            self.transaction = await self.db.begin_transaction(connection, self.name)
        except BaseException:
            await self.db.close_connection(connection)
            raise
        self.connection = connection
        return self

    @property
    def is_active(self) -> bool:
        return not self._closed and self.transaction is not None and self.transaction.is_active

    def _require_active(self) -> None:
        if not self.is_active:
            raise RuntimeError(f"transaction scope {self._label()} is not active")

    def _label(self) -> str:
        return repr(self.name) if self.name else "<unnamed>"

    async def _run(self, command: str, operation: Callable[[], Awaitable[T]]) -> T:
        self._require_active()
        try:
            result = await operation()
        except BaseException:
            logger.warning(
                "Failed to execute %s in transaction %s",
                describe_command(command),
                self._label(),
            )
            await self._rollback_quietly()
            raise
        logger.debug("Executed %s in transaction %s", describe_command(command), self._label())
        return result

    async def execute(self, command: str, params: QueryParams = None) -> int:
        return await self._run(
            command,
            lambda: self.db.execute_non_query(command, params, connection=self.transaction),
        )

    async def execute_scalar(self, command: str, params: QueryParams = None) -> Any:
        return await self._run(
            command,
            lambda: self.db.execute_scalar(command, params, connection=self.transaction),
        )

    async def query(
        self,
        command: str,
        params: QueryParams = None,
        *,
        shape: Optional[Type[Any]] = None,
    ) -> list[Any]:
        return await self._run(
            command,
            lambda: self.db.query(command, params, shape=shape, connection=self.transaction),
        )

    async def commit(self) -> None:
        self._require_active()
        await self.transaction.acommit()
        logger.info("Committed transaction %s", self._label())

    async def rollback(self) -> None:
        self._require_active()
        await self.transaction.arollback()
        logger.info("Rolled back transaction %s", self._label())

    async def _rollback_quietly(self) -> None:
        if self.transaction is None or not self.transaction.is_active:
            return
        try:
            await self.transaction.arollback()
        except Exception:
            logger.exception("Failed to roll back transaction %s", self._label())

    async def close(self) -> None:
        if self._closed or self.connection is None:
            self._closed = True
            return
        self._closed = True
        try:
            if self.transaction.is_active:
                if self.auto_commit:
                    await self.transaction.acommit()
                    logger.info("Committed transaction %s", self._label())
                else:
                    await self.transaction.arollback()
                    logger.info("Rolled back transaction %s", self._label())
        except Exception:
            logger.exception("Failed to settle transaction %s", self._label())
        finally:
            try:
                await self.db.close_connection(self.connection)
            except Exception:
                logger.exception("Failed to close connection of transaction %s", self._label())

    async def __aenter__(self) -> AsyncTransactionScope:
        return await self.open()

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            await self._rollback_quietly()
        await self.close()
