"""Async DB adapter implementation of the command executor."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Sequence, Type, TypeVar

from ...core._async_utils import _maybe_await
from ...core.aggregate import MergeStrategy, merge_tables
from ...core.codecs import project_rows
from ...core.contracts import DialectPort, SettingsPort
from ...core.parameters import CommandKind, prepare
from ...core.scripts import ScriptCache, default_script_cache
from ...core.settings import DB_CONNECTION_STRING_KEY, Settings
from ...core.transaction import DEFAULT_TIMEOUT_SECONDS
from ...core.transaction_async import AsyncTransactionScope
from ...core.types import QueryParams, Tables
from .command import AsyncCommand
from .context import (
    ConnectionKind,
    DbTransaction,
    ExecutionContext,
    aclose_connection,
    classify_connection,
    needs_open,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncDatabase:
    """Async counterpart of `Database`; sync drivers are accepted as well."""

    def __init__(
        self,
        connect: Callable[[str], Any],
        dialect: DialectPort,
        *,
        settings: Optional[SettingsPort] = None,
        scripts: Optional[ScriptCache] = None,
        connection_string_key: str = DB_CONNECTION_STRING_KEY,
    ):
        """Create async database adapter.

        Args:
            connect: Driver function returning a connection or an awaitable
                of one (`psycopg.AsyncConnection.connect`, `aiosqlite.connect`).
            dialect: Concrete SQL dialect instance.
            settings: Provider of the default connection string.
            scripts: Script cache for `*.sql` references.
            connection_string_key: Settings key of the default connection string.
        """

        self._connect = connect
        self.dialect = dialect
        self._settings = settings
        self.scripts = scripts if scripts is not None else default_script_cache()
        self.connection_string_key = connection_string_key

    @property
    def settings(self) -> SettingsPort:
        if self._settings is None:
            self._settings = Settings.from_environment()
        return self._settings

    def default_connection_string(self) -> str:
        return self.settings.get(self.connection_string_key)

    async def open_connection(
        self,
        connection_string: Optional[str] = None,
        *,
        timeout_seconds: Optional[int] = None,
    ) -> Any:
        text = connection_string if connection_string is not None else self.default_connection_string()
        if timeout_seconds is not None:
            text = self.dialect.with_timeout(text, timeout_seconds)
        conn = await _maybe_await(self._connect(text))
        logger.debug("Opened %s connection", self.dialect.name)
        return conn

    async def close_connection(self, conn: Any) -> None:
        await aclose_connection(conn)
        logger.debug("Closed %s connection", self.dialect.name)

    async def begin_transaction(self, conn: Any, name: Optional[str] = None) -> DbTransaction:
        await _maybe_await(self.dialect.begin(conn, name))
        return DbTransaction(conn, name)

    @contextlib.asynccontextmanager
    async def _context(self, connection: Any) -> AsyncIterator[ExecutionContext]:
        kind = classify_connection(connection)

        if kind is ConnectionKind.TRANSACTION:
            connection.ensure_active()
            yield ExecutionContext(connection.connection, connection, owned=False, kind=kind)
            return

        if kind is ConnectionKind.CONNECTION:
            if needs_open(connection):
                await _maybe_await(connection.open())
            yield ExecutionContext(connection, None, owned=False, kind=kind)
            return

        conn = await self.open_connection(connection)
        try:
            yield ExecutionContext(conn, None, owned=True, kind=kind)
            await _maybe_await(conn.commit())
        finally:
            await self.close_connection(conn)

    async def execute(
        self,
        operation: Callable[[AsyncCommand], Awaitable[T]],
        command: str,
        params: QueryParams = None,
        *,
        kind: CommandKind = CommandKind.TEXT,
        connection: Any = None,
    ) -> T:
        """Run `operation` with a live async command and return its result."""

        text = self.scripts.resolve(command)
        text, bindings = prepare(text, params)
        async with self._context(connection) as context:
            cmd = AsyncCommand(context, self.dialect, text, bindings, kind)
            try:
                return await operation(cmd)
            finally:
                await cmd.close()

    async def execute_non_query(self, command: str, params: QueryParams = None, *, connection: Any = None) -> int:
        return await self.execute(AsyncCommand.execute_non_query, command, params, connection=connection)

    async def execute_scalar(self, command: str, params: QueryParams = None, *, connection: Any = None) -> Any:
        return await self.execute(AsyncCommand.execute_scalar, command, params, connection=connection)

    async def query(
        self,
        command: str,
        params: QueryParams = None,
        *,
        shape: Optional[Type[Any]] = None,
        connection: Any = None,
    ) -> list[Any]:
        records = await self.execute(AsyncCommand.read_records, command, params, connection=connection)
        return project_rows(records, shape)

    async def query_multiple(
        self,
        command: str,
        params: QueryParams = None,
        *,
        table_names: Optional[Sequence[str]] = None,
        connection: Any = None,
    ) -> Tables:
        return await self.execute(
            lambda cmd: cmd.read_tables(table_names),
            command,
            params,
            connection=connection,
        )

    async def query_merged(
        self,
        command: str,
        params: QueryParams = None,
        *,
        strategy: MergeStrategy | str = MergeStrategy.OVERRIDE,
        shape: Optional[Type[Any]] = None,
        connection: Any = None,
    ) -> list[Any]:
        tables = await self.query_multiple(command, params, connection=connection)
        return merge_tables(tables, strategy, shape=shape)

    async def execute_stored_procedure(
        self,
        procedure: str,
        params: QueryParams = None,
        *,
        connection: Any = None,
    ) -> Dict[str, Any]:
        async def _call(cmd: AsyncCommand) -> Dict[str, Any]:
            await cmd.execute_reader()
            return await cmd.outputs()

        return await self.execute(
            _call,
            procedure,
            params,
            kind=CommandKind.STORED_PROCEDURE,
            connection=connection,
        )

    async def execute_in_transaction(
        self,
        transaction: DbTransaction,
        command: str,
        params: QueryParams = None,
    ) -> int:
        return await self.execute_non_query(command, params, connection=transaction)

    def transaction(
        self,
        name: Optional[str] = None,
        *,
        auto_commit: bool = False,
        connection_string: Optional[str] = None,
        timeout_seconds: Optional[int] = DEFAULT_TIMEOUT_SECONDS,
    ) -> AsyncTransactionScope:
        """Return an unopened scope; use `async with` or `await scope.open()`."""

        return AsyncTransactionScope(
            self,
            name,
            auto_commit=auto_commit,
            connection_string=connection_string,
            timeout_seconds=timeout_seconds,
        )
