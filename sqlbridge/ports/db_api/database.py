"""DB-API adapter implementation of the command executor."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Type, TypeVar

from ...core.aggregate import MergeStrategy, merge_tables
from ...core.codecs import project_rows
from ...core.contracts import DialectPort, SettingsPort
from ...core.parameters import CommandKind, prepare
from ...core.scripts import ScriptCache, default_script_cache
from ...core.settings import DB_CONNECTION_STRING_KEY, Settings
from ...core.transaction import DEFAULT_TIMEOUT_SECONDS, TransactionScope
from ...core.types import QueryParams, Tables
from .command import Command
from .context import (
    ConnectionKind,
    DbTransaction,
    ExecutionContext,
    classify_connection,
    close_connection,
    needs_open,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Database:
    """Run commands against default, string-named, borrowed, or transactional connections."""

    def __init__(
        self,
        connect: Callable[[str], Any],
        dialect: DialectPort,
        *,
        settings: Optional[SettingsPort] = None,
        scripts: Optional[ScriptCache] = None,
        connection_string_key: str = DB_CONNECTION_STRING_KEY,
    ):
        """Create database adapter.

        Args:
            connect: Driver function opening a connection from a connection
                string (`sqlite3.connect`, `psycopg.connect`, ...).
            dialect: Concrete SQL dialect instance.
            settings: Provider of the default connection string; loaded with
                `Settings.from_environment()` on first use when omitted.
            scripts: Script cache for `*.sql` references; the process-wide
                cache when omitted.
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

    def open_connection(
        self,
        connection_string: Optional[str] = None,
        *,
        timeout_seconds: Optional[int] = None,
    ) -> Any:
        """Open a new connection owned by the caller."""

        text = connection_string if connection_string is not None else self.default_connection_string()
        if timeout_seconds is not None:
            text = self.dialect.with_timeout(text, timeout_seconds)
        conn = self._connect(text)
        logger.debug("Opened %s connection", self.dialect.name)
        return conn

    def close_connection(self, conn: Any) -> None:
        close_connection(conn)
        logger.debug("Closed %s connection", self.dialect.name)

    def begin_transaction(self, conn: Any, name: Optional[str] = None) -> DbTransaction:
        """Begin a transaction on a borrowed connection."""

        self.dialect.begin(conn, name)
        return DbTransaction(conn, name)

    @contextlib.contextmanager
    def _context(self, connection: Any) -> Iterator[ExecutionContext]:
        kind = classify_connection(connection)

        if kind is ConnectionKind.TRANSACTION:
            connection.ensure_active()
            yield ExecutionContext(connection.connection, connection, owned=False, kind=kind)
            return

        if kind is ConnectionKind.CONNECTION:
            if needs_open(connection):
                connection.open()
            yield ExecutionContext(connection, None, owned=False, kind=kind)
            return

        conn = self.open_connection(connection)
        try:
            yield ExecutionContext(conn, None, owned=True, kind=kind)
            conn.commit()
        finally:
            self.close_connection(conn)

    def execute(
        self,
        operation: Callable[[Command], T],
        command: str,
        params: QueryParams = None,
        *,
        kind: CommandKind = CommandKind.TEXT,
        connection: Any = None,
    ) -> T:
        """Run `operation` with a live command and return its result.

        `command` is SQL text or a `*.sql` reference. Every other call of this
        class is an `operation` over this one method.
        """

        text = self.scripts.resolve(command)
        text, bindings = prepare(text, params)
        with self._context(connection) as context:
            cmd = Command(context, self.dialect, text, bindings, kind)
            try:
                return operation(cmd)
            finally:
                cmd.close()

    def execute_non_query(self, command: str, params: QueryParams = None, *, connection: Any = None) -> int:
        """Execute a statement and return the affected row count."""

        return self.execute(Command.execute_non_query, command, params, connection=connection)

    def execute_scalar(self, command: str, params: QueryParams = None, *, connection: Any = None) -> Any:
        """Return the first column of the first row."""

        return self.execute(Command.execute_scalar, command, params, connection=connection)

    def query(
        self,
        command: str,
        params: QueryParams = None,
        *,
        shape: Optional[Type[Any]] = None,
        connection: Any = None,
    ) -> list[Any]:
        """Return the first result set as records or `shape` instances."""

        records = self.execute(Command.read_records, command, params, connection=connection)
        return project_rows(records, shape)

    def query_multiple(
        self,
        command: str,
        params: QueryParams = None,
        *,
        table_names: Optional[Sequence[str]] = None,
        connection: Any = None,
    ) -> Tables:
        """Return every result set keyed by `table_names` or `table<n>`."""

        return self.execute(
            lambda cmd: cmd.read_tables(table_names),
            command,
            params,
            connection=connection,
        )

    def query_merged(
        self,
        command: str,
        params: QueryParams = None,
        *,
        strategy: MergeStrategy | str = MergeStrategy.OVERRIDE,
        shape: Optional[Type[Any]] = None,
        connection: Any = None,
    ) -> list[Any]:
        """Merge every result set row by row under `strategy`."""

        tables = self.query_multiple(command, params, connection=connection)
        return merge_tables(tables, strategy, shape=shape)

    def execute_stored_procedure(
        self,
        procedure: str,
        params: QueryParams = None,
        *,
        connection: Any = None,
    ) -> Dict[str, Any]:
        """Call a stored procedure and return its output parameter values."""

        def _call(cmd: Command) -> Dict[str, Any]:
            cmd.execute_reader()
            return cmd.outputs()

        return self.execute(
            _call,
            procedure,
            params,
            kind=CommandKind.STORED_PROCEDURE,
            connection=connection,
        )

    def execute_in_transaction(self, transaction: DbTransaction, command: str, params: QueryParams = None) -> int:
        """Execute a statement inside an existing transaction."""

        return self.execute_non_query(command, params, connection=transaction)

    def transaction(
        self,
        name: Optional[str] = None,
        *,
        auto_commit: bool = False,
        connection_string: Optional[str] = None,
        timeout_seconds: Optional[int] = DEFAULT_TIMEOUT_SECONDS,
    ) -> TransactionScope:
        """Open a connection and begin a transaction scope on it."""

        return TransactionScope(
            self,
            name,
            auto_commit=auto_commit,
            connection_string=connection_string,
            timeout_seconds=timeout_seconds,
        )
