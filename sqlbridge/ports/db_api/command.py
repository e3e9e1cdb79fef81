"""Live command handles passed to execute continuations."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ...core._async_utils import _maybe_await, _maybe_call
from ...core.contracts import DialectPort
from ...core.materialize import (
    column_names,
    first_value,
    outputs_by_name,
    outputs_by_position,
    row_to_record,
    rows_to_records,
    table_name,
)
from ...core.parameters import CommandKind, ParameterBinding, output_bindings
from ...core.types import QueryParams, Record, Records, Tables
from .context import ExecutionContext


class _CommandBase:
    """Command text, kind, and bindings bound to one execution context.

    Output values of a stored procedure are collected by `outputs()`. Drivers
    deliver them after the procedure's own result sets, either as the last
    result set of the call (the statement fallback) or through a follow-up
    query the dialect supplies after `callproc`.
    """

    def __init__(
        self,
        context: ExecutionContext,
        dialect: DialectPort,
        text: str,
        bindings: Sequence[ParameterBinding] = (),
        kind: CommandKind = CommandKind.TEXT,
    ):
        self.context = context
        self.dialect = dialect
        self.text = text
        self.bindings: List[ParameterBinding] = list(bindings)
        self.kind = CommandKind(kind)
        self.cursor: Any = None
        self._outputs: Dict[str, Any] = {}
        self._readback: Optional[tuple[str, QueryParams]] = None
        self._output_row_pending = False

    @property
    def connection(self) -> Any:
        return self.context.connection

    @property
    def transaction(self) -> Any:
        return self.context.transaction

    def _reset_outputs(self) -> None:
        self._outputs = {}
        self._readback = None
        self._output_row_pending = False

    def _output_values(self) -> Dict[str, Any]:
        if not self._outputs:
            return {binding.name: None for binding in output_bindings(self.bindings)}
        return dict(self._outputs)

    def _merge_readback(self, record: Optional[Record]) -> None:
        fetched = outputs_by_name(self.bindings, record)
        self._outputs = {
            name: fetched.get(name) if value is None else value
            for name, value in self._outputs.items()
        }

    def _statement(self) -> tuple[str, QueryParams]:
        if self.kind is CommandKind.STORED_PROCEDURE:
            return self.dialect.procedure_call(self.text, self.bindings)
        return self.dialect.compile(self.text, self.bindings)

    def _procedure_arguments(self) -> List[Any]:
        return [self.dialect.bind_value(binding.value) for binding in self.bindings]

    def _uses_callproc(self, cursor: Any) -> bool:
        return self.kind is CommandKind.STORED_PROCEDURE and callable(getattr(cursor, "callproc", None))

    def _after_callproc(self, result: Optional[Sequence[Any]]) -> None:
        self._outputs = outputs_by_position(self.bindings, result)
        if output_bindings(self.bindings):
            self._readback = self.dialect.procedure_outputs(self.text, self.bindings)

    def _after_statement(self) -> None:
        self._output_row_pending = self.kind is CommandKind.STORED_PROCEDURE and bool(output_bindings(self.bindings))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, text={self.text[:50]!r})"


def _execute(cursor: Any, sql: str, params: QueryParams) -> Any:
    if params is None:
        return cursor.execute(sql)
    return cursor.execute(sql, params)


def _last_record(cursor: Any) -> Optional[Record]:
    """Walk the remaining result sets and return the first row of the last non-empty one."""

    record: Optional[Record] = None
    while True:
        description = getattr(cursor, "description", None)
        if description:
            row = cursor.fetchone()
            if row is not None:
                record = row_to_record(column_names(description), row)
        nextset = getattr(cursor, "nextset", None)
        if not callable(nextset) or not nextset():
            return record


async def _alast_record(cursor: Any) -> Optional[Record]:
    record: Optional[Record] = None
    while True:
        description = getattr(cursor, "description", None)
        if description:
            row = await _maybe_await(cursor.fetchone())
            if row is not None:
                record = row_to_record(column_names(description), row)
        if not await _maybe_call(cursor, "nextset"):
            return record


class Command(_CommandBase):
    """Blocking command handle over a DB-API cursor."""

    def execute_reader(self) -> Any:
        """Run the command and return the live cursor."""

        self.close()
        cursor = self.connection.cursor()
        self.cursor = cursor
        self._reset_outputs()
        if self._uses_callproc(cursor):
            self._after_callproc(cursor.callproc(self.text, self._procedure_arguments()))
            return cursor

        sql, params = self._statement()
        _execute(cursor, sql, params)
        self._after_statement()
        return cursor

    def outputs(self) -> Dict[str, Any]:
        """Values of the output bindings after the last execution.

        Reading them consumes whatever result sets of the call are left.
        """

        if self._output_row_pending:
            self._output_row_pending = False
            self._outputs = outputs_by_name(self.bindings, _last_record(self.cursor))
        if self._readback is not None:
            sql, params = self._readback
            self._readback = None
            cursor = self.connection.cursor()
            try:
                _execute(cursor, sql, params)
                self._merge_readback(_last_record(cursor))
            finally:
                cursor.close()
        return self._output_values()

    def execute_non_query(self) -> int:
        """Run the command and return the affected row count (`-1` if unknown)."""

        cursor = self.execute_reader()
        rowcount = getattr(cursor, "rowcount", -1)
        return -1 if rowcount is None else rowcount

    def execute_scalar(self) -> Any:
        """Run the command and return the first column of the first row."""

        cursor = self.execute_reader()
        if not getattr(cursor, "description", None):
            return None
        return first_value(cursor.fetchone())

    def read_records(self) -> Records:
        """Run the command and drain the first result set."""

        cursor = self.execute_reader()
        return self._drain(cursor)

    def read_tables(self, table_names: Optional[Sequence[str]] = None) -> Tables:
        """Run the command and drain every result set into named tables."""

        cursor = self.execute_reader()
        tables: Tables = {}
        index = 0
        while True:
            tables[table_name(index, table_names)] = self._drain(cursor)
            nextset = getattr(cursor, "nextset", None)
            if not callable(nextset) or not nextset():
                return tables
            index += 1

    def _drain(self, cursor: Any) -> Records:
        description = getattr(cursor, "description", None)
        if not description:
            return []
        return rows_to_records(description, cursor.fetchall())

    def close(self) -> None:
        cursor, self.cursor = self.cursor, None
        close = getattr(cursor, "close", None)
        if callable(close):
            close()


class AsyncCommand(_CommandBase):
    """Async command handle; sync DB-API cursors are accepted as well."""

    async def execute_reader(self) -> Any:
        """Run the command and return the live cursor."""

        await self.close()
        cursor = await _maybe_await(self.connection.cursor())
        self.cursor = cursor
        self._reset_outputs()
        if self._uses_callproc(cursor):
            self._after_callproc(await _maybe_await(cursor.callproc(self.text, self._procedure_arguments())))
            return cursor

        sql, params = self._statement()
        if params is None:
            await _maybe_await(cursor.execute(sql))
        else:
            await _maybe_await(cursor.execute(sql, params))
        self._after_statement()
        return cursor

    async def outputs(self) -> Dict[str, Any]:
        if self._output_row_pending:
            self._output_row_pending = False
            self._outputs = outputs_by_name(self.bindings, await _alast_record(self.cursor))
        if self._readback is not None:
            sql, params = self._readback
            self._readback = None
            cursor = await _maybe_await(self.connection.cursor())
            try:
                if params is None:
                    await _maybe_await(cursor.execute(sql))
                else:
                    await _maybe_await(cursor.execute(sql, params))
                self._merge_readback(await _alast_record(cursor))
            finally:
                await _maybe_call(cursor, "close")
        return self._output_values()

    async def execute_non_query(self) -> int:
        cursor = await self.execute_reader()
        rowcount = getattr(cursor, "rowcount", -1)
        return -1 if rowcount is None else rowcount

    async def execute_scalar(self) -> Any:
        cursor = await self.execute_reader()
        if not getattr(cursor, "description", None):
            return None
        return first_value(await _maybe_await(cursor.fetchone()))

    async def read_records(self) -> Records:
        cursor = await self.execute_reader()
        return await self._drain(cursor)

    async def read_tables(self, table_names: Optional[Sequence[str]] = None) -> Tables:
        cursor = await self.execute_reader()
        tables: Tables = {}
        index = 0
        while True:
            tables[table_name(index, table_names)] = await self._drain(cursor)
            if not await _maybe_call(cursor, "nextset"):
                return tables
            index += 1

    async def _drain(self, cursor: Any) -> Records:
        description = getattr(cursor, "description", None)
        if not description:
            return []
        return rows_to_records(description, await _maybe_await(cursor.fetchall()))

    async def close(self) -> None:
        cursor, self.cursor = self.cursor, None
        await _maybe_call(cursor, "close")
