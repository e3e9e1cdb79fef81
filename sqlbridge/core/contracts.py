"""Core port contracts used by adapters and transaction scopes."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Type

from .parameters import ParameterBinding
from .types import QueryParams


class SettingsPort(Protocol):
    """External settings capability: `get(key)` fails when the key is absent."""

    def get(self, key: str) -> str: ...


class DialectPort(Protocol):
    """Dialect behavior required by command compilation and connection setup."""

    name: str
    paramstyle: str

    def placeholder(self, key: str) -> str: ...

    def bind_value(self, value: Any) -> Any: ...

    def compile(self, command: str, bindings: Sequence[ParameterBinding]) -> tuple[str, QueryParams]: ...

    def procedure_call(
        self, procedure: str, bindings: Sequence[ParameterBinding]
    ) -> tuple[str, QueryParams]: ...

    def procedure_outputs(
        self, procedure: str, bindings: Sequence[ParameterBinding]
    ) -> Optional[tuple[str, QueryParams]]: ...

    def begin(self, conn: Any, name: str | None = None) -> Any: ...

    def with_timeout(self, connection_string: str, seconds: int) -> str: ...


class TransactionalDatabasePort(Protocol):
    """Database adapter behavior required by `TransactionScope`."""

    def open_connection(
        self, connection_string: Optional[str] = None, *, timeout_seconds: Optional[int] = None
    ) -> Any: ...

    def close_connection(self, conn: Any) -> None: ...

    def begin_transaction(self, conn: Any, name: Optional[str] = None) -> Any: ...

    def execute_non_query(self, command: str, params: QueryParams = None, *, connection: Any = None) -> int: ...

    def execute_scalar(self, command: str, params: QueryParams = None, *, connection: Any = None) -> Any: ...

    def query(
        self,
        command: str,
        params: QueryParams = None,
        *,
        shape: Optional[Type[Any]] = None,
        connection: Any = None,
    ) -> list[Any]: ...


class AsyncTransactionalDatabasePort(Protocol):
    """Async database adapter behavior required by `AsyncTransactionScope`."""

    async def open_connection(
        self, connection_string: Optional[str] = None, *, timeout_seconds: Optional[int] = None
    ) -> Any: ...

    async def close_connection(self, conn: Any) -> None: ...

    async def begin_transaction(self, conn: Any, name: Optional[str] = None) -> Any: ...

    async def execute_non_query(
        self, command: str, params: QueryParams = None, *, connection: Any = None
    ) -> int: ...

    async def execute_scalar(self, command: str, params: QueryParams = None, *, connection: Any = None) -> Any: ...

    async def query(
        self,
        command: str,
        params: QueryParams = None,
        *,
        shape: Optional[Type[Any]] = None,
        connection: Any = None,
    ) -> list[Any]: ...
