"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...core.errors import DataAccessError, ErrorKind
from ...core.parameters import PLACEHOLDER_PATTERN, SQL_NULL, ParameterBinding, output_bindings
from ...core.types import QueryParams

Statement = Tuple[str, QueryParams]

SQL_SERVER_TYPES: Dict[str, str] = {
    "bigint": "BIGINT",
    "int64": "BIGINT",
    "int": "INT",
    "int32": "INT",
    "smallint": "SMALLINT",
    "int16": "SMALLINT",
    "tinyint": "TINYINT",
    "byte": "TINYINT",
    "bit": "BIT",
    "boolean": "BIT",
    "decimal": "DECIMAL(38, 10)",
    "money": "MONEY",
    "smallmoney": "SMALLMONEY",
    "float": "FLOAT",
    "double": "FLOAT",
    "real": "REAL",
    "single": "REAL",
    "char": "CHAR(1)",
    "nchar": "NCHAR(1)",
    "varchar": "VARCHAR(MAX)",
    "nvarchar": "NVARCHAR(MAX)",
    "string": "NVARCHAR(MAX)",
    "text": "VARCHAR(MAX)",
    "ntext": "NVARCHAR(MAX)",
    "xml": "XML",
    "date": "DATE",
    "time": "TIME",
    "datetime": "DATETIME",
    "smalldatetime": "SMALLDATETIME",
    "datetime2": "DATETIME2",
    "datetimeoffset": "DATETIMEOFFSET",
    "uniqueidentifier": "UNIQUEIDENTIFIER",
    "guid": "UNIQUEIDENTIFIER",
    "binary": "VARBINARY(MAX)",
    "varbinary": "VARBINARY(MAX)",
    "image": "VARBINARY(MAX)",
    "variant": "SQL_VARIANT",
}


class Dialect:
    """Base dialect that defines placeholder and procedure-call behavior."""

    name: str = "generic"
    paramstyle: str = "named"

    def placeholder(self, key: str) -> str:
        """Return parameter placeholder for current param style."""

        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        if self.paramstyle == "pyformat":
            return f"%({key})s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    @property
    def positional(self) -> bool:
        return self.paramstyle in ("qmark", "format")

    def bind_value(self, value: Any) -> Any:
        return None if value is SQL_NULL else value

    def compile(self, command: str, bindings: Sequence[ParameterBinding]) -> Statement:
        """Rewrite `@name` placeholders of known bindings into this paramstyle.

        Placeholders without a binding (e.g. variables declared inside the
        script) are left untouched. `%` is doubled for the format styles.
        """

        if not bindings:
            return command, None

        by_name = {binding.name.lower(): binding for binding in bindings}
        escape = self.paramstyle in ("format", "pyformat")
        pieces: List[str] = []
        positional: List[Any] = []
        named: Dict[str, Any] = {}
        last = 0
        for match in PLACEHOLDER_PATTERN.finditer(command):
            binding = by_name.get(match.group(1).lower())
            if binding is None:
                continue
            pieces.append(self._literal(command[last:match.start()], escape))
            pieces.append(self.placeholder(binding.name))
            value = self.bind_value(binding.value)
            if self.positional:
                positional.append(value)
            else:
                named[binding.name] = value
            last = match.end()
        pieces.append(self._literal(command[last:], escape))

        sql = "".join(pieces)
        return sql, positional if self.positional else named

    @staticmethod
    def _literal(text: str, escape: bool) -> str:
        return text.replace("%", "%%") if escape else text

    def procedure_call(self, procedure: str, bindings: Sequence[ParameterBinding]) -> Statement:
        """Return the statement that calls `procedure` when `callproc` is unavailable."""

        placeholders = ", ".join(self.placeholder(binding.name) for binding in bindings)
        sql = f"CALL {procedure}({placeholders})"
        return sql, self._params(bindings)

    def procedure_outputs(self, procedure: str, bindings: Sequence[ParameterBinding]) -> Optional[Statement]:
        """Return the query reading output values back after `callproc`, if the driver needs one."""

        return None

    def _params(self, bindings: Sequence[ParameterBinding]) -> QueryParams:
        if not bindings:
            return None
        if self.positional:
            return [self.bind_value(binding.value) for binding in bindings]
        return {binding.name: self.bind_value(binding.value) for binding in bindings}

    def begin(self, conn: Any, name: str | None = None) -> Any:
        """Start a transaction on `conn`; DB-API drivers begin implicitly.

        Returns whatever the driver call returned so async callers can await it.
        """

        return None

    def with_timeout(self, connection_string: str, seconds: int) -> str:
        """Return `connection_string` carrying a connect timeout of `seconds`."""

        return connection_string


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` parameters, no stored procedures)."""

    name = "sqlite"
    paramstyle = "named"

    def procedure_call(self, procedure: str, bindings: Sequence[ParameterBinding]) -> Statement:
        raise DataAccessError(
            ErrorKind.UNSUPPORTED_COMMAND_KIND,
            f"SQLite has no stored procedures; cannot call {procedure!r}.",
        )

    def begin(self, conn: Any, name: str | None = None) -> Any:
        if getattr(conn, "isolation_level", None) is not None:
            return None
        if bool(getattr(conn, "in_transaction", False)):
            return None
        return conn.execute("BEGIN")


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%(name)s` parameters, libpq connection strings)."""

    name = "postgres"
    paramstyle = "pyformat"

    _timeout = re.compile(r"connect_timeout=\d+", re.IGNORECASE)

    def with_timeout(self, connection_string: str, seconds: int) -> str:
        setting = f"connect_timeout={int(seconds)}"
        if self._timeout.search(connection_string):
            return self._timeout.sub(setting, connection_string, count=1)
        if "://" in connection_string:
            separator = "&" if "?" in connection_string else "?"
            return f"{connection_string}{separator}{setting}"
        return f"{connection_string} {setting}".strip()


class MySQLDialect(Dialect):
    """MySQL dialect (`%s` positional parameters)."""

    name = "mysql"
    paramstyle = "format"

    def procedure_outputs(self, procedure: str, bindings: Sequence[ParameterBinding]) -> Optional[Statement]:
        """Select the `@_<procedure>_<position>` variables `callproc` leaves OUT values in."""

        columns = [
            f"@_{procedure}_{index} AS `{binding.name}`"
            for index, binding in enumerate(bindings)
            if binding.is_output
        ]
        if not columns:
            return None
        return f"SELECT {', '.join(columns)}", None


class SQLServerDialect(Dialect):
    """SQL Server dialect for ODBC drivers (`?` parameters, `EXEC` calls)."""

    name = "sqlserver"
    paramstyle = "qmark"

    _timeout = re.compile(r"Connection Timeout\s*=\s*\d+", re.IGNORECASE)

    def procedure_call(self, procedure: str, bindings: Sequence[ParameterBinding]) -> Statement:
        """Build an `EXEC` call; output bindings become declared `OUTPUT` variables.

        With outputs the call runs as one batch that declares a variable per
        output binding, passes it with `OUTPUT`, and selects the variables
        back as the last result set.
        """

        outputs = output_bindings(bindings)
        if not outputs:
            arguments = ", ".join(f"{binding.placeholder} = ?" for binding in bindings)
            return f"EXEC {procedure} {arguments}".rstrip(), self._params(bindings)

        declarations = " ".join(
            f"DECLARE {binding.placeholder} {self.sql_type(binding.type_tag)};" for binding in outputs
        )
        arguments = ", ".join(
            f"{binding.placeholder} = {binding.placeholder} OUTPUT" if binding.is_output else f"{binding.placeholder} = ?"
            for binding in bindings
        )
        selected = ", ".join(f"{binding.placeholder} AS [{binding.name}]" for binding in outputs)
        sql = f"SET NOCOUNT ON; {declarations} EXEC {procedure} {arguments}; SELECT {selected};"
        inputs = [binding for binding in bindings if not binding.is_output]
        return sql, self._params(inputs)

    def sql_type(self, type_tag: Optional[str]) -> str:
        """Map an output type tag (a `SqlDbType` or CLR type name) to a T-SQL type."""

        return SQL_SERVER_TYPES.get((type_tag or "").lower(), "SQL_VARIANT")

    def with_timeout(self, connection_string: str, seconds: int) -> str:
        setting = f"Connection Timeout={int(seconds)}"
        if self._timeout.search(connection_string):
            return self._timeout.sub(setting, connection_string, count=1)
        head, separator, tail = connection_string.rpartition(";")
        return f"{head}{separator}{setting};{tail}"
