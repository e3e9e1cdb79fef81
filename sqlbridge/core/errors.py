"""Error kinds raised by the data access layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers through `DataAccessError.kind`."""

    ARGUMENT_COUNT_MISMATCH = "argument_count_mismatch"
    RESOURCE_NOT_FOUND = "resource_not_found"
    MISSING_SETTING = "missing_setting"
    UNSUPPORTED_CONNECTION_KIND = "unsupported_connection_kind"
    UNSUPPORTED_COMMAND_KIND = "unsupported_command_kind"
    CONFLICTING_COLUMN = "conflicting_column"
    ROW_COUNT_MISMATCH = "row_count_mismatch"
    UNSUPPORTED_KEY_ARITY = "unsupported_key_arity"
    DUPLICATE_KEY = "duplicate_key"
    TYPE_CONVERSION_FAILURE = "type_conversion_failure"


class DataAccessError(ValueError):
    """Validation failure raised before or after talking to the database.

    Callers branch on `kind` rather than on exception subclasses:

        try:
            db.query("SELECT * FROM t WHERE id = @id", [])
        except DataAccessError as exc:
            if exc.kind is ErrorKind.ARGUMENT_COUNT_MISMATCH:
                ...
    """

    def __init__(self, kind: ErrorKind | str, message: str):
        super().__init__(message)
        self.kind = ErrorKind(kind)

    def __repr__(self) -> str:
        return f"DataAccessError({self.kind.value!r}, {str(self)!r})"
