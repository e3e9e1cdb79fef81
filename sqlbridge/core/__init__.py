"""Public core API for parameters, materialization, aggregation, and diffing."""

from .aggregate import MergeStrategy, merge_tables
from .codecs import project_record, project_rows
from .comparers import DateTimeComparer, EquivalenceRegistry, NumberComparer, default_registry
from .delta import CompositeDelta, Delta
from .diff import DeltaEngine, diff, diff_collections, format_property_table, keyed_records, log_deltas
from .errors import DataAccessError, ErrorKind
from .parameters import (
    SQL_NULL,
    CommandKind,
    Direction,
    ParameterBinding,
    as_bindings,
    find_placeholders,
    normalize,
    prepare,
)
from .scripts import ScriptCache, default_script_cache, resolve_command_text
from .settings import DB_CONNECTION_STRING_KEY, Settings
from .transaction import TransactionScope
from .transaction_async import AsyncTransactionScope
from .values import ValueKind, get_value, value_kind

__all__ = [
    "AsyncTransactionScope",
    "DB_CONNECTION_STRING_KEY",
    "CommandKind",
    "CompositeDelta",
    "DataAccessError",
    "DateTimeComparer",
    "Delta",
    "DeltaEngine",
    "Direction",
    "EquivalenceRegistry",
    "ErrorKind",
    "MergeStrategy",
    "NumberComparer",
    "ParameterBinding",
    "SQL_NULL",
    "ScriptCache",
    "Settings",
    "TransactionScope",
    "ValueKind",
    "as_bindings",
    "default_registry",
    "default_script_cache",
    "diff",
    "diff_collections",
    "find_placeholders",
    "format_property_table",
    "get_value",
    "keyed_records",
    "log_deltas",
    "merge_tables",
    "normalize",
    "prepare",
    "project_record",
    "project_rows",
    "resolve_command_text",
    "value_kind",
]
