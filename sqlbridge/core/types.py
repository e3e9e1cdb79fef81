"""Shared core type aliases used across contracts, executors, and ports."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

NamedParams = Mapping[str, Any]
PositionalParams = Sequence[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

RowMapping = Mapping[str, Any]
Record = Dict[str, Any]
Records = List[Record]
MaybeRecord = Optional[Record]
Tables = Dict[str, Records]
