"""Recursive structural diff between loosely-typed records and collections."""

from __future__ import annotations

import logging
from typing import (
    Any,
    Dict,
    FrozenSet,
    Hashable,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .comparers import NULL_DATETIME_VALUE, EquivalenceRegistry, default_registry
from .delta import CompositeDelta, Delta, DeltaNode
from .errors import DataAccessError, ErrorKind
from .values import as_record, get_value, is_record, is_sequence

logger = logging.getLogger(__name__)

MAX_KEY_FIELDS = 4

# `0` also matches `0.0` and `Decimal(0)` by hash equality.
ALWAYS_EQUAL_PAIRS: FrozenSet[Tuple[Any, Any]] = frozenset(
    {
        (None, None),
        (None, ""),
        (None, NULL_DATETIME_VALUE),
        (None, 0),
    }
)

FieldDeltas = Dict[str, DeltaNode]
CollectionDeltas = Dict[Hashable, Tuple[DeltaNode, ...]]


def keyed_records(elements: Iterable[Any], *keys: str) -> Dict[Hashable, Dict[str, Any]]:
    """Index records by position (no keys) or by a 1-4 field composite key.

    Raises:
        DataAccessError: `UNSUPPORTED_KEY_ARITY` for more than four keys,
            `DUPLICATE_KEY` when two elements share a key.
    """

    if len(keys) > MAX_KEY_FIELDS:
        raise DataAccessError(
            ErrorKind.UNSUPPORTED_KEY_ARITY,
            f"Composite keys support at most {MAX_KEY_FIELDS} fields, got {len(keys)}.",
        )

    records = [as_record(element) for element in elements]
    if not keys:
        return {index: record for index, record in enumerate(records)}

    keyed: Dict[Hashable, Dict[str, Any]] = {}
    for record in records:
        if len(keys) == 1:
            key = get_value(record, keys[0])
        else:
            key = tuple(get_value(record, name) for name in keys)
        if key in keyed:
            raise DataAccessError(ErrorKind.DUPLICATE_KEY, f"Duplicate correlation key {key!r}.")
        keyed[key] = record
    return keyed


class DeltaEngine:
    """Compare records field by field with pluggable cross-type equivalence."""

    def __init__(
        self,
        registry: Optional[EquivalenceRegistry] = None,
        *,
        always_equal: FrozenSet[Tuple[Any, Any]] = ALWAYS_EQUAL_PAIRS,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.always_equal = always_equal

    def diff(self, left: Any, right: Any) -> FieldDeltas:
        """Diff two records over the keys present on both sides.

        Keys found on only one side are not reported.
        """

        left_record = as_record(left) or {}
        right_record = as_record(right) or {}

        deltas: FieldDeltas = {}
        for key, left_value in left_record.items():
            if key not in right_record:
                continue
            node = self._compare(key, left_value, right_record[key])
            if node is not None:
                deltas[key] = node
        return deltas

    def diff_collections(self, left: Iterable[Any], right: Iterable[Any], *keys: str) -> CollectionDeltas:
        """Correlate two collections by position or composite key and diff each pair.

        Unmatched elements produce a single missing-counterpart `Delta`.
        """

        left_keyed = keyed_records(left, *keys)
        right_keyed = keyed_records(right, *keys)

        all_deltas: CollectionDeltas = {}
        for key, left_record in left_keyed.items():
            if key not in right_keyed:
                all_deltas[key] = (Delta.missing_right(str(key)),)
                continue
            element_deltas = self.diff(left_record, right_keyed[key])
            if element_deltas:
                all_deltas[key] = tuple(element_deltas.values())

        for key in right_keyed:
            if key not in left_keyed:
                all_deltas[key] = (Delta.missing_left(str(key)),)
        return all_deltas

    def _compare(self, name: str, left: Any, right: Any) -> Optional[DeltaNode]:
        if self._is_always_equal(left, right):
            return None

        if left is None or right is None:
            return Delta.shared(name, left, right)

        if is_record(left) and is_record(right):
            nested = self.diff(left, right)
            return CompositeDelta(nested) if nested else None

        if is_sequence(left) and is_sequence(right):
            nested_items = self._diff_positional(left, right)
            return CompositeDelta(nested_items) if nested_items else None

        if left == right:
            return None
        if str(left).strip() == str(right).strip():
            return None
        if self.registry.equivalent(left, right):
            return None
        return Delta.shared(name, left, right)

    def _diff_positional(self, left: Sequence[Any], right: Sequence[Any]) -> CollectionDeltas:
        deltas: CollectionDeltas = {}
        for index in range(max(len(left), len(right))):
            if index >= len(right):
                deltas[index] = (Delta.missing_right(str(index)),)
                continue
            if index >= len(left):
                deltas[index] = (Delta.missing_left(str(index)),)
                continue

            left_item, right_item = left[index], right[index]
            if is_record(left_item) and is_record(right_item):
                element_deltas = self.diff(left_item, right_item)
                if element_deltas:
                    deltas[index] = tuple(element_deltas.values())
                continue

            node = self._compare(str(index), left_item, right_item)
            if node is not None:
                deltas[index] = (node,)
        return deltas

    def _is_always_equal(self, left: Any, right: Any) -> bool:
        if isinstance(left, bool) or isinstance(right, bool):
            return False
        try:
            return (left, right) in self.always_equal or (right, left) in self.always_equal
        except TypeError:
            # unhashable values never match a sentinel pair
            return False


_default_engine = DeltaEngine()


def diff(left: Any, right: Any, *, registry: Optional[EquivalenceRegistry] = None) -> FieldDeltas:
    """Diff two records with the default engine or a custom registry."""

    engine = _default_engine if registry is None else DeltaEngine(registry)
    return engine.diff(left, right)


def diff_collections(
    left: Iterable[Any],
    right: Iterable[Any],
    *keys: str,
    registry: Optional[EquivalenceRegistry] = None,
) -> CollectionDeltas:
    """Diff two collections with the default engine or a custom registry."""

    engine = _default_engine if registry is None else DeltaEngine(registry)
    return engine.diff_collections(left, right, *keys)


def log_deltas(
    deltas: Mapping[Hashable, Any],
    *,
    log: Optional[logging.Logger] = None,
    level: int = logging.INFO,
) -> None:
    """Write one log line per compared key."""

    target = log or logger
    for key, node in deltas.items():
        if isinstance(node, (Delta, CompositeDelta)):
            target.log(level, "%s: %s", key, node)
            continue
        body = "\n\t".join(str(item) for item in node)
        target.log(level, "For element with keys %s:\n\t%s", key, body)


def format_property_table(properties: Sequence[str], *records: Any) -> str:
    """Render the named properties of several records as an aligned text table."""

    rows = [as_record(record) or {} for record in records]
    builders = ["|" for _ in range(len(rows) + 1)]
    for name in properties:
        column = [name] + [str(get_value(row, name)) for row in rows]
        width = max(len(cell) for cell in column)
        builders = [line + f" {cell:<{width}} |" for line, cell in zip(builders, column)]
    return "\n".join(builders)
