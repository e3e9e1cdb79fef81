"""Difference value types produced by the delta engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterator, Mapping, Optional, Sequence, Tuple, Union


def is_different(left: Any, right: Any, comparer: Optional[Callable[[Any, Any], bool]] = None) -> bool:
    """Return whether two values differ, optionally under a custom equality."""

    if comparer is not None:
        return not comparer(left, right)
    if left is None and right is None:
        return False
    if left is None or right is None:
        return True
    return bool(left != right)


@dataclass(frozen=True)
class Delta:
    """One reported difference between two compared values.

    `left_name=None` means the value is missing on the left side and
    `right_name=None` means it is missing on the right side; otherwise the
    two values must differ under plain `!=`. Equivalence comparers are not
    consulted here, so values the delta engine treats as equal (an epoch
    string and the matching datetime) can still form a `Delta`; the engine
    only builds one after its own comparison found a difference.
    """

    left_name: Optional[str]
    right_name: Optional[str]
    left_value: Any = None
    right_value: Any = None

    def __post_init__(self) -> None:
        if self.left_name is None and self.right_name is None:
            raise ValueError("Delta needs at least one side name.")
        if self.is_missing_left or self.is_missing_right:
            return
        if not is_different(self.left_value, self.right_value):
            raise ValueError(
                f"Cannot create Delta for {self.left_name!r}: "
                f"{self.left_value!r} and {self.right_value!r} are equal."
            )

    @classmethod
    def between(cls, left_name: str, right_name: str, left_value: Any, right_value: Any) -> Delta:
        return cls(left_name, right_name, left_value, right_value)

    @classmethod
    def shared(cls, name: str, left_value: Any, right_value: Any) -> Delta:
        return cls(name, name, left_value, right_value)

    @classmethod
    def missing_left(cls, right_name: str) -> Delta:
        return cls(None, right_name)

    @classmethod
    def missing_right(cls, left_name: str) -> Delta:
        return cls(left_name, None)

    @property
    def is_missing_left(self) -> bool:
        return self.left_name is None

    @property
    def is_missing_right(self) -> bool:
        return self.right_name is None

    def has_difference(self) -> bool:
        if self.is_missing_left or self.is_missing_right:
            return True
        return is_different(self.left_value, self.right_value)

    def __str__(self) -> str:
        if self.left_name is None:
            return f"Missing Left Value: {self.right_name!r}"
        if self.right_name is None:
            return f"Missing Right Value: {self.left_name!r}"
        left_type = type(self.left_value).__name__
        right_type = type(self.right_value).__name__
        if self.left_name == self.right_name:
            return (
                f"{self.left_name!r}: LEFT value {self.left_value!r} of {left_type} "
                f"!= RIGHT value {self.right_value!r} of {right_type}"
            )
        return (
            f"LEFT {self.left_name!r} value {self.left_value!r} of {left_type} "
            f"!= {self.right_value!r} of {right_type} of {self.right_name!r} RIGHT"
        )


DeltaNode = Union[Delta, "CompositeDelta"]


class CompositeDelta(Mapping[Hashable, Tuple[DeltaNode, ...]]):
    """Nested differences keyed by field name or correlation key.

    Built either from a field diff (`{name: node}`) or from a collection
    diff (`{key: (node, ...)}`); values are always stored as tuples.
    """

    def __init__(self, deltas: Mapping[Hashable, Union[DeltaNode, Sequence[DeltaNode]]]):
        if deltas is None:
            raise ValueError("CompositeDelta requires a mapping of deltas.")
        self._deltas: Dict[Hashable, Tuple[DeltaNode, ...]] = {}
        for key, value in deltas.items():
            if isinstance(value, (Delta, CompositeDelta)):
                self._deltas[key] = (value,)
            else:
                self._deltas[key] = tuple(value)

    def __getitem__(self, key: Hashable) -> Tuple[DeltaNode, ...]:
        return self._deltas[key]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._deltas)

    def __len__(self) -> int:
        return len(self._deltas)

    def has_difference(self) -> bool:
        return len(self._deltas) > 0

    def __repr__(self) -> str:
        return f"CompositeDelta({self._deltas!r})"

    def __str__(self) -> str:
        lines = []
        for key, nodes in self._deltas.items():
            body = "\n\t".join(str(node) for node in nodes)
            lines.append(f"{key}:\n\t{body}")
        return "\n".join(lines)
