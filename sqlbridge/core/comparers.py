"""Cross-type equivalence comparers used by the delta engine."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, localcontext
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .errors import DataAccessError, ErrorKind
from .values import ValueKind, value_kind

UNIX_EPOCH = datetime(1970, 1, 1)
NULL_DATETIME_VALUE = -62135596800
CONCERNED_DIGITS = 8

Equivalence = Callable[[Any, Any], bool]
KindPair = Tuple[ValueKind, ValueKind]


def from_unix_seconds(seconds: float) -> datetime:
    """Return the naive UTC datetime `seconds` after the Unix epoch."""

    return UNIX_EPOCH + timedelta(seconds=seconds)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class DateTimeComparer:
    """Treat epoch seconds, epoch strings, ISO strings, and datetimes as one kind."""

    def as_datetime(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return _as_naive_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, bool):
            raise DataAccessError(
                ErrorKind.TYPE_CONVERSION_FAILURE,
                f"Cannot convert {value!r} to datetime.",
            )
        if isinstance(value, int):
            return from_unix_seconds(value)
        if isinstance(value, str):
            return self._parse(value)
        raise DataAccessError(
            ErrorKind.TYPE_CONVERSION_FAILURE,
            f"Cannot convert {type(value).__name__} value {value!r} to datetime.",
        )

    def _parse(self, text: str) -> datetime:
        stripped = text.strip()
        try:
            return from_unix_seconds(int(stripped))
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(stripped.replace("Z", "+00:00"))
        except ValueError as exc:
            raise DataAccessError(
                ErrorKind.TYPE_CONVERSION_FAILURE,
                f"Cannot convert invalid value {text!r} to datetime.",
            ) from exc
        return _as_naive_utc(parsed)

    def equals(self, left: Any, right: Any) -> bool:
        if left is None and right is None:
            return True
        if left is None or right is None:
            return False
        return self.as_datetime(left) == self.as_datetime(right)

    __call__ = equals


class NumberComparer:
    """Compare numerics and numeric strings after rounding to `digits` places."""

    def __init__(self, digits: int = CONCERNED_DIGITS):
        self.digits = digits
        self._quantum = Decimal(1).scaleb(-digits)

    def as_decimal(self, value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return self._round(value, value)
        text = str(value).strip()
        for candidate in (text, text.replace(",", "").replace("$", "")):
            try:
                parsed = Decimal(candidate)
            except InvalidOperation:
                continue
            return self._round(parsed, value)
        raise DataAccessError(
            ErrorKind.TYPE_CONVERSION_FAILURE,
            f"Cannot parse {value!r} to Decimal.",
        )

    def _round(self, number: Decimal, original: Any) -> Decimal:
        if not number.is_finite():
            return number
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, number.adjusted() + self.digits + 2)
            try:
                return number.quantize(self._quantum, rounding=ROUND_HALF_EVEN)
            except InvalidOperation as exc:
                raise DataAccessError(
                    ErrorKind.TYPE_CONVERSION_FAILURE,
                    f"Cannot round {original!r} to {self.digits} digits.",
                ) from exc

    def equals(self, left: Any, right: Any) -> bool:
        if left is None and right is None:
            return True
        if left is None or right is None:
            return False
        return self.as_decimal(left) == self.as_decimal(right)

    __call__ = equals


class EquivalenceRegistry:
    """Comparers keyed by the ordered pair of value kinds, looked up in both orders."""

    def __init__(self, comparers: Optional[Mapping[KindPair, Equivalence]] = None):
        self._comparers: Dict[KindPair, Equivalence] = dict(comparers or {})

    def register(self, left: ValueKind, right: ValueKind, comparer: Equivalence) -> None:
        self._comparers[(ValueKind(left), ValueKind(right))] = comparer

    def unregister(self, left: ValueKind, right: ValueKind) -> None:
        self._comparers.pop((ValueKind(left), ValueKind(right)), None)

    def lookup(self, left: ValueKind, right: ValueKind) -> Optional[Equivalence]:
        comparer = self._comparers.get((left, right))
        if comparer is not None:
            return comparer
        reverse = self._comparers.get((right, left))
        if reverse is None:
            return None
        return lambda a, b: reverse(b, a)

    def equivalent(self, left: Any, right: Any) -> bool:
        """Return True only when a registered comparer declares the values equal."""

        comparer = self.lookup(value_kind(left), value_kind(right))
        if comparer is None:
            return False
        return bool(comparer(left, right))

    def copy(self) -> EquivalenceRegistry:
        return EquivalenceRegistry(self._comparers)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return self.lookup(pair[0], pair[1]) is not None

    def __len__(self) -> int:
        return len(self._comparers)


def default_registry() -> EquivalenceRegistry:
    """Build a registry with the date and number comparers installed."""

    dates = DateTimeComparer()
    numbers = NumberComparer()
    registry = EquivalenceRegistry()
    for pair in (
        (ValueKind.INTEGER, ValueKind.DATETIME),
        (ValueKind.STRING, ValueKind.DATETIME),
        (ValueKind.DATE, ValueKind.DATETIME),
        (ValueKind.INTEGER, ValueKind.DATE),
        (ValueKind.STRING, ValueKind.DATE),
    ):
        registry.register(*pair, dates)
    for pair in (
        (ValueKind.FLOAT, ValueKind.STRING),
        (ValueKind.DECIMAL, ValueKind.STRING),
        (ValueKind.FLOAT, ValueKind.FLOAT),
        (ValueKind.DECIMAL, ValueKind.DECIMAL),
        (ValueKind.FLOAT, ValueKind.DECIMAL),
    ):
        registry.register(*pair, numbers)
    return registry
