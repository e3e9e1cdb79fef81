"""Parameter bindings built from positional or named call arguments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import DataAccessError, ErrorKind
from .types import QueryParams

PARAMETER_SIGIL = "@"
OUTPUT_PARAMETER_PREFIX = "-"
PLACEHOLDER_PATTERN = re.compile(r"(?<![@\w])@(\w+)")


class Direction(str, Enum):
    """Parameter direction."""

    IN = "in"
    OUT = "out"


class CommandKind(str, Enum):
    """How command text is interpreted by the executor."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


class _SqlNull:
    """Explicit SQL NULL marker bound in place of `None` positional arguments."""

    _instance: Optional[_SqlNull] = None

    def __new__(cls) -> _SqlNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "SQL_NULL"


SQL_NULL = _SqlNull()


@dataclass(frozen=True)
class ParameterBinding:
    """One named value bound to a command placeholder.

    `name` is the bare identifier; `placeholder` renders it with the sigil.
    Output bindings carry a `type_tag` parsed from their declared value.
    """

    name: str
    value: Any = None
    direction: Direction = Direction.IN
    type_tag: Optional[str] = None

    @property
    def placeholder(self) -> str:
        return f"{PARAMETER_SIGIL}{self.name}"

    @property
    def is_output(self) -> bool:
        return self.direction is Direction.OUT


def find_placeholders(command: str) -> List[str]:
    """Return distinct placeholder names in first-occurrence order.

    Names are compared case-insensitively; the spelling of the first
    occurrence wins.
    """

    seen: set[str] = set()
    names: List[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(command):
        name = match.group(1)
        lowered = name.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        names.append(name)
    return names


def normalize(command: str, args: Sequence[Any]) -> Tuple[str, List[ParameterBinding]]:
    """Bind positional arguments to the distinct placeholders of `command`.

    List or tuple arguments expand to one binding per element named
    `<name><index>`, and every occurrence of the original placeholder is
    rewritten to the comma-joined expanded placeholders. The rewrite is a
    literal substring substitution, so a placeholder whose name is a prefix
    of another (`@id` vs `@identifier`) is rewritten inside the longer one
    as well.

    Raises:
        DataAccessError: `ARGUMENT_COUNT_MISMATCH` when the distinct
            placeholder count differs from `len(args)`.
    """

    names = find_placeholders(command)
    if not names:
        if args:
            raise DataAccessError(
                ErrorKind.ARGUMENT_COUNT_MISMATCH,
                f"{len(args)} arguments provided when command has no parameters:\n{command}",
            )
        return command, []

    if len(names) != len(args):
        raise DataAccessError(
            ErrorKind.ARGUMENT_COUNT_MISMATCH,
            f"There are {len(names)} distinct parameters, but {len(args)} arguments for: "
            + ", ".join(PARAMETER_SIGIL + name for name in names),
        )

    bindings: List[ParameterBinding] = []
    replacements: Dict[str, str] = {}
    for name, value in zip(names, args):
        if isinstance(value, (list, tuple)):
            expanded = [ParameterBinding(f"{name}{index}", item) for index, item in enumerate(value)]
            bindings.extend(expanded)
            replacements[PARAMETER_SIGIL + name] = ", ".join(b.placeholder for b in expanded)
        else:
            bindings.append(ParameterBinding(name, SQL_NULL if value is None else value))

    for token, replacement in replacements.items():
        command = re.sub(
            re.escape(token),
            lambda _match, text=replacement: text,
            command,
            flags=re.IGNORECASE,
        )
    return command, bindings


def as_bindings(arguments: Mapping[str, Any]) -> List[ParameterBinding]:
    """Convert a name/value mapping to bindings.

    Keys shaped `-@name` declare output parameters; their value is a string
    `"<TypeTag>_<anything>"` whose prefix becomes the binding's `type_tag`.
    Every other key is bound as an input, with or without the leading sigil.
    """

    bindings: List[ParameterBinding] = []
    output_marker = OUTPUT_PARAMETER_PREFIX + PARAMETER_SIGIL
    for key, value in arguments.items():
        if key.startswith(output_marker):
            type_tag = str(value).partition("_")[0]
            bindings.append(
                ParameterBinding(
                    key[len(output_marker):],
                    None,
                    direction=Direction.OUT,
                    type_tag=type_tag,
                )
            )
            continue
        name = key[len(PARAMETER_SIGIL):] if key.startswith(PARAMETER_SIGIL) else key
        bindings.append(ParameterBinding(name, value))
    return bindings


def prepare(command: str, params: QueryParams = None) -> Tuple[str, List[ParameterBinding]]:
    """Build bindings from `None`, a mapping, prebuilt bindings, or positional args."""

    if params is None:
        return normalize(command, ())
    if isinstance(params, Mapping):
        return command, as_bindings(params)
    if isinstance(params, (str, bytes)):
        raise TypeError("params must be a mapping or a sequence of positional arguments, not a string.")
    if isinstance(params, Sequence):
        if params and all(isinstance(item, ParameterBinding) for item in params):
            return command, list(params)
        return normalize(command, params)
    raise TypeError(f"Unsupported params type: {type(params).__name__}")


def output_bindings(bindings: Sequence[ParameterBinding]) -> List[ParameterBinding]:
    """Return only the output bindings, preserving order."""

    return [binding for binding in bindings if binding.is_output]
