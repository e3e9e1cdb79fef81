"""Process-wide cache that resolves `*.sql` file references to command text."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict

from .errors import DataAccessError, ErrorKind

SCRIPT_SUFFIX = ".sql"
DEFAULT_SCRIPTS_DIR = "SqlScript"


def is_script_reference(command_text_or_file: str) -> bool:
    """Return whether the command names a script file instead of SQL text."""

    return command_text_or_file.lower().endswith(SCRIPT_SUFFIX)


class ScriptCache:
    """Thread-safe, never-evicting cache of script file contents.

    Keys are lowercased file references, so `Users.sql` and `users.SQL`
    share one entry. Files are looked up first at the literal path and then
    inside `scripts_dir`.
    """

    def __init__(self, scripts_dir: str | Path = DEFAULT_SCRIPTS_DIR):
        self.scripts_dir = Path(scripts_dir)
        self._texts: Dict[str, str] = {}
        self._lock = threading.Lock()

    def resolve(self, command_text_or_file: str) -> str:
        """Return literal command text, loading and caching script files on demand."""

        if not is_script_reference(command_text_or_file):
            return command_text_or_file

        key = command_text_or_file.lower()
        with self._lock:
            cached = self._texts.get(key)
        if cached is not None:
            return cached

        text = self._read(command_text_or_file)
        with self._lock:
            return self._texts.setdefault(key, text)

    def _read(self, command_text_or_file: str) -> str:
        for candidate in (Path(command_text_or_file), self.scripts_dir / command_text_or_file):
            if candidate.is_file():
                return candidate.read_text(encoding="utf-8")
        raise DataAccessError(
            ErrorKind.RESOURCE_NOT_FOUND,
            f"Failed to locate the SQL file specified by {command_text_or_file!r}.",
        )

    def __contains__(self, command_text_or_file: object) -> bool:
        if not isinstance(command_text_or_file, str):
            return False
        with self._lock:
            return command_text_or_file.lower() in self._texts

    def __len__(self) -> int:
        with self._lock:
            return len(self._texts)


_default_cache = ScriptCache()


def default_script_cache() -> ScriptCache:
    """Return the process-wide cache (empty at import, never torn down)."""

    return _default_cache


def resolve_command_text(command_text_or_file: str) -> str:
    """Resolve a command through the process-wide cache."""

    return _default_cache.resolve(command_text_or_file)
