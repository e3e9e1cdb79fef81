"""Settings provider used to resolve default connection strings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from .errors import DataAccessError, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT_NAME = "dev"
ENVIRONMENT_NAME_KEY = "environmentName"
SETTINGS_FILE_NAME = "environment_settings.json"

DB_SOURCE_KEY = "dataSource"
DB_PASSWORD_KEY = "dbPassword"
DB_USERNAME_KEY = "dbUsername"
DB_CONNECTION_STRING_KEY = "dbConnectionString"

CONCERNED_SETTINGS = (
    DB_SOURCE_KEY,
    DB_USERNAME_KEY,
    DB_PASSWORD_KEY,
    DB_CONNECTION_STRING_KEY,
)


class Settings:
    """Read-only key/value settings for one named environment."""

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        *,
        environment_name: str = DEFAULT_ENVIRONMENT_NAME,
    ):
        self.environment_name = environment_name
        self._values: Dict[str, str] = dict(values or {})

    def get(self, key: str) -> str:
        """Return the setting value or raise `DataAccessError(MISSING_SETTING)`."""

        if key in self._values:
            return self._values[key]
        raise DataAccessError(
            ErrorKind.MISSING_SETTING,
            f"No setting of {key!r} in environment {self.environment_name!r}.",
        )

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"Settings(environment_name={self.environment_name!r}, keys={sorted(self._values)!r})"

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        settings_path: str | Path | None = None,
    ) -> Settings:
        """Load settings for the environment named by `environmentName`.

        Values come from the matching section of a JSON settings file
        (`~/environment_settings.json` unless `settings_path` is given),
        then concerned keys are overridden by same-named environment
        variables.
        """

        env = os.environ if environ is None else environ
        environment_name = env.get(ENVIRONMENT_NAME_KEY) or DEFAULT_ENVIRONMENT_NAME
        path = Path(settings_path) if settings_path is not None else Path.home() / SETTINGS_FILE_NAME

        values = _load_settings_file(path, environment_name)
        for key in CONCERNED_SETTINGS:
            override = env.get(key)
            if override is not None:
                values[key] = override
            if key not in values:
                logger.warning("Missing environment setting of %s", key)

        return cls(values, environment_name=environment_name)


def _load_settings_file(path: Path, environment_name: str) -> Dict[str, str]:
    if not path.is_file():
        return {}

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise TypeError(f"Settings file {str(path)!r} must contain a JSON object.")

    section = data.get(environment_name.lower())
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise TypeError(
            f"Settings section {environment_name.lower()!r} in {str(path)!r} must be a JSON object."
        )
    return {str(key): str(value) for key, value in section.items()}
