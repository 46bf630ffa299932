"""Connection settings for the MCP Unity editor plugin.

Resolution order (first match wins):
- host: UNITY_HOST environment variable, then ``Host`` from the settings file,
  then ``localhost``
- port: ``Port`` from the settings file, then 8090

The settings file is ``ProjectSettings/McpUnitySettings.json``, looked up in
the parent of the working directory first and then in the working directory.
"""

from __future__ import annotations

import logging
import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8090
HOST_ENV_VAR = "UNITY_HOST"

SETTINGS_FILE = Path("ProjectSettings") / "McpUnitySettings.json"
SETTINGS_SEARCH_DIRS = (Path(".."), Path("."))

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class UnitySettings(BaseModel):
    """The parts of McpUnitySettings.json the CLI reads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    port: int | None = Field(default=None, alias="Port")
    host: str | None = Field(default=None, alias="Host")

    @field_validator("port", mode="before")
    @classmethod
    def _leading_integer(cls, value: Any) -> int | None:
        """Read a number or the leading digits of a string; anything else is unset."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else None
        if isinstance(value, str):
            match = _LEADING_INT.match(value)
            return int(match.group(1)) if match else None
        return None

    @field_validator("host", mode="before")
    @classmethod
    def _string_or_unset(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


@dataclass(frozen=True)
class ConnectionInfo:
    """Where the editor is listening."""

    host: str
    port: int


def settings_candidates(cwd: Path | None = None) -> list[Path]:
    """Settings file locations, in lookup order."""
    base = cwd or Path.cwd()
    return [(base / directory / SETTINGS_FILE).resolve() for directory in SETTINGS_SEARCH_DIRS]


def load_settings(cwd: Path | None = None) -> UnitySettings:
    """Load the first readable settings file, or empty settings if none is found."""
    for path in settings_candidates(cwd):
        try:
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError):
            continue

        try:
            settings = UnitySettings.model_validate_json(content)
        except ValidationError as e:
            logger.debug(f"Skipping invalid settings file {path}: {e.error_count()} error(s)")
            continue

        logger.debug(f"Loaded settings from {path}")
        return settings

    logger.debug("No settings file found, using defaults")
    return UnitySettings()


def resolve_connection(
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ConnectionInfo:
    """Resolve host and port from environment, settings file and defaults.

    Args:
        cwd: Directory to search from (default: current working directory)
        env: Environment mapping (default: os.environ)

    Returns:
        ConnectionInfo for the editor endpoint
    """
    environ = os.environ if env is None else env
    settings = load_settings(cwd)

    host = environ.get(HOST_ENV_VAR) or settings.host or DEFAULT_HOST
    port = settings.port or DEFAULT_PORT
    return ConnectionInfo(host=host, port=port)
