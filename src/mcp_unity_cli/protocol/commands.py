"""Command definitions for the CLI protocol layer.

CLI commands are mapped onto wire-level methods understood by the MCP Unity
editor plugin. Each request carries a unique ID for correlation with the
editor's reply.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

Scalar = str | int | float | bool | None

DEFAULT_TIMEOUT_MS = 10_000
RECOMPILE_TIMEOUT_MS = 60_000

# Log entry types kept by get_warn_error_logs
WARN_ERROR_TYPES = frozenset({"Warning", "Error", "Exception", "Assert"})


class CommandType(str, Enum):
    """All supported CLI commands."""

    EXECUTE_MENU_ITEM = "execute_menu_item"
    GET_MENU_ITEMS = "get_menu_items"
    GET_LOGS = "get_logs"
    GET_WARN_ERROR_LOGS = "get_warn_error_logs"
    RECOMPILE_SCRIPTS = "recompile_scripts"

    @property
    def method(self) -> str:
        """Wire-level method name sent to the editor."""
        if self in (CommandType.GET_LOGS, CommandType.GET_WARN_ERROR_LOGS):
            return "get_console_logs"
        return self.value

    @property
    def default_timeout_ms(self) -> int:
        """Deadline used when the caller gives no --timeout."""
        if self is CommandType.RECOMPILE_SCRIPTS:
            return RECOMPILE_TIMEOUT_MS
        return DEFAULT_TIMEOUT_MS


class Request(BaseModel):
    """A request from the CLI to the editor.

    Example:
        {
            "id": "9b2e6f0c-4d1a-4c3e-8f55-0c7d1e2a3b4c",
            "method": "get_console_logs",
            "params": {"limit": 10}
        }

    The editor replies with a frame whose `id` equals the request's `id`.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    method: str
    params: dict[str, Scalar] = Field(default_factory=dict)

    @classmethod
    def create(
        cls,
        method: str | CommandType,
        params: dict[str, Scalar] | None = None,
        request_id: str | None = None,
    ) -> Request:
        """Factory method for creating requests."""
        return cls(
            id=request_id or str(uuid.uuid4()),
            method=method.method if isinstance(method, CommandType) else method,
            params=params or {},
        )

    def to_json(self) -> str:
        """Serialize to the wire format."""
        return self.model_dump_json()


def coerce_value(value: str) -> Scalar:
    """Convert a command-line string to bool, number, or leave it as a string."""
    if value == "true":
        return True
    if value == "false":
        return False
    if not value.strip():
        return value
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return value
    # nan/inf are not valid JSON numbers
    if number != number or number in (float("inf"), float("-inf")):
        return value
    return number


def filter_warn_error_logs(result: Any) -> Any:
    """Keep only warning and error entries of a get_console_logs result.

    Results without a ``logs`` list are returned unchanged.
    """
    if not isinstance(result, dict) or not isinstance(result.get("logs"), list):
        return result
    return {
        **result,
        "logs": [
            entry
            for entry in result["logs"]
            if isinstance(entry, dict) and entry.get("type") in WARN_ERROR_TYPES
        ],
    }
