"""Wire protocol for the MCP Unity editor plugin.

- Request: CLI -> editor, tagged with a correlation id
- Response: editor -> CLI, matched back to the request by id
"""

from .commands import (
    DEFAULT_TIMEOUT_MS,
    RECOMPILE_TIMEOUT_MS,
    WARN_ERROR_TYPES,
    CommandType,
    Request,
    coerce_value,
    filter_warn_error_logs,
)
from .responses import GENERIC_ERROR_MESSAGE, Response, match_response

__all__ = [
    "CommandType",
    "Request",
    "Response",
    "match_response",
    "coerce_value",
    "filter_warn_error_logs",
    "DEFAULT_TIMEOUT_MS",
    "RECOMPILE_TIMEOUT_MS",
    "WARN_ERROR_TYPES",
    "GENERIC_ERROR_MESSAGE",
]
