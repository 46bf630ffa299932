"""Reply frames from the editor.

The socket may carry traffic unrelated to our request, so frames that are not
JSON objects, have no string id, or carry another request's id are ignored
rather than treated as errors.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..outcomes import RemoteError, Success

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Unity error"


class Response(BaseModel):
    """A reply frame: ``{"id": ..., "result"?: ..., "error"?: {"message": ...}}``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    result: Any = None
    error: Any = None

    @property
    def has_error(self) -> bool:
        """An error object or list counts even when empty; other falsy values do not."""
        if isinstance(self.error, dict | list):
            return True
        return bool(self.error)

    @property
    def has_result(self) -> bool:
        return "result" in self.model_fields_set

    @property
    def error_message(self) -> str:
        """Human-readable message of a truthy ``error`` field."""
        if isinstance(self.error, dict):
            message = self.error.get("message")
            if isinstance(message, str) and message:
                return message
        elif isinstance(self.error, str) and self.error:
            return self.error
        return GENERIC_ERROR_MESSAGE

    def to_outcome(self) -> Success | RemoteError:
        """Map the reply to its terminal outcome."""
        if self.has_error:
            return RemoteError(self.error_message)
        if self.has_result:
            return Success(self.result)
        return RemoteError(GENERIC_ERROR_MESSAGE)


def match_response(frame: str | bytes, request_id: str) -> Response | None:
    """Parse a frame and return it only if it answers ``request_id``."""
    try:
        response = Response.model_validate_json(frame)
    except ValidationError:
        logger.debug(f"Ignoring unparseable frame: {_preview(frame)}")
        return None

    if response.id != request_id:
        logger.debug(f"Ignoring frame for another request: {response.id}")
        return None

    return response


def _preview(frame: str | bytes, limit: int = 80) -> str:
    text = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
    return text[:limit]
