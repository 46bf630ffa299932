"""Terminal outcomes of a correlated request.

Exactly one of these is produced per request:
- Success: the editor replied with a result
- RemoteError: the editor understood the request but reported a failure
- TransportError: the connection could not be established or was lost
- Timeout: no matching reply arrived before the deadline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Success:
    """Matching reply without an error."""

    result: Any

    @property
    def ok(self) -> bool:
        return True

    def to_payload(self) -> Any:
        return self.result


@dataclass(frozen=True, slots=True)
class RemoteError:
    """Matching reply carrying an error from the editor."""

    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_payload(self) -> dict[str, Any]:
        return {"error": True, "message": self.message}


@dataclass(frozen=True, slots=True)
class TransportError:
    """Connection refused, reset, rejected, or closed before a reply."""

    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_payload(self) -> dict[str, Any]:
        return {"error": True, "message": self.message}


@dataclass(frozen=True, slots=True)
class Timeout:
    """Deadline expired before a matching reply."""

    elapsed_ms: int | float

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return f"Request timed out after {self.elapsed_ms}ms"

    def to_payload(self) -> dict[str, Any]:
        return {"error": True, "message": self.message}


Outcome = Success | RemoteError | TransportError | Timeout
