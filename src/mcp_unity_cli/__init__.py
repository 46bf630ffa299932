"""MCP Unity CLI - one-shot bridge to the MCP Unity editor plugin.

Sends a single request over WebSocket, waits for the reply with the same
correlation id, and reports the outcome.
"""

from .correlator import Correlator, CorrelatorConfig, CorrelatorState, correlate
from .outcomes import Outcome, RemoteError, Success, Timeout, TransportError

__version__ = "0.1.0"

__all__ = [
    "Correlator",
    "CorrelatorConfig",
    "CorrelatorState",
    "correlate",
    "Outcome",
    "Success",
    "RemoteError",
    "TransportError",
    "Timeout",
]
