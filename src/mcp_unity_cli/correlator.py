"""Request/response correlation over a transient WebSocket connection.

A Correlator owns one connection and one in-flight request:
- opens the connection and sends the request tagged with a fresh id
- ignores frames that do not answer that id
- races the reply against a deadline armed when the call begins
- produces exactly one Outcome and tears everything down before returning

State machine: IDLE -> PENDING -> SETTLED. Every trigger (reply, deadline,
connection failure, close) goes through a single settlement guard; the first
one wins and the rest are no-ops.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

from .outcomes import Outcome, Timeout, TransportError
from .protocol.commands import DEFAULT_TIMEOUT_MS, Request, Scalar
from .protocol.responses import match_response

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/McpUnity"
CLOSED_BEFORE_RESPONSE = "WebSocket closed before response"


class CorrelatorState(str, Enum):
    """Lifecycle of a single correlated request."""

    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"


@dataclass
class CorrelatorConfig:
    """Endpoint and limits for one request."""

    host: str = "localhost"
    port: int = 8090
    timeout_ms: int | float = DEFAULT_TIMEOUT_MS

    path: str = DEFAULT_PATH
    close_timeout: float = 1.0  # seconds allowed for the closing handshake
    max_size: int | None = None  # max inbound frame size, None = unlimited

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}{self.path}"


class Connection(Protocol):
    """The slice of a WebSocket connection the correlator uses."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


Connector = Callable[[CorrelatorConfig], Awaitable[Connection]]


async def open_websocket(config: CorrelatorConfig) -> Connection:
    """Open a WebSocket to the editor.

    The library's own open timeout is disabled; the correlator's deadline
    bounds the handshake instead.
    """
    return await ws_connect(
        config.url,
        open_timeout=None,
        close_timeout=config.close_timeout,
        max_size=config.max_size,
    )


def connect_failure_message(url: str, error: BaseException) -> str:
    """Describe a failure to reach the endpoint, always naming the URL."""
    detail = str(error)
    if detail:
        return f"Cannot connect to Unity at {url}: {detail}"
    return f"Cannot connect to Unity at {url}"


class Correlator:
    """Sends one request and waits for the reply with the same id.

    Usage:
        correlator = Correlator(CorrelatorConfig(port=8090, timeout_ms=5000))
        outcome = await correlator.request("get_console_logs", {"limit": 10})

    A Correlator serves a single request. The connection is opened inside
    request() and always closed before it returns.
    """

    def __init__(
        self,
        config: CorrelatorConfig,
        *,
        connect: Connector | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.config = config
        self._connect = connect or open_websocket
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

        self._state = CorrelatorState.IDLE
        self._outcome: asyncio.Future[Outcome] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._reader: asyncio.Task[None] | None = None
        self._connection: Connection | None = None
        self._connection_closed = False

    @property
    def state(self) -> CorrelatorState:
        """Current lifecycle state."""
        return self._state

    @property
    def settled(self) -> bool:
        return self._state is CorrelatorState.SETTLED

    async def request(self, method: str, params: dict[str, Scalar] | None = None) -> Outcome:
        """Send ``method``/``params`` and wait for the correlated outcome.

        Args:
            method: Wire-level method name
            params: Scalar parameters for the method

        Returns:
            The single Outcome of the call. Failures are returned, not raised.

        Raises:
            RuntimeError: If this correlator already handled a request
        """
        if self._state is not CorrelatorState.IDLE:
            raise RuntimeError("Correlator already used; create one per request")

        loop = asyncio.get_running_loop()
        request = Request.create(method, params, request_id=self._id_factory())
        self._state = CorrelatorState.PENDING
        self._outcome = loop.create_future()

        # Armed before connecting so a stalled handshake is bounded too
        self._timer = loop.call_later(self.config.timeout_ms / 1000, self._on_deadline)
        self._reader = asyncio.create_task(self._exchange(request))

        try:
            return await self._outcome
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the timer, reader task and connection. Safe to call repeatedly."""
        if self._timer is not None:
            self._timer.cancel()

        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader

        await self._close_connection()

    def _settle(self, outcome: Outcome, trigger: str) -> bool:
        """One-shot settlement guard. Returns False if already settled."""
        if self._state is not CorrelatorState.PENDING:
            logger.debug(f"Ignoring {trigger} after settlement")
            return False

        self._state = CorrelatorState.SETTLED
        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_result(outcome)
        logger.debug(f"Request settled by {trigger}: {type(outcome).__name__}")
        return True

    def _on_deadline(self) -> None:
        if self._settle(Timeout(self.config.timeout_ms), "deadline"):
            logger.info(f"No reply from {self.config.url} within {self.config.timeout_ms}ms")

    async def _exchange(self, request: Request) -> None:
        """Reader task: connect, send, and wait for the matching frame."""
        try:
            await self._run(request)
        except Exception as e:
            logger.exception(f"Unexpected error talking to {self.config.url}")
            self._settle(TransportError(str(e) or CLOSED_BEFORE_RESPONSE), "unexpected error")

    async def _run(self, request: Request) -> None:
        url = self.config.url
        try:
            connection = await self._connect(self.config)
        except (OSError, WebSocketException) as e:
            self._settle(TransportError(connect_failure_message(url, e)), "connection failure")
            return

        self._connection = connection
        logger.debug(f"Connected to {url}")

        if self.settled:
            # Deadline fired during the handshake
            return

        try:
            await connection.send(request.to_json())
            logger.debug(f"Sent {request.method} ({request.id})")

            async for frame in connection:
                response = match_response(frame, request.id)
                if response is None:
                    continue
                self._settle(response.to_outcome(), "reply")
                return
        except ConnectionClosedError as e:
            self._settle(TransportError(str(e) or CLOSED_BEFORE_RESPONSE), "connection error")
            return
        except ConnectionClosed:
            pass
        except OSError as e:
            self._settle(TransportError(str(e) or CLOSED_BEFORE_RESPONSE), "connection error")
            return

        self._settle(TransportError(CLOSED_BEFORE_RESPONSE), "close")

    async def _close_connection(self) -> None:
        if self._connection is None or self._connection_closed:
            return

        self._connection_closed = True
        try:
            await self._connection.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing {self.config.url}: {e}")
        else:
            logger.debug(f"Closed connection to {self.config.url}")


async def correlate(
    host: str,
    port: int,
    method: str,
    params: dict[str, Scalar] | None = None,
    timeout_ms: int | float = DEFAULT_TIMEOUT_MS,
    *,
    connect: Connector | None = None,
) -> Outcome:
    """Send one request to ``ws://host:port/McpUnity`` and return its Outcome."""
    config = CorrelatorConfig(host=host, port=port, timeout_ms=timeout_ms)
    return await Correlator(config, connect=connect).request(method, params)
