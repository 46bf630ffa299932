"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest
from websockets.asyncio.server import ServerConnection, serve

_CLOSE = object()


class FakeConnection:
    """In-memory stand-in for a WebSocket connection.

    Frames pushed with push() are yielded by async iteration; push_close()
    ends the iteration and push_error() raises from it. An optional
    ``reply`` callable receives each decoded request and returns the frames
    to deliver, after ``reply_delay`` seconds.
    """

    def __init__(
        self,
        reply: Callable[[dict[str, Any]], list[Any]] | None = None,
        reply_delay: float = 0.0,
        close_error: Exception | None = None,
        send_error: Exception | None = None,
    ) -> None:
        self.sent: list[str] = []
        self.close_calls = 0
        self._reply = reply
        self._reply_delay = reply_delay
        self._close_error = close_error
        self._send_error = send_error
        self._frames: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def sent_requests(self) -> list[dict[str, Any]]:
        return [json.loads(message) for message in self.sent]

    def push(self, frame: Any) -> None:
        self._frames.put_nowait(frame)

    def push_close(self) -> None:
        self._frames.put_nowait(_CLOSE)

    def push_error(self, error: Exception) -> None:
        self._frames.put_nowait(error)

    async def send(self, message: str) -> None:
        if self._send_error is not None:
            raise self._send_error
        self.sent.append(message)
        if self._reply is None:
            return

        frames = self._reply(json.loads(message))
        if self._reply_delay:
            loop = asyncio.get_running_loop()
            loop.call_later(self._reply_delay, self._push_all, frames)
        else:
            self._push_all(frames)

    async def close(self) -> None:
        self.close_calls += 1
        if self._close_error is not None:
            raise self._close_error

    def _push_all(self, frames: list[Any]) -> None:
        for frame in frames:
            self.push(frame)

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        while True:
            item = await self._frames.get()
            if item is _CLOSE:
                return
            if isinstance(item, Exception):
                raise item
            yield item


class FakeConnector:
    """Connector returning a FakeConnection, or failing, after ``delay`` seconds."""

    def __init__(
        self,
        connection: FakeConnection | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.connection = connection
        self.error = error
        self.delay = delay
        self.calls = 0
        self.cancelled = False

    async def __call__(self, config: Any) -> FakeConnection:
        self.calls += 1
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        assert self.connection is not None
        return self.connection


@pytest.fixture
def fake_connection() -> type[FakeConnection]:
    """FakeConnection class, for building connections inside async tests."""
    return FakeConnection


@pytest.fixture
def fake_connector() -> type[FakeConnector]:
    """FakeConnector class."""
    return FakeConnector


Handler = Callable[[ServerConnection], Awaitable[None]]


@asynccontextmanager
async def _serve_unity(handler: Handler, **kwargs: Any) -> AsyncIterator[int]:
    async with serve(handler, "127.0.0.1", 0, **kwargs) as server:
        yield server.sockets[0].getsockname()[1]


@pytest.fixture
def unity_server() -> Callable[..., Any]:
    """Factory for a real WebSocket server on a free local port.

    Usage:
        async with unity_server(handler) as port:
            ...
    """
    return _serve_unity


def reply_to(request: dict[str, Any], **fields: Any) -> str:
    """Build a reply frame for ``request``."""
    return json.dumps({"id": request["id"], **fields})


@pytest.fixture
def make_reply() -> Callable[..., str]:
    return reply_to
