"""Shared test fixtures for onionhttp.

Provides an echo server built on :class:`httpx.MockTransport`, a factory for
clients wired to it, and autouse fixtures that isolate the process-wide
interceptor registry and output manager between tests.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterator

import httpx
import pytest

from onionhttp.client import Client, HttpxTransport
from onionhttp.interceptors import GLOBAL_REGISTRY
from onionhttp.output import reset_output


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    """Empty the global interceptor registry and forget the output manager.

    Global interceptors live for the whole process, so without this a
    registration in one test would run in every later test.
    """
    GLOBAL_REGISTRY.clear()
    yield
    GLOBAL_REGISTRY.clear()
    reset_output()


# ---------------------------------------------------------------------------
# Echo server
# ---------------------------------------------------------------------------


def _decode_body(request: httpx.Request) -> Any:
    if not request.content:
        return None
    try:
        return json.loads(request.content)
    except ValueError:
        return request.content.decode()


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Reflect the received request back as JSON."""
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "url": str(request.url),
            "query": dict(request.url.params),
            "headers": dict(request.headers),
            "body": _decode_body(request),
        },
    )


class RecordingHandler:
    """Wraps a handler and records every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], Any] = echo_handler) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        return self._handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


def _mock_transport(handler: Callable[[httpx.Request], Any]) -> HttpxTransport:
    """An :class:`HttpxTransport` whose network is *handler*."""
    return HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def make_transport() -> Callable[..., HttpxTransport]:
    """Factory for transports backed by a handler function."""
    return _mock_transport


@pytest.fixture
def server() -> RecordingHandler:
    """An echo handler that records requests."""
    return RecordingHandler()


@pytest.fixture
def make_client(server: RecordingHandler) -> Callable[..., Client]:
    """Factory building clients that talk to the recording echo server."""

    def _make(handler: Callable[[httpx.Request], Any] | None = None, **config: Any) -> Client:
        return Client(config, transport=_mock_transport(handler or server))

    return _make
