"""
Shared fixtures for the test suite.

Key design decisions:
- The model gateway is swapped for FakeGateway through FastAPI's
  dependency overrides, so no test ever reaches the hosted model.
- GEMINI_API_KEY is set per test; tests that need it missing delete it.
- Client tests talk to canned httpx transports, never the network.
"""
import asyncio
from typing import AsyncIterator, List, Optional, Sequence

import pytest
import httpx
from fastapi.testclient import TestClient

from app.main import app
from app.models.chat import ChatTurn
from app.services.gateway import get_gateway_factory

TEST_API_KEY = "test-gemini-key-0123456789"


# ── Fake model gateway ──


class UpstreamError(Exception):
    """Stands in for whatever the hosted model raises."""


class FakeGateway:
    """
    Records every call and replays a fixed fragment list.

    fail_before_first: raise before any fragment is produced.
    fail_after: raise after that many fragments have been yielded.
    """

    def __init__(
        self,
        fragments: Sequence[str] = ("Hel", "lo", " world"),
        fail_before_first: bool = False,
        fail_after: Optional[int] = None,
    ):
        self.fragments = list(fragments)
        self.fail_before_first = fail_before_first
        self.fail_after = fail_after
        self.calls: List[dict] = []
        self.api_keys: List[str] = []

    def __call__(self, api_key: str) -> "FakeGateway":
        # Acts as the factory too: the route builds "a gateway" from the key
        self.api_keys.append(api_key)
        return self

    async def generate_stream(
        self, system_instruction: str, turns: Sequence[ChatTurn]
    ) -> AsyncIterator[str]:
        self.calls.append({"system": system_instruction, "turns": list(turns)})
        if self.fail_before_first:
            raise UpstreamError("upstream unavailable")
        for i, fragment in enumerate(self.fragments):
            if self.fail_after is not None and i == self.fail_after:
                raise UpstreamError("connection reset mid-stream")
            yield fragment


@pytest.fixture
def fake_gateway():
    gateway = FakeGateway()
    app.dependency_overrides[get_gateway_factory] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_gateway_factory, None)


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", TEST_API_KEY)
    return TEST_API_KEY


@pytest.fixture
def client():
    return TestClient(app)


# ── Canned streaming bodies for the client side ──


class ChunkStream(httpx.AsyncByteStream):
    """Yields the given byte chunks one by one, then optionally breaks."""

    def __init__(self, chunks: Sequence[bytes], error: Optional[Exception] = None):
        self.chunks = list(chunks)
        self.error = error

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


def streaming_transport(chunks: Sequence[bytes], status_code: int = 200, error=None, requests=None):
    """httpx.MockTransport answering every request with a chunked text body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(
            status_code,
            headers={"Content-Type": "text/plain; charset=utf-8"},
            stream=ChunkStream(chunks, error),
        )

    return httpx.MockTransport(handler)


class StalledStream(httpx.AsyncByteStream):
    """Sends its chunks, then waits forever as if the server went quiet."""

    def __init__(self, chunks: Sequence[bytes]):
        self.chunks = list(chunks)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        await asyncio.Event().wait()
