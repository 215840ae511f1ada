"""Pytest configuration and shared fixtures."""
import asyncio
import os
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from chatrelay.llm import ChatMessage, LLMProvider, LLMResponse, StreamingResponse
from chatrelay.streaming import delta_frame, done_frame, error_frame
from chatrelay.transcript import InMemoryStorage


class FakeUpstreamError(Exception):
    """Provider SDK error carrying an HTTP status, like openai.APIStatusError."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class FakeProvider(LLMProvider):
    """Scripted provider.

    ``replies`` are consumed one per ``chat_completion`` call; an Exception
    entry is raised instead of returned. ``fragments`` are yielded by the
    stream, an Exception entry is raised mid-stream.
    """

    def __init__(
        self,
        replies: list[Any] | None = None,
        fragments: list[Any] | None = None,
        stream_error: Exception | None = None,
    ):
        self.replies = list(replies or [])
        self.fragments = list(fragments or [])
        self.stream_error = stream_error
        self.calls: list[list[ChatMessage]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return "fake-model"

    async def chat_completion(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append(list(messages))
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=self.model)

    async def chat_completion_stream(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append(list(messages))
        if self.stream_error is not None:
            raise self.stream_error
        return StreamingResponse(self._generate())

    async def _generate(self) -> AsyncIterator[str]:
        for fragment in self.fragments:
            if isinstance(fragment, Exception):
                raise fragment
            yield fragment

    async def close(self) -> None:
        self.closed = True


def sse_body(*deltas: str, done: bool = True, error: str | None = None) -> bytes:
    """Encode ``deltas`` as a complete SSE reply body."""
    frames = [delta_frame(d) for d in deltas]
    if error is not None:
        frames.append(error_frame(error))
    elif done:
        frames.append(done_frame())
    return "".join(frames).encode("utf-8")


def sse_response(*chunks: bytes, gate: asyncio.Event | None = None) -> httpx.Response:
    """A text/event-stream response delivering ``chunks`` one by one.

    With a ``gate``, the body stalls after the first chunk until it is set.
    """

    async def body() -> AsyncIterator[bytes]:
        for i, chunk in enumerate(chunks):
            if i == 1 and gate is not None:
                await gate.wait()
            yield chunk

    return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body())


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GOOGLE_GEMINI_API_KEY") or os.getenv("GEMINI_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    }


@pytest.fixture
def memory_storage():
    """Return an empty in-memory storage backend."""
    return InMemoryStorage()


@pytest.fixture
def fake_provider():
    """Return a provider answering "Hi there" in both modes."""
    return FakeProvider(replies=["Hi there"], fragments=["Hi", " there"])


@pytest.fixture
def make_client():
    """Build an AsyncClient whose requests are answered by ``handler``.

    The handler receives the request and returns an httpx.Response. Every
    request is recorded on ``client.requests``.
    """
    def factory(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        requests: list[httpx.Request] = []

        async def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            response = handler(request)
            if asyncio.iscoroutine(response):
                response = await response
            return response

        client = httpx.AsyncClient(transport=httpx.MockTransport(record), base_url="http://test")
        client.requests = requests  # type: ignore[attr-defined]
        return client

    return factory


@pytest.fixture
def asgi_client():
    """Build an AsyncClient that calls a FastAPI app in process."""

    def factory(app) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    return factory
