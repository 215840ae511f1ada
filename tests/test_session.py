"""Tests for the chat session against scripted backends."""
import asyncio
import json

import httpx
import pytest

from chatrelay.client import ChatSession, Phase
from chatrelay.client.session import error_message
from chatrelay.config import STORAGE_KEY
from chatrelay.errors import QUOTA_HELP, QUOTA_MESSAGE
from chatrelay.events import OPEN_MOVIE_PANEL, EventBus
from chatrelay.movies import MoviePanel
from chatrelay.transcript import InMemoryStorage, Message, TranscriptStore

from conftest import sse_body, sse_response


async def wait_for(predicate, timeout: float = 2.0):
    """Yield to the loop until ``predicate()`` holds."""

    async def poll():
        while not predicate():
            await asyncio.sleep(0)

    await asyncio.wait_for(poll(), timeout)


class TestErrorMessage:
    """Tests for non-success response wording."""

    def test_json_error_field(self):
        response = httpx.Response(400, json={"error": "bad messages"})
        assert error_message(response) == "bad messages"

    def test_plain_text_body(self):
        response = httpx.Response(502, text="Bad gateway from proxy")
        assert error_message(response) == "Bad gateway from proxy"

    def test_status_fallbacks(self):
        assert error_message(httpx.Response(429, json={})) == QUOTA_MESSAGE
        assert error_message(httpx.Response(503, text="")) == "HTTP error! status: 503"


class TestSend:
    """Tests for one exchange."""

    @pytest.mark.asyncio
    async def test_streamed_reply(self, make_client, memory_storage):
        client = make_client(lambda request: sse_response(
            b'data: {"content":"Hi"}\n\n',
            b'data: {"content":" there"}\n\ndata: [DONE]\n\n',
        ))
        session = ChatSession(client, storage=memory_storage)

        await session.send("hello")

        assert [(m.role, m.content) for m in session.transcript] == [
            ("user", "hello"),
            ("assistant", "Hi there"),
        ]
        assert not session.is_loading
        assert session.error is None
        assert session.transcript.open_message is None
        assert session.state.phase is Phase.IDLE

        sent = json.loads(client.requests[0].content)
        assert sent == {"messages": [{"role": "user", "content": "hello"}]}

        # Persisted
        restored = TranscriptStore(memory_storage).load()
        assert [m.content for m in restored] == ["hello", "Hi there"]

    @pytest.mark.asyncio
    async def test_reply_grows_in_place(self, make_client):
        """The user turn lands first, then an empty reply that fills fragment by fragment."""
        client = make_client(lambda request: sse_response(
            b'data: {"content":"Hi"}\n\n',
            b'data: {"content":" there"}\n\ndata: [DONE]\n\n',
        ))
        session = ChatSession(client)
        snapshots = []
        session.transcript.subscribe(
            lambda messages: snapshots.append([(m.role, m.content) for m in messages])
        )

        await session.send("hello")

        assert snapshots == [
            [("user", "hello")],
            [("user", "hello"), ("assistant", "")],
            [("user", "hello"), ("assistant", "Hi")],
            [("user", "hello"), ("assistant", "Hi there")],
        ]

    @pytest.mark.asyncio
    async def test_full_history_is_sent(self, make_client):
        storage = InMemoryStorage()
        seed = TranscriptStore(storage)
        seed.append(Message.create("user", "first"))
        seed.append(Message.create("assistant", "reply"))

        client = make_client(lambda request: sse_response(sse_body("ok")))
        session = ChatSession(client, storage=storage)
        await session.send("second")

        sent = json.loads(client.requests[0].content)["messages"]
        assert [m["content"] for m in sent] == ["first", "reply", "second"]
        assert all(set(m) == {"role", "content"} for m in sent)

    @pytest.mark.asyncio
    async def test_quota_error_rolls_back(self, make_client, memory_storage):
        client = make_client(lambda request: httpx.Response(429, json={}))
        session = ChatSession(client, storage=memory_storage)

        await session.send("hello")

        assert len(session.transcript) == 0
        assert session.error == QUOTA_MESSAGE
        assert session.error_hint == QUOTA_HELP
        assert not session.is_loading
        assert memory_storage.get(STORAGE_KEY) == "[]"

    @pytest.mark.asyncio
    async def test_server_error_text_is_shown(self, make_client):
        client = make_client(lambda request: httpx.Response(500, json={"error": "no API key"}))
        session = ChatSession(client)

        await session.send("hello")

        assert session.error == "no API key"
        assert session.error_hint is None

    @pytest.mark.asyncio
    async def test_error_frame_rolls_back_partial_reply(self, make_client):
        client = make_client(lambda request: sse_response(sse_body("Hel", error="upstream died")))
        session = ChatSession(client)

        await session.send("hello")

        assert len(session.transcript) == 0
        assert session.error == "upstream died"
        assert session.transcript.open_message is None

    @pytest.mark.asyncio
    async def test_failure_keeps_earlier_history(self, make_client):
        storage = InMemoryStorage()
        seed = TranscriptStore(storage)
        seed.append(Message.create("user", "old"))
        seed.append(Message.create("assistant", "answer"))

        client = make_client(lambda request: httpx.Response(500, text="boom"))
        session = ChatSession(client, storage=storage)
        await session.send("new")

        assert [m.content for m in session.transcript] == ["old", "answer"]

    @pytest.mark.asyncio
    async def test_network_error_rolls_back(self, make_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        session = ChatSession(make_client(handler))
        await session.send("hello")

        assert len(session.transcript) == 0
        assert "connection refused" in session.error
        assert not session.is_loading

    @pytest.mark.asyncio
    async def test_json_reply(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"content": "Hi there"}))
        session = ChatSession(client)

        await session.send("hello")

        assert session.transcript.last.role == "assistant"
        assert session.transcript.last.content == "Hi there"

    @pytest.mark.asyncio
    async def test_json_reply_answer_fallback(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"answer": "from answer"}))
        session = ChatSession(client)

        await session.send("hello")

        assert session.transcript.last.content == "from answer"

    @pytest.mark.asyncio
    async def test_stream_without_sentinel_keeps_reply(self, make_client):
        client = make_client(lambda request: sse_response(sse_body("partial", done=False)))
        session = ChatSession(client)

        await session.send("hello")

        assert session.transcript.last.content == "partial"
        assert session.error is None


class TestStopAndReentry:
    """Tests for cancellation and concurrent sends."""

    @pytest.mark.asyncio
    async def test_stop_keeps_partial_reply(self, make_client, memory_storage):
        gate = asyncio.Event()
        client = make_client(lambda request: sse_response(
            b'data: {"content":"Hi"}\n\n',
            b'data: {"content":" never"}\n\ndata: [DONE]\n\n',
            gate=gate,
        ))
        session = ChatSession(client, storage=memory_storage)

        send = asyncio.create_task(session.send("hello"))
        await wait_for(lambda: session.transcript.last is not None and session.transcript.last.content == "Hi")
        assert session.state.phase is Phase.STREAMING

        assert session.stop() is True
        assert not session.is_loading
        await send

        assert [(m.role, m.content) for m in session.transcript] == [
            ("user", "hello"),
            ("assistant", "Hi"),
        ]
        assert session.error is None
        assert session.transcript.open_message is None
        restored = TranscriptStore(memory_storage).load()
        assert restored[-1].content == "Hi"

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, make_client):
        session = ChatSession(make_client(lambda request: httpx.Response(200, json={"content": "x"})))
        assert session.stop() is False

    @pytest.mark.asyncio
    async def test_send_while_loading_is_ignored(self, make_client):
        gate = asyncio.Event()
        client = make_client(lambda request: sse_response(
            b'data: {"content":"a"}\n\n',
            b"data: [DONE]\n\n",
            gate=gate,
        ))
        session = ChatSession(client)

        first = asyncio.create_task(session.send("one"))
        await wait_for(lambda: session.transcript.last.content == "a")

        await session.send("two")
        assert [m.content for m in session.transcript] == ["one", "a"]
        assert len(client.requests) == 1

        gate.set()
        await first
        assert not session.is_loading

    @pytest.mark.asyncio
    async def test_outer_cancellation_propagates(self, make_client):
        gate = asyncio.Event()
        client = make_client(lambda request: sse_response(b'data: {"content":"a"}\n\n', b"", gate=gate))
        session = ChatSession(client)

        send = asyncio.create_task(session.send("one"))
        await wait_for(lambda: session.state.phase is Phase.STREAMING)
        send.cancel()

        with pytest.raises(asyncio.CancelledError):
            await send
        assert not session.is_loading

    @pytest.mark.asyncio
    async def test_new_chat_clears_everything(self, make_client, memory_storage):
        client = make_client(lambda request: httpx.Response(429, json={}))
        session = ChatSession(client, storage=memory_storage)
        await session.send("hello")
        assert session.error

        session.transcript.append(Message.create("user", "kept until new chat"))
        session.new_chat()

        assert len(session.transcript) == 0
        assert session.error is None
        assert STORAGE_KEY not in memory_storage
        assert session.state.phase is Phase.IDLE
        assert session.state.pending_cancel is None

    @pytest.mark.asyncio
    async def test_dismiss_error(self, make_client):
        session = ChatSession(make_client(lambda request: httpx.Response(429, json={})))
        await session.send("hello")
        session.dismiss_error()
        assert session.error is None


class TestMovieSignal:
    """Tests for the movie panel signal."""

    @pytest.mark.asyncio
    async def test_movie_request_opens_panel(self, make_client):
        bus = EventBus()
        panel = MoviePanel()
        panel.bind(bus)
        received = []
        bus.subscribe(OPEN_MOVIE_PANEL, lambda **data: received.append(data))

        client = make_client(lambda request: sse_response(sse_body("Here they are")))
        session = ChatSession(client, bus=bus)
        await session.send("Show me James Cameron movies")

        assert panel.is_open
        assert received == [{"query": "Show me James Cameron movies"}]
        # The message is still sent to the backend
        assert len(client.requests) == 1

    @pytest.mark.asyncio
    async def test_other_messages_do_not_signal(self, make_client):
        bus = EventBus()
        panel = MoviePanel()
        panel.bind(bus)

        client = make_client(lambda request: sse_response(sse_body("ok")))
        await ChatSession(client, bus=bus).send("Who is James Cameron?")

        assert not panel.is_open
