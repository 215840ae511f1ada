"""Chat session: the client side of ``POST /api/chat``.

Sends the user's message with the whole prior conversation, folds the reply
into the transcript (streamed or whole), and supports stopping the in-flight
exchange without corrupting the transcript.

Exchange lifecycle: idle -> sending -> streaming -> idle, ending either
normally, with an error (transcript rolled back) or cancelled (partial reply
kept).
"""

import asyncio
import logging
from typing import Any

import httpx

from ..config import CHAT_ROUTE, STORAGE_KEY
from ..errors import ChatRequestError, error_hint, status_message
from ..events import OPEN_MOVIE_PANEL, EventBus
from ..llm.extraction import REPLY_STRATEGIES, extract_text
from ..movies import is_movie_request
from ..streaming import ChunkParser, StreamAssembler
from ..transcript import InMemoryStorage, Message, Storage, TranscriptStore
from .state import Phase, RequestState

logger = logging.getLogger(__name__)


def error_message(response: httpx.Response) -> str:
    """Best human-readable error text for a non-success response.

    Uses the JSON ``error`` field, else the raw body text, else a
    status-specific message.
    """
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text or status_message(response.status_code)

    if isinstance(data, dict) and isinstance(data.get("error"), str) and data["error"]:
        return data["error"]
    return status_message(response.status_code)


class ChatSession:
    """Owns the transcript and the single in-flight exchange.

    Usage:
        async with httpx.AsyncClient(base_url="http://127.0.0.1:8000") as client:
            session = ChatSession(client, storage=FileStorage("~/.chatrelay"))
            await session.send("hello")
            print(session.transcript.last.content)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        storage: Storage | None = None,
        bus: EventBus | None = None,
        endpoint: str = CHAT_ROUTE,
        storage_key: str = STORAGE_KEY,
        restore: bool = True,
    ):
        """Initialize the session.

        Args:
            client: HTTP client pointed at the backend
            storage: Where the transcript is persisted (default: in memory)
            bus: Event bus for the movie panel signal
            endpoint: Chat route on the backend
            storage_key: Key holding the serialized transcript
            restore: Load the persisted transcript now
        """
        self._client = client
        self._bus = bus
        self._endpoint = endpoint
        self._stopped: asyncio.Task | None = None
        self.state = RequestState()
        self.transcript = TranscriptStore(storage or InMemoryStorage(), storage_key)
        if restore:
            self.transcript.load()

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def error_hint(self) -> str | None:
        """Help text for the current error (quota problems only)."""
        return error_hint(self.state.error)

    def dismiss_error(self) -> None:
        self.state.error = None

    async def send(self, content: str) -> None:
        """Send one user message and assemble the reply.

        A call made while an exchange is in flight is ignored. Failures are
        reported through ``state.error``, not raised.
        """
        if self.state.is_loading:
            logger.debug("Ignoring send while an exchange is in flight")
            return

        if self._bus is not None and is_movie_request(content):
            self._bus.publish(OPEN_MOVIE_PANEL, query=content)

        checkpoint = len(self.transcript)
        self.transcript.append(Message.create("user", content))
        self.state.begin()

        payload = {"messages": [m.model_dump() for m in self.transcript.to_wire()]}
        exchange = asyncio.create_task(self._exchange(payload))
        self.state.pending_cancel = exchange

        try:
            await exchange
        except asyncio.CancelledError:
            if self._stopped is not exchange:
                raise
            logger.info("Exchange stopped")
        except Exception as e:
            logger.warning("Exchange failed: %s", e)
            self.state.error = str(e) or "An unexpected error occurred"
            self.transcript.truncate(checkpoint)
        finally:
            if self.state.pending_cancel is exchange:
                self.transcript.close_open()
                self.state.finish()

    async def _exchange(self, payload: dict[str, Any]) -> None:
        async with self._client.stream(
            "POST",
            self._endpoint,
            json=payload,
            headers={"Accept": "text/event-stream, application/json"},
        ) as response:
            if not response.is_success:
                await response.aread()
                raise ChatRequestError(error_message(response), response.status_code)

            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                await response.aread()
                text = extract_text(response.json(), REPLY_STRATEGIES)
                self.transcript.append(Message.create("assistant", text))
                return

            self.transcript.open_assistant()
            self.state.phase = Phase.STREAMING
            assembler = StreamAssembler(self.transcript.append_delta)
            await assembler.consume(ChunkParser().aiter_payloads(response.aiter_bytes()))

    def stop(self) -> bool:
        """Cancel the in-flight exchange, keeping any partial reply.

        Returns:
            True if an exchange was cancelled
        """
        exchange = self.state.pending_cancel
        if exchange is None:
            return False
        self._stopped = exchange
        exchange.cancel()
        self.transcript.close_open()
        self.state.finish()
        return True

    def new_chat(self) -> None:
        """Stop any exchange and start over with an empty transcript."""
        self.stop()
        self.transcript.clear()
        self.state.reset()
