"""Chat service: relays a conversation to the upstream provider.

Keeps HTTP concerns out of the provider call, so the route only chooses
between the whole-reply and the streamed path.
"""

import logging
from collections.abc import AsyncIterator

from ..errors import EmptyCompletionError, describe_upstream_error
from ..llm.base import LLMProvider
from ..llm.models import ChatMessage
from ..streaming.models import delta_frame, done_frame, error_frame

logger = logging.getLogger(__name__)

EMPTY_REPLY_MESSAGE = "The model returned an empty response. Check the server log for the raw result."


class ChatService:
    """Wraps an ``LLMProvider`` for the backend route."""

    def __init__(self, provider: LLMProvider, empty_retries: int = 1):
        """Initialize the service.

        Args:
            provider: Upstream provider
            empty_retries: Extra attempts when a completion has no text
        """
        self._provider = provider
        self._empty_retries = empty_retries

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    async def complete(self, messages: list[ChatMessage]) -> str:
        """Return the whole reply text.

        Raises:
            UpstreamError: If the provider call fails
            EmptyCompletionError: If no attempt produced text
        """
        for attempt in range(self._empty_retries + 1):
            try:
                response = await self._provider.chat_completion(messages)
            except Exception as e:
                logger.error("Upstream %s completion failed", self._provider.name, exc_info=True)
                raise describe_upstream_error(e) from e

            logger.debug("Upstream reply: model=%s usage=%s", response.model, response.usage)
            if response.content:
                return response.content

            if attempt < self._empty_retries:
                logger.warning(
                    "Upstream %s returned no text, retrying (attempt %d)",
                    self._provider.name, attempt + 2,
                )

        raise EmptyCompletionError(EMPTY_REPLY_MESSAGE)

    async def stream(self, messages: list[ChatMessage]) -> AsyncIterator[str]:
        """Yield SSE frames: one per reply fragment, then ``[DONE]``.

        A failure, before or during streaming, produces a single error frame
        and ends the stream without the sentinel.
        """
        try:
            stream = await self._provider.chat_completion_stream(messages)
            try:
                async for fragment in stream:
                    yield delta_frame(fragment)
            finally:
                await stream.aclose()
            logger.debug("Upstream stream finished: usage=%s", stream.usage)
        except Exception as e:
            logger.error("Upstream %s stream failed", self._provider.name, exc_info=True)
            yield error_frame(str(describe_upstream_error(e)))
            return

        yield done_frame()
