from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse, StreamingResponse


class LLMProvider(ABC):
    """Abstract base class for upstream LLM providers.

    This module hides the design decision of which provider answers the chat.
    Implementations handle:
    - SDK client setup and authentication
    - Conversion of the ``{role, content}`` transcript to the provider's format
    - Extraction of reply text from the provider's response shape

    Supports the async context manager protocol:
        async with provider:
            response = await provider.chat_completion(messages)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier ('gemini', 'openai', ...)."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model name."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate one complete reply.

        Args:
            messages: Conversation history, oldest first, ending with the user turn
            model: Model to use (None uses the provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse whose content may be empty if the provider produced no text
        """

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a reply incrementally.

        Returns:
            StreamingResponse yielding text fragments in generation order
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Close the provider, ignoring httpx's harmless "Event loop is closed" race."""
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
