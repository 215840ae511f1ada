"""Anthropic Claude provider.

Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from collections.abc import AsyncIterator, Callable
from typing import Any

from anthropic import AsyncAnthropic

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamingResponse

# Anthropic requires an explicit output limit
DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider.

    System turns are lifted out of the transcript into the ``system`` parameter.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self._model

    def _request_params(
        self,
        messages: list[ChatMessage],
        model: str | None,
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any
    ) -> dict[str, Any]:
        system_parts = [msg.content for msg in messages if msg.role == "system"]
        params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [msg.model_dump() for msg in messages if msg.role != "system"],
            "temperature": temperature,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            **kwargs
        }
        if system_parts:
            params["system"] = "\n\n".join(system_parts)
        return params

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        response = await self._client.messages.create(**params)

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return LLMResponse(content=content, model=response.model, usage=usage)

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        response = StreamingResponse(self._stream_generator(params, lambda usage: response.set_usage(usage)))
        return response

    async def _stream_generator(
        self,
        params: dict[str, Any],
        on_usage: Callable[[dict[str, Any]], None],
    ) -> AsyncIterator[str]:
        async with self._client.messages.stream(**params) as stream:
            async for text in stream.text_stream:
                yield text

            final = await stream.get_final_message()
            on_usage({
                "prompt_tokens": final.usage.input_tokens,
                "completion_tokens": final.usage.output_tokens,
                "total_tokens": final.usage.input_tokens + final.usage.output_tokens,
            })

    async def close(self) -> None:
        await self._client.close()
