"""Google Gemini provider.

Uses the Google GenAI SDK's async client.
Reference: https://github.com/googleapis/python-genai

Gemini sometimes answers with no text at all (safety filtering, transient
service issues); this provider reports such replies as empty content and
leaves the retry decision to the caller.
"""

from collections.abc import AsyncIterator, Callable
from typing import Any

from google import genai
from google.genai import types

from ..base import LLMProvider
from ..extraction import extract_text
from ..models import ChatMessage, LLMResponse, StreamingResponse


def _usage(metadata: Any) -> dict[str, int] | None:
    if not metadata:
        return None
    return {
        "prompt_tokens": metadata.prompt_token_count or 0,
        "completion_tokens": metadata.candidates_token_count or 0,
        "total_tokens": metadata.total_token_count or 0,
    }


class GeminiProvider(LLMProvider):
    """Google Gemini provider.

    Hidden design decisions:
    - GenAI client initialization
    - Role mapping ('assistant' becomes 'model', system turns become the system instruction)
    - Text extraction from candidate parts
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        **client_kwargs: Any
    ):
        self._model = model
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: list[ChatMessage]) -> tuple[str | None, list[types.Content]]:
        """Split the transcript into a system instruction and Gemini contents."""
        system_parts = []
        contents = []

        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                contents.append(types.Content(
                    role="model" if msg.role == "assistant" else "user",
                    parts=[types.Part(text=msg.content)]
                ))

        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents

    def _build_config(
        self,
        system_instruction: str | None,
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any
    ) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
            **kwargs
        )
        if max_tokens is not None:
            config.max_output_tokens = max_tokens
        return config

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        model_to_use = model or self._model
        system_instruction, contents = self._convert_messages(messages)
        config = self._build_config(system_instruction, temperature, max_tokens, **kwargs)

        response = await self._client.aio.models.generate_content(
            model=model_to_use,
            contents=contents,
            config=config
        )

        return LLMResponse(
            content=extract_text(response),
            model=model_to_use,
            usage=_usage(response.usage_metadata)
        )

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        model_to_use = model or self._model
        system_instruction, contents = self._convert_messages(messages)
        config = self._build_config(system_instruction, temperature, max_tokens, **kwargs)

        response = StreamingResponse(
            self._stream_generator(model_to_use, contents, config, lambda usage: response.set_usage(usage))
        )
        return response

    async def _stream_generator(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
        on_usage: Callable[[dict[str, Any]], None],
    ) -> AsyncIterator[str]:
        """Yield text per chunk; usage metadata arrives with the final chunk."""
        usage = None

        stream = await self._client.aio.models.generate_content_stream(
            model=model, contents=contents, config=config
        )
        async for chunk in stream:
            usage = _usage(chunk.usage_metadata) or usage
            text = extract_text(chunk)
            if text:
                yield text

        if usage:
            on_usage(usage)

    async def close(self) -> None:
        """Close the async GenAI client."""
        await self._client.aio.aclose()
