from .base import LLMProvider
from .extraction import PROVIDER_STRATEGIES, REPLY_STRATEGIES, extract_text
from .factory import SUPPORTED_PROVIDERS, create_llm_provider
from .models import ChatMessage, LLMResponse, StreamingResponse
from .providers import AnthropicProvider, GeminiProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "SUPPORTED_PROVIDERS",
    "ChatMessage",
    "LLMResponse",
    "StreamingResponse",
    "extract_text",
    "PROVIDER_STRATEGIES",
    "REPLY_STRATEGIES",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
]
