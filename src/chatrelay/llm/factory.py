from typing import TYPE_CHECKING, Any

from .base import LLMProvider
from .providers import AnthropicProvider, GeminiProvider, OpenAIProvider

if TYPE_CHECKING:
    from ..config import Settings

SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    Args:
        provider: Provider type ('gemini', 'openai', 'anthropic' or its alias 'claude')
        **config: Provider-specific configuration
            For all providers:
                - api_key: str (required)
                - model: str (optional, provider default otherwise)
            For OpenAI and Anthropic:
                - base_url: str | None

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> provider = create_llm_provider("gemini", api_key="...", model="gemini-2.5-flash")
    """
    provider_lower = provider.lower()
    if provider_lower == "claude":
        provider_lower = "anthropic"

    classes = {
        "gemini": GeminiProvider,
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
    }
    if provider_lower not in classes:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: {', '.join(repr(p) for p in SUPPORTED_PROVIDERS)}"
        )

    if not config.get("api_key"):
        raise TypeError(f"{provider_lower.capitalize()} provider requires 'api_key' in config")

    return classes[provider_lower](**config)


def provider_from_settings(settings: "Settings") -> LLMProvider | None:
    """Build the configured provider, or None when no API key is set."""
    if not settings.api_key:
        return None
    return create_llm_provider(
        settings.provider,
        api_key=settings.api_key,
        model=settings.resolved_model,
    )
