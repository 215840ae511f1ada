"""Configuration for chatrelay.

Centralizes wire constants and the environment-driven settings shared by the
backend, the CLI and the terminal UI.
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

# Server-sent event framing
DATA_PREFIX = "data: "
FRAME_DELIMITER = "\n\n"
DONE_SENTINEL = "[DONE]"

# Client-side persisted transcript
STORAGE_KEY = "chat-history"
DEFAULT_HISTORY_PATH = Path.home() / ".chatrelay"

# Backend route
CHAT_ROUTE = "/api/chat"
HEALTH_ROUTE = "/api/health"

# Default models per provider
DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}

# Environment variables holding provider credentials, in lookup order
API_KEY_ENV = {
    "gemini": ("GOOGLE_GEMINI_API_KEY", "GEMINI_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
}

MODEL_ENV = {
    "gemini": "GEMINI_MODEL",
    "openai": "OPENAI_CHAT_MODEL",
    "anthropic": "ANTHROPIC_MODEL",
}


class Settings(BaseModel):
    """Runtime settings, usually built from the environment."""

    provider: str = Field(default="gemini", description="LLM provider name")
    api_key: str | None = Field(default=None, description="Provider API key")
    model: str | None = Field(default=None, description="Model override")
    response_mode: Literal["stream", "json"] = Field(
        default="stream",
        description="How /api/chat relays replies: SSE frames or one JSON body"
    )
    host: str = "127.0.0.1"
    port: int = 8000
    server_url: str = "http://127.0.0.1:8000"
    history_path: Path = DEFAULT_HISTORY_PATH
    log_level: str = "INFO"

    @property
    def resolved_model(self) -> str:
        """Model to request, falling back to the provider default."""
        return self.model or DEFAULT_MODELS.get(self.provider, "")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Environment variables:
            LLM_PROVIDER: gemini, openai or anthropic (default: gemini)
            GOOGLE_GEMINI_API_KEY / GEMINI_API_KEY: Gemini key
            OPENAI_API_KEY: OpenAI key
            ANTHROPIC_API_KEY: Anthropic key
            GEMINI_MODEL / OPENAI_CHAT_MODEL / ANTHROPIC_MODEL: model overrides
            CHAT_RESPONSE_MODE: stream or json (default: stream)
            CHAT_HOST / CHAT_PORT: bind address for `chatrelay serve`
            CHAT_SERVER_URL: backend used by the chat clients
            CHAT_HISTORY_PATH: directory for the persisted transcript
            LOG_LEVEL: logging level name (default: INFO)
        """
        provider = os.getenv("LLM_PROVIDER", "gemini").lower()
        if provider == "claude":
            provider = "anthropic"

        api_key = None
        for name in API_KEY_ENV.get(provider, ()):
            api_key = os.getenv(name)
            if api_key:
                break

        model_env = MODEL_ENV.get(provider)
        host = os.getenv("CHAT_HOST", "127.0.0.1")
        port = int(os.getenv("CHAT_PORT", "8000"))

        return cls(
            provider=provider,
            api_key=api_key,
            model=os.getenv(model_env) if model_env else None,
            response_mode=os.getenv("CHAT_RESPONSE_MODE", "stream").lower(),
            host=host,
            port=port,
            server_url=os.getenv("CHAT_SERVER_URL", f"http://{host}:{port}"),
            history_path=Path(os.getenv("CHAT_HISTORY_PATH", str(DEFAULT_HISTORY_PATH))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
