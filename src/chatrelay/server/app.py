"""FastAPI backend exposing ``POST /api/chat``."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from ..config import CHAT_ROUTE, HEALTH_ROUTE, Settings
from ..errors import (
    SERVER_MESSAGE,
    ChatRelayError,
    ChatValidationError,
    ConfigurationError,
    EmptyCompletionError,
    UpstreamError,
)
from ..llm.base import LLMProvider
from ..llm.factory import provider_from_settings
from .schemas import ChatReply, ErrorBody, HealthStatus, parse_chat_request
from .service import ChatService

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = (
    "The upstream API key is not configured. "
    "Set GOOGLE_GEMINI_API_KEY (or the key for LLM_PROVIDER) in .env."
)

# Upstream statuses passed through to the browser; anything else becomes 500
PASSTHROUGH_STATUSES = {401, 429}


def status_for(exc: ChatRelayError) -> int:
    if isinstance(exc, ChatValidationError):
        return 400
    if isinstance(exc, EmptyCompletionError):
        return 502
    if isinstance(exc, UpstreamError) and exc.status_code in PASSTHROUGH_STATUSES:
        return exc.status_code
    return 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorBody(error=message).model_dump(), status_code=status_code)


def create_app(
    settings: Settings | None = None,
    provider: LLMProvider | None = None,
) -> FastAPI:
    """Build the backend application.

    Args:
        settings: Runtime settings (default: from the environment)
        provider: Upstream provider (default: built from ``settings``; the
            route answers 500 when neither yields one)
    """
    settings = settings or Settings.from_env()
    if provider is None:
        provider = provider_from_settings(settings)
    service = ChatService(provider) if provider is not None else None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if service is None:
            logger.warning("No API key configured for provider %r", settings.provider)
        else:
            logger.info(
                "Relaying chat to %s (%s), mode=%s",
                service.provider.name, service.provider.model, settings.response_mode,
            )
        yield
        if service is not None:
            await service.provider.close()

    app = FastAPI(title="chatrelay", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.chat_service = service

    @app.exception_handler(ChatRelayError)
    async def handle_chat_error(request: Request, exc: ChatRelayError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return error_response(status_code, str(exc) or SERVER_MESSAGE)

    @app.get(HEALTH_ROUTE, response_model=HealthStatus)
    async def health() -> HealthStatus:
        return HealthStatus(
            status="ok",
            provider=settings.provider,
            model=service.provider.model if service else settings.resolved_model,
            mode=settings.response_mode,
            configured=service is not None,
        )

    @app.post(CHAT_ROUTE)
    async def chat(request: Request):
        if service is None:
            raise ConfigurationError(MISSING_KEY_MESSAGE)

        try:
            body = await request.json()
        except ValueError:
            body = None
        messages = parse_chat_request(body)

        if settings.response_mode == "json":
            try:
                content = await service.complete(messages)
            except ChatRelayError:
                raise
            except Exception as e:
                logger.exception("Chat completion failed")
                return error_response(500, str(e) or SERVER_MESSAGE)
            return JSONResponse(ChatReply(content=content).model_dump())

        return StreamingResponse(
            service.stream(messages),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return app
