"""Request and response bodies of the backend route."""

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..errors import ChatValidationError
from ..llm.models import ChatMessage


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


class ChatReply(BaseModel):
    content: str


class ErrorBody(BaseModel):
    error: str


class HealthStatus(BaseModel):
    status: str
    provider: str
    model: str
    mode: str
    configured: bool


def parse_chat_request(body: Any) -> list[ChatMessage]:
    """Validate a decoded request body.

    Raises:
        ChatValidationError: If ``messages`` is missing or empty, the last
            message is not a non-empty user turn, or any entry is malformed
    """
    messages = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(messages, list) or not messages:
        raise ChatValidationError("A non-empty 'messages' array is required.")

    last = messages[-1]
    if not isinstance(last, dict) or last.get("role") != "user" or not last.get("content"):
        raise ChatValidationError('The last message must have role "user" and non-empty content.')

    try:
        return ChatRequest.model_validate(body).messages
    except ValidationError as e:
        raise ChatValidationError(f"Malformed messages: {e.error_count()} invalid field(s).") from e
