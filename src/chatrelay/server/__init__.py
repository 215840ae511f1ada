"""Backend for the chat client.

- schemas.py: request/response bodies and request validation
- service.py: provider calls (whole reply with one empty-retry, or SSE frames)
- app.py: FastAPI application and error mapping
"""

from .app import create_app
from .schemas import ChatReply, ChatRequest, parse_chat_request
from .service import ChatService

__all__ = ["ChatReply", "ChatRequest", "ChatService", "create_app", "parse_chat_request"]
