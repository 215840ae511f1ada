"""Data models for the chat transcript.

These models define a transcript entry independently of the storage backend
used to persist it.
"""

import time
from uuid import uuid4

from pydantic import BaseModel, Field

from ..llm.models import ChatMessage, Role


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class Message(BaseModel):
    """One transcript entry.

    ``id`` and ``timestamp`` are optional so that transcripts written by
    other clients (or hand-edited) still load.
    """

    role: Role = Field(description="'user', 'assistant' or 'system'")
    content: str = Field(default="", description="Message text")
    id: str | None = Field(default=None, description="Client-side identifier")
    timestamp: int | None = Field(default=None, description="Creation time in epoch millis")

    @classmethod
    def create(cls, role: Role, content: str = "") -> "Message":
        """Build a message with a fresh identifier and the current time."""
        return cls(
            role=role,
            content=content,
            id=f"{role}-{uuid4().hex}",
            timestamp=now_millis(),
        )

    def to_chat_message(self) -> ChatMessage:
        """Reduce to the ``{role, content}`` wire form."""
        return ChatMessage(role=self.role, content=self.content)
