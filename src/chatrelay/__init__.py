"""
chatrelay: a streaming LLM chat relay.

A FastAPI backend forwards conversations to an upstream model provider; the
chat client keeps a persisted transcript and assembles streamed replies as
they arrive.
"""

__version__ = "0.1.0"

from .client import ChatSession
from .config import Settings
from .events import EventBus
from .streaming import ChunkParser, StreamAssembler
from .transcript import Message, TranscriptStore

__all__ = [
    "ChatSession",
    "ChunkParser",
    "EventBus",
    "Message",
    "Settings",
    "StreamAssembler",
    "TranscriptStore",
]
