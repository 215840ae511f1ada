"""Transcript module for chatrelay.

Keeps the ordered conversation and persists it to a key-value store.
"""

from .base import Storage
from .factory import create_storage
from .file import FileStorage
from .in_memory import InMemoryStorage
from .models import Message
from .store import TranscriptStore

__all__ = [
    "FileStorage",
    "InMemoryStorage",
    "Message",
    "Storage",
    "TranscriptStore",
    "create_storage",
]
