"""Abstract key-value storage for the persisted transcript.

The abstraction hides where the serialized transcript lives (process memory,
a file on disk, ...). Operations are synchronous; callers treat failures as
non-fatal.
"""

from abc import ABC, abstractmethod


class Storage(ABC):
    """Synchronous string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; a missing key is not an error."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
