"""In-memory storage backend.

Values are lost when the process exits. Suitable for tests and one-off sessions.
"""

from .base import Storage


class InMemoryStorage(Storage):
    """Dict-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def backend_type(self) -> str:
        return "memory"
