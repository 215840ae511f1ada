"""Factory for creating transcript storage backends."""

from typing import Any

from .base import Storage


def create_storage(backend: str = "memory", **kwargs: Any) -> Storage:
    """Create a storage backend.

    Args:
        backend: Backend type ("memory" or "file")
        **kwargs: Backend-specific configuration (``path`` for "file")

    Returns:
        Storage instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryStorage
        return InMemoryStorage(**kwargs)

    elif backend == "file":
        from .file import FileStorage
        return FileStorage(**kwargs)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: memory, file"
    )
