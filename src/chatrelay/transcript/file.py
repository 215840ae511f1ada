"""File storage backend.

Each key is stored as one UTF-8 file inside a directory, so the transcript
survives restarts of the terminal client.
"""

import os
import re
from pathlib import Path

from .base import Storage

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class FileStorage(Storage):
    """Directory-backed storage, one ``<key>.json`` file per key."""

    def __init__(self, path: str | Path):
        self._root = Path(path).expanduser()

    def _path_for(self, key: str) -> Path:
        return self._root / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        # Write-then-rename so a crash never leaves a truncated transcript
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def remove(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    @property
    def backend_type(self) -> str:
        return "file"

    @property
    def root(self) -> Path:
        return self._root
