# sceneflix/watchlist/storage.py
"""
Key/value persistence media for the watchlist.

A value is always written whole: JsonFileStorage writes to a temp file in
the same directory and ``os.replace``s it over the target, so a reader
either sees the previous document or the new one.
"""
from __future__ import annotations

import contextlib
import os
import re
import tempfile
from abc import ABC, abstractmethod

from sceneflix.errors import StorageError

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value stored under *key*."""


class MemoryStorage(KeyValueStorage):
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage(KeyValueStorage):
    """One ``<key>.json`` file per key inside *directory*."""

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def _path(self, key: str) -> str:
        if not _SAFE_KEY_RE.match(key):
            raise StorageError(f"Unsafe storage key: {key!r}")
        return os.path.join(self.directory, f"{key}.json")

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = None
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{key}.", dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise StorageError(f"Cannot write {path}: {e}") from e
