"""
String key-value stores an engine persists its script into.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from mjss.mjss_datatypes import StoreError


class Store(ABC):
    """The persistence contract: one string value per key."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None: raise NotImplementedError


class MemoryStore(Store):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = str(value)


class FileStore(Store):
    """Keeps each key in `<directory>/<key>.mjss` as UTF-8 text."""

    EXTENSION = ".mjss"

    def __init__(self, directory: str):
        self.directory = os.path.expanduser(directory)

    def path_for(self, key: str) -> str:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid store key: {key!r}")
        return os.path.join(self.directory, key + self.EXTENSION)

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            os.makedirs(self.directory or ".", exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(str(value))
        except OSError as e:
            raise StoreError(f"Cannot write {path}: {e}") from e


__all__ = ["Store", "MemoryStore", "FileStore"]
