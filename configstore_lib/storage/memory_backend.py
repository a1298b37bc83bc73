"""Simple memory-backed document backend

Keeps the serialized document bytes in memory. Useful for tests and for
single-process deployments that do not need the document on disk.
"""
from threading import RLock
from typing import Optional
from pathlib import Path

from .base import DocumentBackend


class MemoryStorage(DocumentBackend):
    location: Optional[Path] = None

    def __init__(self, initial: Optional[bytes] = None):
        self._lock = RLock()
        self._data: Optional[bytes] = initial
        self.save_count = 0

    def save(self, data: bytes) -> None:
        with self._lock:
            self._data = bytes(data)
            self.save_count += 1

    def load(self) -> bytes:
        with self._lock:
            if self._data is None:
                raise KeyError("document")
            return self._data

    def delete(self) -> None:
        with self._lock:
            if self._data is None:
                raise KeyError("document")
            self._data = None

    def exists(self) -> bool:
        with self._lock:
            return self._data is not None
