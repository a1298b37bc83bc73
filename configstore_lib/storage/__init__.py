"""Storage abstraction package for the configuration store."""

from pathlib import Path
from typing import Optional

from .base import DocumentBackend
from .json_document import JsonDocument
from .memory_backend import MemoryStorage
from .serializer import get_serializer
from .single_file_backend import SingleFileStorage


def create_backend(backend: str = "file", *, file_path: Optional[str | Path] = None) -> DocumentBackend:
    """Create a document backend by name (``file`` or ``memory``)."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        if file_path is None:
            raise ValueError("file backend requires file_path")
        return SingleFileStorage(file_path)
    raise ValueError(f"Unknown storage backend: {backend}")


def create_document(
    backend: str = "file",
    serializer: str = "json",
    *,
    file_path: Optional[str | Path] = None,
) -> JsonDocument:
    """Compose a backend and serializer into a lazily-loaded `JsonDocument`."""
    return JsonDocument(create_backend(backend, file_path=file_path), get_serializer(serializer))


__all__ = [
    "DocumentBackend",
    "JsonDocument",
    "MemoryStorage",
    "SingleFileStorage",
    "create_backend",
    "create_document",
]
