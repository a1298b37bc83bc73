"""Document backend interface definitions.

Defines the DocumentBackend abstract class used to persist and retrieve
the raw bytes of a single configuration document. Backends know nothing
about the document format; serializers translate bytes to mappings.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class DocumentBackend(ABC):
    """Abstract backend holding exactly one document.

    Backends do no locking of their own. Callers that share a backend
    across processes must serialize access (see `LockCoordinator`).
    """

    #: Filesystem location of the document, or None for non-file backends.
    location: Optional[Path] = None

    @abstractmethod
    def save(self, data: bytes) -> None:
        """Replace the stored document with `data`.

        Implementations must replace prior content entirely and should
        write atomically when possible.
        """

    @abstractmethod
    def load(self) -> bytes:
        """Return the stored document bytes.

        Should raise `KeyError` if no document has been stored yet.
        """

    @abstractmethod
    def delete(self) -> None:
        """Delete the stored document. Raise `KeyError` if not found."""

    @abstractmethod
    def exists(self) -> bool:
        """Return True if a document has been stored."""
