"""In-memory JSON document with explicit persistence.

The document is loaded lazily on first access and kept in memory until
`reload()` is called. Mutations only touch the in-memory mapping; `save()`
writes the whole mapping back, replacing the previous file content.

Only one `JsonDocument` should exist per backing file in a process: two
instances each believe they own the in-memory copy and will overwrite
each other's changes on save.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Optional

from configstore_lib.errors import PersistenceError
from .base import DocumentBackend
from .serializer import JSONSerializer, Serializer

logger = logging.getLogger(__name__)

_ABSENT = object()


class JsonDocument:
    """Flat ``str -> JSON value`` mapping backed by a `DocumentBackend`."""

    def __init__(self, backend: DocumentBackend, serializer: Optional[Serializer] = None) -> None:
        self.backend = backend
        self.serializer = serializer or JSONSerializer()
        self._data: Optional[dict[str, Any]] = None

    @property
    def _where(self) -> str:
        return str(self.backend.location or type(self.backend).__name__)

    @property
    def loaded(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> dict[str, Any]:
        """The live in-memory mapping. Caller mutations are visible to `save()`."""
        if self._data is None:
            self._data = self._read()
        return self._data

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.backend.load()
        except KeyError:
            logger.debug("No document at %s; starting empty", self._where)
            return {}
        except OSError as e:
            raise PersistenceError(self._where, f"Failed to read document ({e})") from e

        if not raw.strip():
            return {}
        try:
            value = self.serializer.load(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise PersistenceError(self._where, "Document is not valid JSON") from e
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise PersistenceError(self._where, "Document root must be a JSON object")
        return value

    def get_all(self) -> dict[str, Any]:
        return self.data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def set_default(self, key: str, default: Any) -> Any:
        return self.data.setdefault(key, default)

    def delete(self, key: str) -> bool:
        return self.data.pop(key, _ABSENT) is not _ABSENT

    def reload(self) -> dict[str, Any]:
        """Read the document again and replace the in-memory copy.

        The current copy is kept when the read fails.
        """
        fresh = self._read()
        self._data = fresh
        return fresh

    def _write(self, payload: bytes) -> None:
        try:
            self.backend.save(payload)
        except OSError as e:
            raise PersistenceError(self._where, f"Failed to write document ({e})") from e

    async def save(self) -> None:
        """Serialize the in-memory mapping and replace the stored document."""
        payload = self.serializer.dump(self.data)
        await asyncio.to_thread(self._write, payload)
        logger.debug("Saved %d keys to %s", len(self.data), self._where)

