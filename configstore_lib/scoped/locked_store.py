from __future__ import annotations
import logging
from typing import Any

from configstore_lib.locking import LockCoordinator
from configstore_lib.storage.interfaces import DocumentProtocol

logger = logging.getLogger(__name__)


class LockedDocumentStore:
    """Raw document access where every operation runs under the lock.

    Writes are a single critical section: reload (optional), mutate, save.
    With `reload_before_write` enabled the in-memory copy is refreshed from
    disk after the lock is taken, so keys written by other processes since
    our last load survive our save.
    """

    def __init__(
        self,
        document: DocumentProtocol,
        coordinator: LockCoordinator,
        *,
        reload_before_write: bool = True,
    ) -> None:
        self.document = document
        self.coordinator = coordinator
        self.reload_before_write = reload_before_write

    async def get_raw(self) -> dict[str, Any]:
        async with self.coordinator.hold():
            return self.document.data

    async def set_raw(self, key: str, value: Any) -> None:
        async with self.coordinator.hold():
            if self.reload_before_write:
                self.document.reload()
            self.document.set(key, value)
            await self.document.save()
        logger.debug("Set %s", key)

    async def delete_raw(self, key: str) -> bool:
        async with self.coordinator.hold():
            if self.reload_before_write:
                self.document.reload()
            existed = self.document.delete(key)
            if existed:
                await self.document.save()
        return existed

    async def set_default_raw(self, key: str, default: Any) -> Any:
        """Store `default` at `key` unless a value is present; return the effective value."""
        async with self.coordinator.hold():
            if self.reload_before_write:
                self.document.reload()
            if key in self.document.data:
                return self.document.data[key]
            self.document.set(key, default)
            await self.document.save()
            return default

    async def save(self) -> None:
        async with self.coordinator.hold():
            await self.document.save()

    async def reload(self) -> dict[str, Any]:
        async with self.coordinator.hold():
            return self.document.reload()
