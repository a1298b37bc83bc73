"""Per-user plugin configuration shared by every plugin of the host application.

The document lives in the user's roaming directory and holds plain,
unscoped keys.
"""
from __future__ import annotations
from typing import Any

from configstore_lib.scoped.locked_store import LockedDocumentStore

USER_CONFIG_FILE = "pluginConfig.json"
USER_LOCK_FILE = "pluginConfig.lock"


class UserConfig:
    def __init__(self, store: LockedDocumentStore) -> None:
        self.store = store

    @property
    def path(self):
        return self.store.document.backend.location

    async def get_all(self) -> dict[str, Any]:
        return await self.store.get_raw()

    async def get(self, key: str, default: Any = None) -> Any:
        data = await self.store.get_raw()
        return data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        await self.store.set_raw(key, value)

    async def set_default(self, key: str, default: Any) -> Any:
        return await self.store.set_default_raw(key, default)

    async def delete(self, key: str) -> bool:
        return await self.store.delete_raw(key)

    async def save(self) -> None:
        await self.store.save()
