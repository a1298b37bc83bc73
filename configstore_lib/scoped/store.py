"""Scope-aware configuration for a single plugin.

Values can be set at item, folder, library and global scope. A read with
a context resolves in the order item > folder > library > global and
returns the first value that is present, even when that value is falsy.

Scoped entries are namespaced by the plugin id so several plugins can
share one backing document without seeing each other's scoped values.
Global entries are shared by every plugin using the document.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from configstore_lib.errors import InvalidKeyError
from configstore_lib.scoped.keys import (
    PRIORITY,
    ScopedKey,
    ScopeType,
    check_logical_key,
    encode_key,
    parse_key,
    scope_type,
)
from configstore_lib.scoped.library_ids import LibraryIdMap, LibraryIdResolver, LibraryPathLookup
from configstore_lib.scoped.locked_store import LockedDocumentStore

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"


class ScopeContext(BaseModel):
    """Optional item, folder and library identifiers for one lookup."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    item_id: Optional[str] = Field(default=None, alias="itemId")
    folder_id: Optional[str] = Field(default=None, alias="folderId")
    library_id: Optional[str] = Field(default=None, alias="libraryId")

    @field_validator("item_id", "folder_id", "library_id", mode="before")
    @classmethod
    def _numeric_ids_as_str(cls, v: Any) -> Any:
        # hosts may hand over numeric item and folder ids
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def scope_id(self, st: ScopeType) -> Optional[str]:
        return {
            ScopeType.ITEM: self.item_id,
            ScopeType.FOLDER: self.folder_id,
            ScopeType.LIBRARY: self.library_id,
        }[st]


ContextLike = Union[ScopeContext, Mapping[str, Any], None]


@dataclass(frozen=True)
class Resolution:
    """Where a resolved value came from."""

    scope: str
    key: str
    value: Any


def as_context(context: ContextLike) -> ScopeContext:
    if context is None:
        return ScopeContext()
    if isinstance(context, ScopeContext):
        return context
    try:
        return ScopeContext.model_validate(dict(context))
    except ValidationError as e:
        raise InvalidKeyError(f"Invalid scope context: {e}") from None


class PerPluginConfig:
    """Scoped get/set for one plugin on top of a `LockedDocumentStore`.

    Parameters
    - store: locked raw accessors for the shared document.
    - plugin_id: identifier of the plugin reading and writing values.
    - resolve_library_id: maps a library path to its short id. Defaults to
      a `LibraryIdMap`.
    - get_library_path: reverse lookup for `get_library_path`. Defaults to
      the `LibraryIdMap` reverse mapping when the default resolver is used.
    """

    def __init__(
        self,
        store: LockedDocumentStore,
        plugin_id: str,
        resolve_library_id: Optional[LibraryIdResolver] = None,
        get_library_path: Optional[LibraryPathLookup] = None,
    ) -> None:
        if not plugin_id:
            raise ValueError("plugin_id is required")
        self.store = store
        self.plugin_id = plugin_id
        if resolve_library_id is None:
            id_map = LibraryIdMap()
            resolve_library_id = id_map.get_id
            get_library_path = get_library_path or id_map.get_path
        self._resolve_library_id = resolve_library_id
        self._get_library_path = get_library_path

    def build_key(self, type_: Union[str, ScopeType], scope_id: str, key: str) -> str:
        """Encode `key` for the given scope. Library scope ids are resolved from paths first."""
        st = scope_type(type_)
        if st is ScopeType.LIBRARY:
            scope_id = self._resolve_library_id(scope_id)
        return encode_key(st, scope_id, self.plugin_id, key)

    def candidates(self, key: str, context: ContextLike = None) -> List[Tuple[str, str]]:
        """Return ``(scope, stored_key)`` pairs in resolution order."""
        ctx = as_context(context)
        check_logical_key(key)
        order: List[Tuple[str, str]] = []
        for st in PRIORITY:
            scope_id = ctx.scope_id(st)
            if scope_id is not None:
                order.append((st.value, self.build_key(st, scope_id, key)))
        order.append((GLOBAL_SCOPE, key))
        return order

    async def resolve(self, key: str, context: ContextLike = None) -> Optional[Resolution]:
        """Find the highest-priority present value, or None if no scope has one."""
        order = self.candidates(key, context)
        data = await self.store.get_raw()
        for scope, stored_key in order:
            if stored_key in data:
                return Resolution(scope=scope, key=stored_key, value=data[stored_key])
        return None

    async def get(self, key: str, context: ContextLike = None, default: Any = None) -> Any:
        """Get value with priority: item > folder > library > global."""
        found = await self.resolve(key, context)
        return default if found is None else found.value

    async def has(self, key: str, context: ContextLike = None) -> bool:
        return await self.resolve(key, context) is not None

    # Scoped setters
    async def set_item(self, item_id: str, key: str, value: Any) -> None:
        await self.store.set_raw(self.build_key(ScopeType.ITEM, item_id, key), value)

    async def set_folder(self, folder_id: str, key: str, value: Any) -> None:
        await self.store.set_raw(self.build_key(ScopeType.FOLDER, folder_id, key), value)

    async def set_library(self, library_path: str, key: str, value: Any) -> None:
        await self.store.set_raw(self.build_key(ScopeType.LIBRARY, library_path, key), value)

    async def set_global(self, key: str, value: Any) -> None:
        await self.store.set_raw(check_logical_key(key), value)

    async def set(self, key: str, value: Any) -> None:
        await self.set_global(key, value)

    async def set_scoped(self, scope: str, scope_id: Optional[str], key: str, value: Any) -> None:
        """Set by scope name; ``scope == 'global'`` ignores `scope_id`."""
        if scope == GLOBAL_SCOPE:
            await self.set_global(key, value)
            return
        if scope_id is None:
            raise InvalidKeyError(f"scope {scope!r} requires a scope id")
        await self.store.set_raw(self.build_key(scope, scope_id, key), value)

    # Direct single-scope lookups, no fallback
    async def _get_direct(self, stored_key: str, default: Any) -> Any:
        data = await self.store.get_raw()
        return data.get(stored_key, default)

    async def get_for_item(self, item_id: str, key: str, default: Any = None) -> Any:
        return await self._get_direct(self.build_key(ScopeType.ITEM, item_id, key), default)

    async def get_for_folder(self, folder_id: str, key: str, default: Any = None) -> Any:
        return await self._get_direct(self.build_key(ScopeType.FOLDER, folder_id, key), default)

    async def get_for_library(self, library_path: str, key: str, default: Any = None) -> Any:
        return await self._get_direct(self.build_key(ScopeType.LIBRARY, library_path, key), default)

    # Removal, so lookups fall through to the next scope
    async def unset_item(self, item_id: str, key: str) -> bool:
        return await self.store.delete_raw(self.build_key(ScopeType.ITEM, item_id, key))

    async def unset_folder(self, folder_id: str, key: str) -> bool:
        return await self.store.delete_raw(self.build_key(ScopeType.FOLDER, folder_id, key))

    async def unset_library(self, library_path: str, key: str) -> bool:
        return await self.store.delete_raw(self.build_key(ScopeType.LIBRARY, library_path, key))

    async def unset_global(self, key: str) -> bool:
        return await self.store.delete_raw(check_logical_key(key))

    async def unset_scoped(self, scope: str, scope_id: Optional[str], key: str) -> bool:
        if scope == GLOBAL_SCOPE:
            return await self.unset_global(key)
        if scope_id is None:
            raise InvalidKeyError(f"scope {scope!r} requires a scope id")
        return await self.store.delete_raw(self.build_key(scope, scope_id, key))

    def get_library_path(self, library_id: str) -> Optional[str]:
        if self._get_library_path is None:
            return None
        return self._get_library_path(library_id)

    async def list_scoped(self, scope: Optional[Union[str, ScopeType]] = None) -> List[Tuple[ScopedKey, Any]]:
        """Scoped entries stored by this plugin, optionally limited to one scope type."""
        wanted = scope_type(scope) if scope is not None else None
        data = await self.store.get_raw()
        return list(self._iter_own(data, wanted))

    def _iter_own(self, data: Mapping[str, Any], wanted: Optional[ScopeType]) -> Iterator[Tuple[ScopedKey, Any]]:
        for raw, value in data.items():
            try:
                parsed = parse_key(raw)
            except InvalidKeyError:
                logger.warning("Skipping malformed scoped key %r", raw)
                continue
            if parsed is None or parsed.plugin_id != self.plugin_id:
                continue
            if wanted is not None and parsed.type is not wanted:
                continue
            yield parsed, value
