"""Scoped configuration: key encoding, priority resolution and locked access."""

from .keys import ScopedKey, ScopeType, encode_key, parse_key
from .library_ids import LibraryIdMap
from .locked_store import LockedDocumentStore
from .store import GLOBAL_SCOPE, PerPluginConfig, Resolution, ScopeContext
from .user_config import UserConfig

__all__ = [
    "GLOBAL_SCOPE",
    "LibraryIdMap",
    "LockedDocumentStore",
    "PerPluginConfig",
    "Resolution",
    "ScopeContext",
    "ScopeType",
    "ScopedKey",
    "UserConfig",
    "encode_key",
    "parse_key",
]
