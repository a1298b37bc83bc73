"""Shared, scoped key/value configuration for host-application plugins."""

from configstore_lib.errors import (
    ConfigStoreError,
    InvalidKeyError,
    LockTimeout,
    PersistenceError,
)
from configstore_lib.locking import LockCoordinator
from configstore_lib.scoped import PerPluginConfig, ScopeContext, UserConfig
from configstore_lib.storage import JsonDocument

__all__ = [
    "ConfigStoreError",
    "InvalidKeyError",
    "JsonDocument",
    "LockCoordinator",
    "LockTimeout",
    "PerPluginConfig",
    "PersistenceError",
    "ScopeContext",
    "UserConfig",
]
