from .settings import (
    StoreSettings,
    YamlSettingsStore,
    build_store,
    build_user_config,
    load_settings,
)

__all__ = [
    "StoreSettings",
    "YamlSettingsStore",
    "build_store",
    "build_user_config",
    "load_settings",
]
