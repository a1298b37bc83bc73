"""Store settings and composition helpers.

Settings are plain dataclass values so tests and embedding hosts can
construct them directly; deployments usually keep them in a YAML file:

    document_path: /path/to/plugins/config.json
    lock_path: /path/to/plugins/perPluginConfig.lock
    plugin_id: plugin.sample
    lock_timeout: 10
    log_level: INFO

`CONFIGSTORE_SETTINGS` names the default settings file.
"""
from __future__ import annotations
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from configstore_lib.locking import LockCoordinator
from configstore_lib.paths import plugin_id_from_manifest, roaming_path
from configstore_lib.scoped import LockedDocumentStore, PerPluginConfig, UserConfig
from configstore_lib.scoped.user_config import USER_CONFIG_FILE, USER_LOCK_FILE
from configstore_lib.storage import DocumentBackend, SingleFileStorage, create_document
from configstore_lib.storage.serializer import YAMLSerializer

logger = logging.getLogger(__name__)

SETTINGS_ENV = "CONFIGSTORE_SETTINGS"
DOCUMENT_FILE = "config.json"
LOCK_FILE = "perPluginConfig.lock"


@dataclass
class StoreSettings:
    document_path: str = DOCUMENT_FILE
    lock_path: str = LOCK_FILE
    # None means "<roaming dir>/pluginConfig.json" and its lock
    user_document_path: Optional[str] = None
    user_lock_path: Optional[str] = None
    storage_backend: str = "file"
    use_lock: bool = True
    lock_timeout: float = 10.0
    lock_retry_interval: float = 0.1
    lock_max_age: float = 30.0
    reload_before_write: bool = True
    plugin_id: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def for_plugin_dir(cls, plugin_dir: str | Path, **overrides: Any) -> "StoreSettings":
        """Settings for a plugin installed in `plugin_dir`.

        The shared document and lock sit in the directory holding all
        plugins; the plugin id comes from the plugin's manifest.
        """
        plugin_dir = Path(plugin_dir)
        base = plugin_dir.parent
        values: dict[str, Any] = {
            "document_path": str(base / DOCUMENT_FILE),
            "lock_path": str(base / LOCK_FILE),
            "plugin_id": plugin_id_from_manifest(plugin_dir),
        }
        values.update(overrides)
        return cls(**values)

    def resolved_user_paths(self) -> tuple[Path, Path]:
        roaming = roaming_path()
        doc = Path(self.user_document_path) if self.user_document_path else roaming / USER_CONFIG_FILE
        lock = Path(self.user_lock_path) if self.user_lock_path else roaming / USER_LOCK_FILE
        return doc, lock


class YamlSettingsStore:
    """Serialize/deserialize StoreSettings to YAML using a DocumentBackend."""

    def __init__(self, backend: DocumentBackend):
        self.backend = backend
        self.serializer = YAMLSerializer()

    def save(self, settings: StoreSettings) -> None:
        self.backend.save(self.serializer.dump(asdict(settings)))

    def load(self) -> StoreSettings:
        raw = self.backend.load()
        try:
            data: Any = self.serializer.load(raw)
        except Exception as e:
            raise ValueError("invalid settings format: parse error") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("invalid settings format: expected mapping")

        known = {f.name for f in fields(StoreSettings)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))
        return StoreSettings(**{k: v for k, v in data.items() if k in known})


def load_settings(path: Optional[str | Path] = None) -> StoreSettings:
    """Load settings from `path`, `$CONFIGSTORE_SETTINGS`, or return defaults.

    An explicitly named file that does not exist raises `FileNotFoundError`.
    """
    path = path or os.environ.get(SETTINGS_ENV)
    if not path:
        return StoreSettings()
    try:
        return YamlSettingsStore(SingleFileStorage(path)).load()
    except KeyError:
        raise FileNotFoundError(str(path)) from None


def _coordinator(settings: StoreSettings, lock_path: str | Path) -> LockCoordinator:
    return LockCoordinator(
        lock_path,
        timeout=settings.lock_timeout,
        retry_interval=settings.lock_retry_interval,
        max_age=settings.lock_max_age,
        use_lock=settings.use_lock,
    )


def build_locked_store(settings: StoreSettings, document_path: str | Path, lock_path: str | Path) -> LockedDocumentStore:
    return LockedDocumentStore(
        create_document(settings.storage_backend, file_path=document_path),
        _coordinator(settings, lock_path),
        reload_before_write=settings.reload_before_write,
    )


def build_store(settings: StoreSettings, plugin_id: Optional[str] = None, **kwargs: Any) -> PerPluginConfig:
    """Compose backend, document, lock and scoping into a `PerPluginConfig`.

    Extra keyword arguments are passed to `PerPluginConfig` (library id
    resolver and reverse lookup).
    """
    pid = plugin_id or settings.plugin_id
    if not pid:
        raise ValueError("plugin_id must be given in settings or as argument")
    store = build_locked_store(settings, settings.document_path, settings.lock_path)
    return PerPluginConfig(store, pid, **kwargs)


def build_user_config(settings: StoreSettings) -> UserConfig:
    doc, lock = settings.resolved_user_paths()
    return UserConfig(build_locked_store(settings, doc, lock))
