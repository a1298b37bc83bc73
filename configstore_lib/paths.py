"""Filesystem locations used by the host application and its plugins."""
from __future__ import annotations
import json
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_APP_NAME = "Eagle"
MANIFEST_FILE = "manifest.json"


def roaming_path(app_name: str = DEFAULT_APP_NAME, platform: Optional[str] = None) -> Path:
    """Return the per-user configuration directory for `app_name`.

    - Windows: ``%APPDATA%/<app_name>``
    - macOS: ``~/Library/Application Support/<app_name>``
    - otherwise: ``~/.config/<app_name lowercased>``
    """
    platform = platform or sys.platform
    home = Path(os.environ.get("HOME") or Path.home())
    if platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / app_name
    if platform == "darwin":
        return home / "Library" / "Application Support" / app_name
    return home / ".config" / app_name.lower()


def plugin_id_from_manifest(plugin_dir: str | Path) -> str:
    """Read the plugin identifier from ``<plugin_dir>/manifest.json``.

    Raises `KeyError` when the manifest has no ``id`` and `FileNotFoundError`
    when there is no manifest.
    """
    path = Path(plugin_dir) / MANIFEST_FILE
    with path.open("r", encoding="utf-8") as f:
        manifest = json.load(f)
    if not isinstance(manifest, dict) or not manifest.get("id"):
        raise KeyError("id")
    return str(manifest["id"])
