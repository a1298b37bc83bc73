"""Library path to short id mapping.

Library scopes are keyed by a short stable id rather than the library's
filesystem path. `LibraryIdMap` is the default resolver; hosts that keep
their own registry can pass any ``path -> id`` callable to the store.
"""
from __future__ import annotations
import hashlib
import os
import threading
from typing import Callable, Dict, Optional

LibraryIdResolver = Callable[[str], str]
LibraryPathLookup = Callable[[str], Optional[str]]

ID_LENGTH = 12


def normalize_library_path(path: str) -> str:
    """Normalize separators, trailing slashes and case so one library yields one id."""
    norm = os.path.normpath(str(path)).replace("\\", "/").rstrip("/")
    return os.path.normcase(norm)


def library_id_for(path: str) -> str:
    digest = hashlib.sha1(normalize_library_path(path).encode("utf-8")).hexdigest()
    return digest[:ID_LENGTH]


class LibraryIdMap:
    """Derive ids from library paths and remember the reverse mapping."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: Dict[str, str] = {}

    def __call__(self, path: str) -> str:
        return self.get_id(path)

    def get_id(self, path: str) -> str:
        lib_id = library_id_for(path)
        with self._lock:
            self._paths.setdefault(lib_id, str(path))
        return lib_id

    def get_path(self, lib_id: str) -> Optional[str]:
        with self._lock:
            return self._paths.get(lib_id)
