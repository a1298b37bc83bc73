"""Document backend that maps all operations to a single specific file.

Writes go to a sibling temporary file which is then renamed over the
target, so readers in other processes never observe a half-written
document. Reads return raw bytes so the backend composes with any
serializer.
"""
from __future__ import annotations
import os
from pathlib import Path
from .base import DocumentBackend
import logging

logger = logging.getLogger(__name__)


class SingleFileStorage(DocumentBackend):
    """Backend that targets a single on-disk file.

    Parameters
    - file_path: path to the single file used for all reads/writes.
      If the file does not exist, `load` will raise `KeyError`.
    """

    def __init__(self, file_path: str | Path) -> None:
        self.file_path = Path(file_path)
        # Ensure parent directory exists so writes succeed.
        if not self.file_path.parent.exists():
            os.makedirs(self.file_path.parent, exist_ok=True)

    @property
    def location(self) -> Path:  # type: ignore[override]
        return self.file_path

    def save(self, data: bytes) -> None:
        path = self.file_path
        # Per-process temp name so two writers never share a temp file.
        tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        try:
            with open(tmp, "wb") as f:
                f.write(bytes(data))
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(path)
        except OSError:
            if tmp.exists():
                tmp.unlink()
            raise
        logger.debug("SingleFileStorage wrote %s (%d bytes)", path, len(data))

    def load(self) -> bytes:
        path = self.file_path
        if not path.exists():
            raise KeyError(str(path))
        with open(path, "rb") as f:
            data = f.read()
            logger.debug("SingleFileStorage loaded %s (%d bytes)", path, len(data))
            return data

    def delete(self) -> None:
        if not self.file_path.exists():
            raise KeyError(str(self.file_path))
        self.file_path.unlink()

    def exists(self) -> bool:
        return self.file_path.exists()

