"""Exception types raised by the configuration store.

Lock protocol failures are either handled internally (`LockFileRaceError`)
or surfaced once as `LockTimeout`. Persistence failures propagate to the
caller of the operation that triggered the load or save.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional


class ConfigStoreError(Exception):
    """Base class for all configuration store errors."""


class LockTimeout(ConfigStoreError, TimeoutError):
    """The lock could not be acquired within the configured timeout."""

    def __init__(self, lock_path: Path | str, timeout: float) -> None:
        self.lock_path = Path(lock_path)
        self.timeout = timeout
        super().__init__(f"Lock timeout after {int(timeout * 1000)}ms waiting for {self.lock_path}")


class LockFileRaceError(ConfigStoreError):
    """Another process created the sentinel between the existence check and our create.

    Raised and caught inside `LockCoordinator.acquire`; never surfaced.
    """

    def __init__(self, lock_path: Path | str) -> None:
        self.lock_path = Path(lock_path)
        super().__init__(f"Lost exclusive-create race for {self.lock_path}")


class LockReleaseError(ConfigStoreError):
    """The sentinel could not be removed on release.

    Only used to describe the failure in the log; release never raises.
    """

    def __init__(self, lock_path: Path | str, reason: Optional[str] = None) -> None:
        self.lock_path = Path(lock_path)
        self.reason = reason
        msg = f"Failed to remove lock sentinel {self.lock_path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PersistenceError(ConfigStoreError, OSError):
    """Reading or writing the backing document failed."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")


class InvalidKeyError(ConfigStoreError, ValueError):
    """A logical key or scoped key does not fit the key encoding."""
