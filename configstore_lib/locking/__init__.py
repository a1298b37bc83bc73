"""Cross-process locking for the shared configuration document."""

from .file_lock import LockCoordinator, LockState

__all__ = ["LockCoordinator", "LockState"]
