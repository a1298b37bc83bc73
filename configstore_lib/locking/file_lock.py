"""Advisory cross-process lock over a sentinel file.

The sentinel's existence means "locked". Processes coordinate through the
filesystem only:

- a process that finds the sentinel waits, yielding to the event loop once
  per round and then sleeping for the retry interval;
- a sentinel older than ``max_age`` seconds is presumed abandoned by a
  crashed holder and evicted, unless another process replaced it after its
  age was read;
- the sentinel is created with ``O_CREAT | O_EXCL`` so exactly one process
  wins when several race for a free lock. Losing that race restarts the
  wait loop.

Within a process, tasks are serialized by an ``asyncio.Lock`` before the
filesystem is touched. The task holding the lock may acquire it again
(reentrant); every acquire must be paired with a release.
"""
from __future__ import annotations
import asyncio
import enum
import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from configstore_lib.errors import LockFileRaceError, LockReleaseError, LockTimeout

DEFAULT_LOCK_TIMEOUT = 10.0
DEFAULT_RETRY_INTERVAL = 0.1
DEFAULT_MAX_AGE = 30.0


class LockState(str, enum.Enum):
    FREE = "free"
    CHECKING = "checking"
    WAITING_RETRY = "waiting-retry"
    HELD = "held"
    TIMED_OUT = "timed-out"


class LockCoordinator:
    """Reentrant, cross-process advisory lock backed by a sentinel file.

    Parameters
    - lock_path: location of the zero-byte sentinel file.
    - timeout: seconds to wait before failing with `LockTimeout`.
    - retry_interval: seconds to sleep between checks while the lock is held elsewhere.
    - max_age: seconds after which an existing sentinel counts as stale.
    - use_lock: when False, `acquire` and `release` do nothing.
    """

    def __init__(
        self,
        lock_path: str | Path,
        *,
        timeout: float = DEFAULT_LOCK_TIMEOUT,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
        max_age: float = DEFAULT_MAX_AGE,
        use_lock: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.lock_path = Path(lock_path)
        self.timeout = timeout
        self.retry_interval = retry_interval
        self.max_age = max_age
        self.use_lock = use_lock
        self.logger = logger or logging.getLogger(__name__)

        self.state = LockState.FREE
        self._holder: Optional[int] = None
        self._owner_task: Optional[asyncio.Task] = None
        self._depth = 0
        self._local_lock: Optional[asyncio.Lock] = None
        self._local_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def held(self) -> bool:
        return self._holder == os.getpid()

    @property
    def depth(self) -> int:
        return self._depth

    def sentinel_exists(self) -> bool:
        return self.lock_path.exists()

    def sentinel_age(self) -> Optional[float]:
        """Seconds since the sentinel was created, or None when there is none."""
        st = self._stat_sentinel()
        if st is None:
            return None
        return time.time() - st.st_ctime

    def _process_lock(self) -> asyncio.Lock:
        # asyncio.Lock binds to the loop it first waits on; keep one per loop.
        loop = asyncio.get_running_loop()
        if self._local_lock is None or self._local_loop is not loop:
            self._local_lock = asyncio.Lock()
            self._local_loop = loop
        return self._local_lock

    async def acquire(self) -> None:
        """Acquire the lock, waiting up to `timeout` seconds.

        Raises `LockTimeout` when the sentinel stays held past the timeout.
        Any unexpected error creating the sentinel is propagated.
        """
        if not self.use_lock:
            return

        task = asyncio.current_task()
        if self._depth and self._owner_task is task and self.held:
            self._depth += 1
            return

        loop = asyncio.get_running_loop()
        start = loop.time()
        local = self._process_lock()
        try:
            await asyncio.wait_for(local.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError:
            # Another task in this process still holds the lock; leave its state alone.
            raise LockTimeout(self.lock_path, self.timeout) from None

        try:
            await self._acquire_sentinel(start)
        except BaseException:
            local.release()
            raise

        self._holder = os.getpid()
        self._owner_task = task
        self._depth = 1
        self.state = LockState.HELD
        self.logger.debug("Acquired lock %s", self.lock_path)

    async def _acquire_sentinel(self, start: float) -> None:
        loop = asyncio.get_running_loop()
        while True:
            self.state = LockState.CHECKING
            while True:
                st = self._stat_sentinel()
                if st is None:
                    break
                age = time.time() - st.st_ctime
                if age > self.max_age:
                    self.logger.warning(
                        "Evicting stale lock %s (age %.1fs > %.1fs)", self.lock_path, age, self.max_age
                    )
                    self._evict(st)
                    break

                self.state = LockState.WAITING_RETRY
                await asyncio.sleep(0)
                if loop.time() - start > self.timeout:
                    self.state = LockState.TIMED_OUT
                    raise LockTimeout(self.lock_path, self.timeout)
                await asyncio.sleep(self.retry_interval)
                self.state = LockState.CHECKING

            try:
                self._create_sentinel()
            except LockFileRaceError:
                self.logger.debug("Lost race creating %s; retrying", self.lock_path)
                continue
            return

    def _stat_sentinel(self) -> Optional[os.stat_result]:
        try:
            return self.lock_path.stat()
        except FileNotFoundError:
            return None

    def _evict(self, judged: os.stat_result) -> bool:
        """Remove the sentinel judged stale, unless it has since been replaced.

        Returns True if the sentinel was removed.
        """
        current = self._stat_sentinel()
        if current is None:
            return False
        if (current.st_ino, current.st_ctime) != (judged.st_ino, judged.st_ctime):
            self.logger.debug("Lock %s was replaced before eviction; not removing", self.lock_path)
            return False
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            return False
        return True

    def _create_sentinel(self) -> None:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(str(self.lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            raise LockFileRaceError(self.lock_path) from e
        os.close(fd)

    def release(self) -> None:
        """Release the lock if this process holds it.

        Never raises: a failure to delete the sentinel is logged and the
        in-memory state is cleared anyway.
        """
        if not self.use_lock or self._depth == 0:
            return

        self._depth -= 1
        if self._depth:
            return

        try:
            if self.held:
                self.lock_path.unlink()
        except OSError as e:
            err = LockReleaseError(self.lock_path, str(e))
            self.logger.error("Lock release error: %s", err, exc_info=True)
        finally:
            self._holder = None
            self._owner_task = None
            self.state = LockState.FREE
            local = self._local_lock
            if local is not None and local.locked():
                local.release()
        self.logger.debug("Released lock %s", self.lock_path)

    @asynccontextmanager
    async def hold(self) -> AsyncIterator["LockCoordinator"]:
        """Hold the lock for the duration of the ``async with`` block."""
        await self.acquire()
        try:
            yield self
        finally:
            self.release()

    def force_clear(self) -> bool:
        """Remove the sentinel regardless of owner. Returns True if one was removed.

        Meant for operators cleaning up after a crashed holder; the running
        holder, if any, loses mutual exclusion.
        """
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            return False
        self.logger.warning("Force-cleared lock %s", self.lock_path)
        return True
