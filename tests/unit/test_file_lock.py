import asyncio
import logging
import os
import time

import pytest

from configstore_lib.errors import LockFileRaceError, LockTimeout
from configstore_lib.locking import LockCoordinator, LockState


def make_lock(tmp_path, **kwargs):
    opts = {'timeout': 2.0, 'retry_interval': 0.01, 'max_age': 30.0}
    opts.update(kwargs)
    return LockCoordinator(tmp_path / 'store.lock', **opts)


def test_acquire_creates_and_release_removes_sentinel(tmp_path):
    lock = make_lock(tmp_path)

    async def run():
        await lock.acquire()
        assert lock.lock_path.exists()
        assert lock.lock_path.stat().st_size == 0
        assert lock.held is True
        assert lock.state is LockState.HELD
        lock.release()

    asyncio.run(run())
    assert not lock.lock_path.exists()
    assert lock.held is False
    assert lock.state is LockState.FREE


def test_acquire_is_reentrant_within_task(tmp_path):
    lock = make_lock(tmp_path)

    async def run():
        await lock.acquire()
        await lock.acquire()
        assert lock.depth == 2
        lock.release()
        # still held by the outer acquire
        assert lock.lock_path.exists()
        lock.release()
        assert not lock.lock_path.exists()

    asyncio.run(run())


def test_release_when_not_holding_is_noop(tmp_path):
    lock = make_lock(tmp_path)
    lock.release()
    lock.release()
    assert lock.state is LockState.FREE


def test_release_does_not_remove_foreign_sentinel(tmp_path):
    lock = make_lock(tmp_path)
    lock.lock_path.touch()
    lock.release()
    assert lock.lock_path.exists()


def test_stale_sentinel_is_evicted_without_waiting(tmp_path):
    lock = make_lock(tmp_path, max_age=0.05, retry_interval=1.0, timeout=5.0)
    lock.lock_path.touch()
    time.sleep(0.15)

    async def run():
        start = time.monotonic()
        await lock.acquire()
        elapsed = time.monotonic() - start
        lock.release()
        return elapsed

    elapsed = asyncio.run(run())
    assert elapsed < 1.0


def test_evict_skips_sentinel_replaced_since_judged(tmp_path):
    lock = make_lock(tmp_path)
    lock.lock_path.touch()
    judged = lock.lock_path.stat()
    fresh = tmp_path / 'fresh.lock'
    fresh.touch()
    os.replace(fresh, lock.lock_path)

    assert lock._evict(judged) is False
    assert lock.lock_path.exists()
    assert lock._evict(lock.lock_path.stat()) is True
    assert not lock.lock_path.exists()


def test_stale_sentinel_taken_over_by_another_process_is_not_stolen(tmp_path):
    lock = make_lock(tmp_path, max_age=0.3, retry_interval=0.01, timeout=0.1)
    lock.lock_path.touch()
    time.sleep(0.4)
    evict = lock._evict

    def takeover_then_evict(judged):
        # another process evicts the stale sentinel and creates its own
        fresh = tmp_path / 'other.lock'
        fresh.touch()
        os.replace(fresh, lock.lock_path)
        return evict(judged)

    lock._evict = takeover_then_evict
    with pytest.raises(LockTimeout):
        asyncio.run(lock.acquire())
    assert lock.lock_path.exists()
    assert lock.held is False


def test_timeout_when_sentinel_stays(tmp_path):
    lock = make_lock(tmp_path, timeout=0.2, retry_interval=0.02, max_age=60)
    lock.lock_path.touch()

    async def run():
        await lock.acquire()

    start = time.monotonic()
    with pytest.raises(LockTimeout) as exc:
        asyncio.run(run())
    assert time.monotonic() - start >= 0.2
    assert exc.value.lock_path == lock.lock_path
    assert lock.state is LockState.TIMED_OUT
    # the competitor's sentinel is untouched
    assert lock.lock_path.exists()
    assert lock.held is False


def test_lock_timeout_is_timeout_error(tmp_path):
    assert issubclass(LockTimeout, TimeoutError)


def test_waiter_acquires_after_other_holder_releases(tmp_path):
    first = make_lock(tmp_path)
    second = make_lock(tmp_path)
    order = []

    async def holder():
        await first.acquire()
        order.append('first-in')
        await asyncio.sleep(0.1)
        order.append('first-out')
        first.release()

    async def waiter():
        await asyncio.sleep(0.01)
        await second.acquire()
        order.append('second-in')
        second.release()

    async def run():
        await asyncio.gather(holder(), waiter())

    asyncio.run(run())
    assert order == ['first-in', 'first-out', 'second-in']
    assert not first.lock_path.exists()


def test_tasks_in_one_process_are_serialized(tmp_path):
    lock = make_lock(tmp_path)
    active = []
    overlaps = []

    async def critical(name):
        async with lock.hold():
            active.append(name)
            if len(active) > 1:
                overlaps.append(tuple(active))
            await asyncio.sleep(0.02)
            active.remove(name)

    async def run():
        await asyncio.gather(*(critical(i) for i in range(4)))

    asyncio.run(run())
    assert overlaps == []
    assert not lock.lock_path.exists()


def test_lost_create_race_retries(tmp_path):
    lock = make_lock(tmp_path)
    original = lock._create_sentinel
    calls = []

    def racing_create():
        calls.append(1)
        if len(calls) == 1:
            raise LockFileRaceError(lock.lock_path)
        original()

    lock._create_sentinel = racing_create

    async def run():
        await lock.acquire()
        assert lock.held
        lock.release()

    asyncio.run(run())
    assert len(calls) == 2


def test_unexpected_create_error_propagates(tmp_path):
    lock = make_lock(tmp_path)

    def broken_create():
        raise PermissionError("read-only filesystem")

    lock._create_sentinel = broken_create

    async def run():
        await lock.acquire()

    with pytest.raises(PermissionError):
        asyncio.run(run())
    assert lock.held is False


def test_release_error_is_logged_not_raised(tmp_path, caplog):
    lock = make_lock(tmp_path)

    async def run():
        await lock.acquire()
        # Replace the sentinel with a directory so unlink fails.
        lock.lock_path.unlink()
        lock.lock_path.mkdir()
        lock.release()

    with caplog.at_level(logging.ERROR, logger='configstore_lib.locking.file_lock'):
        asyncio.run(run())
    assert 'Lock release error' in caplog.text
    assert lock.held is False
    assert lock.state is LockState.FREE


def test_disabled_lock_is_noop(tmp_path):
    lock = make_lock(tmp_path, use_lock=False)
    lock.lock_path.touch()

    async def run():
        await lock.acquire()
        lock.release()

    asyncio.run(run())
    # foreign sentinel neither waited on nor removed
    assert lock.lock_path.exists()
    assert lock.held is False


def test_force_clear(tmp_path):
    lock = make_lock(tmp_path)
    assert lock.force_clear() is False
    lock.lock_path.touch()
    assert lock.force_clear() is True
    assert not lock.lock_path.exists()


def test_sentinel_age(tmp_path):
    lock = make_lock(tmp_path)
    assert lock.sentinel_age() is None
    lock.lock_path.touch()
    age = lock.sentinel_age()
    assert age is not None and age >= 0
