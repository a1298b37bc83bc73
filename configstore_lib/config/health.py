"""Server health utilities.

Provides a `get_health` function returning server status, start time,
uptime in seconds and, when a lock coordinator is given, the state of
the document lock.
"""
from datetime import datetime, timezone
from typing import Optional
import time

from configstore_lib.locking import LockCoordinator

# record process start time at import
_START_TIME = time.time()


def lock_report(coordinator: LockCoordinator) -> dict:
    """Describe the lock sentinel for operators.

    `stale` is True when a sentinel exists and is older than the
    coordinator's max age, i.e. the next acquire will evict it.
    """
    age = coordinator.sentinel_age()
    return {
        "path": str(coordinator.lock_path),
        "enabled": coordinator.use_lock,
        "state": coordinator.state.value,
        "held_by_me": coordinator.held,
        "sentinel_exists": age is not None,
        "sentinel_age_seconds": round(age, 3) if age is not None else None,
        "stale": age is not None and age > coordinator.max_age,
    }


def get_health(coordinator: Optional[LockCoordinator] = None) -> dict:
    """Return a dict representing server health.

    Fields:
    - status: 'ok' or 'degraded' (the lock sentinel is stale)
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - lock: lock report, only when `coordinator` is given
    """
    now = time.time()
    uptime = int(now - _START_TIME)
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)
    health = {
        "status": "ok",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": uptime,
    }
    if coordinator is not None:
        lock = lock_report(coordinator)
        health["lock"] = lock
        if lock["stale"]:
            health["status"] = "degraded"
    return health
