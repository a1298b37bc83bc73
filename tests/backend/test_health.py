import time
from configstore_lib.config.health import get_health, lock_report
from configstore_lib.locking import LockCoordinator


def test_get_health_contains_fields():
    h = get_health()
    assert isinstance(h, dict)
    assert h.get("status") == "ok"
    assert "start_time" in h
    assert "uptime_seconds" in h
    assert isinstance(h["uptime_seconds"], int)
    assert "lock" not in h


def test_uptime_increases():
    h1 = get_health()
    time.sleep(1)
    h2 = get_health()
    assert h2["uptime_seconds"] >= h1["uptime_seconds"] + 1


def test_health_reports_lock(tmp_path):
    lock = LockCoordinator(tmp_path / "store.lock")
    h = get_health(lock)
    assert h["status"] == "ok"
    assert h["lock"]["sentinel_exists"] is False
    assert h["lock"]["state"] == "free"


def test_stale_lock_degrades_health(tmp_path):
    lock = LockCoordinator(tmp_path / "store.lock", max_age=0.01)
    lock.lock_path.touch()
    time.sleep(0.05)
    report = lock_report(lock)
    assert report["stale"] is True
    assert get_health(lock)["status"] == "degraded"
