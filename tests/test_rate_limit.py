from app.core.rate_limit import RateLimiter
from app.utils import scheduler


def test_limit_and_remaining():
    limiter = RateLimiter(max_requests=3, window_seconds=60)
    results = [limiter.hit("u1", now=0) for _ in range(4)]
    assert [r["allowed"] for r in results] == [1, 1, 1, 0]
    assert [r["remaining"] for r in results] == [2, 1, 0, 0]


def test_window_resets_after_expiry():
    limiter = RateLimiter(max_requests=1, window_seconds=60)
    assert limiter.hit("u1", now=0)["allowed"] == 1
    assert limiter.hit("u1", now=30)["allowed"] == 0
    assert limiter.hit("u1", now=61)["allowed"] == 1


def test_users_are_counted_separately():
    limiter = RateLimiter(max_requests=1, window_seconds=60)
    assert limiter.hit("u1", now=0)["allowed"] == 1
    assert limiter.hit("u2", now=0)["allowed"] == 1


def test_sweep_drops_expired_windows():
    limiter = RateLimiter(max_requests=5, window_seconds=60)
    limiter.hit("u1", now=0)
    limiter.hit("u2", now=50)
    assert limiter.sweep(now=70) == 1
    assert len(limiter) == 1


def test_scheduler_registers_sweep_job():
    scheduler.start_scheduler()
    try:
        status = scheduler.get_scheduler_status()
        assert status["running"] is True
        assert [job["id"] for job in status["jobs"]] == [scheduler.RATE_LIMIT_SWEEP_JOB_ID]
    finally:
        scheduler.stop_scheduler()
    assert scheduler.get_scheduler_status() == {"running": False, "jobs": []}
