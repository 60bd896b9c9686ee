from __future__ import annotations

from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter


def test_rate_limiter_paces_requests() -> None:
    sleeps: list[float] = []
    t = 0.0

    def fake_monotonic() -> float:
        return t

    limiter = MinIntervalRateLimiter(
        min_interval_s=1.0, _sleep=sleeps.append, _monotonic=fake_monotonic
    )

    limiter.wait()
    assert sleeps == []

    t = 0.25
    limiter.wait()
    assert sleeps == [0.75]


def test_rate_limiter_does_not_sleep_after_interval_elapsed() -> None:
    sleeps: list[float] = []
    limiter = MinIntervalRateLimiter(
        min_interval_s=2.0, _sleep=sleeps.append, _monotonic=lambda: 10.0
    )
    limiter.last_request_monotonic = 5.0

    limiter.wait()
    assert sleeps == []
    assert limiter.last_request_monotonic == 10.0


def test_zero_interval_never_sleeps() -> None:
    sleeps: list[float] = []
    limiter = MinIntervalRateLimiter(_sleep=sleeps.append, _monotonic=lambda: 0.0)
    limiter.wait()
    limiter.wait()
    assert sleeps == []
