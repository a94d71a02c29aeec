from __future__ import annotations

from app.infra.rate_limit import MemoryRateLimiter


class _FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_exactly_max_requests_succeed_inside_window() -> None:
    clock = _FakeClock(100.0)
    limiter = MemoryRateLimiter(3, 60, clock=clock, sweep_probability=0)

    results = [limiter.limit("10.0.0.1") for _ in range(4)]

    assert [result.success for result in results] == [True, True, True, False]
    assert [result.remaining for result in results] == [2, 1, 0, 0]
    assert results[-1].reset == 160.0


def test_window_slides_per_request() -> None:
    clock = _FakeClock(0.0)
    limiter = MemoryRateLimiter(2, 10, clock=clock, sweep_probability=0)
    assert limiter.limit("k").success
    clock.now = 5.0
    assert limiter.limit("k").success
    clock.now = 9.9
    assert not limiter.limit("k").success

    # The first hit leaves the window exactly at its expiry instant.
    clock.now = 10.0
    assert limiter.limit("k").success
    assert not limiter.limit("k").success


def test_keys_are_limited_independently() -> None:
    limiter = MemoryRateLimiter(1, 60, clock=_FakeClock(), sweep_probability=0)
    assert limiter.limit("a").success
    assert not limiter.limit("a").success
    assert limiter.limit("b").success


def test_sweep_drops_idle_keys_and_reset_clears_everything() -> None:
    clock = _FakeClock(0.0)
    limiter = MemoryRateLimiter(5, 10, clock=clock, sweep_probability=1.0)
    limiter.limit("idle")
    clock.now = 30.0
    limiter.limit("busy")
    assert limiter.tracked_keys() == 1

    limiter.reset_all()
    assert limiter.tracked_keys() == 0
