from __future__ import annotations

import threading

import pytest

from docbuf.errors import RateLimitExceeded
from docbuf.rpc import WINDOW_SECONDS, RateLimiter, RateLimitRegistry, describe
from docbuf.schema import SchemaModel


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_limit_then_reject() -> None:
    clock = FakeClock()
    limiter = RateLimiter(3, clock=clock, name="shop.Orders.submit")

    for _ in range(3):
        limiter.acquire()
    assert limiter.remaining == 0

    clock.advance(20)
    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.acquire()
    error = excinfo.value
    assert error.endpoint == "shop.Orders.submit"
    assert error.limit == 3
    assert error.retry_after == pytest.approx(40.0)


def test_window_resets_after_a_minute() -> None:
    clock = FakeClock()
    limiter = RateLimiter(1, clock=clock)

    assert limiter.try_acquire()
    clock.advance(WINDOW_SECONDS - 0.5)
    assert not limiter.try_acquire()
    clock.advance(0.5)
    assert limiter.try_acquire()
    assert limiter.remaining == 0


def test_window_opens_on_first_request() -> None:
    clock = FakeClock()
    limiter = RateLimiter(1, clock=clock)
    clock.advance(500)

    assert limiter.remaining == 1
    limiter.acquire()
    clock.advance(59)
    assert not limiter.try_acquire()


def test_manual_reset() -> None:
    limiter = RateLimiter(1, clock=FakeClock())
    limiter.acquire()
    limiter.reset()
    limiter.acquire()


@pytest.mark.parametrize("limit, window", [(0, 60.0), (-1, 60.0), (1, 0.0)])
def test_invalid_limits(limit: int, window: float) -> None:
    with pytest.raises(ValueError):
        RateLimiter(limit, window=window)


def test_rejections_are_counted(metric_events) -> None:
    limiter = RateLimiter(1, clock=FakeClock(), name="shop.Orders.submit")
    limiter.acquire()
    assert not limiter.try_acquire()
    with pytest.raises(RateLimitExceeded):
        limiter.acquire()

    rejected = [labels for name, _, labels in metric_events if name == "docbuf.ratelimit.rejected"]
    assert rejected == [{"endpoint": "shop.Orders.submit", "limit": "1"}] * 2


def test_concurrent_callers_share_one_quota() -> None:
    limiter = RateLimiter(50, clock=FakeClock())
    results = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(20):
            allowed = limiter.try_acquire()
            with lock:
                results.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 50
    assert results.count(False) == 50


def test_registry_shares_limiters(shop_model: SchemaModel) -> None:
    clock = FakeClock()
    registry = RateLimitRegistry(clock=clock)
    orders = describe(shop_model)[0]
    submit, bulk = orders.endpoint("submit"), orders.endpoint("bulk")

    limiter = registry.for_endpoint(submit)
    assert limiter is registry.limiter("shop.Orders", "submit", 2)
    assert limiter.name == "shop.Orders.submit"
    assert registry.for_endpoint(bulk) is None

    registry.acquire(submit)
    assert registry.try_acquire(submit)
    assert not registry.try_acquire(submit)
    with pytest.raises(RateLimitExceeded):
        registry.acquire(submit)
    for _ in range(10):
        registry.acquire(bulk)
        assert registry.try_acquire(bulk)

    registry.reset()
    assert limiter.remaining == 2
