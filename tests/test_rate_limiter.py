from concurrent.futures import ThreadPoolExecutor

import pytest

from printshop.domain.exceptions import RateLimitedError
from printshop.infrastructure.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestSlidingWindowRateLimiter:
    def test_allows_up_to_limit(self, clock):
        limiter = SlidingWindowRateLimiter(3, 60, clock=clock)
        assert [limiter.hit("1.2.3.4") for _ in range(3)] == [2, 1, 0]

    def test_rejects_over_limit_with_retry_after(self, clock):
        limiter = SlidingWindowRateLimiter(2, 60, clock=clock)
        limiter.hit("1.2.3.4")
        clock.now += 20
        limiter.hit("1.2.3.4")

        with pytest.raises(RateLimitedError) as exc:
            limiter.hit("1.2.3.4")

        assert exc.value.kind == "rate_limited"
        assert exc.value.limit == 2
        assert exc.value.retry_after == 40

    def test_window_slides(self, clock):
        limiter = SlidingWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("a")
        clock.now += 60
        assert limiter.hit("a") == 0

    def test_keys_are_independent(self, clock):
        limiter = SlidingWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("a")
        assert limiter.hit("b") == 0
        assert limiter.remaining("a") == 0
        assert limiter.remaining("c") == 1

    def test_rejected_requests_are_not_counted(self, clock):
        limiter = SlidingWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("a")
        for _ in range(5):
            with pytest.raises(RateLimitedError):
                limiter.hit("a")
        clock.now += 60
        assert limiter.hit("a") == 0

    def test_idle_keys_are_swept(self, clock):
        limiter = SlidingWindowRateLimiter(5, 60, clock=clock, max_tracked_keys=2)
        for key in ["a", "b", "c"]:
            limiter.hit(key)
        clock.now += 61
        limiter.hit("d")
        assert set(limiter._hits) == {"d"}

    def test_concurrent_hits_never_exceed_limit(self):
        limiter = SlidingWindowRateLimiter(50, 60)

        def attempt(_):
            try:
                limiter.hit("1.2.3.4")
                return True
            except RateLimitedError:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(400)))

        assert results.count(True) == 50

    def test_concurrent_sweeps_over_many_keys(self):
        # нулевое окно: каждый ключ сразу простаивает и попадает под чистку
        limiter = SlidingWindowRateLimiter(1, 0, max_tracked_keys=4)

        with ThreadPoolExecutor(max_workers=16) as pool:
            remaining = list(pool.map(lambda i: limiter.hit(f"10.0.{i // 256}.{i % 256}"), range(4000)))

        assert set(remaining) == {0}
