import logging
import math
import time
from collections import deque
from threading import Lock
from typing import Callable

from printshop.domain.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Ограничение числа запросов с одного адреса за скользящее окно"""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_tracked_keys: int = 10_000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._max_tracked_keys = max_tracked_keys
        self._hits: dict[str, deque] = {}
        # hit/remaining вызываются из потоков threadpool (синхронная зависимость FastAPI)
        self._lock = Lock()

    def _prune(self, key: str, now: float) -> deque:
        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()
        return hits

    def _sweep(self, now: float) -> None:
        for key in [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]:
            del self._hits[key]

    def hit(self, key: str) -> int:
        """Учитывает запрос и возвращает остаток квоты. Сверх квоты бросает RateLimitedError"""
        with self._lock:
            now = self._clock()
            if len(self._hits) > self._max_tracked_keys:
                self._sweep(now)
            hits = self._prune(key, now)

            if len(hits) < self.max_requests:
                hits.append(now)
                return self.max_requests - len(hits)
            retry_after = math.ceil(self.window_seconds - (now - hits[0]))

        logger.warning(f"Превышен лимит запросов для {key}")
        raise RateLimitedError(self.max_requests, max(retry_after, 1))

    def remaining(self, key: str) -> int:
        with self._lock:
            hits = self._prune(key, self._clock())
            if not hits:
                del self._hits[key]
            return self.max_requests - len(hits)
