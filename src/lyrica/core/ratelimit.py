import asyncio
import time
from typing import Callable


class AsyncRateLimiter:
    """Async token bucket allowing up to `rate` acquisitions per `per` seconds.

    Callers that find the bucket empty sleep until one token has refilled.
    """

    def __init__(
        self, rate: int, per: float = 1.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.rate = max(1, int(rate))
        self.per = float(per)
        self._clock = clock
        self._tokens = float(self.rate)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> float:
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated
        if elapsed > 0:
            self._tokens = min(float(self.rate), self._tokens + elapsed * (self.rate / self.per))
            self._updated = now

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            while self._tokens < 1:
                await asyncio.sleep((1 - self._tokens) * (self.per / self.rate))
                self._refill()
            self._tokens -= 1
