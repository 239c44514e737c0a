from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from turbolearn.utils import get_logger

LOG = get_logger()


class RateGovernor:
    """Keeps at least ``min_interval_s`` between dispatched provider calls.

    The lock is held while sleeping, so concurrent callers are released one
    at a time. The timestamp is taken when a caller is released, not when it
    arrived.
    """

    def __init__(
        self,
        min_interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval_s < 0:
            raise ValueError('min_interval_s must be >= 0')
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: Optional[float] = None
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _get_lock(self) -> asyncio.Lock:
        # asyncio.Lock binds to one event loop
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @property
    def last_dispatch(self) -> Optional[float]:
        return self._last_dispatch

    async def throttle(self) -> float:
        """Wait for this caller's slot. Returns the seconds spent waiting."""
        async with self._get_lock():
            waited = 0.0
            if self._last_dispatch is not None and self.min_interval_s > 0:
                elapsed = self._clock() - self._last_dispatch
                if elapsed < self.min_interval_s:
                    waited = self.min_interval_s - elapsed
                    LOG.info('rate_governor_wait', extra={'wait_ms': int(waited * 1000)})
                    await self._sleep(waited)
            self._last_dispatch = self._clock()
            return waited
