"""Per-client request pacing.

Each upstream client owns its pacer; there is no process-wide limiter
state. Clock and sleep are injectable so tests run without waiting.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

log = structlog.get_logger(__name__)


class RequestPacer:
    """Spaces consecutive requests at least ``delay_ms`` apart.

    Example:
        pacer = RequestPacer(delay_ms=100)
        for tx_hash in hashes:
            await pacer.acquire()
            await rpc.get_transaction_receipt(tx_hash)
    """

    def __init__(
        self,
        delay_ms: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize pacer.

        Args:
            delay_ms: Minimum delay between requests in milliseconds.
            clock: Monotonic time source in seconds.
            sleep: Async sleep function.
        """
        self.delay = delay_ms / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next request is allowed."""
        async with self._lock:
            if self._last_request_time is not None and self.delay > 0:
                since_last = self._clock() - self._last_request_time
                if since_last < self.delay:
                    sleep_time = self.delay - since_last
                    log.debug(
                        "request_pacing",
                        since_last_ms=int(since_last * 1000),
                        sleep_ms=int(sleep_time * 1000),
                    )
                    await self._sleep(sleep_time)

            self._last_request_time = self._clock()
