import asyncio
import functools
import logging
from collections import deque
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Admit at most ``limit`` starts per ``interval`` seconds.

    Excess calls wait in arrival order instead of being rejected. Every caller
    holds a ticket chained to the previous caller's ticket, so starts happen
    strictly FIFO. The limiter itself never raises; errors of the wrapped
    coroutine reach its own caller unchanged.
    """

    def __init__(self, limit: int = 1, interval: float = 1.0):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.limit = limit
        self.interval = interval
        self._starts: deque[float] = deque(maxlen=limit)
        self._tail: asyncio.Future | None = None

    async def _acquire(self) -> None:
        loop = asyncio.get_running_loop()
        previous = self._tail
        ticket = loop.create_future()
        self._tail = ticket
        try:
            if previous is not None and not previous.done():
                # shielded: our cancellation must not cancel the caller ahead of us
                await asyncio.shield(previous)
            if len(self._starts) == self.limit:
                delay = self._starts[0] + self.interval - loop.time()
                if delay > 0:
                    logger.debug("Rate limit reached, waiting %.3fs", delay)
                    await asyncio.sleep(delay)
            self._starts.append(loop.time())
        except asyncio.CancelledError:
            # a cancelled waiter passes its turn on only once everyone ahead has started
            if previous is not None and not previous.done():
                previous.add_done_callback(lambda _: ticket.done() or ticket.set_result(None))
            elif not ticket.done():
                ticket.set_result(None)
            raise
        ticket.set_result(None)

    async def run(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        await self._acquire()
        return await func(*args, **kwargs)

    def wrap(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def throttled(*args, **kwargs):
            return await self.run(func, *args, **kwargs)

        return throttled

    __call__ = wrap
