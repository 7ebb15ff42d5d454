import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs an async callback at a fixed interval until cancelled.

    The first run happens immediately on `start()`. Ticks are spaced from
    their start times, like a browser `setInterval`, and never overlap: a
    tick that overruns the interval delays the next one instead. Exceptions
    raised by a tick are logged and the loop keeps going.
    """

    def __init__(
        self,
        func: Callable[[], Awaitable[None]],
        interval: float,
        *,
        name: str = "periodic-task",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._func = func
        self.interval = float(interval)
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._cancelled

    def start(self) -> "PeriodicTask":
        if self._task is not None and not self._task.done():
            raise RuntimeError(f"{self.name} already started")
        self._cancelled = False
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        return self

    def cancel(self) -> None:
        """Stop the loop. Safe to call from inside a tick and more than once."""
        self._cancelled = True
        task = self._task
        if task is None or task.done():
            return
        # A tick cancelling its own loop just lets the loop see the flag
        if task is not asyncio.current_task():
            task.cancel()

    async def wait(self) -> None:
        """Wait for the loop to finish (after `cancel()` or a self-cancel)."""
        task = self._task
        if task is None:
            return
        # asyncio.wait leaves the loop running if this waiter is cancelled
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._cancelled:
            started = loop.time()
            try:
                await self._func()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s: tick failed", self.name)
            self.ticks += 1
            if self._cancelled:
                break
            await asyncio.sleep(max(0.0, self.interval - (loop.time() - started)))
        logger.debug("%s stopped after %d ticks", self.name, self.ticks)
