import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class ReminderScheduler:
    """Runs the reminder tick on a fixed interval in a single background task.

    Ticks never overlap: the next sleep starts only after the previous tick
    finished. A failing tick is logged and abandoned; the loop keeps going.
    """

    def __init__(self, tick: Callable[[], Awaitable[object]], interval: float) -> None:
        self._tick = tick
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="reminder-scheduler")
        logger.info("reminder_scheduler_started", interval=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("reminder_scheduler_stopped")

    async def run_once(self) -> bool:
        """Run one tick now. Returns False if a tick was already in progress."""
        if self._lock.locked():
            logger.debug("reminder_tick_skipped")
            return False
        async with self._lock:
            try:
                await self._tick()
            except Exception as e:
                logger.exception("reminder_tick_failed", error=str(e))
        return True

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval)
