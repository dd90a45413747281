"""Periodic status polling driven from the event loop."""

import asyncio
from typing import Callable, Optional

import schedule

from ..logging_utility import logger


class StatusPoller:
    """Runs a status job on a fixed interval using a private scheduler."""

    def __init__(self, job: Callable[[], object], interval: float = 5.0, tick: float = 1.0):
        self.scheduler = schedule.Scheduler()
        self.interval = interval
        self.tick = min(tick, interval)
        self.job = job
        self._task: Optional[asyncio.Task] = None

    def _run_job(self) -> None:
        try:
            self.job()
        except Exception as e:
            # A failed tick must not stop the timer
            logger.error(f"Status poll failed: {e}")

    def start(self) -> None:
        """Schedule the job and start ticking on the running event loop."""
        self.scheduler.clear()
        self.scheduler.every(self.interval).seconds.do(self._run_job)
        self._task = asyncio.get_running_loop().create_task(self._run_schedule())
        logger.info(f"Status polling every {self.interval}s")

    async def _run_schedule(self) -> None:
        while True:
            self.scheduler.run_pending()
            await asyncio.sleep(self.tick)

    async def stop(self) -> None:
        self.scheduler.clear()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
