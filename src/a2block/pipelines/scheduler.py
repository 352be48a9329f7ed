from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RefreshTask:
    """
    Runs callback now, then every interval_seconds, until stop().
    A failing callback is logged; the timer keeps its schedule.
    """
    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        interval_seconds: float,
        name: str = "refresh",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)

    async def _loop(self) -> None:
        while True:
            try:
                await self.callback()
            except Exception:
                logger.exception("%s: refresh failed", self.name)
            self.runs += 1
            await asyncio.sleep(self.interval_seconds)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._task = None

    async def wait_stopped(self) -> None:
        """stop() and wait for the loop to unwind."""
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
