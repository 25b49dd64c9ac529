"""Periodic background cleanup."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

SweepJob = Callable[[], Awaitable[object]]

_logger = logging.getLogger(__name__)


@dataclass
class PeriodicSweeper:
    """Runs cleanup jobs on a fixed interval, independent of traffic."""

    jobs: list[SweepJob]
    interval_seconds: float = 300
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self) -> None:
        """Run every job once; a failing job does not stop the others."""
        for job in self.jobs:
            try:
                await job()
            except Exception:
                _logger.exception("Sweep job failed")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
