"""Cancellable interval runner for background scans."""

import asyncio
import time
from typing import Any, Awaitable, Callable

from kitchen_inventory.utils.logging import get_logger

logger = get_logger(__name__)


class PeriodicTask:
    """
    Runs an async callable once immediately and then on a fixed interval.

    Stopping sets a flag that prevents any further run from being scheduled.
    A run that is already in progress is allowed to finish.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        interval_seconds: float,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.name = name
        self.func = func
        self.interval_seconds = interval_seconds
        self.run_count = 0
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        """Check if the loop is scheduled."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop. Restarts if already running."""
        if self.is_running:
            self._stop_event.set()

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name=self.name)
        logger.info(
            "periodic_task_started",
            task=self.name,
            interval_seconds=self.interval_seconds,
        )

    async def stop(self) -> None:
        """Stop scheduling runs and wait for an in-flight run to complete."""
        if self._task is None:
            return

        self._stop_event.set()
        task = self._task
        self._task = None
        await task
        logger.info("periodic_task_stopped", task=self.name, run_count=self.run_count)

    async def run_once(self) -> None:
        """Run the callable a single time, logging instead of raising on failure."""
        start = time.time()
        try:
            await self.func()
        except Exception as e:
            logger.error("periodic_task_failed", task=self.name, error=str(e))
        finally:
            self.run_count += 1
            logger.debug(
                "periodic_task_ran",
                task=self.name,
                duration_ms=(time.time() - start) * 1000,
            )

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self.run_once()

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue
