"""Scheduler — periodic, non-overlapping reconciliation runs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from clabot.runner import ReconcileRunner

logger = structlog.get_logger(__name__)


class EngineLoop:
    """Single engine scheduling loop with trigger/timeout wake mechanism.

    Each cycle awaits *run_fn* to completion before waiting again, so two
    cycles never overlap.  The first cycle runs immediately.
    """

    def __init__(
        self,
        name: str,
        run_fn: Callable[[], Awaitable[int]],
        interval: float,
    ) -> None:
        self.name = name
        self.run_fn = run_fn
        self.interval = interval
        self.trigger = asyncio.Event()
        self.cycles = 0

    async def loop(self) -> None:
        """Run the engine in an infinite loop, waking on trigger or timeout."""
        while True:
            try:
                processed = await self.run_fn()
                logger.info("engine.cycle", engine=self.name, processed=processed)
            except Exception:
                logger.exception("engine.error", engine=self.name)
            self.cycles += 1

            try:
                await asyncio.wait_for(self.trigger.wait(), timeout=self.interval)
                self.trigger.clear()
            except asyncio.TimeoutError:
                pass


class Scheduler:
    """Manages lifecycle of EngineLoop tasks."""

    def __init__(self, loops: list[EngineLoop]) -> None:
        self._loops = loops
        self._tasks: list[asyncio.Task[None]] = []

    async def start(self) -> None:
        self._tasks = [
            asyncio.create_task(loop.loop(), name=f"engine-{loop.name}") for loop in self._loops
        ]
        logger.info("scheduler.started", engines=[loop.name for loop in self._loops])

    async def stop(self) -> None:
        """Cancel all engine loops and wait for them to exit."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("scheduler.stopped")

    async def wait(self) -> None:
        """Block until every loop task has finished (normally: until cancelled)."""
        await asyncio.gather(*self._tasks)


def create_scheduler(runner: ReconcileRunner, interval: float, *, dry_run: bool = False) -> Scheduler:
    """Build a Scheduler running the reconciliation every *interval* seconds."""

    async def _reconcile() -> int:
        summary, _ = await runner.run(dry_run=dry_run)
        return summary.newly_signed + summary.still_missing

    return Scheduler([EngineLoop("reconciler", _reconcile, interval)])
