"""
Reconciliation scheduler.

Background task that periodically recomputes engagement counters, rating
aggregates and comment mirrors from their source records.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from .services.reconciliation import ReconciliationReport, ReconciliationService

if TYPE_CHECKING:
    from .store import DocumentStore


logger = logging.getLogger(__name__)


class ReconciliationScheduler:
    """
    Background scheduler for reconciliation passes.

    Runs ReconciliationService.reconcile_all in a worker thread every
    interval_minutes; the store is synchronous sqlite.
    """

    def __init__(self, store: "DocumentStore", interval_minutes: int):
        self.store = store
        self._interval_minutes = interval_minutes
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the scheduler. A non-positive interval leaves it off."""
        if self._interval_minutes <= 0:
            logger.info("Reconciliation interval not set, scheduler not started")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Reconciliation scheduler started (interval: {self._interval_minutes} minutes)")

    async def stop(self):
        """Stop the scheduler."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Reconciliation scheduler stopped")

    async def run_now(self) -> ReconciliationReport:
        """Run one pass immediately."""
        report = await asyncio.to_thread(ReconciliationService(self.store).reconcile_all)
        if report.changed:
            logger.info(
                f"Reconciliation fixed {len(report.articles_fixed)} articles, "
                f"{len(report.movies_fixed)} movies, "
                f"{len(report.mirrors_created) + len(report.mirrors_removed)} mirrors"
            )
        else:
            logger.debug("Reconciliation: no drift found")
        if report.errors:
            logger.warning(f"Reconciliation finished with {len(report.errors)} errors")
        return report

    async def _loop(self):
        """Main loop."""
        while self._running:
            await asyncio.sleep(self._interval_minutes * 60)
            try:
                await self.run_now()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Reconciliation pass failed: {e}")
