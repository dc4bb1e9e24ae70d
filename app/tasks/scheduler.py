"""
In-process periodic check cycle, started from the FastAPI startup hook.
The cycle itself is blocking (SQLAlchemy + requests), so each run is
handed to a worker thread and the event loop only keeps time.
"""
import asyncio
import logging
from typing import Optional

from app.services.domain_checker import DomainChecker

logger = logging.getLogger(__name__)


async def run_periodic_checks(checker: DomainChecker, period_seconds: float) -> None:
    """Run a cycle immediately, then once every period until cancelled."""
    logger.info("[DOMAIN CHECK] Scheduler started, period %ss", period_seconds)
    while True:
        try:
            await asyncio.to_thread(checker.run_cycle)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # run_cycle handles its own errors; this keeps the loop alive regardless
            logger.exception("[DOMAIN CHECK] Unexpected scheduler error: %s", e)
        await asyncio.sleep(period_seconds)


class CheckScheduler:
    def __init__(self, checker: Optional[DomainChecker] = None, period_seconds: float = 60):
        self.checker = checker or DomainChecker()
        self.period_seconds = period_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(run_periodic_checks(self.checker, self.period_seconds))

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[DOMAIN CHECK] Scheduler stopped")
