"""Periodic eviction of finished jobs."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from m3u8_converter.models.job import JobRecord, JobState
from m3u8_converter.services.registry import JobRegistry

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Removes terminal jobs once their retention window has passed.

    Completed jobs are kept longer than failed ones so the client can
    fetch the final snapshot and its links. Output files are left alone;
    uploaded inputs are already gone by the time a job is terminal.
    """

    def __init__(
        self,
        registry: JobRegistry,
        completed_retention: float = 600.0,
        error_retention: float = 120.0,
        interval: float = 60.0,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.registry = registry
        self.retention = {
            JobState.COMPLETED: timedelta(seconds=completed_retention),
            JobState.ERROR: timedelta(seconds=error_retention),
        }
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def is_expired(self, record: JobRecord, now: datetime) -> bool:
        if not record.status.is_terminal or record.completed_at is None:
            return False
        return now - record.completed_at > self.retention[record.status]

    def sweep(self, now: Optional[datetime] = None) -> list[str]:
        """Evict expired jobs; returns the removed ids."""
        now = now or self._clock()
        removed: list[str] = []
        for record in self.registry.all():
            if self.is_expired(record, now) and self.registry.delete(record.job_id):
                removed.append(record.job_id)
                logger.info(f"Swept {record.status.value} job {record.job_id}")
        return removed

    async def run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Retention sweep failed")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="retention-sweeper")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
