"""In-memory job registry.

The registry is the only shared mutable state in the service. Worker
event handlers and progress polls reach it from independent tasks (and,
with the threaded test client, from other threads), so every
read-modify-write happens under a single lock and callers only ever see
copies of the stored records.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from pydantic import ValidationError

from m3u8_converter.models.job import (
    TRANSITIONS,
    JobRecord,
    JobState,
    OutputArtifact,
    SourceDescriptor,
)
from m3u8_converter.utils.errors import InvalidTransitionError, JobNotFoundError

logger = logging.getLogger(__name__)


class JobRegistry:
    """Thread-safe store of JobRecords keyed by job id."""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow) -> None:
        self._jobs: dict[str, JobRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def create(self, source: SourceDescriptor) -> str:
        """Insert a new job in the starting state and return its id."""
        job_id = uuid4().hex
        record = JobRecord(job_id=job_id, source=source, created_at=self._clock())
        with self._lock:
            self._jobs[job_id] = record
        logger.info(f"Created job {job_id} for {source.kind} source")
        return job_id

    def get(self, job_id: str) -> JobRecord:
        """
        Snapshot of a job.

        Raises:
            JobNotFoundError: If the id is unknown or was swept
        """
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                raise JobNotFoundError(job_id)
            return record.model_copy(deep=True)

    def update(
        self,
        job_id: str,
        *,
        status: Optional[JobState] = None,
        progress: Optional[int] = None,
        output: Optional[OutputArtifact] = None,
        error_detail: Optional[str] = None,
    ) -> JobRecord:
        """
        Atomically apply a partial update.

        Progress is clamped to 0..100 and never decreases. Entering a
        terminal state stamps completed_at.

        Returns:
            Snapshot of the updated record

        Raises:
            JobNotFoundError: If the id is unknown
            InvalidTransitionError: If the update breaks the state machine
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)

            target = status if status is not None else current.status
            if current.status.is_terminal or (
                status is not None and target not in TRANSITIONS[current.status]
            ):
                raise InvalidTransitionError(job_id, current.status.value, target.value)

            changes: dict = {"status": target}
            if progress is not None:
                clamped = max(0, min(100, int(progress)))
                changes["progress"] = max(current.progress, clamped)
            if output is not None:
                changes["output"] = output
            if error_detail is not None:
                changes["error_detail"] = error_detail
            if target.is_terminal:
                changes["completed_at"] = self._clock()

            try:
                updated = JobRecord(**{**current.model_dump(), **changes})
            except ValidationError as e:
                logger.error(f"Rejected update for job {job_id}: {e}")
                raise InvalidTransitionError(job_id, current.status.value, target.value) from e

            self._jobs[job_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, job_id: str) -> bool:
        """Remove a job; returns False if it was not present."""
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def all(self) -> list[JobRecord]:
        """Snapshots of every job currently tracked."""
        with self._lock:
            return [record.model_copy(deep=True) for record in self._jobs.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs
