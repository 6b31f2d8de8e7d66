"""Read-only progress snapshots for polling clients."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from m3u8_converter.models.job import JobRecord, JobState
from m3u8_converter.services.registry import JobRegistry


class ProgressSnapshot(BaseModel):
    """What a client sees when it polls a conversion."""

    model_config = ConfigDict(populate_by_name=True)

    progress: int = Field(ge=0, le=100)
    status: JobState
    view_url: Optional[str] = Field(default=None, alias="viewUrl")
    download_url: Optional[str] = Field(default=None, alias="downloadUrl")
    filename: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_record(cls, record: JobRecord) -> "ProgressSnapshot":
        snapshot = cls(progress=record.progress, status=record.status)
        if record.status == JobState.COMPLETED and record.output is not None:
            snapshot.view_url = record.output.view_url
            snapshot.download_url = record.output.download_url
            snapshot.filename = record.output.filename
        elif record.status == JobState.ERROR:
            snapshot.error = record.error_detail
        return snapshot


class ProgressReporter:
    """Snapshot accessor over the job registry."""

    def __init__(self, registry: JobRegistry) -> None:
        self.registry = registry

    def snapshot(self, job_id: str) -> ProgressSnapshot:
        """
        Current progress of a job.

        Raises:
            JobNotFoundError: If the id is unknown or was swept
        """
        return ProgressSnapshot.from_record(self.registry.get(job_id))
