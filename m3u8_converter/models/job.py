"""Conversion job Pydantic models."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class JobState(str, Enum):
    STARTING = "starting"
    CONVERTING = "converting"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.ERROR)


# Allowed forward edges; terminal states have none.
TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.STARTING: frozenset({JobState.CONVERTING, JobState.ERROR}),
    JobState.CONVERTING: frozenset(
        {JobState.CONVERTING, JobState.COMPLETED, JobState.ERROR}
    ),
    JobState.COMPLETED: frozenset(),
    JobState.ERROR: frozenset(),
}


class SourceDescriptor(BaseModel):
    """Where the playlist comes from."""

    locator: str = Field(min_length=1)
    kind: Literal["remote", "local-file"] = "remote"
    # Uploaded files are owned by the worker and deleted after the job ends.
    temporary: bool = False

    @property
    def is_local(self) -> bool:
        return self.kind == "local-file"


class OutputArtifact(BaseModel):
    """Links to the produced media file."""

    view_url: str
    download_url: str
    filename: str


class JobRecord(BaseModel):
    """Tracked state of a single conversion."""

    job_id: str = Field(min_length=1)
    status: JobState = JobState.STARTING
    progress: int = Field(default=0, ge=0, le=100)
    source: SourceDescriptor
    output: Optional[OutputArtifact] = None
    error_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_terminal_fields(self) -> "JobRecord":
        """Artifact only on completed jobs, error detail only on failed ones."""
        if (self.output is not None) != (self.status == JobState.COMPLETED):
            raise ValueError("output artifact must be present iff status is completed")
        if (self.error_detail is not None) != (self.status == JobState.ERROR):
            raise ValueError("error detail must be present iff status is error")
        return self
