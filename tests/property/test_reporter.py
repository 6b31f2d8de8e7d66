"""Tests for progress snapshots."""

import pytest

from m3u8_converter.models.job import JobState, OutputArtifact, SourceDescriptor
from m3u8_converter.services.registry import JobRegistry
from m3u8_converter.services.reporter import ProgressReporter
from m3u8_converter.utils.errors import JobNotFoundError

SOURCE = SourceDescriptor(locator="https://example.com/a.m3u8")


@pytest.fixture
def registry() -> JobRegistry:
    return JobRegistry()


def test_in_progress_snapshot_has_no_links(registry: JobRegistry) -> None:
    job_id = registry.create(SOURCE)
    registry.update(job_id, status=JobState.CONVERTING, progress=42)

    snapshot = ProgressReporter(registry).snapshot(job_id)

    assert snapshot.progress == 42
    assert snapshot.status == JobState.CONVERTING
    assert snapshot.view_url is None and snapshot.error is None


def test_completed_snapshot_carries_links(registry: JobRegistry) -> None:
    job_id = registry.create(SOURCE)
    registry.update(job_id, status=JobState.CONVERTING)
    registry.update(
        job_id,
        status=JobState.COMPLETED,
        progress=100,
        output=OutputArtifact(view_url="v", download_url="d", filename="out.mp4"),
    )

    body = ProgressReporter(registry).snapshot(job_id).model_dump(by_alias=True, exclude_none=True)

    assert body == {
        "progress": 100,
        "status": JobState.COMPLETED,
        "viewUrl": "v",
        "downloadUrl": "d",
        "filename": "out.mp4",
    }


def test_error_snapshot_carries_message(registry: JobRegistry) -> None:
    job_id = registry.create(SOURCE)
    registry.update(job_id, status=JobState.ERROR, error_detail="Source playlist not found")

    snapshot = ProgressReporter(registry).snapshot(job_id)

    assert snapshot.error == "Source playlist not found"
    assert snapshot.filename is None


def test_unknown_job(registry: JobRegistry) -> None:
    with pytest.raises(JobNotFoundError):
        ProgressReporter(registry).snapshot("nope")
