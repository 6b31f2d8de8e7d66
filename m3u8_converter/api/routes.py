"""FastAPI routes for the M3U8 converter API."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from m3u8_converter.config import Settings
from m3u8_converter.api.deps import (
    get_registry_dep,
    get_reporter_dep,
    get_settings_dep,
    get_worker_dep,
)
from m3u8_converter.models.job import JobState, SourceDescriptor
from m3u8_converter.services.playlist import inspect_playlist, select_rendition
from m3u8_converter.services.registry import JobRegistry
from m3u8_converter.services.reporter import ProgressReporter, ProgressSnapshot
from m3u8_converter.services.worker import ConversionWorker
from m3u8_converter.utils.errors import (
    ConverterError,
    JobNotFoundError,
    PlaylistError,
    SubmissionError,
)
from m3u8_converter.utils.files import resolve_inside, save_upload

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


# ==================== Error Response Model ====================


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    error_type: str
    errors: Optional[List[Dict[str, Any]]] = None


# ==================== Exception Handlers ====================


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "error_type": "ValidationError",
            "errors": [
                {"loc": list(e.get("loc", [])), "msg": e.get("msg", "")}
                for e in exc.errors()
            ],
        },
    )


async def converter_exception_handler(request: Request, exc: ConverterError) -> JSONResponse:
    """Handle application-specific errors."""
    status_code = 500

    if isinstance(exc, (SubmissionError, PlaylistError)):
        status_code = 400
    elif isinstance(exc, JobNotFoundError):
        status_code = 404

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": str(exc) if status_code < 500 else "Conversion service error",
            "error_type": type(exc).__name__,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_type": "HTTPException",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_type": "InternalError",
        },
    )


# ==================== Request/Response Models ====================


class ConvertRequest(BaseModel):
    """Request model for URL conversion."""

    model_config = ConfigDict(populate_by_name=True)

    m3u8_url: str = Field(alias="m3u8Url", description="Remote M3U8 playlist URL")


class ConversionResponse(BaseModel):
    """Response model for accepted conversions."""

    model_config = ConfigDict(populate_by_name=True)

    conversion_id: str = Field(alias="conversionId")
    status: JobState = JobState.STARTING


class HealthResponse(BaseModel):
    """Response model for the health check."""

    status: str
    message: str
    active_jobs: int = Field(alias="activeJobs")
    tracked_jobs: int = Field(alias="trackedJobs")


# ==================== Helpers ====================


def validate_remote_url(url: str) -> str:
    """
    Raises:
        SubmissionError: If the URL is blank or not http(s)
    """
    url = url.strip()
    if not url:
        raise SubmissionError("Invalid or missing m3u8Url")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise SubmissionError("m3u8Url must be an http or https URL")
    return url


def is_allowed_upload(filename: str, content_type: Optional[str], settings: Settings) -> bool:
    suffix = Path(filename or "").suffix.lower()
    if suffix in settings.allowed_upload_extensions:
        return True
    return (content_type or "").lower() in settings.allowed_upload_content_types


def _submit(
    source: SourceDescriptor, registry: JobRegistry, worker: ConversionWorker
) -> ConversionResponse:
    job_id = registry.create(source)
    worker.start(job_id, source)
    return ConversionResponse(conversion_id=job_id)


# ==================== Endpoints ====================


@router.post(
    "/convert",
    response_model=ConversionResponse,
    status_code=202,
    responses={400: {"model": ErrorResponse}},
)
async def convert_url(
    request: ConvertRequest,
    registry: JobRegistry = Depends(get_registry_dep),
    worker: ConversionWorker = Depends(get_worker_dep),
) -> ConversionResponse:
    """
    Start converting a remote playlist.

    Returns immediately with a conversionId to poll.
    """
    url = validate_remote_url(request.m3u8_url)
    logger.info(f"Conversion requested for remote playlist {url}")
    return _submit(SourceDescriptor(locator=url, kind="remote"), registry, worker)


@router.post(
    "/convert-file",
    response_model=ConversionResponse,
    status_code=202,
    responses={400: {"model": ErrorResponse}},
)
async def convert_file(
    m3u8File: UploadFile = File(...),
    settings: Settings = Depends(get_settings_dep),
    registry: JobRegistry = Depends(get_registry_dep),
    worker: ConversionWorker = Depends(get_worker_dep),
) -> ConversionResponse:
    """
    Start converting an uploaded playlist.

    The upload is inspected before any job is created. A master playlist
    whose best rendition is an absolute URL is converted from that URL;
    anything else is stored and converted from disk.
    """
    filename = m3u8File.filename or ""
    if not is_allowed_upload(filename, m3u8File.content_type, settings):
        raise SubmissionError("Please upload a valid M3U8 file")

    data = await m3u8File.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise SubmissionError(
            f"Playlist exceeds the {settings.max_upload_bytes // 1024} KB upload limit"
        )
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        raise SubmissionError("Playlist must be UTF-8 text")

    document = inspect_playlist(text)
    if document.kind == "master":
        selection = select_rendition(document)
        if urlparse(selection.locator).scheme in ("http", "https"):
            logger.info(
                f"Uploaded master playlist resolved to {selection.bandwidth} bps rendition"
            )
            return _submit(
                SourceDescriptor(locator=selection.locator, kind="remote"), registry, worker
            )

    stored = save_upload(data, settings.uploads_dir, filename)
    source = SourceDescriptor(locator=str(stored), kind="local-file", temporary=True)
    return _submit(source, registry, worker)


@router.get(
    "/progress/{conversion_id}",
    response_model=ProgressSnapshot,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def get_progress(
    conversion_id: str,
    reporter: ProgressReporter = Depends(get_reporter_dep),
) -> ProgressSnapshot:
    """Current progress, plus links on success or a message on failure."""
    return reporter.snapshot(conversion_id)


def _artifact_path(filename: str, settings: Settings) -> Path:
    path = resolve_inside(settings.downloads_dir, filename)
    if path is None or not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return path


@router.get("/downloads/{filename}")
async def view_file(
    filename: str,
    settings: Settings = Depends(get_settings_dep),
) -> FileResponse:
    """Serve a converted file inline."""
    path = _artifact_path(filename, settings)
    return FileResponse(
        path,
        media_type="video/mp4",
        filename=filename,
        content_disposition_type="inline",
    )


@router.get("/downloads/{filename}/attachment")
async def download_file(
    filename: str,
    settings: Settings = Depends(get_settings_dep),
) -> FileResponse:
    """Serve a converted file as an attachment."""
    path = _artifact_path(filename, settings)
    return FileResponse(path, media_type="video/mp4", filename=filename)


@router.get("/health", response_model=HealthResponse)
async def health(
    registry: JobRegistry = Depends(get_registry_dep),
    worker: ConversionWorker = Depends(get_worker_dep),
) -> HealthResponse:
    return HealthResponse(
        status="OK",
        message="M3U8 Converter backend is running",
        activeJobs=worker.active_count,
        trackedJobs=len(registry),
    )
