"""FastAPI dependencies for the M3U8 converter API."""

from fastapi import Request

from m3u8_converter.config import Settings
from m3u8_converter.services.registry import JobRegistry
from m3u8_converter.services.reporter import ProgressReporter
from m3u8_converter.services.worker import ConversionWorker


def get_settings_dep(request: Request) -> Settings:
    """Dependency for application settings."""
    return request.app.state.settings


def get_registry_dep(request: Request) -> JobRegistry:
    """Dependency for the job registry."""
    return request.app.state.registry


def get_worker_dep(request: Request) -> ConversionWorker:
    """Dependency for the conversion worker."""
    return request.app.state.worker


def get_reporter_dep(request: Request) -> ProgressReporter:
    """Dependency for the progress reporter."""
    return request.app.state.reporter
