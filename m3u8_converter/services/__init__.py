"""Service layer for the M3U8 converter."""

from m3u8_converter.services.engine import (
    Completed,
    EngineOptions,
    Failed,
    FfmpegEngine,
    Progress,
    RemuxEngine,
    Started,
    build_engine_options,
    create_ffmpeg_engine,
)
from m3u8_converter.services.playlist import inspect_playlist, select_rendition
from m3u8_converter.services.registry import JobRegistry
from m3u8_converter.services.reporter import ProgressReporter, ProgressSnapshot
from m3u8_converter.services.sweeper import RetentionSweeper
from m3u8_converter.services.worker import (
    ConversionWorker,
    classify_engine_error,
    create_conversion_worker,
)

__all__ = [
    "Completed",
    "EngineOptions",
    "Failed",
    "FfmpegEngine",
    "Progress",
    "RemuxEngine",
    "Started",
    "build_engine_options",
    "create_ffmpeg_engine",
    "inspect_playlist",
    "select_rendition",
    "JobRegistry",
    "ProgressReporter",
    "ProgressSnapshot",
    "RetentionSweeper",
    "ConversionWorker",
    "classify_engine_error",
    "create_conversion_worker",
]
