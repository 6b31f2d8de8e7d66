"""Utility modules for the M3U8 converter."""

from m3u8_converter.utils.errors import (
    ConverterError,
    EmptyPlaylist,
    EngineError,
    InvalidPlaylist,
    InvalidTransitionError,
    JobNotFoundError,
    NoStreamsFound,
    PlaylistError,
    SetupError,
    SourceNotFound,
    StorageError,
    SubmissionError,
)

__all__ = [
    "ConverterError",
    "SubmissionError",
    "PlaylistError",
    "InvalidPlaylist",
    "NoStreamsFound",
    "EmptyPlaylist",
    "SetupError",
    "SourceNotFound",
    "StorageError",
    "EngineError",
    "JobNotFoundError",
    "InvalidTransitionError",
]
