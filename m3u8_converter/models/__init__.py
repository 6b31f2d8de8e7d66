"""Pydantic data models for the M3U8 converter."""

from m3u8_converter.models.job import (
    JobRecord,
    JobState,
    OutputArtifact,
    SourceDescriptor,
    TRANSITIONS,
)
from m3u8_converter.models.playlist import PlaylistDocument, Rendition, RenditionSelection

__all__ = [
    "JobRecord",
    "JobState",
    "OutputArtifact",
    "SourceDescriptor",
    "TRANSITIONS",
    "PlaylistDocument",
    "Rendition",
    "RenditionSelection",
]
