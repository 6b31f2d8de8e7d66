"""Playlist Pydantic models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class Rendition(BaseModel):
    """One variant stream of a master playlist."""

    bandwidth: int = Field(default=0, ge=0)
    resolution: Optional[str] = None
    locator: str = Field(min_length=1)


class PlaylistDocument(BaseModel):
    """Parsed playlist text."""

    raw: str
    kind: Literal["media", "master"]
    renditions: list[Rendition] = Field(default_factory=list)


class RenditionSelection(BaseModel):
    """Rendition chosen for conversion."""

    locator: str
    bandwidth: int
    resolution: Optional[str] = None
