"""Pytest fixtures for M3U8 converter tests."""

import asyncio
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

import pytest

from m3u8_converter.config import Settings
from m3u8_converter.services.engine import (
    Completed,
    EngineEvent,
    EngineOptions,
    Failed,
    Progress,
    Started,
)

MEDIA_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:10
#EXTINF:10.0,
segment0.ts
#EXTINF:10.0,
segment1.ts
#EXT-X-ENDLIST
"""

MASTER_PLAYLIST = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360
low.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=3000000,RESOLUTION=1920x1080
high.m3u8
"""

REMOTE_MASTER_PLAYLIST = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360,CODECS="avc1.4d401e,mp4a.40.2"
https://cdn.example.com/low/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=3000000,RESOLUTION=1920x1080,CODECS="avc1.640028,mp4a.40.2"
https://cdn.example.com/high/index.m3u8
"""


class ScriptedEngine:
    """Remux engine double that replays a fixed list of events."""

    def __init__(
        self,
        events: Optional[list[EngineEvent]] = None,
        after_event: Optional[Callable[[], None]] = None,
        write_output: bool = True,
    ) -> None:
        self.events = (
            events
            if events is not None
            else [Started("fake-ffmpeg"), Progress(50.0), Completed()]
        )
        self.after_event = after_event
        self.write_output = write_output
        self.calls: list[tuple[str, Path, EngineOptions]] = []

    async def run(
        self, source: str, output_path: Path, options: EngineOptions
    ) -> AsyncIterator[EngineEvent]:
        self.calls.append((source, output_path, options))
        for event in self.events:
            if self.write_output and isinstance(event, (Completed, Failed)):
                output_path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
            yield event
            await asyncio.sleep(0)
            if self.after_event is not None:
                self.after_event()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at per-test directories."""
    return Settings(
        downloads_dir=str(tmp_path / "downloads"),
        uploads_dir=str(tmp_path / "uploads"),
        public_base_url="http://testserver",
        sweep_interval_seconds=3600.0,
    )


@pytest.fixture
def media_playlist() -> str:
    return MEDIA_PLAYLIST


@pytest.fixture
def master_playlist() -> str:
    return MASTER_PLAYLIST


@pytest.fixture
def remote_master_playlist() -> str:
    return REMOTE_MASTER_PLAYLIST
