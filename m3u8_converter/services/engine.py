"""Remux engine contract and the ffmpeg implementation.

An engine takes a source locator and an output path and reports back
through a stream of events: one Started, any number of Progress, then
exactly one Completed or Failed. The worker consumes the stream in
order, one loop per job.
"""

import asyncio
import contextlib
import logging
import re
import shlex
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Optional, Protocol, Union

from m3u8_converter.config import Settings, get_settings
from m3u8_converter.models.job import SourceDescriptor

logger = logging.getLogger(__name__)

LOCAL_PROTOCOL_WHITELIST = "file,http,https,tcp,tls,crypto"
STDERR_TAIL_LINES = 8

_DURATION = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


@dataclass(frozen=True)
class Started:
    command_line: str


@dataclass(frozen=True)
class Progress:
    percent: Optional[float] = None


@dataclass(frozen=True)
class Completed:
    pass


@dataclass(frozen=True)
class Failed:
    message: str


EngineEvent = Union[Started, Progress, Completed, Failed]


@dataclass
class EngineOptions:
    """Arguments placed before and after the input."""

    input_options: list[str] = field(default_factory=list)
    output_options: list[str] = field(default_factory=list)


class RemuxEngine(Protocol):
    def run(
        self, source: str, output_path: Path, options: EngineOptions
    ) -> AsyncIterator[EngineEvent]:
        ...


def build_engine_options(source: SourceDescriptor, settings: Settings) -> EngineOptions:
    """
    Options for one conversion.

    Remote sources identify as a browser. Local playlists may reference
    segments over the network, so the allowed protocols are listed.
    Output is always a stream copy with normalised timestamps.
    """
    if source.is_local:
        input_options = ["-protocol_whitelist", LOCAL_PROTOCOL_WHITELIST]
    else:
        input_options = ["-user_agent", settings.user_agent]

    output_options = [
        "-c", "copy",
        "-bsf:a", "aac_adtstoasc",
        "-avoid_negative_ts", "make_zero",
        "-fflags", "+genpts",
        "-movflags", "+faststart",
    ]
    return EngineOptions(input_options=input_options, output_options=output_options)


def parse_duration(line: str) -> Optional[float]:
    """Seconds from an ffmpeg 'Duration: HH:MM:SS.xx' line, if present."""
    match = _DURATION.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def compute_percent(out_time_us: Optional[int], duration: Optional[float]) -> Optional[float]:
    if out_time_us is None or not duration:
        return None
    percent = out_time_us / (duration * 1_000_000) * 100
    return max(0.0, min(100.0, percent))


class FfmpegEngine:
    """Runs ffmpeg as a subprocess and translates its output into events."""

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self.ffmpeg_path = ffmpeg_path

    def build_command(self, source: str, output_path: Path, options: EngineOptions) -> list[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-y",
            *options.input_options,
            "-i", source,
            *options.output_options,
            "-progress", "pipe:1",
            "-nostats",
            str(output_path),
        ]

    async def run(
        self, source: str, output_path: Path, options: EngineOptions
    ) -> AsyncIterator[EngineEvent]:
        cmd = self.build_command(source, output_path, options)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Could not launch {self.ffmpeg_path}: {e}")
            yield Failed("ffmpeg could not be started on the server")
            return

        yield Started(shlex.join(cmd))

        tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        state: dict[str, Optional[float]] = {"duration": None}

        async def read_stderr() -> None:
            assert process.stderr is not None
            async for raw in process.stderr:
                line = raw.decode("utf-8", errors="replace").rstrip()
                if not line:
                    continue
                if state["duration"] is None:
                    state["duration"] = parse_duration(line)
                tail.append(line)

        stderr_task = asyncio.create_task(read_stderr())

        out_time_us: Optional[int] = None
        assert process.stdout is not None
        try:
            async for raw in process.stdout:
                key, _, value = raw.decode("utf-8", errors="replace").strip().partition("=")
                # out_time_ms is reported in microseconds as well
                if key in ("out_time_us", "out_time_ms"):
                    try:
                        out_time_us = int(value)
                    except ValueError:
                        out_time_us = None
                elif key == "progress":
                    yield Progress(compute_percent(out_time_us, state["duration"]))

            await stderr_task
            returncode = await process.wait()
        finally:
            # ffmpeg still running here means reading stopped early
            if process.returncode is None:
                logger.warning(f"Stopping ffmpeg (pid {process.pid}) before it finished")
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
            if not stderr_task.done():
                stderr_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task

        if returncode == 0:
            yield Completed()
        else:
            detail = "\n".join(tail) or "no diagnostic output"
            yield Failed(f"ffmpeg exited with code {returncode}: {detail}")


def create_ffmpeg_engine(settings: Optional[Settings] = None) -> FfmpegEngine:
    """Create an FfmpegEngine using application settings."""
    settings = settings or get_settings()
    return FfmpegEngine(ffmpeg_path=settings.ffmpeg_path)
