"""Conversion worker driving the remux engine for each job."""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from m3u8_converter.config import Settings, get_settings
from m3u8_converter.models.job import JobState, OutputArtifact, SourceDescriptor
from m3u8_converter.services.engine import (
    Completed,
    EngineEvent,
    Failed,
    Progress,
    RemuxEngine,
    Started,
    build_engine_options,
    create_ffmpeg_engine,
)
from m3u8_converter.services.registry import JobRegistry
from m3u8_converter.utils.errors import SetupError, SourceNotFound, StorageError
from m3u8_converter.utils.files import output_filename, probe_writable, remove_quietly

logger = logging.getLogger(__name__)

MAX_ERROR_DETAIL = 500

# Checked in order; first match wins.
ERROR_CATEGORIES: list[tuple[tuple[str, ...], str]] = [
    (("permission denied", "operation not permitted"), "Server permission error, please retry"),
    (("no such file or directory",), "Referenced media segments not found"),
    (
        ("invalid argument", "invalid data found", "protocol not found", "not on whitelist"),
        "Incompatible playlist or unreachable segments",
    ),
]

# Absolute POSIX paths (file: URLs included), not the path part of a network
# URL. Spaces belong to the path; it stops at quotes, line ends or ": ".
_ABSOLUTE_PATH = re.compile(r"""(?:(?<![\w.])file:|(?<![\w:/.]))/[^'"\n]*?(?=['"\n]|: |$)""")


def scrub_paths(message: str) -> str:
    return _ABSOLUTE_PATH.sub("<path>", message)


def classify_engine_error(message: Optional[str]) -> str:
    """
    Map raw engine output to a message that is safe to show users.

    Known failure families get a fixed category. Anything else is passed
    through with filesystem paths removed.
    """
    if not message:
        return "Conversion failed"
    lowered = message.lower()
    for needles, category in ERROR_CATEGORIES:
        if any(needle in lowered for needle in needles):
            return category
    return scrub_paths(message)[:MAX_ERROR_DETAIL]


@dataclass
class JobContext:
    """Everything one conversion owns."""

    job_id: str
    source: SourceDescriptor
    output_path: Path
    filename: str


class ConversionWorker:
    """Launches conversions and bridges engine events to the registry."""

    def __init__(
        self,
        registry: JobRegistry,
        engine: RemuxEngine,
        settings: Settings,
    ) -> None:
        """
        Initialize the ConversionWorker.

        Args:
            registry: Job registry updated on every engine event
            engine: Remux engine implementation
            settings: Application settings (directories, URLs, options)
        """
        self.registry = registry
        self.engine = engine
        self.settings = settings
        self.downloads_dir = Path(settings.downloads_dir)
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def start(self, job_id: str, source: SourceDescriptor) -> asyncio.Task:
        """
        Launch a conversion without waiting for it.

        Must be called from a running event loop. There is no admission
        limit and no cancellation: the task runs until the engine ends.
        """
        task = asyncio.create_task(self.run(job_id, source), name=f"convert-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every running conversion to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def preflight(self, source: SourceDescriptor) -> None:
        """
        Raises:
            SourceNotFound: If a local source file is missing
            StorageError: If the output directory is not writable
        """
        if source.is_local and not Path(source.locator).is_file():
            raise SourceNotFound(f"Missing source {source.locator}")
        if not probe_writable(self.downloads_dir):
            raise StorageError(f"Cannot write to {self.downloads_dir}")

    async def run(self, job_id: str, source: SourceDescriptor) -> None:
        """Run one job to a terminal state."""
        try:
            self.preflight(source)
        except SetupError as e:
            logger.error(f"Job {job_id} failed pre-flight: {e}")
            self._cleanup_source(source)
            self.registry.update(job_id, status=JobState.ERROR, error_detail=e.user_message)
            return

        filename = output_filename(
            job_id,
            prefix=self.settings.output_prefix,
            extension=self.settings.output_extension,
        )
        ctx = JobContext(
            job_id=job_id,
            source=source,
            output_path=self.downloads_dir / filename,
            filename=filename,
        )
        options = build_engine_options(source, self.settings)

        finished = False
        try:
            async for event in self.engine.run(source.locator, ctx.output_path, options):
                if self.handle_event(ctx, event):
                    finished = True
                    break
        except Exception as e:
            logger.exception(f"Engine crashed for job {job_id}")
            self.on_error(ctx, str(e))
            return

        if not finished:
            self.on_error(ctx, "engine ended without a result")

    def handle_event(self, ctx: JobContext, event: EngineEvent) -> bool:
        """Apply one engine event; returns True once the job is terminal."""
        if isinstance(event, Started):
            logger.info(f"Job {ctx.job_id} engine command: {event.command_line}")
            return False
        if isinstance(event, Progress):
            self.on_progress(ctx, event.percent)
            return False
        if isinstance(event, Completed):
            self.on_end(ctx)
            return True
        if isinstance(event, Failed):
            self.on_error(ctx, event.message)
            return True
        logger.warning(f"Job {ctx.job_id} ignored unknown engine event {event!r}")
        return False

    def on_progress(self, ctx: JobContext, percent: Optional[float]) -> None:
        progress = int(percent or 0)
        record = self.registry.update(ctx.job_id, status=JobState.CONVERTING, progress=progress)
        logger.debug(f"Job {ctx.job_id} progress {record.progress}%")

    def on_end(self, ctx: JobContext) -> None:
        base_url = self.settings.public_base_url.rstrip("/")
        artifact = OutputArtifact(
            view_url=f"{base_url}/downloads/{ctx.filename}",
            download_url=f"{base_url}/downloads/{ctx.filename}/attachment",
            filename=ctx.filename,
        )
        # Release inputs before the terminal state becomes visible
        self._cleanup_source(ctx.source)
        # A job with no progress events is still starting
        if self.registry.get(ctx.job_id).status == JobState.STARTING:
            self.registry.update(ctx.job_id, status=JobState.CONVERTING)
        self.registry.update(
            ctx.job_id,
            status=JobState.COMPLETED,
            progress=100,
            output=artifact,
        )
        logger.info(f"Job {ctx.job_id} finished: {ctx.filename}")

    def on_error(self, ctx: JobContext, message: Optional[str]) -> None:
        logger.error(f"Job {ctx.job_id} engine error: {message}")
        remove_quietly(ctx.output_path, label="partial output")
        self._cleanup_source(ctx.source)
        self.registry.update(
            ctx.job_id,
            status=JobState.ERROR,
            error_detail=classify_engine_error(message),
        )

    def _cleanup_source(self, source: SourceDescriptor) -> None:
        if source.is_local and source.temporary:
            remove_quietly(source.locator, label="uploaded playlist")


def create_conversion_worker(
    registry: JobRegistry,
    engine: Optional[RemuxEngine] = None,
    settings: Optional[Settings] = None,
) -> ConversionWorker:
    """Create a ConversionWorker backed by ffmpeg unless an engine is given."""
    settings = settings or get_settings()
    return ConversionWorker(
        registry=registry,
        engine=engine or create_ffmpeg_engine(settings),
        settings=settings,
    )
