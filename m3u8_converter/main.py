"""FastAPI application for the M3U8 converter."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from m3u8_converter.api.routes import (
    converter_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    router,
    validation_exception_handler,
)
from m3u8_converter.config import Settings, get_settings
from m3u8_converter.services.engine import RemuxEngine
from m3u8_converter.services.registry import JobRegistry
from m3u8_converter.services.reporter import ProgressReporter
from m3u8_converter.services.sweeper import RetentionSweeper
from m3u8_converter.services.worker import create_conversion_worker
from m3u8_converter.utils.errors import ConverterError

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[RemuxEngine] = None,
) -> FastAPI:
    """
    Build the application and its job machinery.

    Args:
        settings: Settings to use instead of the environment
        engine: Remux engine to use instead of ffmpeg
    """
    settings = settings or get_settings()

    Path(settings.downloads_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.uploads_dir).mkdir(parents=True, exist_ok=True)

    registry = JobRegistry()
    worker = create_conversion_worker(registry, engine=engine, settings=settings)
    sweeper = RetentionSweeper(
        registry,
        completed_retention=settings.completed_retention_seconds,
        error_retention=settings.error_retention_seconds,
        interval=settings.sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper.start()
        logger.info(f"Downloads directory: {settings.downloads_dir}")
        yield
        await sweeper.stop()
        # Running conversions are not cancelled; ffmpeg finishes on its own.
        if worker.active_count:
            logger.warning(f"Shutting down with {worker.active_count} conversions running")

    app = FastAPI(title="M3U8 Converter API", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.worker = worker
    app.state.reporter = ProgressReporter(registry)
    app.state.sweeper = sweeper

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ConverterError, converter_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(router)
    return app


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    logger.info(f"M3U8 Converter backend running on http://{settings.host}:{settings.port}")
    uvicorn.run(
        "m3u8_converter.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
