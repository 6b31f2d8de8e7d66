"""Application settings from environment variables."""

import os
import tempfile
from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings from environment."""

    # Server
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 4000
    public_base_url: str = "http://localhost:4000"
    cors_origins: list[str] = ["*"]

    # Storage
    downloads_dir: str = os.path.join(tempfile.gettempdir(), "downloads")
    uploads_dir: str = os.path.join(tempfile.gettempdir(), "uploads")
    output_prefix: str = "converted_"
    output_extension: str = ".mp4"

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_upload_extensions: list[str] = [".m3u8", ".m3u"]
    allowed_upload_content_types: list[str] = [
        "application/vnd.apple.mpegurl",
        "application/x-mpegurl",
        "audio/mpegurl",
        "audio/x-mpegurl",
    ]

    # Retention (seconds)
    completed_retention_seconds: float = 600.0
    error_retention_seconds: float = 120.0
    sweep_interval_seconds: float = 60.0

    # FFmpeg
    ffmpeg_path: str = "ffmpeg"
    user_agent: str = DEFAULT_USER_AGENT

    model_config = {"env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
