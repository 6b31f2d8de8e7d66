"""Filesystem helpers for uploads and conversion output."""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Union
from uuid import uuid4

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def save_upload(data: bytes, uploads_dir: PathLike, original_name: str) -> Path:
    """Write an uploaded playlist to uploads_dir/<uuid>_<name> and return its path."""
    directory = Path(uploads_dir)
    directory.mkdir(parents=True, exist_ok=True)
    safe_name = f"{uuid4().hex}_{os.path.basename(original_name) or 'playlist.m3u8'}"
    dest = directory / safe_name
    with open(dest, "wb") as f:
        f.write(data)
    return dest


def output_filename(job_id: str, prefix: str = "converted_", extension: str = ".mp4") -> str:
    """Timestamped output name, unique per job."""
    timestamp = int(time.time() * 1000)
    return f"{prefix}{timestamp}_{job_id[:8]}{extension}"


def probe_writable(directory: PathLike) -> bool:
    """Check a directory accepts writes by creating and removing a throwaway file."""
    probe = Path(directory) / f".write-probe-{uuid4().hex}"
    try:
        Path(directory).mkdir(parents=True, exist_ok=True)
        probe.write_bytes(b"")
        probe.unlink()
    except OSError as e:
        logger.warning(f"Write probe failed for {directory}: {e}")
        return False
    return True


def remove_quietly(path: Optional[PathLike], label: str = "file") -> bool:
    """Best-effort delete; failures are logged and never raised."""
    if path is None:
        return False
    target = Path(path)
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not remove {label} {target}: {e}")
        return False
    logger.info(f"Removed {label} {target}")
    return True


def resolve_inside(directory: PathLike, filename: str) -> Optional[Path]:
    """Resolve filename under directory, or None if it escapes it."""
    root = Path(directory).resolve()
    candidate = (root / filename).resolve()
    if candidate.parent != root:
        return None
    return candidate
