"""Tests for filesystem helpers."""

from pathlib import Path

from hypothesis import given, settings, strategies as st

from m3u8_converter.utils.files import (
    output_filename,
    probe_writable,
    remove_quietly,
    resolve_inside,
    save_upload,
)


def test_save_upload_keeps_basename(tmp_path: Path) -> None:
    stored = save_upload(b"#EXTM3U\n", tmp_path / "uploads", "../../etc/video.m3u8")

    assert stored.parent == tmp_path / "uploads"
    assert stored.name.endswith("_video.m3u8")
    assert stored.read_bytes() == b"#EXTM3U\n"


def test_probe_writable(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    assert probe_writable(tmp_path / "new-dir") is True
    assert list((tmp_path / "new-dir").iterdir()) == []
    assert probe_writable(blocker) is False


def test_remove_quietly(tmp_path: Path) -> None:
    target = tmp_path / "partial.mp4"
    target.write_bytes(b"x")

    assert remove_quietly(target) is True
    assert remove_quietly(target) is False
    assert remove_quietly(None) is False


def test_resolve_inside_rejects_traversal(tmp_path: Path) -> None:
    assert resolve_inside(tmp_path, "out.mp4") == (tmp_path / "out.mp4").resolve()
    assert resolve_inside(tmp_path, "../out.mp4") is None
    assert resolve_inside(tmp_path, "nested/out.mp4") is None


@settings(max_examples=50)
@given(job_id=st.text(alphabet="0123456789abcdef", min_size=32, max_size=32))
def test_output_filename_shape(job_id: str) -> None:
    name = output_filename(job_id)

    assert name.startswith("converted_")
    assert name.endswith(f"_{job_id[:8]}.mp4")
    assert name[len("converted_"):].split("_")[0].isdigit()
