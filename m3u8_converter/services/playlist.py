"""Playlist inspection for uploaded M3U8 files.

Parses raw playlist text, tells master playlists apart from media
playlists and picks the highest-bandwidth rendition of a master.
Everything here is pure: no I/O, no logging side effects.
"""

import re
from typing import Iterator, Optional

from m3u8_converter.models.playlist import PlaylistDocument, Rendition, RenditionSelection
from m3u8_converter.utils.errors import EmptyPlaylist, InvalidPlaylist, NoStreamsFound

PLAYLIST_MARKER = "#EXTM3U"
STREAM_INF_TAG = "#EXT-X-STREAM-INF"
SEGMENT_TAG = "#EXTINF"
SEGMENT_EXTENSIONS = (".ts", ".m4s", ".mp4", ".m4a", ".m4v", ".aac", ".mp3", ".ac3", ".vtt")

# KEY=value or KEY="quoted,value"
_ATTRIBUTE = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')


def parse_attributes(attribute_list: str) -> dict[str, str]:
    """Parse an HLS attribute list into a dict with quotes stripped."""
    return {
        key: value.strip('"')
        for key, value in _ATTRIBUTE.findall(attribute_list)
    }


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines()]


def _next_uri(lines: list[str], start: int) -> Optional[str]:
    """First non-blank, non-comment line at or after start."""
    for line in lines[start:]:
        if line and not line.startswith("#"):
            return line
    return None


def _iter_renditions(lines: list[str]) -> Iterator[Rendition]:
    for idx, line in enumerate(lines):
        if not line.startswith(STREAM_INF_TAG):
            continue
        _, _, attribute_list = line.partition(":")
        attrs = parse_attributes(attribute_list)
        locator = _next_uri(lines, idx + 1)
        if locator is None:
            continue
        try:
            bandwidth = int(attrs.get("BANDWIDTH", "0"))
        except ValueError:
            bandwidth = 0
        yield Rendition(
            bandwidth=max(bandwidth, 0),
            resolution=attrs.get("RESOLUTION") or None,
            locator=locator,
        )


def _has_segments(lines: list[str]) -> bool:
    for line in lines:
        if line.startswith(SEGMENT_TAG):
            return True
        if line and not line.startswith("#"):
            path = line.split("?", 1)[0].lower()
            if path.endswith(SEGMENT_EXTENSIONS):
                return True
    return False


def inspect_playlist(text: str) -> PlaylistDocument:
    """
    Parse and classify a playlist.

    Args:
        text: Raw playlist contents

    Returns:
        PlaylistDocument of kind "master" (with renditions) or "media"

    Raises:
        InvalidPlaylist: If the #EXTM3U marker line is missing
        NoStreamsFound: If a master playlist yields no renditions
        EmptyPlaylist: If a media playlist has no segments
    """
    lines = _lines(text.lstrip("\ufeff"))
    first = next((line for line in lines if line), "")
    if first != PLAYLIST_MARKER:
        raise InvalidPlaylist()

    if any(line.startswith(STREAM_INF_TAG) for line in lines):
        renditions = list(_iter_renditions(lines))
        if not renditions:
            raise NoStreamsFound()
        return PlaylistDocument(raw=text, kind="master", renditions=renditions)

    if not _has_segments(lines):
        raise EmptyPlaylist()
    return PlaylistDocument(raw=text, kind="media")


def select_rendition(document: PlaylistDocument) -> RenditionSelection:
    """
    Pick the rendition with the highest bandwidth.

    Ties go to the rendition listed first.

    Raises:
        NoStreamsFound: If the document has no renditions
    """
    if not document.renditions:
        raise NoStreamsFound()
    # max() keeps the first of equal elements
    best = max(document.renditions, key=lambda r: r.bandwidth)
    return RenditionSelection(
        locator=best.locator,
        bandwidth=best.bandwidth,
        resolution=best.resolution,
    )
