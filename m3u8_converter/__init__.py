"""Converts HLS playlists into single downloadable media files."""

__version__ = "0.1.0"
