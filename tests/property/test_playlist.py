"""Property-based tests for playlist inspection.

Covers master/media classification, rendition extraction and the
highest-bandwidth selection rule.
"""

import pytest
from hypothesis import given, settings, strategies as st

from m3u8_converter.services.playlist import (
    inspect_playlist,
    parse_attributes,
    select_rendition,
)
from m3u8_converter.utils.errors import EmptyPlaylist, InvalidPlaylist, NoStreamsFound


bandwidths = st.lists(st.integers(min_value=0, max_value=50_000_000), min_size=1, max_size=12)


def build_master(values: list[int]) -> str:
    lines = ["#EXTM3U", "#EXT-X-VERSION:4"]
    for idx, bandwidth in enumerate(values):
        lines.append(f"#EXT-X-STREAM-INF:BANDWIDTH={bandwidth},RESOLUTION={idx + 1}x{idx + 1}")
        lines.append(f"rendition_{idx}.m3u8")
    return "\n".join(lines) + "\n"


class TestRenditionSelection:
    """The selected rendition always carries the maximum bandwidth."""

    @settings(max_examples=100)
    @given(values=bandwidths)
    def test_selects_max_bandwidth(self, values: list[int]) -> None:
        document = inspect_playlist(build_master(values))
        selection = select_rendition(document)

        assert document.kind == "master"
        assert len(document.renditions) == len(values)
        assert selection.bandwidth == max(values)

    @settings(max_examples=100)
    @given(values=bandwidths)
    def test_ties_resolve_to_first_in_document_order(self, values: list[int]) -> None:
        selection = select_rendition(inspect_playlist(build_master(values)))

        assert selection.locator == f"rendition_{values.index(max(values))}.m3u8"

    def test_scenario_low_and_high(self, master_playlist: str) -> None:
        selection = select_rendition(inspect_playlist(master_playlist))

        assert selection.locator == "high.m3u8"
        assert selection.bandwidth == 3_000_000
        assert selection.resolution == "1920x1080"

    def test_equal_bandwidth_keeps_first(self) -> None:
        text = build_master([500, 900, 900])
        assert select_rendition(inspect_playlist(text)).locator == "rendition_1.m3u8"


class TestMasterParsing:
    def test_missing_bandwidth_defaults_to_zero(self) -> None:
        text = "#EXTM3U\n#EXT-X-STREAM-INF:RESOLUTION=640x360\nonly.m3u8\n"
        document = inspect_playlist(text)

        assert document.renditions[0].bandwidth == 0
        assert document.renditions[0].resolution == "640x360"

    def test_locator_skips_comments_and_blank_lines(self) -> None:
        text = (
            "#EXTM3U\n"
            "#EXT-X-STREAM-INF:BANDWIDTH=1000\n"
            "\n"
            "# a comment\n"
            "variant.m3u8\n"
        )
        assert inspect_playlist(text).renditions[0].locator == "variant.m3u8"

    def test_quoted_attributes_with_commas(self, remote_master_playlist: str) -> None:
        document = inspect_playlist(remote_master_playlist)

        assert [r.bandwidth for r in document.renditions] == [800_000, 3_000_000]
        assert select_rendition(document).locator == "https://cdn.example.com/high/index.m3u8"

    def test_average_bandwidth_is_not_bandwidth(self) -> None:
        attrs = parse_attributes('AVERAGE-BANDWIDTH=100,BANDWIDTH=200,CODECS="a,b"')

        assert attrs == {"AVERAGE-BANDWIDTH": "100", "BANDWIDTH": "200", "CODECS": "a,b"}

    def test_stream_tag_without_uri_raises_no_streams(self) -> None:
        with pytest.raises(NoStreamsFound):
            inspect_playlist("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1000\n")


class TestMediaParsing:
    def test_media_playlist_classified(self, media_playlist: str) -> None:
        document = inspect_playlist(media_playlist)

        assert document.kind == "media"
        assert document.renditions == []

    def test_segment_extension_without_extinf(self) -> None:
        assert inspect_playlist("#EXTM3U\nchunk_001.ts?token=abc\n").kind == "media"

    @settings(max_examples=50)
    @given(
        tags=st.lists(
            st.sampled_from(["#EXT-X-VERSION:3", "#EXT-X-TARGETDURATION:6", "#EXT-X-ENDLIST", ""]),
            max_size=6,
        )
    )
    def test_no_segments_is_empty_playlist(self, tags: list[str]) -> None:
        with pytest.raises(EmptyPlaylist):
            inspect_playlist("\n".join(["#EXTM3U", *tags]))


class TestInvalidDocuments:
    @pytest.mark.parametrize(
        "text",
        ["", "not a playlist", "#EXTINF:10,\nsegment.ts\n#EXTM3U\n", "<html></html>"],
    )
    def test_missing_marker_is_invalid(self, text: str) -> None:
        with pytest.raises(InvalidPlaylist):
            inspect_playlist(text)

    @pytest.mark.parametrize("marker", ["#EXTM3Ufoo", "#EXTM3U8", "#EXTM3U-X"])
    def test_marker_must_be_the_whole_line(self, marker: str, media_playlist: str) -> None:
        text = media_playlist.replace("#EXTM3U", marker, 1)

        with pytest.raises(InvalidPlaylist):
            inspect_playlist(text)

    def test_marker_with_trailing_whitespace_accepted(self, media_playlist: str) -> None:
        text = media_playlist.replace("#EXTM3U", "#EXTM3U  \r", 1)

        assert inspect_playlist(text).kind == "media"

    def test_byte_order_mark_and_leading_blank_lines_accepted(self, media_playlist: str) -> None:
        assert inspect_playlist("\ufeff\n\n" + media_playlist).kind == "media"
