"""
Tests for manifest parser module.
"""

import pytest

from hls_analyzer.models import ByteRange, MasterPlaylist, MediaPlaylist
from hls_analyzer.playlist import (
    ManifestParser,
    is_master_playlist,
    parse_attribute_list,
    parse_byte_range,
    parse_manifest,
)


@pytest.fixture
def master_manifest():
    """Master playlist with three variants."""
    return "\n".join(
        [
            "#EXTM3U",
            "#EXT-X-VERSION:6",
            '#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360,CODECS="avc1.4d401e,mp4a.40.2"',
            "360p/index.m3u8",
            "#EXT-X-STREAM-INF:BANDWIDTH=5000000,FRAME-RATE=29.970",
            "1080p/index.m3u8",
            "#EXT-X-STREAM-INF:BANDWIDTH=2500000,AVERAGE-BANDWIDTH=2200000",
            "#EXT-X-SOME-FUTURE-TAG",
            "video_720p.m3u8",
        ]
    )


@pytest.fixture
def media_manifest():
    """VOD media playlist with three segments."""
    return "\n".join(
        [
            "#EXTM3U",
            "#EXT-X-VERSION:3",
            "#EXT-X-TARGETDURATION:6",
            "#EXT-X-MEDIA-SEQUENCE:10",
            "#EXT-X-PLAYLIST-TYPE:VOD",
            "#EXTINF:6.006,first",
            "segment0.ts",
            "#EXTINF:6.006,",
            "segment1.ts",
            "#EXTINF:3.5,",
            "segment2.ts",
            "#EXT-X-ENDLIST",
        ]
    )


@pytest.fixture
def byte_range_manifest():
    """Single-file playlist addressed by byte ranges."""
    return "\n".join(
        [
            "#EXTM3U",
            "#EXT-X-VERSION:4",
            "#EXT-X-TARGETDURATION:6",
            "#EXTINF:6.0,",
            "#EXT-X-BYTERANGE:1000@0",
            "media.ts",
            "#EXTINF:6.0,",
            "#EXT-X-BYTERANGE:2000",
            "media.ts",
            "#EXTINF:4.0,",
            "#EXT-X-BYTERANGE:500@5000",
            "media.ts",
            "#EXTINF:4.0,",
            "#EXT-X-BYTERANGE:250",
            "media.ts",
            "#EXT-X-ENDLIST",
        ]
    )


@pytest.fixture
def parser():
    """Create parser instance."""
    return ManifestParser()


class TestAttributeList:
    """Test attribute list parsing."""

    def test_simple_attributes(self):
        """Test unquoted key=value pairs."""
        attributes = parse_attribute_list("BANDWIDTH=800000,RESOLUTION=640x360")
        assert attributes == {"BANDWIDTH": "800000", "RESOLUTION": "640x360"}

    def test_quoted_value_with_commas(self):
        """Test commas inside quotes belong to the value."""
        attributes = parse_attribute_list('CODECS="avc1.4d401e,mp4a.40.2",BANDWIDTH=1')
        assert attributes["CODECS"] == "avc1.4d401e,mp4a.40.2"
        assert attributes["BANDWIDTH"] == "1"

    def test_keys_are_uppercased(self):
        """Test attribute names are normalized."""
        assert parse_attribute_list("uri=init.mp4") == {"URI": "init.mp4"}

    def test_empty_text(self):
        """Test empty attribute list."""
        assert parse_attribute_list("") == {}


class TestByteRange:
    """Test byte range values."""

    def test_explicit_offset(self):
        """Test length@offset form."""
        assert parse_byte_range("1000@200", 0) == ByteRange(offset=200, length=1000)

    def test_implicit_offset_uses_cursor(self):
        """Test offset defaults to the running cursor."""
        assert parse_byte_range("500", 1200) == ByteRange(offset=1200, length=500)

    def test_invalid_length(self):
        """Test garbage length is ignored."""
        assert parse_byte_range("abc", 0) is None

    def test_end(self):
        """Test end offset."""
        assert ByteRange(offset=100, length=50).end == 150


class TestMasterPlaylist:
    """Test master playlist parsing."""

    def test_detects_master(self, master_manifest):
        """Test stream-info tag makes a master playlist."""
        assert is_master_playlist(master_manifest)
        assert isinstance(parse_manifest(master_manifest), MasterPlaylist)

    def test_quality_levels(self, parser, master_manifest):
        """Test every variant is collected in document order."""
        playlist = parser.parse(master_manifest, "https://cdn.example.com/master.m3u8")

        assert playlist.base_uri == "https://cdn.example.com/master.m3u8"
        assert [level.bandwidth for level in playlist.quality_levels] == [
            800000,
            5000000,
            2500000,
        ]

        first = playlist.quality_levels[0]
        assert first.resolution == "640x360"
        assert first.codecs == "avc1.4d401e,mp4a.40.2"
        assert first.uri == "360p/index.m3u8"

    def test_resolution_from_quality_name(self, parser, master_manifest):
        """Test resolution derived from NNNp in the URI."""
        playlist = parser.parse(master_manifest)
        assert playlist.quality_levels[1].resolution == "1920x1080"
        assert playlist.quality_levels[2].resolution == "1280x720"

    def test_explicit_resolution_wins(self, parser):
        """Test RESOLUTION takes precedence over the quality label in the URI."""
        playlist = parser.parse(
            "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1500000,RESOLUTION=1024x576\nvideo_720p.m3u8\n"
        )
        assert playlist.quality_levels[0].resolution == "1024x576"

    def test_optional_attributes(self, parser, master_manifest):
        """Test frame rate and average bandwidth."""
        playlist = parser.parse(master_manifest)
        assert playlist.quality_levels[1].frame_rate == pytest.approx(29.97)
        assert playlist.quality_levels[2].average_bandwidth == 2200000

    def test_unknown_resolution(self, parser):
        """Test variant without resolution hint."""
        playlist = parser.parse("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=100\nlow.m3u8\n")
        assert playlist.quality_levels[0].resolution == "Unknown"

    def test_stream_inf_without_uri(self, parser):
        """Test a variant with no URI line is skipped."""
        content = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=100\n#EXT-X-STREAM-INF:BANDWIDTH=200\nb.m3u8"
        playlist = parser.parse(content)
        assert len(playlist.quality_levels) == 1
        assert playlist.quality_levels[0].bandwidth == 200

    def test_highest_bandwidth(self, parser, master_manifest):
        """Test selecting the best variant."""
        playlist = parser.parse(master_manifest)
        assert playlist.highest_bandwidth().uri == "1080p/index.m3u8"


class TestMediaPlaylist:
    """Test media playlist parsing."""

    def test_header_tags(self, parser, media_manifest):
        """Test playlist level tags."""
        playlist = parser.parse(media_manifest)

        assert isinstance(playlist, MediaPlaylist)
        assert playlist.version == 3
        assert playlist.target_duration == 6
        assert playlist.media_sequence == 10
        assert playlist.playlist_type == "VOD"
        assert playlist.ended is True

    def test_segments(self, parser, media_manifest):
        """Test segment order, durations and titles."""
        playlist = parser.parse(media_manifest)

        assert [s.uri for s in playlist.segments] == ["segment0.ts", "segment1.ts", "segment2.ts"]
        assert [s.index for s in playlist.segments] == [0, 1, 2]
        assert playlist.segments[0].title == "first"
        assert playlist.segments[1].title is None

    def test_duration_round_trip(self, parser, media_manifest):
        """Test total duration equals the sum of EXTINF values."""
        playlist = parser.parse(media_manifest)
        assert playlist.total_duration == pytest.approx(6.006 + 6.006 + 3.5)

    def test_version_defaults_to_3(self, parser):
        """Test missing version tag."""
        playlist = parser.parse("#EXTM3U\n#EXTINF:4,\na.ts\n")
        assert playlist.version == 3

    def test_malformed_numbers(self, parser):
        """Test garbage numbers fall back to defaults instead of raising."""
        content = "#EXTM3U\n#EXT-X-VERSION:abc\n#EXT-X-TARGETDURATION:x\n#EXTINF:bad,\na.ts\n"
        playlist = parser.parse(content)

        assert playlist.version == 0
        assert playlist.target_duration == 0
        assert playlist.segments[0].duration == 0

    def test_byte_range_cursor(self, parser, byte_range_manifest):
        """Test omitted offsets continue from the previous range."""
        playlist = parser.parse(byte_range_manifest)
        ranges = [s.byte_range for s in playlist.segments]

        assert ranges == [
            ByteRange(offset=0, length=1000),
            ByteRange(offset=1000, length=2000),
            ByteRange(offset=5000, length=500),
            ByteRange(offset=5500, length=250),
        ]
        assert playlist.uses_byte_ranges

    def test_init_segment(self, parser):
        """Test EXT-X-MAP is recorded once."""
        content = "\n".join(
            [
                "#EXTM3U",
                "#EXT-X-TARGETDURATION:4",
                '#EXT-X-MAP:URI="init.mp4"',
                "#EXTINF:4,",
                "seg0.m4s",
                '#EXT-X-MAP:URI="other-init.mp4"',
                "#EXTINF:4,",
                "seg1.m4s",
            ]
        )
        playlist = parser.parse(content)

        assert playlist.init_segment_uri == "init.mp4"
        assert playlist.is_fmp4
        assert playlist.segment_count == 2

    def test_implicit_segments_use_target_duration(self, parser):
        """Test bare media references become segments."""
        content = "#EXTM3U\n#EXT-X-TARGETDURATION:4\nchunk0.ts\nchunk1.m4s?token=abc\nnotes.txt\n"
        playlist = parser.parse(content)

        assert [s.uri for s in playlist.segments] == ["chunk0.ts", "chunk1.m4s?token=abc"]
        assert all(s.duration == 4 for s in playlist.segments)

    def test_implicit_segments_default_duration(self):
        """Test the configured fallback without a target duration."""
        playlist = ManifestParser(default_segment_duration=6.0).parse("#EXTM3U\na.ts\nb.ts\n")
        assert [s.duration for s in playlist.segments] == [6.0, 6.0]

    def test_file_sequence_fallback(self, parser):
        """Test fileSequenceN lines when an init segment exists."""
        content = "\n".join(
            [
                "#EXTM3U",
                "#EXT-X-TARGETDURATION:2",
                '#EXT-X-MAP:URI="init.mp4"',
                "fileSequence0",
                "fileSequence1",
            ]
        )
        playlist = parser.parse(content)

        assert [s.uri for s in playlist.segments] == ["fileSequence0", "fileSequence1"]
        assert playlist.total_duration == 4

    def test_init_without_media(self, parser):
        """Test an init segment alone yields no segments."""
        playlist = parser.parse('#EXTM3U\n#EXT-X-MAP:URI="init.mp4"\n')
        assert playlist.segments == []
        assert playlist.init_segment_uri == "init.mp4"

    def test_empty_content(self, parser):
        """Test empty input parses to an empty media playlist."""
        playlist = parser.parse("")
        assert isinstance(playlist, MediaPlaylist)
        assert playlist.segments == []

    def test_cache_key(self, parser, media_manifest):
        """Test segment identity."""
        playlist = parser.parse(media_manifest)
        assert playlist.segments[1].cache_key == (1, "segment1.ts")

    def test_parse_is_idempotent(self, parser, media_manifest, master_manifest):
        """Test parsing the same text twice gives equal results."""
        assert parser.parse(media_manifest) == parser.parse(media_manifest)
        assert parser.parse(master_manifest) == parser.parse(master_manifest)
