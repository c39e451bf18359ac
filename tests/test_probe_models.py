"""
Tests for schema-tolerant probe models.
"""

from hls_analyzer.models import FormatData, PacketData, ProbeResult, StreamData


class TestProbeResult:
    """Test ProbeResult.from_dict."""

    def test_string_numbers(self):
        """Test ffprobe's stringly typed numbers are converted."""
        probe = ProbeResult.from_dict(
            {
                "format": {"duration": "6.006000", "size": "1234", "bit_rate": "N/A"},
                "streams": [{"codec_type": "video", "width": "1920", "height": 1080}],
            }
        )

        assert probe.format.duration == 6.006
        assert probe.format.size == 1234
        assert probe.format.bit_rate is None
        assert probe.video_stream.resolution == "1920x1080"

    def test_garbage_payload(self):
        """Test non-dict input gives an empty result."""
        probe = ProbeResult.from_dict("not json")

        assert probe.streams == []
        assert probe.format == FormatData()
        assert probe.frames is None
        assert not probe.is_detailed

    def test_wrong_field_types(self):
        """Test unexpected field shapes are ignored."""
        probe = ProbeResult.from_dict({"format": [], "streams": {"a": 1}, "frames": "x"})

        assert probe.streams == []
        assert probe.frames is None

    def test_raw_is_kept(self):
        """Test the original payload is preserved."""
        data = {"format": {"format_name": "mpegts"}, "streams": [], "extra": {"x": 1}}
        assert ProbeResult.from_dict(data).raw == data

    def test_first_streams(self):
        """Test first video and audio stream lookup."""
        probe = ProbeResult.from_dict(
            {
                "streams": [
                    {"index": 0, "codec_type": "audio", "codec_name": "aac"},
                    {"index": 1, "codec_type": "video", "codec_name": "h264"},
                    {"index": 2, "codec_type": "audio", "codec_name": "ac3"},
                ]
            }
        )

        assert probe.audio_stream.codec_name == "aac"
        assert probe.video_stream.index == 1
        assert probe.has_video and probe.has_audio

    def test_detailed_lists(self):
        """Test frames and packets are parsed when present."""
        probe = ProbeResult.from_dict(
            {
                "frames": [{"media_type": "video", "key_frame": 1, "pts": "0"}],
                "packets": [{"codec_type": "video", "size": "100", "flags": "K__"}],
            }
        )

        assert probe.is_detailed
        assert probe.frames[0].key_frame
        assert probe.frames[0].pts == 0
        assert probe.packets[0].is_key


class TestStreamData:
    """Test StreamData.from_dict."""

    def test_unknown_codec_type(self):
        """Test unexpected codec types map to other."""
        assert StreamData.from_dict({"codec_type": "data"}).codec_type == "other"

    def test_is_avc(self):
        """Test the string boolean."""
        assert StreamData.from_dict({"is_avc": "true"}).is_avc is True
        assert StreamData.from_dict({"is_avc": "false"}).is_avc is False
        assert StreamData.from_dict({}).is_avc is None

    def test_missing_resolution(self):
        """Test resolution without dimensions."""
        assert StreamData.from_dict({"codec_type": "video"}).resolution == "Unknown"


class TestPacketData:
    """Test PacketData."""

    def test_non_key_packet(self):
        """Test packet flags without K."""
        assert not PacketData.from_dict({"flags": "__"}).is_key
