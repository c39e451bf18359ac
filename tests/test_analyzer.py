"""
Tests for segment analysis and HLS compliance rules.
"""

import pytest

from hls_analyzer.inspector import SegmentAnalyzer, compute_gop_size
from hls_analyzer.models import (
    AudioSummary,
    ByteRange,
    FormatSummary,
    FrameData,
    ProbeResult,
    VideoSummary,
)
from hls_analyzer.validator import ComplianceThresholds, check_compliance


def make_probe(
    format_name="mpegts",
    duration="6.0",
    video_codec="h264",
    audio_codec="aac",
    frames=None,
    packets=None,
):
    """Build a ProbeResult from a minimal ffprobe payload."""
    streams = []
    if video_codec:
        streams.append(
            {
                "index": 0,
                "codec_type": "video",
                "codec_name": video_codec,
                "profile": "High",
                "width": 1280,
                "height": 720,
                "r_frame_rate": "30/1",
                "avg_frame_rate": "30/1",
                "nb_read_frames": "180",
            }
        )
    if audio_codec:
        streams.append(
            {
                "index": 1,
                "codec_type": "audio",
                "codec_name": audio_codec,
                "sample_rate": "48000",
                "channels": 2,
                "channel_layout": "stereo",
            }
        )
    data = {
        "format": {
            "filename": "seg.ts",
            "format_name": format_name,
            "duration": duration,
            "size": "1500000",
            "bit_rate": "2000000",
        },
        "streams": streams,
    }
    if frames is not None:
        data["frames"] = frames
    if packets is not None:
        data["packets"] = packets
    return ProbeResult.from_dict(data)


def video_frames(count, key_every):
    """Video frames with a key frame every ``key_every`` frames."""
    return [
        {"media_type": "video", "key_frame": 1 if i % key_every == 0 else 0, "pts": i * 3000}
        for i in range(count)
    ]


@pytest.fixture
def analyzer():
    """Create analyzer with default thresholds."""
    return SegmentAnalyzer()


class TestComplianceRules:
    """Test check_compliance function."""

    def test_compliant_ts_segment(self):
        """Test a standard H.264/AAC MPEG-TS segment."""
        result = check_compliance(
            FormatSummary(format_name="mpegts", duration=6.0),
            VideoSummary(codec_name="h264"),
            AudioSummary(codec_name="aac"),
        )

        assert result.compliant
        assert result.issues == ()

    def test_vp9_is_hard_violation(self):
        """Test an unsupported video codec breaks compliance."""
        result = check_compliance(
            FormatSummary(format_name="mpegts", duration=6.0),
            VideoSummary(codec_name="vp9"),
            AudioSummary(codec_name="aac"),
        )

        assert not result.compliant
        assert any("vp9" in issue for issue in result.issues)
        assert result.violations == ("Video codec vp9 is not standard for HLS",)
        assert "Use H.264 (AVC) or H.265 (HEVC) video codec" in result.recommendations
        assert [spec.section for spec in result.specs] == ["4.3.4.2"]

    def test_codec_check_is_case_insensitive(self):
        """Test upper-case codec names."""
        result = check_compliance(
            FormatSummary(format_name="mpegts", duration=6.0),
            VideoSummary(codec_name="H264"),
            AudioSummary(codec_name="AAC"),
        )
        assert result.compliant

    def test_unsupported_audio(self):
        """Test an unsupported audio codec."""
        result = check_compliance(
            FormatSummary(format_name="mpegts", duration=6.0),
            None,
            AudioSummary(codec_name="opus"),
        )

        assert not result.compliant
        assert result.violations == ("Audio codec opus is not standard for HLS",)

    def test_short_segment_is_advisory(self):
        """Test a short segment is reported but stays compliant."""
        result = check_compliance(FormatSummary(format_name="mpegts", duration=1.5), None, None)

        assert result.compliant
        assert result.issues == ("Segment duration is less than 2 seconds (not recommended)",)
        assert result.specs[0].section == "4.3.3.1"
        assert result.specs[0].url.endswith("#section-4.3.3.1")

    def test_long_segment(self):
        """Test a segment longer than the maximum."""
        result = check_compliance(FormatSummary(format_name="mpegts", duration=12.0), None, None)
        assert result.issues == ("Segment duration exceeds 10 seconds",)

    def test_target_duration_drift(self):
        """Test sub-file segment that differs from the target duration."""
        fmt = FormatSummary(format_name="mpegts", duration=4.0, is_segment=True)
        result = check_compliance(fmt, None, None, target_duration=6.0)

        assert any("differs from target duration by more than 10%" in i for i in result.issues)
        assert result.compliant

    def test_target_duration_within_tolerance(self):
        """Test drift inside the tolerance."""
        fmt = FormatSummary(format_name="mpegts", duration=5.7, is_segment=True)
        assert check_compliance(fmt, None, None, target_duration=6.0).issues == ()

    def test_target_duration_ignored_for_whole_files(self):
        """Test the target rule only applies to sub-file segments."""
        fmt = FormatSummary(format_name="mpegts", duration=4.0, is_segment=False)
        assert check_compliance(fmt, None, None, target_duration=6.0).issues == ()

    def test_fmp4_note(self):
        """Test fMP4 is informational."""
        result = check_compliance(
            FormatSummary(format_name="mov,mp4,m4a,3gp,3g2,mj2", duration=6.0), None, None
        )

        assert result.compliant
        assert result.specs[0].section == "3.3"
        assert result.advisories == result.issues

    def test_other_container_is_violation(self):
        """Test a non-TS, non-MP4 container."""
        result = check_compliance(
            FormatSummary(format_name="matroska,webm", duration=6.0), None, None
        )

        assert not result.compliant
        assert result.violations == ("Container format should be MPEG-TS or fMP4 for HLS segments",)
        assert result.specs[0].section == "3.1"

    def test_keyframe_misalignment(self):
        """Test keyframe interval far from the segment duration."""
        video = VideoSummary(codec_name="h264", avg_frame_rate="30/1", gop_size=60)
        result = check_compliance(FormatSummary(format_name="mpegts", duration=6.0), video, None)

        assert result.issues == ("Keyframe interval (2.00s) doesn't align with segment duration",)
        assert result.compliant

    def test_rules_are_independent(self):
        """Test every rule reports, none short-circuits another."""
        result = check_compliance(
            FormatSummary(format_name="avi", duration=15.0),
            VideoSummary(codec_name="vp9"),
            AudioSummary(codec_name="opus"),
        )

        assert len(result.issues) == 4
        assert len(result.violations) == 3
        assert len(result.recommendations) == 4

    def test_custom_thresholds(self):
        """Test configured limits are used."""
        thresholds = ComplianceThresholds(min_segment_duration=1.0, max_segment_duration=4.0)
        result = check_compliance(
            FormatSummary(format_name="mpegts", duration=6.0), None, None, thresholds=thresholds
        )
        assert result.issues == ("Segment duration exceeds 4 seconds",)


class TestGopSize:
    """Test compute_gop_size function."""

    def test_regular_gop(self):
        """Test evenly spaced key frames."""
        frames = [FrameData.from_dict(f) for f in video_frames(181, 60)]
        assert compute_gop_size(frames) == 60

    def test_single_key_frame(self):
        """Test fewer than two key frames."""
        frames = [FrameData.from_dict(f) for f in video_frames(30, 60)]
        assert compute_gop_size(frames) is None

    def test_ignores_audio_frames(self):
        """Test only video frames count."""
        frames = [
            FrameData(media_type="video", key_frame=True),
            FrameData(media_type="audio", key_frame=True),
            FrameData(media_type="video"),
            FrameData(media_type="video", key_frame=True),
        ]
        assert compute_gop_size(frames) == 2

    def test_no_frames(self):
        """Test missing frame data."""
        assert compute_gop_size(None) is None


class TestSegmentAnalyzer:
    """Test SegmentAnalyzer class."""

    def test_basic_analysis(self, analyzer):
        """Test projections from a non-detailed probe."""
        analysis = analyzer.analyze(make_probe())

        assert analysis.format.duration == 6.0
        assert analysis.format.bit_rate == 2000000
        assert not analysis.format.is_segment
        assert not analysis.format.is_fmp4
        assert analysis.video.codec_name == "h264"
        assert analysis.video.resolution == "1280x720"
        assert analysis.video.nb_frames == 180
        assert analysis.audio.channels == 2
        assert analysis.hls.compliant

    def test_estimated_frames(self, analyzer):
        """Test non-detailed frame and packet summaries."""
        analysis = analyzer.analyze(make_probe())

        assert analysis.frames.estimated
        assert analysis.frames.note == "Enable detailed analysis for frame-level information"
        assert analysis.packets.estimated
        assert analysis.video.gop_size is None

    def test_byte_range_overrides(self, analyzer):
        """Test manifest values override whole-file probe values."""
        analysis = analyzer.analyze(
            make_probe(duration="120.0"),
            byte_range=ByteRange(offset=0, length=750000),
            duration=6.0,
        )

        assert analysis.format.duration == 6.0
        assert analysis.format.size == 750000
        assert analysis.format.bit_rate == 1000000
        assert analysis.format.is_segment

    def test_fmp4_detection(self, analyzer):
        """Test mp4 family containers."""
        analysis = analyzer.analyze(make_probe(format_name="mov,mp4,m4a,3gp,3g2,mj2"))
        assert analysis.format.is_fmp4

    def test_fmp4_detection_ignores_case(self, analyzer):
        """Test container detection agrees with the compliance fMP4 note."""
        analysis = analyzer.analyze(make_probe(format_name="MOV,MP4"))

        assert analysis.format.is_fmp4
        assert analysis.hls.compliant
        assert any("fMP4" in issue for issue in analysis.hls.issues)

    def test_detailed_analysis(self, analyzer):
        """Test frame, packet and GOP summaries."""
        frames = video_frames(181, 60) + [{"media_type": "audio", "key_frame": 1, "pts": 0}]
        packets = [
            {"codec_type": "video", "size": "1000", "flags": "K_"},
            {"codec_type": "video", "size": "500", "flags": "__"},
            {"codec_type": "audio", "size": "200", "flags": "K_"},
        ]
        analysis = analyzer.analyze(make_probe(frames=frames, packets=packets), detailed=True)

        assert analysis.detailed
        assert analysis.frames.total == 182
        assert analysis.frames.video == 181
        assert analysis.frames.key_frames == 4
        assert analysis.frames.avg_key_frame_interval == 180000
        assert len(analysis.frames.key_frame_positions) == 4
        assert analysis.packets.total == 3
        assert analysis.packets.key_packets == 2
        assert analysis.packets.total_bytes == 1700
        assert analysis.video.gop_size == 60
        assert analysis.video.keyframe_interval == pytest.approx(2.0)
        assert any("Keyframe interval" in issue for issue in analysis.hls.issues)

    def test_no_streams(self, analyzer):
        """Test a probe without streams."""
        analysis = analyzer.analyze(make_probe(video_codec=None, audio_codec=None))

        assert analysis.video is None
        assert analysis.audio is None
        assert analysis.hls.compliant

    def test_to_dict_shape(self, analyzer):
        """Test the serialized analysis keys."""
        data = analyzer.analyze(make_probe()).to_dict()

        assert set(data) >= {"format", "video", "audio", "frames", "packets", "hls"}
        assert data["hls"]["compliant"] is True
