"""
Segment analysis.

This module normalizes raw probe data for one HLS segment into a
SegmentAnalysis and attaches the HLS compliance verdict.

A byte-range slice is probed as its whole backing file, so the tool's own
duration, size and bitrate describe the file and not the segment. Values
taken from the manifest therefore override what the tool reports.
"""

from typing import Optional

from ..models import (
    AudioSummary,
    ByteRange,
    FormatSummary,
    FrameData,
    FrameSummary,
    PacketSummary,
    ProbeResult,
    SegmentAnalysis,
    StreamData,
    VideoSummary,
)
from ..utils import get_logger
from ..validator.compliance import ComplianceThresholds, check_compliance

logger = get_logger(__name__)

FRAMES_HINT = "Enable detailed analysis for frame-level information"
PACKETS_HINT = "Enable detailed analysis for packet-level information"
KEY_FRAME_POSITIONS = 10


def compute_gop_size(frames: Optional[list[FrameData]]) -> Optional[float]:
    """
    Compute the average number of video frames between key frames.

    Args:
        frames: Decoded frames (detailed probe)

    Returns:
        Mean key frame distance in frames, or None with fewer than two key frames
    """
    if not frames:
        return None
    video_frames = [frame for frame in frames if frame.media_type == "video"]
    key_positions = [i for i, frame in enumerate(video_frames) if frame.key_frame]
    if len(key_positions) < 2:
        return None
    return (key_positions[-1] - key_positions[0]) / (len(key_positions) - 1)


class SegmentAnalyzer:
    """
    Builds SegmentAnalysis records from probe results.

    The analyzer holds no per-segment state and can be shared across
    concurrent probes.
    """

    def __init__(self, thresholds: Optional[ComplianceThresholds] = None):
        """
        Initialize segment analyzer.

        Args:
            thresholds: Compliance rule limits (defaults when None)
        """
        self.thresholds = thresholds or ComplianceThresholds()

    def analyze(
        self,
        probe: ProbeResult,
        detailed: bool = False,
        byte_range: Optional[ByteRange] = None,
        duration: Optional[float] = None,
        target_duration: float = 0.0,
    ) -> SegmentAnalysis:
        """
        Analyze one probed segment.

        Args:
            probe: Raw probe result
            detailed: Whether frame and packet data was requested
            byte_range: Byte range of the segment from the manifest
            duration: Segment duration from the manifest
            target_duration: Playlist target duration (0 when unknown)

        Returns:
            SegmentAnalysis
        """
        format_summary = self._summarize_format(probe, byte_range, duration)

        video_stream = probe.video_stream
        video = None
        if video_stream is not None:
            gop_size = compute_gop_size(probe.frames) if detailed else None
            video = self._summarize_video(video_stream, gop_size)

        audio_stream = probe.audio_stream
        audio = self._summarize_audio(audio_stream) if audio_stream is not None else None

        hls = check_compliance(format_summary, video, audio, target_duration, self.thresholds)
        if hls.issues:
            logger.debug(f"Compliance: {len(hls.issues)} issue(s), compliant={hls.compliant}")

        return SegmentAnalysis(
            format=format_summary,
            video=video,
            audio=audio,
            frames=self._summarize_frames(probe, detailed, video),
            packets=self._summarize_packets(probe, detailed),
            hls=hls,
            detailed=detailed,
        )

    def _summarize_format(
        self,
        probe: ProbeResult,
        byte_range: Optional[ByteRange],
        duration: Optional[float],
    ) -> FormatSummary:
        fmt = probe.format
        format_name = (fmt.format_name or "").lower()

        segment_duration = duration if duration is not None else (fmt.duration or 0.0)
        size = byte_range.length if byte_range is not None else (fmt.size or 0)
        bit_rate = fmt.bit_rate or 0
        if byte_range is not None and duration:
            bit_rate = round(byte_range.length * 8 / duration)

        return FormatSummary(
            filename=fmt.filename,
            format_name=fmt.format_name,
            format_long_name=fmt.format_long_name,
            duration=segment_duration,
            size=size,
            bit_rate=bit_rate,
            probe_score=fmt.probe_score,
            nb_streams=fmt.nb_streams,
            nb_programs=fmt.nb_programs,
            tags=fmt.tags,
            is_segment=byte_range is not None or bool(duration),
            is_fmp4="mp4" in format_name or "mov" in format_name,
        )

    def _summarize_video(self, stream: StreamData, gop_size: Optional[float]) -> VideoSummary:
        return VideoSummary(
            codec_name=stream.codec_name,
            codec_long_name=stream.codec_long_name,
            profile=stream.profile,
            level=stream.level,
            width=stream.width,
            height=stream.height,
            coded_width=stream.coded_width,
            coded_height=stream.coded_height,
            has_b_frames=stream.has_b_frames,
            pix_fmt=stream.pix_fmt,
            bit_rate=stream.bit_rate,
            max_bit_rate=stream.max_bit_rate,
            frame_rate=stream.r_frame_rate,
            avg_frame_rate=stream.avg_frame_rate,
            time_base=stream.time_base,
            start_pts=stream.start_pts,
            start_time=stream.start_time,
            duration=stream.duration,
            duration_ts=stream.duration_ts,
            nb_frames=stream.nb_frames if stream.nb_frames is not None else stream.nb_read_frames,
            nb_read_frames=stream.nb_read_frames,
            nb_read_packets=stream.nb_read_packets,
            display_aspect_ratio=stream.display_aspect_ratio,
            sample_aspect_ratio=stream.sample_aspect_ratio,
            is_avc=stream.is_avc,
            nal_length_size=stream.nal_length_size,
            refs=stream.refs,
            tags=stream.tags,
            gop_size=gop_size,
        )

    def _summarize_audio(self, stream: StreamData) -> AudioSummary:
        return AudioSummary(
            codec_name=stream.codec_name,
            codec_long_name=stream.codec_long_name,
            profile=stream.profile,
            sample_rate=stream.sample_rate,
            channels=stream.channels,
            channel_layout=stream.channel_layout,
            bits_per_sample=stream.bits_per_sample,
            bit_rate=stream.bit_rate,
            max_bit_rate=stream.max_bit_rate,
            time_base=stream.time_base,
            start_pts=stream.start_pts,
            start_time=stream.start_time,
            duration=stream.duration,
            duration_ts=stream.duration_ts,
            nb_frames=stream.nb_frames if stream.nb_frames is not None else stream.nb_read_frames,
            nb_read_frames=stream.nb_read_frames,
            nb_read_packets=stream.nb_read_packets,
            tags=stream.tags,
        )

    def _summarize_frames(
        self, probe: ProbeResult, detailed: bool, video: Optional[VideoSummary]
    ) -> FrameSummary:
        if not detailed:
            return FrameSummary(
                estimated=True,
                video=video.nb_frames if video is not None else None,
                note=FRAMES_HINT,
            )

        frames = probe.frames or []
        video_frames = [frame for frame in frames if frame.media_type == "video"]
        key_frames = [frame for frame in video_frames if frame.key_frame]

        avg_interval = 0.0
        if len(key_frames) > 1:
            first_pts, last_pts = key_frames[0].pts, key_frames[-1].pts
            if first_pts is not None and last_pts is not None:
                avg_interval = (last_pts - first_pts) / (len(key_frames) - 1)

        return FrameSummary(
            total=len(frames),
            video=len(video_frames),
            key_frames=len(key_frames),
            first_pts=frames[0].pts if frames else None,
            last_pts=frames[-1].pts if frames else None,
            avg_key_frame_interval=avg_interval,
            key_frame_positions=tuple(
                {"pts": frame.pts, "pts_time": frame.pts_time, "pkt_pos": frame.pkt_pos}
                for frame in key_frames[:KEY_FRAME_POSITIONS]
            ),
        )

    def _summarize_packets(self, probe: ProbeResult, detailed: bool) -> PacketSummary:
        if not detailed:
            return PacketSummary(estimated=True, note=PACKETS_HINT)

        packets = probe.packets or []
        return PacketSummary(
            total=len(packets),
            video=sum(1 for packet in packets if packet.codec_type == "video"),
            audio=sum(1 for packet in packets if packet.codec_type == "audio"),
            key_packets=sum(1 for packet in packets if packet.is_key),
            total_bytes=sum(packet.size for packet in packets),
        )
