"""
Data models for per-segment analysis.

A SegmentAnalysis is built once from a ProbeResult plus the segment context
taken from the manifest, and is never mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..utils.helpers import select_frame_rate

RFC8216_URL = "https://datatracker.ietf.org/doc/html/rfc8216"


@dataclass(frozen=True)
class SpecReference:
    """Citation of an RFC 8216 section backing a compliance finding."""

    section: str
    description: str

    @property
    def url(self) -> str:
        return f"{RFC8216_URL}#section-{self.section}"

    def to_dict(self) -> dict:
        return {"section": self.section, "description": self.description, "url": self.url}


@dataclass(frozen=True)
class HlsCompliance:
    """
    HLS compliance verdict for one segment.

    ``issues`` is the complete itemized list of findings. ``violations`` is the
    subset produced by hard rules (codec or container); ``compliant`` is False
    exactly when there is at least one violation.
    """

    issues: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    specs: tuple[SpecReference, ...] = ()
    violations: tuple[str, ...] = ()

    @property
    def compliant(self) -> bool:
        return not self.violations

    @property
    def advisories(self) -> tuple[str, ...]:
        """Issues that do not break compliance."""
        return tuple(issue for issue in self.issues if issue not in self.violations)

    def to_dict(self) -> dict:
        return {
            "compliant": self.compliant,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
            "specs": [spec.to_dict() for spec in self.specs],
            "violations": list(self.violations),
        }


@dataclass(frozen=True)
class FormatSummary:
    """Normalized container information for a segment."""

    filename: Optional[str] = None
    format_name: Optional[str] = None
    format_long_name: Optional[str] = None
    duration: float = 0.0
    size: int = 0
    bit_rate: int = 0
    probe_score: Optional[int] = None
    nb_streams: Optional[int] = None
    nb_programs: Optional[int] = None
    tags: dict = field(default_factory=dict)
    is_segment: bool = False
    is_fmp4: bool = False

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "formatName": self.format_name,
            "formatLongName": self.format_long_name,
            "duration": self.duration,
            "size": self.size,
            "bitRate": self.bit_rate,
            "probeScore": self.probe_score,
            "nbStreams": self.nb_streams,
            "nbPrograms": self.nb_programs,
            "tags": self.tags,
            "isSegment": self.is_segment,
            "isFmp4": self.is_fmp4,
        }


@dataclass(frozen=True)
class VideoSummary:
    """Projection of the first video stream."""

    codec_name: Optional[str] = None
    codec_long_name: Optional[str] = None
    profile: Optional[str] = None
    level: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    coded_width: Optional[int] = None
    coded_height: Optional[int] = None
    has_b_frames: Optional[int] = None
    pix_fmt: Optional[str] = None
    bit_rate: Optional[int] = None
    max_bit_rate: Optional[int] = None
    frame_rate: Optional[str] = None
    avg_frame_rate: Optional[str] = None
    time_base: Optional[str] = None
    start_pts: Optional[int] = None
    start_time: Optional[float] = None
    duration: Optional[float] = None
    duration_ts: Optional[int] = None
    nb_frames: Optional[int] = None
    nb_read_frames: Optional[int] = None
    nb_read_packets: Optional[int] = None
    display_aspect_ratio: Optional[str] = None
    sample_aspect_ratio: Optional[str] = None
    is_avc: Optional[bool] = None
    nal_length_size: Optional[int] = None
    refs: Optional[int] = None
    tags: dict = field(default_factory=dict)
    gop_size: Optional[float] = None

    @property
    def fps(self) -> float:
        """Frames per second, preferring the average frame rate."""
        return select_frame_rate(self.avg_frame_rate, self.frame_rate)

    @property
    def resolution(self) -> Optional[str]:
        if self.width and self.height:
            return f"{self.width}x{self.height}"
        return None

    @property
    def keyframe_interval(self) -> Optional[float]:
        """Seconds between key frames, when the GOP size is known."""
        if not self.gop_size or self.fps <= 0:
            return None
        return self.gop_size / self.fps

    def to_dict(self) -> dict:
        return {
            "codecName": self.codec_name,
            "codecLongName": self.codec_long_name,
            "profile": self.profile,
            "level": self.level,
            "width": self.width,
            "height": self.height,
            "codedWidth": self.coded_width,
            "codedHeight": self.coded_height,
            "hasBFrames": self.has_b_frames,
            "pixFmt": self.pix_fmt,
            "bitRate": self.bit_rate,
            "maxBitRate": self.max_bit_rate,
            "frameRate": self.frame_rate,
            "avgFrameRate": self.avg_frame_rate,
            "timeBase": self.time_base,
            "startPts": self.start_pts,
            "startTime": self.start_time,
            "duration": self.duration,
            "durationTs": self.duration_ts,
            "nbFrames": self.nb_frames,
            "nbReadFrames": self.nb_read_frames,
            "nbReadPackets": self.nb_read_packets,
            "displayAspectRatio": self.display_aspect_ratio,
            "sampleAspectRatio": self.sample_aspect_ratio,
            "isAvc": self.is_avc,
            "nalLengthSize": self.nal_length_size,
            "refs": self.refs,
            "tags": self.tags,
            "gopSize": self.gop_size,
        }


@dataclass(frozen=True)
class AudioSummary:
    """Projection of the first audio stream."""

    codec_name: Optional[str] = None
    codec_long_name: Optional[str] = None
    profile: Optional[str] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    channel_layout: Optional[str] = None
    bits_per_sample: Optional[int] = None
    bit_rate: Optional[int] = None
    max_bit_rate: Optional[int] = None
    time_base: Optional[str] = None
    start_pts: Optional[int] = None
    start_time: Optional[float] = None
    duration: Optional[float] = None
    duration_ts: Optional[int] = None
    nb_frames: Optional[int] = None
    nb_read_frames: Optional[int] = None
    nb_read_packets: Optional[int] = None
    tags: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "codecName": self.codec_name,
            "codecLongName": self.codec_long_name,
            "profile": self.profile,
            "sampleRate": self.sample_rate,
            "channels": self.channels,
            "channelLayout": self.channel_layout,
            "bitsPerSample": self.bits_per_sample,
            "bitRate": self.bit_rate,
            "maxBitRate": self.max_bit_rate,
            "timeBase": self.time_base,
            "startPts": self.start_pts,
            "startTime": self.start_time,
            "duration": self.duration,
            "durationTs": self.duration_ts,
            "nbFrames": self.nb_frames,
            "nbReadFrames": self.nb_read_frames,
            "nbReadPackets": self.nb_read_packets,
            "tags": self.tags,
        }


@dataclass(frozen=True)
class FrameSummary:
    """
    Frame-level statistics.

    When ``estimated`` is True the counts were not measured (non-detailed
    probe) and ``note`` tells the reader how to get them.
    """

    estimated: bool = False
    total: Optional[int] = None
    video: Optional[int] = None
    key_frames: Optional[int] = None
    first_pts: Optional[int] = None
    last_pts: Optional[int] = None
    avg_key_frame_interval: float = 0.0
    key_frame_positions: tuple[dict, ...] = ()
    note: Optional[str] = None

    def to_dict(self) -> dict:
        if self.estimated:
            return {
                "estimated": True,
                "total": "N/A (use detailed mode)",
                "video": self.video if self.video is not None else "N/A",
                "keyFrames": "N/A (use detailed mode)",
                "note": self.note,
            }
        return {
            "total": self.total,
            "video": self.video,
            "keyFrames": self.key_frames,
            "firstPts": self.first_pts,
            "lastPts": self.last_pts,
            "avgKeyFrameInterval": self.avg_key_frame_interval,
            "keyFramePositions": list(self.key_frame_positions),
        }


@dataclass(frozen=True)
class PacketSummary:
    """Packet-level statistics; see FrameSummary for ``estimated``."""

    estimated: bool = False
    total: Optional[int] = None
    video: Optional[int] = None
    audio: Optional[int] = None
    key_packets: Optional[int] = None
    total_bytes: Optional[int] = None
    note: Optional[str] = None

    def to_dict(self) -> dict:
        if self.estimated:
            return {"estimated": True, "total": "N/A (use detailed mode)", "note": self.note}
        return {
            "total": self.total,
            "video": self.video,
            "audio": self.audio,
            "keyPackets": self.key_packets,
            "totalBytes": self.total_bytes,
        }


@dataclass(frozen=True)
class SegmentAnalysis:
    """Normalized analysis of one probed segment."""

    format: FormatSummary
    video: Optional[VideoSummary]
    audio: Optional[AudioSummary]
    frames: FrameSummary
    packets: PacketSummary
    hls: HlsCompliance
    detailed: bool = False

    @property
    def compliant(self) -> bool:
        return self.hls.compliant

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format.to_dict(),
            "video": self.video.to_dict() if self.video else {},
            "audio": self.audio.to_dict() if self.audio else {},
            "frames": self.frames.to_dict(),
            "packets": self.packets.to_dict(),
            "hls": self.hls.to_dict(),
        }
