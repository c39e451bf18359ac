"""
Data models for raw media inspection output.

ffprobe JSON is loosely typed: numbers arrive as strings, fields come and go
between versions and containers. The dataclasses here are a schema-tolerant
projection of that output. Every field is optional and ``from_dict`` never
raises; the original payload is kept in ``raw`` for verbatim reporting.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..utils.helpers import safe_float, safe_int

STREAM_TYPES = ("video", "audio", "subtitle")


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _opt_float(value: Any) -> Optional[float]:
    if value is None or value == "" or value == "N/A":
        return None
    return safe_float(value, None)  # type: ignore[arg-type]


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "" or value == "N/A":
        return None
    return safe_int(value, None)  # type: ignore[arg-type]


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass
class FormatData:
    """Container-level information (ffprobe ``format`` section)."""

    filename: Optional[str] = None
    format_name: Optional[str] = None
    format_long_name: Optional[str] = None
    duration: Optional[float] = None
    size: Optional[int] = None
    bit_rate: Optional[int] = None
    start_time: Optional[float] = None
    probe_score: Optional[int] = None
    nb_streams: Optional[int] = None
    nb_programs: Optional[int] = None
    tags: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "FormatData":
        data = _as_dict(data)
        return cls(
            filename=_opt_str(data.get("filename")),
            format_name=_opt_str(data.get("format_name")),
            format_long_name=_opt_str(data.get("format_long_name")),
            duration=_opt_float(data.get("duration")),
            size=_opt_int(data.get("size")),
            bit_rate=_opt_int(data.get("bit_rate")),
            start_time=_opt_float(data.get("start_time")),
            probe_score=_opt_int(data.get("probe_score")),
            nb_streams=_opt_int(data.get("nb_streams")),
            nb_programs=_opt_int(data.get("nb_programs")),
            tags=_as_dict(data.get("tags")),
        )


@dataclass
class StreamData:
    """One elementary stream (ffprobe ``streams`` entry)."""

    index: int = 0
    codec_type: str = "other"
    codec_name: Optional[str] = None
    codec_long_name: Optional[str] = None
    profile: Optional[str] = None
    level: Optional[int] = None
    # Video
    width: Optional[int] = None
    height: Optional[int] = None
    coded_width: Optional[int] = None
    coded_height: Optional[int] = None
    has_b_frames: Optional[int] = None
    pix_fmt: Optional[str] = None
    r_frame_rate: Optional[str] = None
    avg_frame_rate: Optional[str] = None
    display_aspect_ratio: Optional[str] = None
    sample_aspect_ratio: Optional[str] = None
    is_avc: Optional[bool] = None
    nal_length_size: Optional[int] = None
    refs: Optional[int] = None
    # Audio
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    channel_layout: Optional[str] = None
    bits_per_sample: Optional[int] = None
    # Common
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

    @classmethod
    def from_dict(cls, data: Any) -> "StreamData":
        data = _as_dict(data)
        codec_type = str(data.get("codec_type") or "").lower()
        is_avc = data.get("is_avc")
        return cls(
            index=safe_int(data.get("index"), 0),
            codec_type=codec_type if codec_type in STREAM_TYPES else "other",
            codec_name=_opt_str(data.get("codec_name")),
            codec_long_name=_opt_str(data.get("codec_long_name")),
            profile=_opt_str(data.get("profile")),
            level=_opt_int(data.get("level")),
            width=_opt_int(data.get("width")),
            height=_opt_int(data.get("height")),
            coded_width=_opt_int(data.get("coded_width")),
            coded_height=_opt_int(data.get("coded_height")),
            has_b_frames=_opt_int(data.get("has_b_frames")),
            pix_fmt=_opt_str(data.get("pix_fmt")),
            r_frame_rate=_opt_str(data.get("r_frame_rate")),
            avg_frame_rate=_opt_str(data.get("avg_frame_rate")),
            display_aspect_ratio=_opt_str(data.get("display_aspect_ratio")),
            sample_aspect_ratio=_opt_str(data.get("sample_aspect_ratio")),
            is_avc=None if is_avc is None else str(is_avc).lower() in ("true", "1"),
            nal_length_size=_opt_int(data.get("nal_length_size")),
            refs=_opt_int(data.get("refs")),
            sample_rate=_opt_int(data.get("sample_rate")),
            channels=_opt_int(data.get("channels")),
            channel_layout=_opt_str(data.get("channel_layout")),
            bits_per_sample=_opt_int(data.get("bits_per_sample")),
            bit_rate=_opt_int(data.get("bit_rate")),
            max_bit_rate=_opt_int(data.get("max_bit_rate")),
            time_base=_opt_str(data.get("time_base")),
            start_pts=_opt_int(data.get("start_pts")),
            start_time=_opt_float(data.get("start_time")),
            duration=_opt_float(data.get("duration")),
            duration_ts=_opt_int(data.get("duration_ts")),
            nb_frames=_opt_int(data.get("nb_frames")),
            nb_read_frames=_opt_int(data.get("nb_read_frames")),
            nb_read_packets=_opt_int(data.get("nb_read_packets")),
            tags=_as_dict(data.get("tags")),
        )

    @property
    def resolution(self) -> str:
        """Get resolution as string (e.g., '1920x1080')."""
        if self.width and self.height:
            return f"{self.width}x{self.height}"
        return "Unknown"


@dataclass
class FrameData:
    """One decoded frame (detailed mode only)."""

    media_type: str = "other"
    stream_index: int = 0
    key_frame: bool = False
    pts: Optional[int] = None
    pts_time: Optional[float] = None
    pkt_pos: Optional[int] = None
    pict_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "FrameData":
        data = _as_dict(data)
        return cls(
            media_type=str(data.get("media_type") or "other").lower(),
            stream_index=safe_int(data.get("stream_index"), 0),
            key_frame=safe_int(data.get("key_frame"), 0) == 1,
            pts=_opt_int(data.get("pts")),
            pts_time=_opt_float(data.get("pts_time")),
            pkt_pos=_opt_int(data.get("pkt_pos")),
            pict_type=_opt_str(data.get("pict_type")),
        )


@dataclass
class PacketData:
    """One demuxed packet (detailed mode only)."""

    codec_type: str = "other"
    stream_index: int = 0
    pts: Optional[int] = None
    dts: Optional[int] = None
    size: int = 0
    flags: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "PacketData":
        data = _as_dict(data)
        return cls(
            codec_type=str(data.get("codec_type") or "other").lower(),
            stream_index=safe_int(data.get("stream_index"), 0),
            pts=_opt_int(data.get("pts")),
            dts=_opt_int(data.get("dts")),
            size=safe_int(data.get("size"), 0),
            flags=str(data.get("flags") or ""),
        )

    @property
    def is_key(self) -> bool:
        return "K" in self.flags


@dataclass
class ProbeResult:
    """Structured output of one media inspection call."""

    format: FormatData = field(default_factory=FormatData)
    streams: list[StreamData] = field(default_factory=list)
    frames: Optional[list[FrameData]] = None
    packets: Optional[list[PacketData]] = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ProbeResult":
        """
        Build a ProbeResult from ffprobe JSON output.

        Args:
            data: Parsed ffprobe JSON (any shape is tolerated)

        Returns:
            ProbeResult with defaults for every missing field
        """
        data = _as_dict(data)
        frames = data.get("frames")
        packets = data.get("packets")
        return cls(
            format=FormatData.from_dict(data.get("format")),
            streams=[StreamData.from_dict(s) for s in _as_list(data.get("streams"))],
            frames=[FrameData.from_dict(f) for f in frames] if isinstance(frames, list) else None,
            packets=(
                [PacketData.from_dict(p) for p in packets] if isinstance(packets, list) else None
            ),
            raw=data,
        )

    def first_stream(self, codec_type: str) -> Optional[StreamData]:
        """Get the first stream of the given codec type."""
        for stream in self.streams:
            if stream.codec_type == codec_type:
                return stream
        return None

    @property
    def video_stream(self) -> Optional[StreamData]:
        return self.first_stream("video")

    @property
    def audio_stream(self) -> Optional[StreamData]:
        return self.first_stream("audio")

    @property
    def has_video(self) -> bool:
        return self.video_stream is not None

    @property
    def has_audio(self) -> bool:
        return self.audio_stream is not None

    @property
    def is_detailed(self) -> bool:
        """Check if frame-level data was collected."""
        return self.frames is not None
