"""
Corruption heuristics for whole media files.

This module turns ffprobe output and the tool's diagnostic text into a
severity-ranked list of CorruptionIssue findings, each with a suggested
ffmpeg remediation command.

The heuristics are an ordered table of rules. A rule pairs a trigger, which
inspects the file and returns the values to report or None, with an issue
template. Each rule emits at most one issue, and rules do not exclude each
other. The module performs no I/O.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..models import (
    CorruptionAnalysis,
    CorruptionIssue,
    CorruptionMetadata,
    ProbeResult,
    Severity,
    StreamData,
)
from ..utils import get_extension, get_logger, parse_fraction, select_frame_rate

logger = get_logger(__name__)

UNKNOWN_CONTAINER = "Unknown"

KNOWN_CONTAINERS = ("mp4", "mov", "mkv", "webm", "avi", "ts", "m4v", "flv")

# format_long_name substrings, checked in order; the first match wins
LONG_NAME_OVERRIDES = (
    ("QuickTime", "mov"),
    ("MP4", "mp4"),
    ("WebM", "webm"),
    ("Matroska", "mkv"),
    ("AVI", "avi"),
)

MISSING_MOOV_PHRASES = ("moov atom not found", "Invalid data found when processing input")
CODEC_PARAMETER_PHRASES = ("Could not find codec parameters", "unspecified size", "unknown codec")
TIMESTAMP_PHRASES = (
    "Non-monotonous DTS",
    "non monotonically increasing dts",
    "Invalid timestamps",
)
DECODE_ERROR_PHRASES = (
    "decode_slice_header error",
    "no frame!",
    "non-existing PPS",
    "Error while decoding stream",
    "Invalid NAL unit",
    "Bitstream error",
    "missing picture in access unit",
    "concealing",
    "decode MB",
    "error while decoding",
    "Reference frame missing",
)

SUPPORTED_VIDEO_CODECS = ("h264", "hevc", "h265", "vp9", "vp8", "mpeg4", "mpeg2video")
SUPPORTED_AUDIO_CODECS = ("aac", "mp3", "opus", "vorbis", "ac3", "eac3", "pcm_s16le", "flac")

_STREAM_NUMBER = re.compile(r"stream\s+(\d+)", re.IGNORECASE)
_INPUT_PLACEHOLDER = re.compile(r"input\.(mp4|mkv|avi|webm|mov)")


@dataclass(frozen=True)
class CorruptionThresholds:
    """Numeric limits used by the structural rules."""

    sync_drift: float = 0.5
    start_offset: float = 0.1
    min_fps: float = 10.0
    max_fps: float = 120.0

    @classmethod
    def from_config(cls, config) -> "CorruptionThresholds":
        """Create thresholds from a CorruptionConfig."""
        return cls(
            sync_drift=config.sync_drift,
            start_offset=config.start_offset,
            min_fps=config.min_fps,
            max_fps=config.max_fps,
        )


def resolve_container_format(
    format_name: Optional[str], format_long_name: Optional[str], filename: str = ""
) -> str:
    """
    Resolve ffprobe's comma-separated format list to one container.

    The file extension is used when it appears in the list, otherwise the
    first entry. A recognizable long name overrides both.

    Args:
        format_name: ffprobe format_name (e.g., "mov,mp4,m4a,3gp,3g2,mj2")
        format_long_name: ffprobe format_long_name
        filename: Original file name

    Returns:
        Container name, or "Unknown"
    """
    extension = get_extension(filename) if filename else ""

    if not format_name:
        return extension if extension in KNOWN_CONTAINERS else UNKNOWN_CONTAINER

    formats = [name.strip().lower() for name in format_name.split(",") if name.strip()]
    if extension and extension in formats:
        container = extension
    else:
        container = formats[0] if formats else UNKNOWN_CONTAINER

    if format_long_name:
        for needle, name in LONG_NAME_OVERRIDES:
            if needle in format_long_name:
                container = name
                break

    return container


def stream_duration(stream: StreamData) -> float:
    """
    Get a stream duration in seconds.

    Falls back to ``duration_ts * time_base`` when the stream has no duration.
    """
    if stream.duration:
        return stream.duration
    if stream.duration_ts and stream.time_base:
        return stream.duration_ts * parse_fraction(stream.time_base)
    return 0.0


@dataclass
class FileContext:
    """Everything the rules may inspect for one file."""

    probe: ProbeResult
    diagnostic_text: str
    container: str
    metadata: CorruptionMetadata
    thresholds: CorruptionThresholds
    video: Optional[StreamData] = None
    audio: Optional[StreamData] = None
    _lowered: str = field(default="", init=False, repr=False)

    def __post_init__(self) -> None:
        self._lowered = self.diagnostic_text.lower()

    def contains_any(self, phrases: tuple[str, ...]) -> bool:
        return any(phrase in self.diagnostic_text for phrase in phrases)

    def found_ignore_case(self, phrases: tuple[str, ...]) -> list[str]:
        return [phrase for phrase in phrases if phrase.lower() in self._lowered]

    @property
    def is_vfr(self) -> bool:
        """Average and real frame rates are both reported and differ."""
        if self.video is None:
            return False
        avg, real = self.video.avg_frame_rate, self.video.r_frame_rate
        return bool(avg) and bool(real) and avg != real


@dataclass(frozen=True)
class IssueTemplate:
    """Issue text with ``str.format`` placeholders filled from trigger values."""

    type: str
    severity: Severity
    description: str
    detection: str
    fix_command: str
    explanation: str

    def render(self, **values: object) -> CorruptionIssue:
        return CorruptionIssue(
            type=self.type,
            severity=self.severity,
            description=self.description.format(**values),
            detection=self.detection.format(**values),
            fix_command=self.fix_command.format(**values),
            explanation=self.explanation.format(**values),
        )


Trigger = Callable[[FileContext], Optional[dict]]


@dataclass(frozen=True)
class CorruptionRule:
    """A trigger and the issue it produces when it fires."""

    trigger: Trigger
    template: IssueTemplate

    def evaluate(self, context: FileContext) -> Optional[CorruptionIssue]:
        values = self.trigger(context)
        if values is None:
            return None
        return self.template.render(**values)


# Triggers


def _missing_moov(ctx: FileContext) -> Optional[dict]:
    if ctx.container in ("mp4", "mov") and ctx.contains_any(MISSING_MOOV_PHRASES):
        return {}
    return None


def _missing_codec_parameters(ctx: FileContext) -> Optional[dict]:
    if not ctx.contains_any(CODEC_PARAMETER_PHRASES):
        return None
    match = _STREAM_NUMBER.search(ctx.diagnostic_text)
    return {"stream": match.group(1) if match else "0"}


def _timestamp_errors(ctx: FileContext) -> Optional[dict]:
    return {} if ctx.contains_any(TIMESTAMP_PHRASES) else None


def _sync_drift(ctx: FileContext) -> Optional[dict]:
    if ctx.video is None or ctx.audio is None:
        return None
    video_duration = stream_duration(ctx.video)
    audio_duration = stream_duration(ctx.audio)
    if video_duration <= 0 or audio_duration <= 0:
        return None
    drift = abs(video_duration - audio_duration)
    if drift <= ctx.thresholds.sync_drift:
        return None
    return {"drift": drift, "video": video_duration, "audio": audio_duration}


def _start_mismatch(ctx: FileContext) -> Optional[dict]:
    if ctx.video is None or ctx.audio is None:
        return None
    video_start = ctx.video.start_time or 0.0
    audio_start = ctx.audio.start_time or 0.0
    difference = abs(video_start - audio_start)
    if difference <= ctx.thresholds.start_offset:
        return None
    return {
        "difference": difference,
        "offset": f"{round(difference, 3):g}",
        "video": video_start,
        "audio": audio_start,
    }


def _damaged_frames(ctx: FileContext) -> Optional[dict]:
    found = ctx.found_ignore_case(DECODE_ERROR_PHRASES)
    return {"found": ", ".join(found)} if found else None


def _no_streams(ctx: FileContext) -> Optional[dict]:
    return {} if ctx.video is None and ctx.audio is None else None


def _variable_frame_rate(ctx: FileContext) -> Optional[dict]:
    if not ctx.is_vfr:
        return None
    return {"avg": ctx.video.avg_frame_rate, "real": ctx.video.r_frame_rate}  # type: ignore[union-attr]


def _unsupported_video(ctx: FileContext) -> Optional[dict]:
    if ctx.video is None:
        return None
    codec = ctx.video.codec_name or "unknown"
    return None if codec.lower() in SUPPORTED_VIDEO_CODECS else {"codec": codec}


def _unsupported_audio(ctx: FileContext) -> Optional[dict]:
    if ctx.audio is None:
        return None
    codec = ctx.audio.codec_name or "unknown"
    return None if codec.lower() in SUPPORTED_AUDIO_CODECS else {"codec": codec}


def _channel_layout(ctx: FileContext) -> Optional[dict]:
    if ctx.audio is None:
        return None
    channels = ctx.audio.channels or 0
    layout = ctx.audio.channel_layout or ""
    if (channels == 1 and layout != "mono") or (channels == 2 and "stereo" not in layout):
        return {"channels": channels, "layout": layout}
    return None


def _avi_missing_index(ctx: FileContext) -> Optional[dict]:
    if ctx.container == "avi" and "missing index" in ctx.diagnostic_text:
        return {}
    return None


def _webm_container(ctx: FileContext) -> Optional[dict]:
    return {"container": ctx.container} if ctx.container == "webm" else None


def _webm_vfr(ctx: FileContext) -> Optional[dict]:
    return {} if ctx.container == "webm" and ctx.is_vfr else None


def _unusual_frame_rate(ctx: FileContext) -> Optional[dict]:
    fps = ctx.metadata.fps
    if fps and (fps < ctx.thresholds.min_fps or fps > ctx.thresholds.max_fps):
        return {"fps": fps}
    return None


RULES: tuple[CorruptionRule, ...] = (
    CorruptionRule(
        _missing_moov,
        IssueTemplate(
            type="Missing Container Metadata",
            severity=Severity.CRITICAL,
            description=(
                "The video file is missing essential metadata (moov atom) required for playback"
            ),
            detection="moov atom not found",
            fix_command="ffmpeg -i input.mp4 -c copy -movflags +faststart output.mp4",
            explanation=(
                "This typically happens with incomplete downloads or improperly finalized "
                "recordings. The fix attempts to rebuild the container structure."
            ),
        ),
    ),
    CorruptionRule(
        _missing_codec_parameters,
        IssueTemplate(
            type="Missing Codec Parameters",
            severity=Severity.CRITICAL,
            description=(
                "Stream {stream} is missing essential codec information like resolution "
                "or frame rate"
            ),
            detection="Could not find codec parameters",
            fix_command="ffmpeg -probesize 100M -analyzeduration 100M -i input.mkv -c copy output.mkv",
            explanation=(
                "Codec parameters might be located later in the file. Increasing probe size "
                "can help FFmpeg find them."
            ),
        ),
    ),
    CorruptionRule(
        _timestamp_errors,
        IssueTemplate(
            type="Timestamp Errors",
            severity=Severity.WARNING,
            description="The video has out-of-order timestamps which can cause playback issues",
            detection="Non-monotonous DTS detected",
            fix_command="ffmpeg -fflags +genpts -i input.mp4 -c copy output.mp4",
            explanation=(
                "Timestamps are not in the correct order. This often happens after improper "
                "editing or concatenation."
            ),
        ),
    ),
    CorruptionRule(
        _sync_drift,
        IssueTemplate(
            type="Audio-Video Sync Drift",
            severity=Severity.WARNING,
            description=(
                "Audio and video streams have different durations ({drift:.2f}s difference)"
            ),
            detection="Video: {video:.2f}s, Audio: {audio:.2f}s",
            fix_command=(
                'ffmpeg -i input.mp4 -c:v copy -af "aresample=async=1:first_pts=0" '
                "-c:a aac output.mp4"
            ),
            explanation=(
                "The audio will gradually go out of sync. The fix resamples audio to match "
                "video timing."
            ),
        ),
    ),
    CorruptionRule(
        _start_mismatch,
        IssueTemplate(
            type="Stream Start Time Mismatch",
            severity=Severity.WARNING,
            description=(
                "Audio and video streams have different start times "
                "({difference:.3f}s difference)"
            ),
            detection="Video starts at: {video:.3f}s, Audio starts at: {audio:.3f}s",
            fix_command=(
                "ffmpeg -i input.mp4 -itsoffset {offset} -i input.mp4 -map 1:v -map 0:a "
                "-c copy output.mp4"
            ),
            explanation=(
                "Different start times can cause constant A/V sync offset. "
                "The fix aligns the streams."
            ),
        ),
    ),
    CorruptionRule(
        _damaged_frames,
        IssueTemplate(
            type="Damaged Frames",
            severity=Severity.WARNING,
            description="Some video frames are corrupted and may cause visual artifacts",
            detection="{found}",
            fix_command="ffmpeg -err_detect ignore_err -i input.mp4 -c:v libx264 -c:a aac output.mp4",
            explanation=(
                "Re-encoding the video will skip or interpolate damaged frames, though some "
                "quality loss may occur."
            ),
        ),
    ),
    CorruptionRule(
        _no_streams,
        IssueTemplate(
            type="No Media Streams",
            severity=Severity.CRITICAL,
            description="No video or audio streams were detected in the file",
            detection="No streams found",
            fix_command="ffmpeg -i input.mp4 -f mp4 -c:v libx264 -c:a aac output.mp4",
            explanation="The file may be severely corrupted or not a valid media file.",
        ),
    ),
    CorruptionRule(
        _variable_frame_rate,
        IssueTemplate(
            type="Variable Frame Rate",
            severity=Severity.INFO,
            description="The video has variable frame rate which may cause issues in some editors",
            detection="avg_frame_rate: {avg}, r_frame_rate: {real}",
            fix_command='ffmpeg -i input.mp4 -vf "fps=30" -c:a copy output.mp4',
            explanation=(
                "Some applications require constant frame rate. "
                "This converts to 30fps constant."
            ),
        ),
    ),
    CorruptionRule(
        _unsupported_video,
        IssueTemplate(
            type="Unsupported Video Codec",
            severity=Severity.INFO,
            description='Video codec "{codec}" may not be widely supported',
            detection="codec: {codec}",
            fix_command="ffmpeg -i input.mp4 -c:v libx264 -preset medium -crf 23 -c:a copy output.mp4",
            explanation="Converting to H.264 ensures maximum compatibility.",
        ),
    ),
    CorruptionRule(
        _unsupported_audio,
        IssueTemplate(
            type="Unsupported Audio Codec",
            severity=Severity.INFO,
            description='Audio codec "{codec}" may not be widely supported',
            detection="codec: {codec}",
            fix_command="ffmpeg -i input.mp4 -c:v copy -c:a aac -b:a 192k output.mp4",
            explanation="Converting to AAC ensures maximum compatibility.",
        ),
    ),
    CorruptionRule(
        _channel_layout,
        IssueTemplate(
            type="Incorrect Audio Channel Layout",
            severity=Severity.INFO,
            description=(
                "Audio channel configuration mismatch: {channels} channels with {layout} layout"
            ),
            detection="channels: {channels}, layout: {layout}",
            fix_command="ffmpeg -i input.mp4 -c:v copy -ac {channels} output.mp4",
            explanation="Channel layout mismatch can cause phase issues or silent channels.",
        ),
    ),
    CorruptionRule(
        _avi_missing_index,
        IssueTemplate(
            type="Missing Index",
            severity=Severity.WARNING,
            description="AVI file is missing index, seeking may not work properly",
            detection="missing index",
            fix_command="ffmpeg -i input.avi -c copy -movflags +faststart output.avi",
            explanation="FFmpeg will rebuild the index during remuxing.",
        ),
    ),
    CorruptionRule(
        _webm_container,
        IssueTemplate(
            type="WebM Container Format",
            severity=Severity.INFO,
            description="WebM format may have compatibility issues with some editing software",
            detection="Container: {container}",
            fix_command=(
                "ffmpeg -i input.webm -c:v libx264 -c:a aac -movflags +faststart output.mp4"
            ),
            explanation=(
                "Converting to MP4 with H.264/AAC ensures maximum compatibility with "
                "editing software."
            ),
        ),
    ),
    CorruptionRule(
        _webm_vfr,
        IssueTemplate(
            type="WebM Variable Frame Rate",
            severity=Severity.WARNING,
            description="WebM files often use variable frame rate which can cause sync issues",
            detection="WebM with VFR",
            fix_command=(
                'ffmpeg -i input.webm -vf "fps=30" -c:v libx264 -c:a aac '
                '-af "aresample=async=1:first_pts=0" output.mp4'
            ),
            explanation=(
                "This converts to constant 30fps MP4 with audio resampling to maintain sync."
            ),
        ),
    ),
    CorruptionRule(
        _unusual_frame_rate,
        IssueTemplate(
            type="Unusual Frame Rate",
            severity=Severity.INFO,
            description="Video has an unusual frame rate of {fps:.2f} fps",
            detection="Frame rate: {fps:.2f} fps",
            fix_command='ffmpeg -i input.mp4 -vf "fps=30" -c:a copy output.mp4',
            explanation="Standard frame rates (24, 30, 60 fps) are more widely compatible.",
        ),
    ),
)


def build_metadata(
    probe: ProbeResult, container: str, file_size: int
) -> CorruptionMetadata:
    """Summarize a probed file for the corruption report."""
    metadata = CorruptionMetadata(
        format=container,
        duration=probe.format.duration,
        bitrate=probe.format.bit_rate,
        file_size=file_size,
    )

    video = probe.video_stream
    if video is not None:
        metadata.has_video = True
        metadata.video_codec = video.codec_name
        metadata.resolution = video.resolution
        metadata.fps = select_frame_rate(video.avg_frame_rate, video.r_frame_rate)

    audio = probe.audio_stream
    if audio is not None:
        metadata.has_audio = True
        metadata.audio_codec = audio.codec_name
        metadata.sample_rate = audio.sample_rate
        metadata.channels = audio.channels

    return metadata


def rewrite_input_extension(command: str, container: str) -> str:
    """Point a fix command's ``input.<ext>`` at the resolved container."""
    if container == UNKNOWN_CONTAINER:
        return command
    return _INPUT_PLACEHOLDER.sub(f"input.{container}", command)


def analyze_corruption(
    probe: ProbeResult,
    diagnostic_text: str = "",
    file_size: int = 0,
    filename: str = "",
    thresholds: Optional[CorruptionThresholds] = None,
    rules: tuple[CorruptionRule, ...] = RULES,
) -> CorruptionAnalysis:
    """
    Run the corruption heuristics over one file.

    Args:
        probe: ffprobe result for the whole file
        diagnostic_text: ffprobe/ffmpeg error output
        file_size: File size in bytes
        filename: Original file name (used for container resolution)
        thresholds: Structural rule limits (defaults when None)
        rules: Rule table to evaluate

    Returns:
        CorruptionAnalysis with issues ordered by severity
    """
    container = resolve_container_format(
        probe.format.format_name, probe.format.format_long_name, filename
    )
    context = FileContext(
        probe=probe,
        diagnostic_text=diagnostic_text or "",
        container=container,
        metadata=build_metadata(probe, container, file_size),
        thresholds=thresholds or CorruptionThresholds(),
        video=probe.video_stream,
        audio=probe.audio_stream,
    )

    issues: list[CorruptionIssue] = []
    for rule in rules:
        issue = rule.evaluate(context)
        if issue is not None:
            issues.append(issue)

    for issue in issues:
        if issue.fix_command:
            issue.fix_command = rewrite_input_extension(issue.fix_command, container)

    issues.sort(key=lambda issue: issue.severity.rank)
    logger.debug(f"Corruption heuristics: {len(issues)} issue(s) for {filename or 'file'}")
    return CorruptionAnalysis(issues=issues, metadata=context.metadata)
