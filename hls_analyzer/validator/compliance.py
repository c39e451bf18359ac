"""
HLS compliance rules (RFC 8216).

Every rule runs independently; none short-circuits another. Rules about
codecs and the container are hard rules whose findings are recorded as
violations and make a segment non-compliant. Duration, keyframe and fMP4
findings are advisory.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..models import AudioSummary, FormatSummary, HlsCompliance, SpecReference, VideoSummary

TARGET_DURATION_SPEC = SpecReference("4.3.3.1", "Target duration requirements")
CODECS_SPEC = SpecReference("4.3.4.2", "CODECS attribute in EXT-X-STREAM-INF")
IFRAME_SPEC = SpecReference("4.3.3.6", "I-frame playlist requirements")
FMP4_SPEC = SpecReference("3.3", "MPEG-4 Fragments")
SEGMENT_FORMAT_SPEC = SpecReference("3.1", "Media segment format")


@dataclass(frozen=True)
class ComplianceThresholds:
    """Limits used by the compliance rules."""

    min_segment_duration: float = 2.0
    max_segment_duration: float = 10.0
    target_tolerance: float = 0.10
    keyframe_tolerance: float = 0.5
    video_codecs: frozenset[str] = frozenset({"h264", "hevc", "h265"})
    audio_codecs: frozenset[str] = frozenset({"aac", "mp3", "ac3", "eac3", "ac-3", "e-ac-3"})

    @classmethod
    def from_config(cls, config) -> "ComplianceThresholds":
        """Create thresholds from a ComplianceConfig."""
        return cls(
            min_segment_duration=config.min_segment_duration,
            max_segment_duration=config.max_segment_duration,
            target_tolerance=config.target_tolerance,
            keyframe_tolerance=config.keyframe_tolerance,
            video_codecs=frozenset(config.video_codecs),
            audio_codecs=frozenset(config.audio_codecs),
        )


@dataclass
class _Findings:
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    specs: list[SpecReference] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)

    def add(
        self,
        issue: str,
        recommendation: str,
        spec: Optional[SpecReference] = None,
        violation: bool = False,
    ) -> None:
        self.issues.append(issue)
        self.recommendations.append(recommendation)
        if spec is not None:
            self.specs.append(spec)
        if violation:
            self.violations.append(issue)

    def build(self) -> HlsCompliance:
        return HlsCompliance(
            issues=tuple(self.issues),
            recommendations=tuple(self.recommendations),
            specs=tuple(self.specs),
            violations=tuple(self.violations),
        )


def check_compliance(
    format: FormatSummary,
    video: Optional[VideoSummary],
    audio: Optional[AudioSummary],
    target_duration: float = 0.0,
    thresholds: Optional[ComplianceThresholds] = None,
) -> HlsCompliance:
    """
    Judge one segment against HLS expectations.

    Args:
        format: Normalized container summary (duration already overridden
            by the manifest value when known)
        video: First video stream, if any
        audio: First audio stream, if any
        target_duration: Playlist target duration (0 when unknown)
        thresholds: Rule limits (defaults when None)

    Returns:
        HlsCompliance verdict
    """
    limits = thresholds or ComplianceThresholds()
    findings = _Findings()
    duration = format.duration

    if duration > 0:
        if duration < limits.min_segment_duration:
            findings.add(
                f"Segment duration is less than {limits.min_segment_duration:g} seconds "
                "(not recommended)",
                f"Consider increasing segment duration to at least "
                f"{limits.min_segment_duration:g} seconds for better compatibility",
                TARGET_DURATION_SPEC,
            )
        elif duration > limits.max_segment_duration:
            findings.add(
                f"Segment duration exceeds {limits.max_segment_duration:g} seconds",
                f"Consider reducing segment duration to {limits.max_segment_duration:g} "
                "seconds or less",
                TARGET_DURATION_SPEC,
            )

        if (
            format.is_segment
            and target_duration > 0
            and abs(duration - target_duration) > target_duration * limits.target_tolerance
        ):
            findings.add(
                f"Segment duration ({duration:.2f}s) differs from target duration by more "
                f"than {limits.target_tolerance * 100:g}%",
                "Ensure consistent segment durations across the playlist",
            )

    if video is not None and video.codec_name:
        if video.codec_name.lower() not in limits.video_codecs:
            findings.add(
                f"Video codec {video.codec_name} is not standard for HLS",
                "Use H.264 (AVC) or H.265 (HEVC) video codec",
                CODECS_SPEC,
                violation=True,
            )

        keyframe_interval = video.keyframe_interval
        if (
            keyframe_interval is not None
            and duration > 0
            and abs(keyframe_interval - duration) > limits.keyframe_tolerance
        ):
            findings.add(
                f"Keyframe interval ({keyframe_interval:.2f}s) doesn't align with segment duration",
                "Align keyframe interval with segment duration for optimal performance",
                IFRAME_SPEC,
            )

    if audio is not None and audio.codec_name:
        if audio.codec_name.lower() not in limits.audio_codecs:
            findings.add(
                f"Audio codec {audio.codec_name} is not standard for HLS",
                "Use AAC, MP3, AC-3, or E-AC-3 audio codec",
                CODECS_SPEC,
                violation=True,
            )

    format_name = (format.format_name or "").lower()
    if format_name and "mpegts" not in format_name:
        if "mp4" in format_name or "mov" in format_name:
            findings.add(
                "Using fMP4 container format - ensure compatibility with target devices",
                "fMP4 is supported in HLS v7+ and provides better compression efficiency",
                FMP4_SPEC,
            )
        else:
            findings.add(
                "Container format should be MPEG-TS or fMP4 for HLS segments",
                "Use MPEG-TS container format for maximum compatibility or fMP4 for modern devices",
                SEGMENT_FORMAT_SPEC,
                violation=True,
            )

    return findings.build()
