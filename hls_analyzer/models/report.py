"""
Data models for analysis reports.

This module contains the report shapes returned to callers: single-segment
probe reports, batch reports with their cross-segment aggregate, and
whole-file corruption reports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .analysis import SegmentAnalysis
from .probe import ProbeResult


@dataclass(frozen=True)
class MetricConsistency:
    """Spread of one metric across a batch of segments."""

    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    stddev: float = 0.0
    samples: int = 0
    consistent: bool = True

    @property
    def spread(self) -> float:
        """Relative spread (max - min) / avg, 0.0 without samples."""
        if self.samples == 0 or self.avg == 0:
            return 0.0
        return (self.max - self.min) / self.avg

    def to_dict(self) -> dict:
        return {
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "stddev": self.stddev,
            "samples": self.samples,
            "consistent": self.consistent,
        }


@dataclass(frozen=True)
class AggregateReport:
    """Cross-segment consistency statistics for a batch."""

    total_segments: int
    duration: MetricConsistency
    bitrate: MetricConsistency
    resolutions: tuple[str, ...] = ()
    video_codecs: tuple[str, ...] = ()
    audio_codecs: tuple[str, ...] = ()
    issues_total: int = 0
    issues_by_type: dict[str, int] = field(default_factory=dict)
    recommendations: tuple[str, ...] = ()
    non_compliant_segments: int = 0
    avg_keyframe_interval: float = 0.0

    @property
    def consistent(self) -> bool:
        return self.duration.consistent and self.bitrate.consistent

    def to_dict(self) -> dict:
        return {
            "totalSegments": self.total_segments,
            "consistency": {
                "duration": self.duration.to_dict(),
                "bitrate": self.bitrate.to_dict(),
                "resolution": list(self.resolutions),
                "codecs": {"video": list(self.video_codecs), "audio": list(self.audio_codecs)},
            },
            "averages": {
                "duration": self.duration.avg,
                "bitrate": self.bitrate.avg,
                "keyframeInterval": self.avg_keyframe_interval,
            },
            "issues": {"total": self.issues_total, "byType": dict(self.issues_by_type)},
            "nonCompliantSegments": self.non_compliant_segments,
            "recommendations": list(self.recommendations),
        }


@dataclass
class SegmentProbeReport:
    """Result of probing a single segment."""

    segment_url: str
    probe: ProbeResult
    analysis: SegmentAnalysis
    cached: bool = False

    def to_dict(self) -> dict:
        return {
            "raw": self.probe.raw,
            "analysis": self.analysis.to_dict(),
            "segmentUrl": self.segment_url,
        }


@dataclass
class BatchItemResult:
    """Outcome of one segment in a batch probe."""

    url: str
    success: bool
    report: Optional[SegmentProbeReport] = None
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def analysis(self) -> Optional[SegmentAnalysis]:
        return self.report.analysis if self.report else None

    def to_dict(self) -> dict:
        data: dict = {"url": self.url, "success": self.success}
        if self.report is not None:
            data["raw"] = self.report.probe.raw
            data["analysis"] = self.report.analysis.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BatchProbeReport:
    """Result of probing many segments."""

    results: list[BatchItemResult]
    aggregate: Optional[AggregateReport] = None
    total_duration: float = 0.0

    @property
    def succeeded(self) -> list[BatchItemResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[BatchItemResult]:
        return [r for r in self.results if not r.success]

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if not self.results:
            return 0.0
        return (len(self.succeeded) / len(self.results)) * 100

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "aggregateAnalysis": self.aggregate.to_dict() if self.aggregate else None,
            "batchMode": True,
        }


class Severity(str, Enum):
    """Severity of a corruption finding."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"critical": 0, "warning": 1, "info": 2}[self.value]


@dataclass
class CorruptionIssue:
    """One finding of the corruption heuristics engine."""

    type: str
    severity: Severity
    description: str
    detection: str
    fix_command: Optional[str] = None
    explanation: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            "detection": self.detection,
        }
        if self.fix_command is not None:
            data["fixCommand"] = self.fix_command
        if self.explanation is not None:
            data["explanation"] = self.explanation
        return data


@dataclass
class CorruptionMetadata:
    """File summary reported alongside corruption findings."""

    format: str = "Unknown"
    duration: Optional[float] = None
    bitrate: Optional[int] = None
    file_size: int = 0
    has_video: bool = False
    video_codec: Optional[str] = None
    resolution: Optional[str] = None
    fps: float = 0.0
    has_audio: bool = False
    audio_codec: Optional[str] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "format": self.format,
            "duration": self.duration,
            "bitrate": self.bitrate,
            "fileSize": self.file_size,
            "hasVideo": self.has_video,
            "videoCodec": self.video_codec,
            "resolution": self.resolution,
            "fps": self.fps,
            "hasAudio": self.has_audio,
            "audioCodec": self.audio_codec,
            "sampleRate": self.sample_rate,
            "channels": self.channels,
        }


@dataclass
class CorruptionAnalysis:
    """Issues and metadata produced by the heuristics for one file."""

    issues: list[CorruptionIssue]
    metadata: CorruptionMetadata

    def by_severity(self, severity: Severity) -> list[CorruptionIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def has_critical(self) -> bool:
        return bool(self.by_severity(Severity.CRITICAL))


@dataclass
class CorruptionReport:
    """Full corruption check result for one file."""

    video_id: str
    filename: str
    file_size: int
    analysis: CorruptionAnalysis
    analyzed_at: str
    probe_output: dict = field(default_factory=dict)
    diagnostic_text: str = ""

    @property
    def issues(self) -> list[CorruptionIssue]:
        return self.analysis.issues

    @property
    def metadata(self) -> CorruptionMetadata:
        return self.analysis.metadata

    def to_dict(self) -> dict:
        return {
            "videoId": self.video_id,
            "filename": self.filename,
            "fileSize": self.file_size,
            "issues": [issue.to_dict() for issue in self.issues],
            "metadata": self.metadata.to_dict(),
            "analyzedAt": self.analyzed_at,
            "rawOutput": {"ffprobe": self.probe_output, "errors": self.diagnostic_text},
        }
