"""Data models for HLS analyzer."""

from hls_analyzer.models.analysis import (
    AudioSummary,
    FormatSummary,
    FrameSummary,
    HlsCompliance,
    PacketSummary,
    SegmentAnalysis,
    SpecReference,
    VideoSummary,
)
from hls_analyzer.models.playlist import (
    ByteRange,
    MasterPlaylist,
    MediaPlaylist,
    Playlist,
    QualityLevel,
    Segment,
)
from hls_analyzer.models.probe import (
    FormatData,
    FrameData,
    PacketData,
    ProbeResult,
    StreamData,
)
from hls_analyzer.models.report import (
    AggregateReport,
    BatchItemResult,
    BatchProbeReport,
    CorruptionAnalysis,
    CorruptionIssue,
    CorruptionMetadata,
    CorruptionReport,
    MetricConsistency,
    SegmentProbeReport,
    Severity,
)

__all__ = [
    # Playlist models
    "ByteRange",
    "MasterPlaylist",
    "MediaPlaylist",
    "Playlist",
    "QualityLevel",
    "Segment",
    # Probe models
    "FormatData",
    "FrameData",
    "PacketData",
    "ProbeResult",
    "StreamData",
    # Analysis models
    "AudioSummary",
    "FormatSummary",
    "FrameSummary",
    "HlsCompliance",
    "PacketSummary",
    "SegmentAnalysis",
    "SpecReference",
    "VideoSummary",
    # Report models
    "AggregateReport",
    "BatchItemResult",
    "BatchProbeReport",
    "CorruptionAnalysis",
    "CorruptionIssue",
    "CorruptionMetadata",
    "CorruptionReport",
    "MetricConsistency",
    "SegmentProbeReport",
    "Severity",
]
