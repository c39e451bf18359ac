"""
HLS Analyzer

A tool for parsing HLS manifests, probing media segments for RFC 8216
compliance and checking media files for corruption.
"""

__version__ = "0.1.0"

from hls_analyzer.aggregator import aggregate
from hls_analyzer.executor import CorruptionChecker, SegmentProber, SegmentRequest
from hls_analyzer.models import (
    AggregateReport,
    BatchProbeReport,
    CorruptionReport,
    MasterPlaylist,
    MediaPlaylist,
    SegmentAnalysis,
    SegmentProbeReport,
)
from hls_analyzer.playlist import ManifestLoader, parse_manifest
from hls_analyzer.utils import (
    AnalyzerError,
    ConfigurationError,
    InputError,
    ManifestError,
    ProbeError,
    StagingError,
    get_logger,
    setup_logger,
)
from hls_analyzer.validator import analyze_corruption, check_compliance

__all__ = [
    "__version__",
    # Models
    "AggregateReport",
    "BatchProbeReport",
    "CorruptionReport",
    "MasterPlaylist",
    "MediaPlaylist",
    "SegmentAnalysis",
    "SegmentProbeReport",
    # Operations
    "CorruptionChecker",
    "ManifestLoader",
    "SegmentProber",
    "SegmentRequest",
    "aggregate",
    "analyze_corruption",
    "check_compliance",
    "parse_manifest",
    # Utils
    "AnalyzerError",
    "ConfigurationError",
    "InputError",
    "ManifestError",
    "ProbeError",
    "StagingError",
    "get_logger",
    "setup_logger",
]
