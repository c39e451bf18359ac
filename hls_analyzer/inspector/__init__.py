"""Media inspection: probe backends, segment analysis and caching."""

from hls_analyzer.inspector.analyzer import SegmentAnalyzer, compute_gop_size
from hls_analyzer.inspector.cache import ProbeCache
from hls_analyzer.inspector.client import (
    FFprobeClient,
    HttpProbeClient,
    ProbeClient,
    ProbeResponse,
    create_probe_client,
)
from hls_analyzer.inspector.staging import StagedMedia, stage_media

__all__ = [
    # Clients
    "FFprobeClient",
    "HttpProbeClient",
    "ProbeClient",
    "ProbeResponse",
    "create_probe_client",
    # Analysis
    "SegmentAnalyzer",
    "compute_gop_size",
    # Cache
    "ProbeCache",
    # Staging
    "StagedMedia",
    "stage_media",
]
