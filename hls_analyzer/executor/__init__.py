"""Probe orchestration: segment batches and whole-file corruption checks."""

from hls_analyzer.executor.batch import SegmentProber, SegmentRequest, requests_from_playlist
from hls_analyzer.executor.check import CorruptionChecker

__all__ = [
    "CorruptionChecker",
    "SegmentProber",
    "SegmentRequest",
    "requests_from_playlist",
]
