"""
Cross-segment statistics for batch probes.

Summarizes the analyses of many segments of one stream: duration and bitrate
spread, the distinct resolutions and codecs seen, a histogram of compliance
issues and the union of recommendations.
"""

import statistics
from typing import Iterable, Optional

from ..models import AggregateReport, MetricConsistency, SegmentAnalysis
from ..utils import get_logger

logger = get_logger(__name__)

DEFAULT_DURATION_THRESHOLD = 0.10
DEFAULT_BITRATE_THRESHOLD = 0.20


def issue_type(issue: str) -> str:
    """Get the issue category: text before the first colon."""
    head = issue.split(":", 1)[0]
    return head or issue


def measure_consistency(values: list[float], threshold: float) -> MetricConsistency:
    """
    Compute the spread of a metric.

    Args:
        values: Positive samples
        threshold: Maximum relative spread (max - min) / avg

    Returns:
        MetricConsistency; consistent when there are no samples
    """
    if not values:
        return MetricConsistency()

    low, high = min(values), max(values)
    mean = sum(values) / len(values)
    stddev = statistics.pstdev(values, mean)
    consistent = mean == 0 or (high - low) / mean < threshold

    return MetricConsistency(
        min=low,
        max=high,
        avg=mean,
        stddev=stddev,
        samples=len(values),
        consistent=consistent,
    )


def _add_unique(seen: list[str], value: Optional[str]) -> None:
    if value and value not in seen:
        seen.append(value)


def aggregate(
    analyses: Iterable[SegmentAnalysis],
    duration_threshold: float = DEFAULT_DURATION_THRESHOLD,
    bitrate_threshold: float = DEFAULT_BITRATE_THRESHOLD,
) -> Optional[AggregateReport]:
    """
    Aggregate segment analyses into one consistency report.

    Only positive durations and bitrates count as samples. Resolutions,
    codecs and recommendations keep first-seen order.

    Args:
        analyses: Analyses of successfully probed segments
        duration_threshold: Relative duration spread allowed
        bitrate_threshold: Relative bitrate spread allowed

    Returns:
        AggregateReport, or None for empty input
    """
    analyses = list(analyses)
    if not analyses:
        return None

    durations: list[float] = []
    bitrates: list[float] = []
    keyframe_intervals: list[float] = []
    resolutions: list[str] = []
    video_codecs: list[str] = []
    audio_codecs: list[str] = []
    recommendations: list[str] = []
    issues_by_type: dict[str, int] = {}
    issues_total = 0
    non_compliant = 0

    for analysis in analyses:
        if analysis.format.duration > 0:
            durations.append(analysis.format.duration)
        if analysis.format.bit_rate > 0:
            bitrates.append(analysis.format.bit_rate)

        if analysis.video is not None:
            _add_unique(resolutions, analysis.video.resolution)
            _add_unique(video_codecs, analysis.video.codec_name)
            if analysis.video.keyframe_interval:
                keyframe_intervals.append(analysis.video.keyframe_interval)
        if analysis.audio is not None:
            _add_unique(audio_codecs, analysis.audio.codec_name)

        issues_total += len(analysis.hls.issues)
        for issue in analysis.hls.issues:
            kind = issue_type(issue)
            issues_by_type[kind] = issues_by_type.get(kind, 0) + 1
        for recommendation in analysis.hls.recommendations:
            _add_unique(recommendations, recommendation)
        if not analysis.hls.compliant:
            non_compliant += 1

    report = AggregateReport(
        total_segments=len(analyses),
        duration=measure_consistency(durations, duration_threshold),
        bitrate=measure_consistency(bitrates, bitrate_threshold),
        resolutions=tuple(resolutions),
        video_codecs=tuple(video_codecs),
        audio_codecs=tuple(audio_codecs),
        issues_total=issues_total,
        issues_by_type=issues_by_type,
        recommendations=tuple(recommendations),
        non_compliant_segments=non_compliant,
        avg_keyframe_interval=(
            sum(keyframe_intervals) / len(keyframe_intervals) if keyframe_intervals else 0.0
        ),
    )

    logger.debug(
        f"Aggregated {report.total_segments} segment(s): "
        f"duration consistent={report.duration.consistent}, "
        f"bitrate consistent={report.bitrate.consistent}"
    )
    return report
