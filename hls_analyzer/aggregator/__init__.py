"""Cross-segment aggregation of batch probe results."""

from hls_analyzer.aggregator.statistics import aggregate, issue_type, measure_consistency

__all__ = [
    "aggregate",
    "issue_type",
    "measure_consistency",
]
