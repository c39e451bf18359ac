"""Console output: reports and progress."""

from hls_analyzer.ui.progress import BatchProgress
from hls_analyzer.ui.reporter import AnalysisReporter

__all__ = [
    "AnalysisReporter",
    "BatchProgress",
]
