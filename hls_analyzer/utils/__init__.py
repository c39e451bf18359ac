"""Utility modules for HLS analyzer."""

from hls_analyzer.utils.errors import (
    AnalyzerError,
    ConfigurationError,
    FFprobeError,
    InputError,
    ManifestError,
    ProbeError,
    ProbeServiceError,
    ProbeTimeoutError,
    StagingError,
)
from hls_analyzer.utils.helpers import (
    QUALITY_RESOLUTIONS,
    format_bitrate,
    format_duration,
    format_size,
    get_extension,
    parse_fraction,
    parse_frame_rate,
    resolution_from_name,
    safe_float,
    safe_int,
    safe_str,
    select_frame_rate,
)
from hls_analyzer.utils.logger import get_logger, log_performance, setup_logger

__all__ = [
    # Errors
    "AnalyzerError",
    "ConfigurationError",
    "FFprobeError",
    "InputError",
    "ManifestError",
    "ProbeError",
    "ProbeServiceError",
    "ProbeTimeoutError",
    "StagingError",
    # Helpers
    "QUALITY_RESOLUTIONS",
    "format_bitrate",
    "format_duration",
    "format_size",
    "get_extension",
    "parse_fraction",
    "parse_frame_rate",
    "resolution_from_name",
    "safe_float",
    "safe_int",
    "safe_str",
    "select_frame_rate",
    # Logging
    "get_logger",
    "log_performance",
    "setup_logger",
]
