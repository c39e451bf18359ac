"""Configuration management for HLS analyzer."""

from hls_analyzer.config.manager import (
    ConfigManager,
    get_config_manager,
)
from hls_analyzer.config.models import (
    AggregationConfig,
    AnalyzerConfig,
    ComplianceConfig,
    CorruptionConfig,
    ManifestConfig,
    ProbeConfig,
)

__all__ = [
    # Manager
    "ConfigManager",
    "get_config_manager",
    # Models
    "AggregationConfig",
    "AnalyzerConfig",
    "ComplianceConfig",
    "CorruptionConfig",
    "ManifestConfig",
    "ProbeConfig",
]
