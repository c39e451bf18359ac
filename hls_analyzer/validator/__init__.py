"""HLS compliance rules and whole-file corruption heuristics."""

from hls_analyzer.validator.compliance import ComplianceThresholds, check_compliance
from hls_analyzer.validator.corruption import (
    RULES,
    CorruptionRule,
    CorruptionThresholds,
    IssueTemplate,
    analyze_corruption,
    resolve_container_format,
)

__all__ = [
    # Compliance
    "ComplianceThresholds",
    "check_compliance",
    # Corruption
    "RULES",
    "CorruptionRule",
    "CorruptionThresholds",
    "IssueTemplate",
    "analyze_corruption",
    "resolve_container_format",
]
