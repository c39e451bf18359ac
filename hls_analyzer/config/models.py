"""
Configuration models using Pydantic.

This module defines the configuration structure for the HLS analyzer.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ProbeConfig(BaseModel):
    """Media inspection backend configuration."""

    backend: Literal["service", "local"] = Field(
        default="service",
        description="Inspection backend: remote ffprobe service or local ffprobe binary",
    )
    service_url: Optional[str] = Field(
        default=None, description="Base URL of the ffprobe HTTP service"
    )
    timeout: float = Field(default=30.0, gt=0, le=600, description="Per-probe timeout in seconds")
    max_concurrency: int = Field(
        default=8, ge=1, le=64, description="Maximum concurrent probes in batch mode"
    )
    ffprobe_path: str = Field(default="ffprobe", description="Path to local ffprobe executable")
    ffmpeg_path: str = Field(default="ffmpeg", description="Path to local ffmpeg executable")

    @field_validator("service_url")
    @classmethod
    def validate_service_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate service URL scheme and strip trailing slashes."""
        if v is None or not v.strip():
            return None
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("service_url must start with http:// or https://")
        return v


class ManifestConfig(BaseModel):
    """Manifest fetching and parsing configuration."""

    fetch_timeout: float = Field(default=15.0, gt=0, le=300, description="HTTP timeout in seconds")
    retries: int = Field(default=3, ge=1, le=10, description="Attempts for retryable failures")
    backoff: float = Field(default=1.0, ge=0, le=30, description="Base backoff delay in seconds")
    default_segment_duration: float = Field(
        default=6.0,
        gt=0,
        le=60,
        description="Duration of implicit segments when the target duration is unknown",
    )
    proxy_path: str = Field(
        default="/api/hls-proxy", description="Path of a URL-rewriting HLS proxy"
    )
    proxy_param: str = Field(
        default="url", description="Query parameter holding the original URL"
    )


class ComplianceConfig(BaseModel):
    """HLS compliance thresholds."""

    min_segment_duration: float = Field(default=2.0, ge=0, description="Shortest recommended segment")
    max_segment_duration: float = Field(default=10.0, gt=0, description="Longest recommended segment")
    target_tolerance: float = Field(
        default=0.10, ge=0, le=1, description="Allowed deviation from target duration (fraction)"
    )
    keyframe_tolerance: float = Field(
        default=0.5, ge=0, description="Allowed keyframe interval deviation in seconds"
    )
    video_codecs: list[str] = Field(
        default_factory=lambda: ["h264", "hevc", "h265"],
        description="Video codecs accepted in HLS segments",
    )
    audio_codecs: list[str] = Field(
        default_factory=lambda: ["aac", "mp3", "ac3", "eac3", "ac-3", "e-ac-3"],
        description="Audio codecs accepted in HLS segments",
    )

    @field_validator("video_codecs", "audio_codecs")
    @classmethod
    def normalize_codecs(cls, v: list[str]) -> list[str]:
        """Lower-case codec names."""
        if not v:
            raise ValueError("codec list must not be empty")
        return [codec.strip().lower() for codec in v]

    @model_validator(mode="after")
    def validate_duration_bounds(self) -> "ComplianceConfig":
        """Ensure min duration is below max duration."""
        if self.min_segment_duration >= self.max_segment_duration:
            raise ValueError("min_segment_duration must be less than max_segment_duration")
        return self


class AggregationConfig(BaseModel):
    """Batch consistency thresholds."""

    duration_threshold: float = Field(
        default=0.10, gt=0, le=1, description="Max relative duration spread"
    )
    bitrate_threshold: float = Field(
        default=0.20, gt=0, le=1, description="Max relative bitrate spread"
    )


class CorruptionConfig(BaseModel):
    """Corruption heuristics thresholds."""

    sync_drift: float = Field(
        default=0.5, ge=0, description="Audio/video duration difference in seconds"
    )
    start_offset: float = Field(
        default=0.1, ge=0, description="Audio/video start time difference in seconds"
    )
    min_fps: float = Field(default=10.0, ge=0, description="Lowest usual frame rate")
    max_fps: float = Field(default=120.0, gt=0, description="Highest usual frame rate")
    error_scan: bool = Field(
        default=True, description="Run a decode pass when the probe returned no diagnostics"
    )

    @model_validator(mode="after")
    def validate_fps_bounds(self) -> "CorruptionConfig":
        """Ensure min fps is below max fps."""
        if self.min_fps >= self.max_fps:
            raise ValueError("min_fps must be less than max_fps")
        return self


class AnalyzerConfig(BaseModel):
    """Main analyzer configuration."""

    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    corruption: CorruptionConfig = Field(default_factory=CorruptionConfig)

    @classmethod
    def create_default(cls) -> "AnalyzerConfig":
        """Create default configuration."""
        return cls()
