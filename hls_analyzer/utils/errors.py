"""
Custom exceptions for HLS analyzer.

This module defines the exception hierarchy used throughout the application.
Collaborator failures (probe service, local ffprobe, manifest fetch) are
raised as descriptive errors so batch callers can isolate them per item.
"""

from typing import Optional


class AnalyzerError(Exception):
    """Base exception for all analyzer errors."""

    pass


class ConfigurationError(AnalyzerError):
    """Configuration is invalid or missing."""

    pass


class InputError(AnalyzerError):
    """A required identifier (URL, filename, manifest) is missing or unreadable."""

    pass


class ManifestError(AnalyzerError):
    """Failed to fetch or read a manifest."""

    def __init__(self, message: str, uri: Optional[str] = None, status_code: Optional[int] = None):
        """
        Initialize manifest error.

        Args:
            message: Error message
            uri: Manifest URI that failed
            status_code: HTTP status code, if the failure came from a response
        """
        super().__init__(message)
        self.uri = uri
        self.status_code = status_code


class StagingError(AnalyzerError):
    """Failed to fetch remote media for inspection."""

    def __init__(self, message: str, uri: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.uri = uri
        self.status_code = status_code


class ProbeError(AnalyzerError):
    """The media inspection tool failed to probe a resource."""

    pass


class ProbeServiceError(ProbeError):
    """Remote ffprobe service returned an error response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """
        Initialize probe service error.

        Args:
            message: Error message
            status_code: HTTP status code returned by the service
        """
        super().__init__(message)
        self.status_code = status_code


class ProbeTimeoutError(ProbeError):
    """Probe call exceeded timeout threshold."""

    def __init__(self, message: str, timeout: float):
        """
        Initialize timeout error.

        Args:
            message: Error message
            timeout: Timeout value in seconds
        """
        super().__init__(message)
        self.timeout = timeout


class FFprobeError(ProbeError):
    """Local ffprobe/ffmpeg command execution failed."""

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        stderr: Optional[str] = None,
    ):
        """
        Initialize FFprobe error with command details.

        Args:
            message: Error message
            command: Command that failed
            stderr: Standard error output from the command
        """
        super().__init__(message)
        self.command = command
        self.stderr = stderr
