"""
Helper functions for HLS analyzer.

This module contains formatting helpers and the tolerant numeric parsing used
on loosely-typed ffprobe output. None of the parsers raise: unparseable input
degrades to the given default.
"""

import re
from pathlib import PurePosixPath
from typing import Any, Optional
from urllib.parse import urlparse

# Quality labels encoded in variant file names (e.g. "hls-720p.m3u8")
QUALITY_RESOLUTIONS = {
    "1080p": "1920x1080",
    "720p": "1280x720",
    "480p": "854x480",
    "360p": "640x360",
}

_QUALITY_PATTERN = re.compile(r"(\d{3,4}p)")


def format_size(bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 GB")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if bytes < 1024.0:
            return f"{bytes:.1f} {unit}"
        bytes /= 1024.0  # type: ignore
    return f"{bytes:.1f} PB"


def format_duration(seconds: float) -> str:
    """
    Format duration as HH:MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "01:30:45")
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_bitrate(bits_per_second: int) -> str:
    """
    Format bitrate in human-readable format.

    Args:
        bits_per_second: Bitrate in bits per second

    Returns:
        Formatted bitrate string (e.g., "5.0 Mbps")
    """
    if bits_per_second >= 1000000:
        return f"{bits_per_second / 1000000:.1f} Mbps"
    elif bits_per_second >= 1000:
        return f"{bits_per_second / 1000:.1f} Kbps"
    else:
        return f"{bits_per_second} bps"


def safe_float(value: Any, default: float = 0.0) -> float:
    """
    Convert a loosely-typed value to float.

    Args:
        value: Value from probe output (str, int, float or None)
        default: Value returned when conversion fails

    Returns:
        Parsed float or default
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if result != result or result in (float("inf"), float("-inf")):
        return default
    return result


def safe_int(value: Any, default: int = 0) -> int:
    """
    Convert a loosely-typed value to int.

    Accepts integer strings as well as float strings ("1200.0").

    Args:
        value: Value from probe output
        default: Value returned when conversion fails

    Returns:
        Parsed int or default
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        parsed = safe_float(value, None)  # type: ignore[arg-type]
        return int(parsed) if parsed is not None else default


def safe_str(value: Any, default: str = "Unknown") -> str:
    """Convert a value to a non-empty string, or return default."""
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def parse_fraction(value: Any, default: float = 0.0) -> float:
    """
    Parse a rational string such as "1/90000" or "30000/1001".

    Plain numbers are accepted too. A zero denominator yields 0.0.

    Args:
        value: Fraction string

    Returns:
        Float value, or default when unparseable
    """
    if value is None:
        return default
    text = str(value).strip()
    if "/" not in text:
        return safe_float(text, default)
    num_str, _, den_str = text.partition("/")
    num = safe_float(num_str, None)  # type: ignore[arg-type]
    den = safe_float(den_str, None)  # type: ignore[arg-type]
    if num is None or den is None:
        return default
    if den == 0:
        return 0.0
    return num / den


def parse_frame_rate(value: Optional[str]) -> float:
    """
    Parse an ffprobe frame rate string.

    "0/0" means unknown and parses to 0.0.

    Args:
        value: Frame rate string (e.g., "30000/1001")

    Returns:
        Frames per second
    """
    return parse_fraction(value, 0.0)


def select_frame_rate(avg_frame_rate: Optional[str], r_frame_rate: Optional[str]) -> float:
    """
    Pick the frame rate of a video stream.

    The average frame rate is preferred; the real frame rate is used when the
    average is missing or unknown ("0/0").

    Returns:
        Frames per second, 0.0 when neither is known
    """
    for candidate in (avg_frame_rate, r_frame_rate):
        if candidate and candidate != "0/0":
            fps = parse_frame_rate(candidate)
            if fps > 0:
                return fps
    return 0.0


def resolution_from_name(uri: str) -> Optional[str]:
    """
    Derive a resolution from an ``NNNp`` quality label in a URI path.

    Args:
        uri: Playlist URI (e.g., "video/hls-720p.m3u8")

    Returns:
        Resolution string ("1280x720") or None if the name has no known label
    """
    path = urlparse(uri).path or uri
    for label in _QUALITY_PATTERN.findall(path):
        if label in QUALITY_RESOLUTIONS:
            return QUALITY_RESOLUTIONS[label]
    return None


def get_extension(name: str) -> str:
    """
    Get the lower-cased file extension of a path or URL, without the dot.

    Args:
        name: File name, path or URL

    Returns:
        Extension (e.g., "mp4") or empty string
    """
    path = urlparse(name).path if "://" in name else name
    suffix = PurePosixPath(path).suffix
    return suffix[1:].lower() if suffix else ""
