"""HLS manifest parsing and loading."""

from hls_analyzer.playlist.loader import (
    RETRYABLE_STATUS_CODES,
    ManifestLoader,
    is_remote,
    resolve_uri,
)
from hls_analyzer.playlist.parser import (
    ManifestParser,
    is_master_playlist,
    parse_attribute_list,
    parse_byte_range,
    parse_manifest,
)

__all__ = [
    # Parser
    "ManifestParser",
    "is_master_playlist",
    "parse_attribute_list",
    "parse_byte_range",
    "parse_manifest",
    # Loader
    "RETRYABLE_STATUS_CODES",
    "ManifestLoader",
    "is_remote",
    "resolve_uri",
]
