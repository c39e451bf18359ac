"""
M3U8 manifest parsing.

This module turns raw playlist text into MasterPlaylist or MediaPlaylist
models. Parsing is pure and tolerant: unknown tags are skipped, malformed
numbers fall back to defaults, and nothing in the input makes it raise.
"""

import re
from typing import Optional

from ..models import ByteRange, MasterPlaylist, MediaPlaylist, Playlist, QualityLevel, Segment
from ..utils import get_logger, resolution_from_name, safe_float, safe_int

logger = get_logger(__name__)

STREAM_INF_TAG = "#EXT-X-STREAM-INF"

# Media files accepted as segments without a preceding #EXTINF
MEDIA_EXTENSIONS = (".ts", ".m4s", ".mp4", ".m4a", ".m4v", ".aac")

# Key=value pairs; quoted values may contain commas
_ATTRIBUTE_PATTERN = re.compile(r'([A-Za-z0-9_-]+)=("[^"]*"|[^,]*)')
_FILE_SEQUENCE_PATTERN = re.compile(r"fileSequence\d+", re.IGNORECASE)


def parse_attribute_list(text: str) -> dict[str, str]:
    """
    Parse an HLS attribute list such as ``BANDWIDTH=800000,CODECS="a,b"``.

    Commas inside quoted strings are part of the value. Quotes are stripped
    from the returned values.

    Args:
        text: Attribute list (the part of a tag line after the colon)

    Returns:
        Mapping of attribute name to value
    """
    attributes: dict[str, str] = {}
    for match in _ATTRIBUTE_PATTERN.finditer(text):
        name, value = match.group(1), match.group(2).strip()
        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]
        attributes[name.upper()] = value
    return attributes


def parse_byte_range(value: str, cursor: int) -> Optional[ByteRange]:
    """
    Parse an #EXT-X-BYTERANGE value (``length`` or ``length@offset``).

    Args:
        value: Tag value
        cursor: End of the previous byte range, used when offset is omitted

    Returns:
        ByteRange, or None if the length is not a number
    """
    length_str, sep, offset_str = value.strip().partition("@")
    length = safe_int(length_str, -1)
    if length < 0:
        return None
    offset = safe_int(offset_str, cursor) if sep else cursor
    return ByteRange(offset=max(offset, 0), length=length)


def is_master_playlist(content: str) -> bool:
    """Check if manifest text contains a stream-info tag."""
    return any(line.strip().startswith(STREAM_INF_TAG) for line in content.splitlines())


class ManifestParser:
    """
    Parser for HLS master and media playlists.

    The playlist kind is decided by the presence of #EXT-X-STREAM-INF
    anywhere in the document.
    """

    def __init__(self, default_segment_duration: float = 6.0):
        """
        Initialize manifest parser.

        Args:
            default_segment_duration: Duration given to implicit segments
                when the playlist has no target duration
        """
        self.default_segment_duration = default_segment_duration

    def parse(self, content: str, base_uri: str = "") -> Playlist:
        """
        Parse manifest text.

        Args:
            content: Raw M3U8 text
            base_uri: URI the manifest was loaded from

        Returns:
            MasterPlaylist or MediaPlaylist
        """
        lines = [line.strip() for line in (content or "").splitlines()]
        lines = [line for line in lines if line]

        if any(line.startswith(STREAM_INF_TAG) for line in lines):
            playlist: Playlist = self._parse_master(lines, base_uri)
            logger.debug(f"Parsed master playlist with {len(playlist.quality_levels)} levels")
        else:
            playlist = self._parse_media(lines, base_uri)
            logger.debug(
                f"Parsed media playlist with {len(playlist.segments)} segments "
                f"({playlist.total_duration:.2f}s)"
            )
        return playlist

    def _parse_master(self, lines: list[str], base_uri: str) -> MasterPlaylist:
        playlist = MasterPlaylist(base_uri=base_uri)
        i = 0
        while i < len(lines):
            line = lines[i]
            i += 1
            if not line.startswith(STREAM_INF_TAG):
                continue

            attributes = parse_attribute_list(line.partition(":")[2])

            # URI is the next non-comment line, unless another variant starts first
            uri = None
            while i < len(lines):
                candidate = lines[i]
                if candidate.startswith(STREAM_INF_TAG):
                    break
                i += 1
                if not candidate.startswith("#"):
                    uri = candidate
                    break
            if uri is None:
                continue

            resolution = attributes.get("RESOLUTION") or resolution_from_name(uri) or "Unknown"
            frame_rate = safe_float(attributes.get("FRAME-RATE"), 0.0)
            average_bandwidth = safe_int(attributes.get("AVERAGE-BANDWIDTH"), 0)
            playlist.quality_levels.append(
                QualityLevel(
                    bandwidth=max(safe_int(attributes.get("BANDWIDTH"), 0), 0),
                    resolution=resolution,
                    uri=uri,
                    codecs=attributes.get("CODECS") or None,
                    frame_rate=frame_rate or None,
                    average_bandwidth=average_bandwidth or None,
                )
            )
        return playlist

    def _parse_media(self, lines: list[str], base_uri: str) -> MediaPlaylist:
        playlist = MediaPlaylist(base_uri=base_uri)
        cursor = 0
        pending_duration: Optional[float] = None
        pending_title: Optional[str] = None
        pending_range: Optional[ByteRange] = None
        implicit: list[int] = []

        for line in lines:
            if line.startswith("#"):
                tag, _, value = line.partition(":")
                if tag == "#EXTINF":
                    duration_str, _, title = value.partition(",")
                    pending_duration = max(safe_float(duration_str, 0.0), 0.0)
                    pending_title = title.strip() or None
                elif tag == "#EXT-X-BYTERANGE":
                    pending_range = parse_byte_range(value, cursor)
                    if pending_range is not None:
                        cursor = pending_range.end
                elif tag == "#EXT-X-VERSION":
                    playlist.version = safe_int(value, 0)
                elif tag == "#EXT-X-TARGETDURATION":
                    playlist.target_duration = max(safe_float(value, 0.0), 0.0)
                elif tag == "#EXT-X-MEDIA-SEQUENCE":
                    playlist.media_sequence = safe_int(value, 0)
                elif tag == "#EXT-X-PLAYLIST-TYPE":
                    playlist.playlist_type = value.strip().upper() or None
                elif tag == "#EXT-X-ENDLIST":
                    playlist.ended = True
                elif tag == "#EXT-X-MAP" and playlist.init_segment_uri is None:
                    playlist.init_segment_uri = parse_attribute_list(value).get("URI") or None
                continue

            if pending_duration is not None:
                playlist.segments.append(
                    Segment(
                        index=len(playlist.segments),
                        duration=pending_duration,
                        uri=line,
                        byte_range=pending_range,
                        title=pending_title,
                    )
                )
            elif self._is_media_reference(line):
                implicit.append(len(playlist.segments))
                playlist.segments.append(
                    Segment(
                        index=len(playlist.segments),
                        duration=0.0,
                        uri=line,
                        byte_range=pending_range,
                    )
                )
            pending_duration = None
            pending_title = None
            pending_range = None

        if not playlist.segments and playlist.init_segment_uri:
            for line in lines:
                if not line.startswith("#") and _FILE_SEQUENCE_PATTERN.search(line):
                    implicit.append(len(playlist.segments))
                    playlist.segments.append(
                        Segment(index=len(playlist.segments), duration=0.0, uri=line)
                    )

        if implicit:
            fallback = playlist.target_duration or self.default_segment_duration
            for index in implicit:
                playlist.segments[index].duration = fallback
            logger.debug(f"Assigned {fallback}s to {len(implicit)} implicit segments")

        return playlist

    @staticmethod
    def _is_media_reference(line: str) -> bool:
        path = line.split("?", 1)[0].split("#", 1)[0].lower()
        return path.endswith(MEDIA_EXTENSIONS)


def parse_manifest(
    content: str, base_uri: str = "", default_segment_duration: float = 6.0
) -> Playlist:
    """
    Parse manifest text into a playlist model.

    Args:
        content: Raw M3U8 text
        base_uri: URI the manifest was loaded from
        default_segment_duration: Duration for implicit segments without a
            known target duration

    Returns:
        MasterPlaylist or MediaPlaylist
    """
    return ManifestParser(default_segment_duration).parse(content, base_uri)
