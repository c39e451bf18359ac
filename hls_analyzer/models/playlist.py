"""
Data models for parsed HLS playlists.

A manifest parses into exactly one of MasterPlaylist or MediaPlaylist,
decided by the presence of an #EXT-X-STREAM-INF tag.
"""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class ByteRange:
    """A slice of a backing file referenced by #EXT-X-BYTERANGE."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        """Offset of the first byte after this range."""
        return self.offset + self.length

    def to_dict(self) -> dict:
        return {"offset": self.offset, "length": self.length}


@dataclass
class QualityLevel:
    """One variant stream of a master playlist."""

    bandwidth: int
    resolution: str
    uri: str
    codecs: Optional[str] = None
    frame_rate: Optional[float] = None
    average_bandwidth: Optional[int] = None

    def to_dict(self) -> dict:
        data: dict = {
            "bandwidth": self.bandwidth,
            "resolution": self.resolution,
            "uri": self.uri,
        }
        if self.codecs:
            data["codecs"] = self.codecs
        if self.frame_rate:
            data["frameRate"] = self.frame_rate
        if self.average_bandwidth:
            data["averageBandwidth"] = self.average_bandwidth
        return data


@dataclass
class Segment:
    """One media segment of a media playlist."""

    index: int
    duration: float
    uri: str
    byte_range: Optional[ByteRange] = None
    title: Optional[str] = None

    @property
    def cache_key(self) -> tuple[int, str]:
        """Identity used by the probe cache."""
        return (self.index, self.uri)

    def to_dict(self) -> dict:
        data: dict = {"index": self.index, "duration": self.duration, "uri": self.uri}
        if self.byte_range is not None:
            data["byteRange"] = self.byte_range.to_dict()
        if self.title:
            data["title"] = self.title
        return data


@dataclass
class MasterPlaylist:
    """Playlist listing alternative quality levels."""

    base_uri: str = ""
    quality_levels: list[QualityLevel] = field(default_factory=list)

    @property
    def is_master(self) -> bool:
        return True

    def highest_bandwidth(self) -> Optional[QualityLevel]:
        """Get the quality level with the largest bandwidth."""
        if not self.quality_levels:
            return None
        return max(self.quality_levels, key=lambda level: level.bandwidth)

    def to_dict(self) -> dict:
        return {
            "type": "master",
            "baseUri": self.base_uri,
            "qualityLevels": [level.to_dict() for level in self.quality_levels],
        }


@dataclass
class MediaPlaylist:
    """Playlist listing the ordered segments of one quality level."""

    base_uri: str = ""
    version: int = 3
    target_duration: float = 0.0
    media_sequence: int = 0
    playlist_type: Optional[str] = None
    ended: bool = False
    init_segment_uri: Optional[str] = None
    segments: list[Segment] = field(default_factory=list)

    @property
    def is_master(self) -> bool:
        return False

    @property
    def total_duration(self) -> float:
        """Sum of all segment durations in seconds."""
        return sum(segment.duration for segment in self.segments)

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    @property
    def is_fmp4(self) -> bool:
        """Check if the playlist declares a fragmented-MP4 init segment."""
        return self.init_segment_uri is not None

    @property
    def uses_byte_ranges(self) -> bool:
        return any(segment.byte_range is not None for segment in self.segments)

    def to_dict(self) -> dict:
        return {
            "type": "media",
            "baseUri": self.base_uri,
            "version": self.version,
            "targetDuration": self.target_duration,
            "mediaSequence": self.media_sequence,
            "playlistType": self.playlist_type,
            "ended": self.ended,
            "initSegmentUri": self.init_segment_uri,
            "totalDuration": self.total_duration,
            "segments": [segment.to_dict() for segment in self.segments],
        }


Playlist = Union[MasterPlaylist, MediaPlaylist]
