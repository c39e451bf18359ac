"""
Per-segment probe cache.

Probe reports are cached by segment identity ``(index, uri)``. The cache is
owned by the caller and tied to one manifest: binding it to different
manifest text drops every entry.
"""

import hashlib
from typing import Optional

from ..models import SegmentProbeReport
from ..utils import get_logger

logger = get_logger(__name__)

CacheKey = tuple[int, str]


class ProbeCache:
    """Read-through cache of segment probe reports."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, SegmentProbeReport] = {}
        self._fingerprint: Optional[str] = None
        self.hits = 0
        self.misses = 0

    @staticmethod
    def fingerprint(content: str) -> str:
        """Hash manifest text."""
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    @property
    def manifest_fingerprint(self) -> Optional[str]:
        return self._fingerprint

    def bind_manifest(self, content: str) -> bool:
        """
        Associate the cache with a manifest.

        Args:
            content: Manifest text

        Returns:
            True if the manifest changed and the cache was cleared
        """
        fingerprint = self.fingerprint(content)
        changed = self._fingerprint is not None and fingerprint != self._fingerprint
        if changed:
            logger.info(f"Manifest changed, dropping {len(self._entries)} cached probe(s)")
            self.invalidate()
        self._fingerprint = fingerprint
        return changed

    def get(self, key: CacheKey, detailed: bool = False) -> Optional[SegmentProbeReport]:
        """
        Look up a cached report.

        A basic report does not satisfy a detailed request.

        Args:
            key: Segment identity (index, uri)
            detailed: Whether frame-level data is required

        Returns:
            Cached report or None
        """
        report = self._entries.get(key)
        if report is None or (detailed and not report.analysis.detailed):
            self.misses += 1
            return None
        self.hits += 1
        return report

    def put(self, key: CacheKey, report: SegmentProbeReport) -> None:
        """Store a report, keeping an existing detailed one over a basic one."""
        existing = self._entries.get(key)
        if existing is not None and existing.analysis.detailed and not report.analysis.detailed:
            return
        self._entries[key] = report

    def invalidate(self, key: Optional[CacheKey] = None) -> None:
        """Drop one entry, or all entries when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
