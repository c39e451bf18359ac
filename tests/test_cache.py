"""
Tests for the per-segment probe cache.
"""

from hls_analyzer.inspector import ProbeCache, SegmentAnalyzer
from hls_analyzer.models import ProbeResult, SegmentProbeReport

PAYLOAD = {
    "format": {"format_name": "mpegts", "duration": "6.0"},
    "streams": [{"codec_type": "video", "codec_name": "h264"}],
}


def make_report(detailed=False, url="seg0.ts"):
    probe = ProbeResult.from_dict(PAYLOAD)
    analysis = SegmentAnalyzer().analyze(probe, detailed=detailed)
    return SegmentProbeReport(segment_url=url, probe=probe, analysis=analysis)


class TestProbeCache:
    """Test ProbeCache class."""

    def test_miss_then_hit(self):
        """Test read-through behaviour and counters."""
        cache = ProbeCache()
        key = (0, "seg0.ts")

        assert cache.get(key) is None
        cache.put(key, make_report())

        assert cache.get(key) is not None
        assert key in cache
        assert len(cache) == 1
        assert (cache.hits, cache.misses) == (1, 1)

    def test_key_includes_index(self):
        """Test the same URI at another index is a different segment."""
        cache = ProbeCache()
        cache.put((0, "media.ts"), make_report())

        assert cache.get((1, "media.ts")) is None

    def test_basic_does_not_satisfy_detailed(self):
        """Test a basic report is not returned for a detailed request."""
        cache = ProbeCache()
        cache.put((0, "seg0.ts"), make_report())

        assert cache.get((0, "seg0.ts"), detailed=True) is None
        assert cache.get((0, "seg0.ts"), detailed=False) is not None

    def test_detailed_satisfies_basic(self):
        """Test a detailed report serves both kinds of request."""
        cache = ProbeCache()
        cache.put((0, "seg0.ts"), make_report(detailed=True))

        assert cache.get((0, "seg0.ts")) is not None
        assert cache.get((0, "seg0.ts"), detailed=True) is not None

    def test_detailed_not_replaced_by_basic(self):
        """Test a basic report never overwrites a detailed one."""
        cache = ProbeCache()
        cache.put((0, "seg0.ts"), make_report(detailed=True))
        cache.put((0, "seg0.ts"), make_report(detailed=False))

        assert cache.get((0, "seg0.ts"), detailed=True) is not None

    def test_invalidate(self):
        """Test dropping one entry and all entries."""
        cache = ProbeCache()
        cache.put((0, "a.ts"), make_report())
        cache.put((1, "b.ts"), make_report())

        cache.invalidate((0, "a.ts"))
        assert len(cache) == 1

        cache.invalidate()
        assert len(cache) == 0

    def test_bind_manifest(self):
        """Test a changed manifest clears the cache."""
        cache = ProbeCache()

        assert not cache.bind_manifest("#EXTM3U\na.ts\n")
        cache.put((0, "a.ts"), make_report())

        assert not cache.bind_manifest("#EXTM3U\na.ts\n")
        assert len(cache) == 1

        assert cache.bind_manifest("#EXTM3U\nb.ts\n")
        assert len(cache) == 0
        assert cache.manifest_fingerprint == ProbeCache.fingerprint("#EXTM3U\nb.ts\n")
