"""
Tests for concurrent segment probing.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from hls_analyzer.config import AnalyzerConfig
from hls_analyzer.executor import SegmentProber, SegmentRequest, requests_from_playlist
from hls_analyzer.inspector import ProbeCache, ProbeClient, ProbeResponse
from hls_analyzer.models import ByteRange, ProbeResult
from hls_analyzer.playlist import parse_manifest
from hls_analyzer.utils import ProbeError, ProbeServiceError, ProbeTimeoutError


def probe_payload(duration="6.0", bit_rate="2000000"):
    """Minimal ffprobe JSON for an H.264/AAC TS segment."""
    return {
        "format": {"format_name": "mpegts", "duration": duration, "bit_rate": bit_rate},
        "streams": [
            {"codec_type": "video", "codec_name": "h264", "width": 1280, "height": 720},
            {"codec_type": "audio", "codec_name": "aac"},
        ],
    }


class FakeClient(ProbeClient):
    """Probe client with scripted per-URL behaviour."""

    name = "fake"

    def __init__(self, failures=None, delays=None, durations=None):
        self.failures = failures or {}
        self.delays = delays or {}
        self.durations = durations or {}
        self.calls = []
        self.active = 0
        self.peak = 0

    async def probe(self, url, init_url=None, detailed=False, include_stderr=False):
        self.calls.append((url, init_url, detailed))
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, 0.01))
            if url in self.failures:
                raise self.failures[url]
            return ProbeResponse(
                result=ProbeResult.from_dict(probe_payload(self.durations.get(url, "6.0")))
            )
        finally:
            self.active -= 1

    async def diagnose(self, url):
        return ""


def make_requests(count):
    return [
        SegmentRequest(url=f"https://cdn.example.com/seg{i}.ts", cache_key=(i, f"seg{i}.ts"))
        for i in range(count)
    ]


class TestRequestsFromPlaylist:
    """Test requests_from_playlist function."""

    def test_resolves_against_base(self):
        """Test segment URIs are resolved against the playlist URI."""
        playlist = parse_manifest(
            "#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXTINF:6,\na.ts\n#EXTINF:5,\nb.ts\n",
            "https://cdn.example.com/hls/index.m3u8",
        )

        requests = requests_from_playlist(playlist)

        assert [r.url for r in requests] == [
            "https://cdn.example.com/hls/a.ts",
            "https://cdn.example.com/hls/b.ts",
        ]
        assert [r.duration for r in requests] == [6, 5]
        assert requests[1].target_duration == 6
        assert requests[1].cache_key == (1, "b.ts")

    def test_byte_range_duration_override(self):
        """Test byte-range segments carry the manifest duration."""
        playlist = parse_manifest(
            "#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXTINF:4,\n#EXT-X-BYTERANGE:100@0\nmedia.ts\n",
            "https://cdn.example.com/index.m3u8",
        )

        request = requests_from_playlist(playlist)[0]

        assert request.byte_range == ByteRange(offset=0, length=100)
        assert request.duration == 4

    def test_init_segment_and_limit(self):
        """Test the init segment is attached and the limit respected."""
        playlist = parse_manifest(
            '#EXTM3U\n#EXT-X-MAP:URI="init.mp4"\n#EXTINF:4,\na.m4s\n#EXTINF:4,\nb.m4s\n',
            "https://cdn.example.com/index.m3u8",
        )

        requests = requests_from_playlist(playlist, limit=1)

        assert len(requests) == 1
        assert requests[0].init_url == "https://cdn.example.com/init.mp4"


class TestSegmentProber:
    """Test SegmentProber class."""

    @pytest.mark.asyncio
    async def test_probe_single(self):
        """Test probing one segment."""
        client = FakeClient()
        prober = SegmentProber(client)

        report = await prober.probe(SegmentRequest(url="https://cdn.example.com/a.ts"))

        assert report.segment_url == "https://cdn.example.com/a.ts"
        assert report.analysis.format.duration == 6.0
        assert report.analysis.hls.compliant
        assert not report.cached

    @pytest.mark.asyncio
    async def test_probe_passes_init_and_detail(self):
        """Test init segment and detail flag reach the client."""
        client = FakeClient()
        request = SegmentRequest(url="seg.m4s", init_url="init.mp4")

        await SegmentProber(client).probe(request, detailed=True)

        assert client.calls == [("seg.m4s", "init.mp4", True)]

    @pytest.mark.asyncio
    async def test_probe_timeout(self):
        """Test a slow probe raises a timeout error."""
        client = FakeClient(delays={"slow.ts": 1.0})
        prober = SegmentProber(client, timeout=0.05)

        with pytest.raises(ProbeTimeoutError) as exc_info:
            await prober.probe(SegmentRequest(url="slow.ts"))

        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_probe_propagates_client_error(self):
        """Test a single probe surfaces the client's error."""
        client = AsyncMock(spec=ProbeClient)
        client.name = "mock"
        client.probe.side_effect = ProbeServiceError("FFprobe service error: 502 Bad Gateway")

        with pytest.raises(ProbeError, match="502"):
            await SegmentProber(client).probe(SegmentRequest(url="a.ts"))

    @pytest.mark.asyncio
    async def test_batch_preserves_order(self):
        """Test results keep request order regardless of completion order."""
        requests = make_requests(4)
        delays = {requests[0].url: 0.08, requests[1].url: 0.01, requests[2].url: 0.04}
        client = FakeClient(delays=delays)

        report = await SegmentProber(client).probe_batch(requests)

        assert [r.url for r in report.results] == [r.url for r in requests]
        assert report.success_rate == 100.0

    @pytest.mark.asyncio
    async def test_batch_isolates_failures(self):
        """Test one failing segment does not affect the others."""
        requests = make_requests(3)
        client = FakeClient(failures={requests[1].url: ProbeServiceError("boom")})

        report = await SegmentProber(client).probe_batch(requests)

        assert [r.success for r in report.results] == [True, False, True]
        assert report.results[1].error == "boom"
        assert report.results[1].report is None
        assert report.aggregate.total_segments == 2

    @pytest.mark.asyncio
    async def test_batch_timeout_is_per_item(self):
        """Test a timed out segment is reported as a failed item."""
        requests = make_requests(2)
        client = FakeClient(delays={requests[0].url: 1.0})

        report = await SegmentProber(client, timeout=0.05).probe_batch(requests)

        assert not report.results[0].success
        assert "timed out" in report.results[0].error
        assert report.results[1].success

    @pytest.mark.asyncio
    async def test_batch_concurrency_bound(self):
        """Test no more probes than the limit run at once."""
        client = FakeClient()

        await SegmentProber(client, max_concurrency=2).probe_batch(make_requests(6))

        assert client.peak <= 2
        assert len(client.calls) == 6

    @pytest.mark.asyncio
    async def test_batch_all_failed(self):
        """Test no aggregate when every segment fails."""
        requests = make_requests(2)
        client = FakeClient(failures={r.url: ProbeServiceError("down") for r in requests})

        report = await SegmentProber(client).probe_batch(requests)

        assert report.aggregate is None
        assert len(report.failed) == 2

    @pytest.mark.asyncio
    async def test_batch_empty(self):
        """Test empty batch."""
        report = await SegmentProber(FakeClient()).probe_batch([])

        assert report.results == []
        assert report.aggregate is None

    @pytest.mark.asyncio
    async def test_batch_aggregate(self):
        """Test the aggregate reflects successful segments."""
        requests = make_requests(3)
        durations = {requests[2].url: "6.7"}

        report = await SegmentProber(FakeClient(durations=durations)).probe_batch(requests)

        assert not report.aggregate.duration.consistent
        assert report.to_dict()["batchMode"] is True

    @pytest.mark.asyncio
    async def test_batch_flags_short_manifest_duration(self):
        """Test an EXTINF far below the target duration is reported."""
        playlist = parse_manifest(
            "#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXTINF:6.0,\nseg0.ts\n#EXTINF:3.0,\nseg1.ts\n",
            "https://cdn.example.com/index.m3u8",
        )

        report = await SegmentProber(FakeClient()).probe_batch(requests_from_playlist(playlist))

        first, second = (result.analysis for result in report.results)
        assert first.format.is_segment
        assert not any("target duration" in issue for issue in first.hls.issues)
        assert second.format.duration == 3.0
        assert any("differs from target duration" in issue for issue in second.hls.issues)

    @pytest.mark.asyncio
    async def test_progress_callback(self):
        """Test progress is reported per completed item."""
        updates = []

        await SegmentProber(FakeClient()).probe_batch(
            make_requests(3), progress_callback=lambda done, total: updates.append((done, total))
        )

        assert updates == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_cache_read_through(self):
        """Test the second probe of a segment is served from cache."""
        client = FakeClient()
        cache = ProbeCache()
        prober = SegmentProber(client, cache=cache)
        request = make_requests(1)[0]

        first = await prober.probe(request)
        second = await prober.probe(request)

        assert len(client.calls) == 1
        assert not first.cached
        assert second.cached
        assert second.analysis == first.analysis

    @pytest.mark.asyncio
    async def test_cache_basic_does_not_satisfy_detailed(self):
        """Test a detailed request re-probes a basic cached segment."""
        client = FakeClient()
        prober = SegmentProber(client, cache=ProbeCache())
        request = make_requests(1)[0]

        await prober.probe(request)
        await prober.probe(request, detailed=True)

        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_cache_bound_to_manifest(self):
        """Test a repeated batch is served from cache until the manifest changes."""
        manifest = "#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXTINF:6.0,\na.ts\n#EXTINF:6.0,\nb.ts\n"
        changed = manifest + "#EXTINF:6.0,\nc.ts\n"
        client = FakeClient()
        cache = ProbeCache()
        prober = SegmentProber(client, cache=cache)

        async def run(text):
            cache.bind_manifest(text)
            playlist = parse_manifest(text, "https://cdn.example.com/index.m3u8")
            return await prober.probe_batch(requests_from_playlist(playlist))

        await run(manifest)
        again = await run(manifest)

        assert len(client.calls) == 2
        assert all(result.report.cached for result in again.results)

        await run(changed)

        assert len(client.calls) == 5

    def test_from_config(self):
        """Test creating a prober from configuration."""
        config = AnalyzerConfig()
        config.probe.max_concurrency = 3

        prober = SegmentProber.from_config(config, FakeClient())

        assert prober.max_concurrency == 3
        assert prober.timeout == config.probe.timeout
