"""
Concurrent probing of HLS segments.

This module probes single segments and batches of segments with bounded
concurrency, a per-probe timeout and per-item error isolation, then feeds the
successful analyses to the aggregator.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..aggregator import aggregate
from ..inspector import ProbeCache, ProbeClient, SegmentAnalyzer
from ..models import (
    BatchItemResult,
    BatchProbeReport,
    ByteRange,
    MediaPlaylist,
    SegmentProbeReport,
)
from ..playlist.loader import resolve_uri
from ..utils import ProbeTimeoutError, get_logger
from ..validator.compliance import ComplianceThresholds

logger = get_logger(__name__)


@dataclass(frozen=True)
class SegmentRequest:
    """Everything needed to probe one segment."""

    url: str
    byte_range: Optional[ByteRange] = None
    duration: Optional[float] = None
    init_url: Optional[str] = None
    target_duration: float = 0.0
    cache_key: Optional[tuple[int, str]] = None


def requests_from_playlist(
    playlist: MediaPlaylist,
    resolve: Optional[Callable[[str, str], str]] = None,
    limit: Optional[int] = None,
) -> list[SegmentRequest]:
    """
    Build probe requests for the segments of a media playlist.

    Every request carries its EXTINF duration, which takes precedence over
    the probed duration and drives the target duration check.

    Args:
        playlist: Parsed media playlist
        resolve: Function resolving (uri, base) to an absolute URI
        limit: Maximum number of segments

    Returns:
        One SegmentRequest per segment, in playlist order
    """
    resolve = resolve or resolve_uri
    base = playlist.base_uri
    init_url = resolve(playlist.init_segment_uri, base) if playlist.init_segment_uri else None

    segments = playlist.segments if limit is None else playlist.segments[:limit]
    return [
        SegmentRequest(
            url=resolve(segment.uri, base),
            byte_range=segment.byte_range,
            duration=segment.duration,
            init_url=init_url,
            target_duration=playlist.target_duration,
            cache_key=segment.cache_key,
        )
        for segment in segments
    ]


class SegmentProber:
    """
    Probes segments through a ProbeClient.

    Batch probes run concurrently, bounded by a semaphore. A failure of one
    segment never affects the others and results keep request order.
    """

    def __init__(
        self,
        client: ProbeClient,
        analyzer: Optional[SegmentAnalyzer] = None,
        cache: Optional[ProbeCache] = None,
        max_concurrency: int = 8,
        timeout: float = 30.0,
        duration_threshold: float = 0.10,
        bitrate_threshold: float = 0.20,
    ):
        """
        Initialize segment prober.

        Args:
            client: Probe backend
            analyzer: Segment analyzer (default thresholds when None)
            cache: Optional probe cache owned by the caller
            max_concurrency: Maximum simultaneous probes
            timeout: Per-probe timeout in seconds
            duration_threshold: Duration spread allowed by the aggregate
            bitrate_threshold: Bitrate spread allowed by the aggregate
        """
        self.client = client
        self.analyzer = analyzer or SegmentAnalyzer()
        self.cache = cache
        self.max_concurrency = max(1, max_concurrency)
        self.timeout = timeout
        self.duration_threshold = duration_threshold
        self.bitrate_threshold = bitrate_threshold

        logger.debug(
            f"Initialized SegmentProber: backend={client.name}, "
            f"concurrency={self.max_concurrency}, timeout={timeout}s"
        )

    @classmethod
    def from_config(
        cls, config, client: ProbeClient, cache: Optional[ProbeCache] = None
    ) -> "SegmentProber":
        """Create a prober from an AnalyzerConfig."""
        return cls(
            client=client,
            analyzer=SegmentAnalyzer(ComplianceThresholds.from_config(config.compliance)),
            cache=cache,
            max_concurrency=config.probe.max_concurrency,
            timeout=config.probe.timeout,
            duration_threshold=config.aggregation.duration_threshold,
            bitrate_threshold=config.aggregation.bitrate_threshold,
        )

    async def probe(self, request: SegmentRequest, detailed: bool = False) -> SegmentProbeReport:
        """
        Probe and analyze one segment.

        Args:
            request: Segment to probe
            detailed: Collect frame and packet level data

        Returns:
            SegmentProbeReport

        Raises:
            ProbeError: If the probe fails or times out
        """
        if self.cache is not None and request.cache_key is not None:
            cached = self.cache.get(request.cache_key, detailed)
            if cached is not None:
                logger.debug(f"Cache hit for segment {request.cache_key[0]}")
                return SegmentProbeReport(
                    segment_url=cached.segment_url,
                    probe=cached.probe,
                    analysis=cached.analysis,
                    cached=True,
                )

        try:
            response = await asyncio.wait_for(
                self.client.probe(request.url, request.init_url, detailed),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise ProbeTimeoutError(
                f"Probe timed out after {self.timeout:.0f}s: {request.url}", timeout=self.timeout
            )

        analysis = self.analyzer.analyze(
            response.result,
            detailed=detailed,
            byte_range=request.byte_range,
            duration=request.duration,
            target_duration=request.target_duration,
        )
        report = SegmentProbeReport(
            segment_url=request.url, probe=response.result, analysis=analysis
        )

        if self.cache is not None and request.cache_key is not None:
            self.cache.put(request.cache_key, report)
        return report

    async def probe_batch(
        self,
        requests: list[SegmentRequest],
        detailed: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> BatchProbeReport:
        """
        Probe many segments concurrently and aggregate the results.

        Args:
            requests: Segments to probe
            detailed: Collect frame and packet level data
            progress_callback: Callback with (completed, total) counts

        Returns:
            BatchProbeReport with one result per request, in request order
        """
        start_time = time.time()
        total = len(requests)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        completed = 0

        logger.info(f"Starting batch probe of {total} segment(s)")

        async def run(request: SegmentRequest) -> BatchItemResult:
            nonlocal completed
            async with semaphore:
                item_start = time.time()
                try:
                    report = await self.probe(request, detailed)
                    result = BatchItemResult(
                        url=request.url,
                        success=True,
                        report=report,
                        duration=time.time() - item_start,
                    )
                except Exception as e:
                    logger.warning(f"Segment probe failed for {request.url}: {e}")
                    result = BatchItemResult(
                        url=request.url,
                        success=False,
                        error=str(e),
                        duration=time.time() - item_start,
                    )

            completed += 1
            if progress_callback:
                progress_callback(completed, total)
            return result

        results = list(await asyncio.gather(*(run(request) for request in requests)))

        analyses = [r.analysis for r in results if r.success and r.analysis is not None]
        report = BatchProbeReport(
            results=results,
            aggregate=aggregate(analyses, self.duration_threshold, self.bitrate_threshold),
            total_duration=time.time() - start_time,
        )

        logger.info(
            f"Batch probe complete: {len(report.succeeded)}/{total} segments succeeded "
            f"in {report.total_duration:.2f}s (success rate: {report.success_rate:.1f}%)"
        )
        return report
