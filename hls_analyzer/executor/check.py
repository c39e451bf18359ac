"""
Whole-file corruption checks.

Stages a media file, probes it with diagnostics enabled, optionally runs a
second decode pass to collect error output, and hands everything to the
corruption heuristics.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..inspector import ProbeClient, ProbeResponse, StagedMedia, stage_media
from ..models import CorruptionReport
from ..utils import ProbeError, get_logger, log_performance
from ..validator.corruption import CorruptionThresholds, analyze_corruption

logger = get_logger(__name__)


class CorruptionChecker:
    """Runs corruption checks for files and URLs."""

    def __init__(
        self,
        client: ProbeClient,
        thresholds: Optional[CorruptionThresholds] = None,
        error_scan: bool = True,
        download: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize corruption checker.

        Args:
            client: Probe backend
            thresholds: Structural rule limits (defaults when None)
            error_scan: Run a decode pass when the probe returned no diagnostics
            download: Download remote media to a temporary file before probing
            transport: Optional httpx transport used for staging (tests)
        """
        self.client = client
        self.thresholds = thresholds or CorruptionThresholds()
        self.error_scan = error_scan
        self.download = download
        self._transport = transport

    @classmethod
    def from_config(cls, config, client: ProbeClient, download: bool = False):
        """Create a checker from an AnalyzerConfig."""
        return cls(
            client=client,
            thresholds=CorruptionThresholds.from_config(config.corruption),
            error_scan=config.corruption.error_scan,
            download=download,
        )

    @log_performance()
    async def check(self, identifier: str) -> CorruptionReport:
        """
        Check one media file for corruption.

        Args:
            identifier: URL or local path

        Returns:
            CorruptionReport

        Raises:
            InputError: If identifier is empty or a local file doesn't exist
            ProbeError: If the probe itself fails
        """
        async with stage_media(
            identifier, download=self.download, transport=self._transport
        ) as media:
            logger.info(f"Checking {media.filename} for corruption")
            response = await self._probe(media)

            diagnostic_text = response.stderr
            if not diagnostic_text.strip() and self.error_scan and self._can_diagnose(media):
                diagnostic_text = await self._scan_errors(media.location)

            analysis = analyze_corruption(
                response.result,
                diagnostic_text=diagnostic_text,
                file_size=media.size or response.result.format.size or 0,
                filename=media.filename,
                thresholds=self.thresholds,
            )

        report = CorruptionReport(
            video_id=str(uuid.uuid4()),
            filename=media.filename,
            file_size=analysis.metadata.file_size,
            analysis=analysis,
            analyzed_at=datetime.now(timezone.utc).isoformat(),
            probe_output=response.result.raw,
            diagnostic_text=diagnostic_text,
        )
        logger.info(f"Found {len(report.issues)} issue(s) in {media.filename}")
        return report

    async def _probe(self, media: StagedMedia) -> ProbeResponse:
        if media.local_path is not None:
            return await self.client.probe_file(media.local_path)
        return await self.client.probe(media.location, include_stderr=True)

    def _can_diagnose(self, media: StagedMedia) -> bool:
        return media.local_path is None or self.client.reads_local_files

    async def _scan_errors(self, location: str) -> str:
        try:
            return await self.client.diagnose(location)
        except ProbeError as e:
            logger.warning(f"Error detection scan failed: {e}")
            return ""
