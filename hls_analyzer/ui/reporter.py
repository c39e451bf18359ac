"""
Console reporting for analysis results.

This module provides rich console output for playlists, segment analyses,
batch probe reports and corruption reports.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import (
    BatchProbeReport,
    CorruptionReport,
    MasterPlaylist,
    MediaPlaylist,
    Playlist,
    SegmentAnalysis,
    SegmentProbeReport,
    Severity,
)
from ..utils import format_bitrate, format_duration, format_size, get_logger

logger = get_logger(__name__)

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

# Segments listed before the table is truncated
MAX_SEGMENT_ROWS = 20


def _status(ok: bool, good: str = "✓ Yes", bad: str = "✗ No") -> Text:
    return Text(good, style="green") if ok else Text(bad, style="red")


def _or_na(value: object) -> str:
    return "N/A" if value is None or value == "" else escape(str(value))


class AnalysisReporter:
    """
    Reporter for displaying analysis results.

    This class creates formatted console output for:
    - Master and media playlists
    - Single segment analyses with HLS compliance
    - Batch probes with cross-segment consistency
    - Corruption reports with suggested fixes
    """

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize analysis reporter.

        Args:
            console: Rich console instance (creates new if not provided)
        """
        self.console = console or Console()

    def display_playlist(self, playlist: Playlist) -> None:
        """
        Display a parsed playlist.

        Args:
            playlist: Master or media playlist
        """
        if isinstance(playlist, MasterPlaylist):
            self._display_master(playlist)
        else:
            self._display_media(playlist)

    def _display_master(self, playlist: MasterPlaylist) -> None:
        table = Table(title="Quality Levels", show_header=True)
        table.add_column("#", style="cyan", width=4)
        table.add_column("Resolution", style="yellow", width=12)
        table.add_column("Bandwidth", style="green", width=14)
        table.add_column("Codecs", style="magenta")
        table.add_column("URI", style="white")

        for index, level in enumerate(playlist.quality_levels):
            table.add_row(
                str(index),
                level.resolution,
                format_bitrate(level.bandwidth),
                _or_na(level.codecs),
                escape(level.uri),
            )

        self.console.print()
        self.console.rule("[bold cyan]Master Playlist", style="cyan")
        self.console.print(table)
        self.console.print()

    def _display_media(self, playlist: MediaPlaylist) -> None:
        overview = Table(title="Media Playlist", show_header=False, box=None)
        overview.add_column("Field", style="cyan", width=24)
        overview.add_column("Value", style="white")

        overview.add_row("Version", str(playlist.version))
        overview.add_row("Target Duration", f"{playlist.target_duration:g}s")
        overview.add_row("Media Sequence", str(playlist.media_sequence))
        overview.add_row("Playlist Type", _or_na(playlist.playlist_type))
        overview.add_row("Ended", _status(playlist.ended))
        overview.add_row("Segments", str(playlist.segment_count))
        overview.add_row("Total Duration", format_duration(playlist.total_duration))
        overview.add_row("Init Segment", _or_na(playlist.init_segment_uri))
        overview.add_row("Byte Ranges", _status(playlist.uses_byte_ranges))

        segments = Table(title="Segments", show_header=True)
        segments.add_column("#", style="cyan", width=6)
        segments.add_column("Duration", style="green", width=10)
        segments.add_column("Byte Range", style="yellow", width=22)
        segments.add_column("URI", style="white")

        for segment in playlist.segments[:MAX_SEGMENT_ROWS]:
            byte_range = segment.byte_range
            segments.add_row(
                str(segment.index),
                f"{segment.duration:.3f}s",
                f"{byte_range.length}@{byte_range.offset}" if byte_range else "-",
                escape(segment.uri),
            )

        self.console.print()
        self.console.print(overview)
        self.console.print()
        if playlist.segments:
            self.console.print(segments)
            hidden = playlist.segment_count - MAX_SEGMENT_ROWS
            if hidden > 0:
                self.console.print(f"[dim]... {hidden} more segment(s)[/dim]")
            self.console.print()

    def display_segment(self, report: SegmentProbeReport) -> None:
        """
        Display a single segment analysis.

        Args:
            report: Segment probe report
        """
        self.console.print()
        self.console.rule(f"[bold cyan]Segment: {escape(report.segment_url)}", style="cyan")
        if report.cached:
            self.console.print("[dim]Result served from cache[/dim]")
        self.console.print()
        self._display_analysis(report.analysis)

    def _display_analysis(self, analysis: SegmentAnalysis) -> None:
        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan", width=24)
        table.add_column("Value", style="white")

        fmt = analysis.format
        table.add_row("Container", _or_na(fmt.format_name))
        table.add_row("Duration", f"{fmt.duration:.3f}s")
        table.add_row("Size", format_size(fmt.size))
        table.add_row("Bitrate", format_bitrate(fmt.bit_rate))
        table.add_row("Fragmented MP4", _status(fmt.is_fmp4))

        video = analysis.video
        if video is not None:
            table.add_row("Video Codec", f"{_or_na(video.codec_name)} ({_or_na(video.profile)})")
            table.add_row("Resolution", _or_na(video.resolution))
            table.add_row("Frame Rate", f"{video.fps:.2f} fps")
            if video.gop_size is not None:
                table.add_row("GOP Size", f"{video.gop_size:.1f} frames")
        else:
            table.add_row("Video", Text("none", style="dim"))

        audio = analysis.audio
        if audio is not None:
            table.add_row("Audio Codec", _or_na(audio.codec_name))
            table.add_row("Sample Rate", f"{_or_na(audio.sample_rate)} Hz")
            table.add_row("Channels", f"{_or_na(audio.channels)} ({_or_na(audio.channel_layout)})")
        else:
            table.add_row("Audio", Text("none", style="dim"))

        frames = analysis.frames
        if not frames.estimated:
            table.add_row("Frames", f"{frames.total} ({frames.key_frames} key)")
        self.console.print(table)
        self.console.print()

        self._display_compliance(analysis)

    def _display_compliance(self, analysis: SegmentAnalysis) -> None:
        hls = analysis.hls
        title = "HLS Compliance: " + ("COMPLIANT" if hls.compliant else "NON-COMPLIANT")
        style = "green" if hls.compliant else "red"

        details: list[Text] = []
        for issue in hls.violations:
            details.append(Text(f"  ✗ {issue}", style="red"))
        for issue in hls.advisories:
            details.append(Text(f"  • {issue}", style="yellow"))

        if hls.recommendations:
            details.append(Text())
            details.append(Text("Recommendations:", style="bold"))
            for recommendation in hls.recommendations:
                details.append(Text(f"  → {recommendation}"))

        if hls.specs:
            details.append(Text())
            for spec in hls.specs:
                details.append(Text(f"  RFC 8216 §{spec.section} {spec.description}", style="dim"))

        if not details:
            details.append(Text("No compliance issues detected.", style="green"))

        self.console.print(Panel(Text("\n").join(details), title=title, border_style=style))
        self.console.print()

    def display_batch(self, report: BatchProbeReport) -> None:
        """
        Display a batch probe report.

        Args:
            report: Batch probe report
        """
        table = Table(title="Segment Results", show_header=True)
        table.add_column("#", style="cyan", width=5)
        table.add_column("Status", width=8)
        table.add_column("Duration", style="green", width=10)
        table.add_column("Bitrate", style="yellow", width=12)
        table.add_column("Compliant", width=10)
        table.add_column("URL / Error", style="white")

        for index, result in enumerate(report.results):
            analysis = result.analysis
            if result.success and analysis is not None:
                table.add_row(
                    str(index),
                    Text("✓ OK", style="green"),
                    f"{analysis.format.duration:.3f}s",
                    format_bitrate(analysis.format.bit_rate),
                    _status(analysis.hls.compliant),
                    escape(result.url),
                )
            else:
                table.add_row(
                    str(index),
                    Text("✗ FAIL", style="red"),
                    "-",
                    "-",
                    "-",
                    Text(f"{result.url}\n{result.error}", style="red"),
                )

        self.console.print()
        self.console.print(table)
        self.console.print(
            f"[bold]{len(report.succeeded)}/{len(report.results)}[/bold] segments probed "
            f"in {report.total_duration:.2f}s ({report.success_rate:.1f}%)"
        )
        self.console.print()

        if report.aggregate is not None:
            self._display_aggregate(report)

    def _display_aggregate(self, report: BatchProbeReport) -> None:
        aggregate = report.aggregate
        if aggregate is None:
            return

        table = Table(title="Consistency", show_header=True)
        table.add_column("Metric", style="cyan", width=10)
        table.add_column("Min", width=12)
        table.add_column("Max", width=12)
        table.add_column("Avg", width=12)
        table.add_column("Std Dev", width=12)
        table.add_column("Consistent", width=10)

        d = aggregate.duration
        table.add_row(
            "Duration",
            f"{d.min:.3f}s",
            f"{d.max:.3f}s",
            f"{d.avg:.3f}s",
            f"{d.stddev:.3f}s",
            _status(d.consistent),
        )
        b = aggregate.bitrate
        table.add_row(
            "Bitrate",
            format_bitrate(int(b.min)),
            format_bitrate(int(b.max)),
            format_bitrate(int(b.avg)),
            format_bitrate(int(b.stddev)),
            _status(b.consistent),
        )
        self.console.print(table)
        self.console.print()

        summary = Table(show_header=False, box=None)
        summary.add_column("Metric", style="cyan", width=24)
        summary.add_column("Value", style="white")
        summary.add_row("Resolutions", ", ".join(aggregate.resolutions) or "N/A")
        summary.add_row("Video Codecs", ", ".join(aggregate.video_codecs) or "N/A")
        summary.add_row("Audio Codecs", ", ".join(aggregate.audio_codecs) or "N/A")
        summary.add_row(
            "Non-compliant Segments",
            f"{aggregate.non_compliant_segments}/{aggregate.total_segments}",
        )
        if aggregate.avg_keyframe_interval:
            summary.add_row("Keyframe Interval", f"{aggregate.avg_keyframe_interval:.2f}s")
        summary.add_row("Issues", str(aggregate.issues_total))
        for kind, count in sorted(aggregate.issues_by_type.items(), key=lambda kv: -kv[1]):
            summary.add_row(f"  {kind}", str(count))
        self.console.print(summary)
        self.console.print()

        if aggregate.recommendations:
            lines = [Text(f"→ {rec}") for rec in aggregate.recommendations]
            self.console.print(
                Panel(Text("\n").join(lines), title="Recommendations", border_style="cyan")
            )
            self.console.print()

    def display_corruption(self, report: CorruptionReport) -> None:
        """
        Display a corruption report.

        Args:
            report: Corruption report
        """
        metadata = report.metadata

        table = Table(title=escape(report.filename), show_header=False, box=None)
        table.add_column("Metric", style="cyan", width=24)
        table.add_column("Value", style="white")
        table.add_row("Container", metadata.format)
        table.add_row("Size", format_size(report.file_size))
        if metadata.duration is not None:
            table.add_row("Duration", format_duration(metadata.duration))
        if metadata.bitrate:
            table.add_row("Bitrate", format_bitrate(metadata.bitrate))
        if metadata.has_video:
            table.add_row(
                "Video",
                f"{_or_na(metadata.video_codec)} {_or_na(metadata.resolution)} "
                f"@ {metadata.fps:.2f} fps",
            )
        if metadata.has_audio:
            table.add_row(
                "Audio",
                f"{_or_na(metadata.audio_codec)} {_or_na(metadata.sample_rate)} Hz, "
                f"{_or_na(metadata.channels)} ch",
            )

        self.console.print()
        self.console.print(table)
        self.console.print()

        if not report.issues:
            self.display_success("No corruption issues detected")
            return

        for issue in report.issues:
            style = SEVERITY_STYLES.get(issue.severity, "white")
            body = Text()
            body.append(f"{issue.description}\n")
            body.append(f"Detected: {issue.detection}\n", style="dim")
            if issue.explanation:
                body.append(f"{issue.explanation}\n")
            if issue.fix_command:
                body.append(f"\n$ {issue.fix_command}", style="green")
            self.console.print(
                Panel(
                    body,
                    title=f"[{style}]{issue.severity.value.upper()}[/] {issue.type}",
                    border_style=style.split()[-1],
                )
            )
        self.console.print()

    def display_error(self, message: str, error: Optional[Exception] = None) -> None:
        """
        Display error message.

        Args:
            message: Error message
            error: Optional exception object
        """
        error_text = Text(f"✗ {message}", style="bold red")

        if error:
            error_text.append(Text(f"\n{error}", style="red"))

        panel = Panel(error_text, title="Error", border_style="red")
        self.console.print()
        self.console.print(panel)
        self.console.print()

    def display_success(self, message: str) -> None:
        """
        Display success message.

        Args:
            message: Success message
        """
        success_text = Text(f"✓ {message}", style="bold green")
        panel = Panel(success_text, title="Success", border_style="green")
        self.console.print()
        self.console.print(panel)
        self.console.print()

    def display_info(self, message: str) -> None:
        """
        Display info message.

        Args:
            message: Info message
        """
        self.console.print(Text(f"ℹ {message}", style="cyan"))
