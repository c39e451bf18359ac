"""
CLI interface for HLS Analyzer.

This module provides the command-line interface using Typer and Rich
for terminal output.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import AnalyzerConfig, ConfigManager, ProbeConfig, get_config_manager
from ..executor import CorruptionChecker, SegmentProber, SegmentRequest, requests_from_playlist
from ..inspector import create_probe_client
from ..playlist import ManifestLoader
from ..ui import AnalysisReporter, BatchProgress
from ..utils import AnalyzerError, ConfigurationError, InputError, get_logger, setup_logger

T = TypeVar("T")

# Initialize Typer app
app = typer.Typer(
    name="hls-analyzer",
    help="Analyze HLS manifests, probe media segments and detect file corruption",
    add_completion=False,
)

# Reports go to stdout, logs and errors to stderr
console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)

ConfigOption = typer.Option(
    None, "--config", "-c", exists=True, dir_okay=False, help="Custom configuration file"
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
LogFileOption = typer.Option(None, "--log", help="Log file path")
JsonOption = typer.Option(False, "--json", "-j", help="Print the report as JSON")
OutputOption = typer.Option(None, "--output", "-o", help="Write the JSON report to a file")
BackendOption = typer.Option(None, "--backend", "-b", help="Probe backend: service, local")
ServiceUrlOption = typer.Option(None, "--service-url", help="FFprobe service base URL")


def _setup_logging(verbose: bool, log_file: Optional[Path], json_output: bool) -> None:
    setup_logger(
        level="WARNING" if json_output and not verbose else "INFO",
        log_file=log_file,
        verbose=verbose,
        console=err_console,
    )


def _load_config(
    config_file: Optional[Path],
    backend: Optional[str] = None,
    service_url: Optional[str] = None,
) -> AnalyzerConfig:
    """Load configuration and apply command line overrides."""
    config = ConfigManager(config_file).load()

    overrides = {}
    if backend is not None:
        overrides["backend"] = backend
    if service_url is not None:
        overrides["service_url"] = service_url
    if overrides:
        try:
            config.probe = ProbeConfig(**{**config.probe.model_dump(), **overrides})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid probe option: {e}")
    return config


def _emit_json(data: dict, json_output: bool, output: Optional[Path]) -> None:
    text = json.dumps(data, indent=2, default=str)
    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
        err_console.print(f"[green]✓[/green] Report written to {escape(str(output))}")
    if json_output:
        typer.echo(text)


def _run(coro: Coroutine[Any, Any, T], verbose: bool) -> T:
    """Run a coroutine, turning failures into a one-line error and exit code 1."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]⚠ Cancelled by user[/yellow]")
        sys.exit(130)
    except AnalyzerError as e:
        err_console.print(f"[bold red]✗ Error:[/bold red] {escape(str(e))}")
        if verbose:
            err_console.print_exception()
        sys.exit(1)
    except Exception as e:
        err_console.print(f"[bold red]✗ Unexpected error:[/bold red] {escape(str(e))}")
        if verbose:
            err_console.print_exception()
        sys.exit(1)


def _configure(
    config_file: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    json_output: bool,
    backend: Optional[str] = None,
    service_url: Optional[str] = None,
) -> AnalyzerConfig:
    _setup_logging(verbose, log_file, json_output)
    try:
        return _load_config(config_file, backend, service_url)
    except AnalyzerError as e:
        err_console.print(f"[bold red]✗ Error:[/bold red] {escape(str(e))}")
        sys.exit(1)


@app.command("manifest")
def manifest_command(
    uri: str = typer.Argument(..., help="Manifest URL or local path"),
    json_output: bool = JsonOption,
    output: Optional[Path] = OutputOption,
    config_file: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
    log_file: Optional[Path] = LogFileOption,
) -> None:
    """
    Parse a manifest and display its quality levels or segments.
    """
    config = _configure(config_file, verbose, log_file, json_output)
    loader = ManifestLoader.from_config(config.manifest)

    playlist = _run(loader.load(uri), verbose)

    _emit_json(playlist.to_dict(), json_output, output)
    if not json_output:
        AnalysisReporter(console).display_playlist(playlist)


async def _load_requests(
    loader: ManifestLoader, manifest: str, variant: Optional[int], limit: Optional[int] = None
) -> list[SegmentRequest]:
    media = await loader.load_media(manifest, variant)
    return requests_from_playlist(media, loader.resolve, limit)


async def _probe_one(
    config: AnalyzerConfig,
    manifest: Optional[str],
    segment: Optional[int],
    url: Optional[str],
    variant: Optional[int],
    detailed: bool,
):
    if url:
        request = SegmentRequest(url=url)
    elif manifest is None or segment is None:
        raise InputError("Provide a manifest with --segment N, or a segment --url")
    else:
        loader = ManifestLoader.from_config(config.manifest)
        requests = await _load_requests(loader, manifest, variant)
        if not 0 <= segment < len(requests):
            raise InputError(f"Segment {segment} out of range (playlist has {len(requests)})")
        request = requests[segment]

    async with create_probe_client(config.probe) as client:
        prober = SegmentProber.from_config(config, client)
        return await prober.probe(request, detailed)


@app.command("probe")
def probe_command(
    manifest: Optional[str] = typer.Argument(None, help="Manifest URL or local path"),
    segment: Optional[int] = typer.Option(None, "--segment", "-s", help="Segment index"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Probe this segment URL"),
    variant: Optional[int] = typer.Option(
        None, "--variant", help="Quality level index (default: highest bandwidth)"
    ),
    detailed: bool = typer.Option(
        False, "--detailed", "-d", help="Collect frame and packet level data"
    ),
    backend: Optional[str] = BackendOption,
    service_url: Optional[str] = ServiceUrlOption,
    json_output: bool = JsonOption,
    output: Optional[Path] = OutputOption,
    config_file: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
    log_file: Optional[Path] = LogFileOption,
) -> None:
    """
    Probe a single segment and check it for HLS compliance.
    """
    config = _configure(config_file, verbose, log_file, json_output, backend, service_url)

    report = _run(_probe_one(config, manifest, segment, url, variant, detailed), verbose)

    _emit_json(report.to_dict(), json_output, output)
    if not json_output:
        AnalysisReporter(console).display_segment(report)


async def _probe_all(
    config: AnalyzerConfig,
    manifest: str,
    variant: Optional[int],
    limit: Optional[int],
    detailed: bool,
    show_progress: bool,
):
    loader = ManifestLoader.from_config(config.manifest)
    requests = await _load_requests(loader, manifest, variant, limit)
    if not requests:
        raise InputError("Playlist contains no segments")

    async with create_probe_client(config.probe) as client:
        prober = SegmentProber.from_config(config, client)
        with BatchProgress(len(requests), console=err_console, enabled=show_progress) as progress:
            return await prober.probe_batch(requests, detailed, progress.update)


@app.command("batch")
def batch_command(
    manifest: str = typer.Argument(..., help="Manifest URL or local path"),
    variant: Optional[int] = typer.Option(
        None, "--variant", help="Quality level index (default: highest bandwidth)"
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=1, help="Probe at most this many segments"
    ),
    detailed: bool = typer.Option(
        False, "--detailed", "-d", help="Collect frame and packet level data"
    ),
    backend: Optional[str] = BackendOption,
    service_url: Optional[str] = ServiceUrlOption,
    json_output: bool = JsonOption,
    output: Optional[Path] = OutputOption,
    config_file: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
    log_file: Optional[Path] = LogFileOption,
) -> None:
    """
    Probe every segment of a playlist and aggregate the results.

    Per-segment failures are reported in the results; they do not fail the
    command.
    """
    config = _configure(config_file, verbose, log_file, json_output, backend, service_url)

    report = _run(
        _probe_all(config, manifest, variant, limit, detailed, show_progress=not json_output),
        verbose,
    )

    _emit_json(report.to_dict(), json_output, output)
    if not json_output:
        AnalysisReporter(console).display_batch(report)


async def _check_file(config: AnalyzerConfig, target: str, download: bool):
    async with create_probe_client(config.probe) as client:
        checker = CorruptionChecker.from_config(config, client, download=download)
        return await checker.check(target)


@app.command("check")
def check_command(
    target: str = typer.Argument(..., help="Media file path or URL"),
    download: bool = typer.Option(
        False, "--download", help="Download remote media before probing"
    ),
    backend: Optional[str] = BackendOption,
    service_url: Optional[str] = ServiceUrlOption,
    json_output: bool = JsonOption,
    output: Optional[Path] = OutputOption,
    config_file: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
    log_file: Optional[Path] = LogFileOption,
) -> None:
    """
    Check a media file for corruption and suggest ffmpeg fixes.
    """
    config = _configure(config_file, verbose, log_file, json_output, backend, service_url)

    report = _run(_check_file(config, target, download), verbose)

    _emit_json(report.to_dict(), json_output, output)
    if not json_output:
        AnalysisReporter(console).display_corruption(report)


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="Action: init, show"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for 'init' action",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """
    Manage configuration files.

    Actions:
    - init: Create a default configuration file
    - show: Display current configuration
    """
    if action == "init":
        config_manager = get_config_manager()
        output_path = output or Path(".hls-analyzer.yaml")

        try:
            config_manager.init_default_config(output_path, force=force)
            console.print(f"[green]✓[/green] Created config file: {output_path}")
        except ConfigurationError as e:
            console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
            sys.exit(1)

    elif action == "show":
        try:
            config = get_config_manager().config
        except ConfigurationError as e:
            console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
            sys.exit(1)

        console.print()
        console.print(Panel("[bold cyan]Current Configuration[/bold cyan]", border_style="cyan"))
        console.print()

        for section, values in config.model_dump().items():
            table = Table(title=f"{section.title()} Settings", show_header=True)
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="white")
            for key, value in values.items():
                shown = ", ".join(value) if isinstance(value, list) else str(value)
                table.add_row(key, escape(shown))
            console.print(table)
            console.print()

    else:
        console.print(f"[red]✗ Unknown action:[/red] {escape(action)}")
        console.print("Valid actions: init, show")
        sys.exit(1)


@app.command("version")
def version_command() -> None:
    """
    Display version information.
    """
    from .. import __version__

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]HLS Analyzer[/bold cyan]\n"
            f"[dim]Version {__version__}[/dim]\n"
            f"[dim]Manifests • Segments • Corruption[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def main() -> None:
    """
    Main entry point for CLI.
    """
    app()


if __name__ == "__main__":
    main()
