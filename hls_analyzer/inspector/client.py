"""
Media inspection backends.

The analyzer never decodes media itself. It asks ffprobe, either through a
remote ffprobe HTTP service or by running a local ffprobe binary, and treats
the answer as opaque structured data plus diagnostic text.
"""

import asyncio
import base64
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import httpx

from ..models import ProbeResult
from ..utils import (
    ConfigurationError,
    FFprobeError,
    ProbeServiceError,
    ProbeTimeoutError,
    get_logger,
    log_performance,
)

logger = get_logger(__name__)

SERVICE_NOT_CONFIGURED = (
    "FFprobe service URL not configured. Please set FFPROBE_SERVICE_URL environment variable."
)


@dataclass
class ProbeResponse:
    """Probe data plus whatever diagnostic text the tool produced."""

    result: ProbeResult
    stderr: str = ""


def decode_command(url: str) -> list[str]:
    """Arguments of an ffmpeg decode pass that only reports errors."""
    return ["-v", "error", "-i", url, "-f", "null", "-"]


class ProbeClient(ABC):
    """Interface to the media inspection tool."""

    name = "probe"
    # Whether local paths can be passed to probe() and diagnose() directly
    reads_local_files = True

    @abstractmethod
    async def probe(
        self,
        url: str,
        init_url: Optional[str] = None,
        detailed: bool = False,
        include_stderr: bool = False,
    ) -> ProbeResponse:
        """
        Inspect one media resource.

        Args:
            url: URL or local path of the resource
            init_url: Initialization segment for fragmented MP4
            detailed: Collect frame and packet level data
            include_stderr: Return the tool's diagnostic output

        Returns:
            ProbeResponse

        Raises:
            ProbeError: If the tool fails or cannot be reached
        """

    @abstractmethod
    async def diagnose(self, url: str) -> str:
        """
        Run a full decode pass and return the error output.

        Args:
            url: URL or local path of the resource

        Returns:
            Diagnostic text (empty when the decode was clean)
        """

    async def probe_file(self, path: Path) -> ProbeResponse:
        """Inspect a local file, returning diagnostics."""
        return await self.probe(str(path), include_stderr=True)

    async def aclose(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> "ProbeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class HttpProbeClient(ProbeClient):
    """
    Client for a remote ffprobe HTTP service.

    The service accepts ``POST {service_url}/probe`` with
    ``{url, initUrl?, detailed, includeStderr?}`` and answers
    ``{success, data, stderr?, error?}``. A request carrying
    ``{customCommand, command, args}`` runs an arbitrary ffmpeg invocation, and
    raw file bytes can be posted base64-encoded to the service root.
    """

    name = "service"
    reads_local_files = False

    def __init__(
        self,
        service_url: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize service client.

        Args:
            service_url: Base URL of the service (None when not configured)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.service_url = service_url.rstrip("/") if service_url else None
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, payload: dict) -> dict:
        if not self.service_url:
            raise ConfigurationError(SERVICE_NOT_CONFIGURED)

        endpoint = f"{self.service_url}{path}"
        logger.debug(f"POST {endpoint}")
        try:
            response = await self._get_client().post(endpoint, json=payload)
        except httpx.TimeoutException:
            raise ProbeTimeoutError(
                f"FFprobe service timed out after {self.timeout:.0f}s", timeout=self.timeout
            )
        except httpx.TransportError as e:
            raise ProbeServiceError(f"FFprobe service unreachable: {e}")

        if response.is_error:
            raise ProbeServiceError(
                f"FFprobe service error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProbeServiceError(f"FFprobe service returned invalid JSON: {e}")
        if not isinstance(body, dict):
            raise ProbeServiceError("FFprobe service returned an unexpected payload")
        return body

    @log_performance()
    async def probe(
        self,
        url: str,
        init_url: Optional[str] = None,
        detailed: bool = False,
        include_stderr: bool = False,
    ) -> ProbeResponse:
        payload: dict[str, Any] = {"url": url, "detailed": detailed}
        if init_url:
            payload["initUrl"] = init_url
        if include_stderr:
            payload["includeStderr"] = True

        logger.info(f"Probing {url}")
        body = await self._post("/probe", payload)
        if not body.get("success"):
            raise ProbeServiceError(str(body.get("error") or "FFprobe service failed"))

        return ProbeResponse(
            result=ProbeResult.from_dict(body.get("data")),
            stderr=str(body.get("stderr") or ""),
        )

    async def diagnose(self, url: str) -> str:
        body = await self._post(
            "/probe",
            {"url": url, "customCommand": True, "command": "ffmpeg", "args": decode_command(url)},
        )
        return str(body.get("stderr") or "")

    async def probe_file(self, path: Path) -> ProbeResponse:
        """Upload a local file to the service and inspect it."""
        logger.info(f"Uploading {path.name} to FFprobe service")
        payload = {
            "data": base64.b64encode(path.read_bytes()).decode("ascii"),
            "filename": path.name,
            "options": ["-v", "error", "-show_format", "-show_streams", "-print_format", "json"],
        }
        body = await self._post("", payload)

        # The upload endpoint may answer with bare ffprobe JSON
        if "success" in body:
            if not body.get("success"):
                raise ProbeServiceError(str(body.get("error") or "FFprobe service failed"))
            data = body.get("data")
        else:
            data = body
        return ProbeResponse(result=ProbeResult.from_dict(data), stderr=str(body.get("stderr") or ""))


class FFprobeClient(ProbeClient):
    """Runs a local ffprobe (and ffmpeg for diagnostics) as subprocesses."""

    name = "local"

    def __init__(
        self,
        ffprobe_path: str = "ffprobe",
        ffmpeg_path: str = "ffmpeg",
        timeout: float = 30.0,
    ):
        """
        Initialize local client.

        Args:
            ffprobe_path: Path to ffprobe executable
            ffmpeg_path: Path to ffmpeg executable
            timeout: Per-command timeout in seconds
        """
        self._ffprobe_path = ffprobe_path
        self._ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def build_command(
        self,
        url: str,
        init_url: Optional[str] = None,
        detailed: bool = False,
        include_stderr: bool = False,
    ) -> list[str]:
        """
        Build the ffprobe command line.

        Init segments are prepended with the concat protocol so fragmented MP4
        media segments can be parsed.
        """
        target = f"concat:{init_url}|{url}" if init_url else url
        command = [
            self._ffprobe_path,
            "-v",
            "error" if include_stderr else "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
        ]
        if detailed:
            command += [
                "-count_frames",
                "-count_packets",
                "-show_frames",
                "-show_packets",
                "-read_intervals",
                "%+2",
            ]
        else:
            command += ["-show_programs", "-show_chapters"]
        command.append(target)
        return command

    async def _run(self, command: list[str]) -> tuple[int, str, str]:
        logger.debug(f"Running: {' '.join(command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise FFprobeError(f"Executable not found: {command[0]}", command=command)

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ProbeTimeoutError(
                f"{Path(command[0]).name} timed out after {self.timeout:.0f}s", timeout=self.timeout
            )

        return (
            process.returncode if process.returncode is not None else -1,
            stdout.decode(errors="replace") if stdout else "",
            stderr.decode(errors="replace") if stderr else "",
        )

    @log_performance()
    async def probe(
        self,
        url: str,
        init_url: Optional[str] = None,
        detailed: bool = False,
        include_stderr: bool = False,
    ) -> ProbeResponse:
        command = self.build_command(url, init_url, detailed, include_stderr)
        logger.info(f"Probing {url}")
        returncode, stdout, stderr = await self._run(command)

        try:
            data = json.loads(stdout) if stdout.strip() else {}
        except json.JSONDecodeError as e:
            raise FFprobeError(f"Failed to parse FFprobe output: {e}", command, stderr)

        if returncode != 0:
            # Broken files still yield useful diagnostics when they were asked for
            if include_stderr:
                logger.warning(f"FFprobe exited with code {returncode} for {url}")
                return ProbeResponse(result=ProbeResult.from_dict(data), stderr=stderr)
            raise FFprobeError(
                f"FFprobe failed with code {returncode}: {stderr.strip() or 'Unknown error'}",
                command,
                stderr,
            )

        return ProbeResponse(result=ProbeResult.from_dict(data), stderr=stderr)

    async def diagnose(self, url: str) -> str:
        _, _, stderr = await self._run([self._ffmpeg_path, *decode_command(url)])
        return stderr


def create_probe_client(config, transport: Optional[httpx.AsyncBaseTransport] = None) -> ProbeClient:
    """
    Create the probe client selected by a ProbeConfig.

    Args:
        config: ProbeConfig
        transport: Optional httpx transport for the service client

    Returns:
        HttpProbeClient or FFprobeClient
    """
    if config.backend == "local":
        return FFprobeClient(config.ffprobe_path, config.ffmpeg_path, config.timeout)
    return HttpProbeClient(config.service_url, config.timeout, transport=transport)
