"""
Staging of media resources before probing.

Given an identifier (URL or local path), staging yields a location the probe
client can read and removes any temporary copy afterwards.
"""

import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Optional
from urllib.parse import unquote, urlparse

import httpx

from ..playlist.loader import is_remote
from ..utils import InputError, StagingError, get_logger

logger = get_logger(__name__)


@dataclass
class StagedMedia:
    """A media resource ready for probing."""

    location: str
    filename: str
    size: int = 0
    local_path: Optional[Path] = None
    temporary: bool = False


def filename_from_url(url: str) -> str:
    """Get the last path component of a URL."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    return name or "media"


async def _remote_size(client: httpx.AsyncClient, url: str) -> int:
    try:
        response = await client.head(url)
    except httpx.HTTPError as e:
        logger.debug(f"HEAD {url} failed: {e}")
        return 0
    if response.is_error:
        return 0
    try:
        return int(response.headers.get("Content-Length", 0))
    except ValueError:
        return 0


async def _download(client: httpx.AsyncClient, url: str, destination: Path) -> int:
    size = 0
    try:
        async with client.stream("GET", url) as response:
            if response.is_error:
                raise StagingError(
                    f"Failed to download media: {response.status_code} {response.reason_phrase}",
                    uri=url,
                    status_code=response.status_code,
                )
            with open(destination, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)
                    size += len(chunk)
    except httpx.HTTPError as e:
        raise StagingError(f"Failed to download media: {e}", uri=url)
    return size


@asynccontextmanager
async def stage_media(
    identifier: str,
    download: bool = False,
    timeout: float = 60.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[StagedMedia]:
    """
    Stage a media resource for probing.

    Args:
        identifier: URL or local path
        download: Copy remote media to a temporary file first
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport (used by tests)

    Yields:
        StagedMedia

    Raises:
        InputError: If identifier is empty or a local file doesn't exist
        StagingError: If remote media cannot be downloaded
    """
    if not identifier:
        raise InputError("No filename or URL provided")

    if not is_remote(identifier):
        path = Path(identifier).expanduser()
        if not path.is_file():
            raise InputError(f"File not found: {path}")
        yield StagedMedia(
            location=str(path), filename=path.name, size=path.stat().st_size, local_path=path
        )
        return

    filename = filename_from_url(identifier)
    async with httpx.AsyncClient(
        timeout=timeout, follow_redirects=True, transport=transport
    ) as client:
        if not download:
            size = await _remote_size(client, identifier)
            yield StagedMedia(location=identifier, filename=filename, size=size)
            return

        suffix = PurePosixPath(filename).suffix
        fd, temp_name = tempfile.mkstemp(prefix="hls-analyzer-", suffix=suffix)
        os.close(fd)
        temp_path = Path(temp_name)
        try:
            logger.info(f"Downloading {identifier}")
            size = await _download(client, identifier, temp_path)
            yield StagedMedia(
                location=str(temp_path),
                filename=filename,
                size=size,
                local_path=temp_path,
                temporary=True,
            )
        finally:
            temp_path.unlink(missing_ok=True)
            logger.debug(f"Removed temporary file {temp_path}")
