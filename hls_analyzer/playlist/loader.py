"""
Manifest loading and URI resolution.

Manifests are fetched over HTTP with httpx (bounded retries with backoff on
transient failures) or read from the local filesystem. Relative URIs inside a
manifest are resolved against the manifest's own location; when the manifest
was fetched through a URL-rewriting proxy, they are resolved against the
original URL carried in the proxy's query string and re-wrapped in the proxy.
"""

import asyncio
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urljoin, urlparse

import httpx

from ..models import MasterPlaylist, MediaPlaylist, Playlist
from ..utils import InputError, ManifestError, get_logger
from .parser import ManifestParser

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = {
    408,  # Request Timeout
    409,  # Conflict
    425,  # Too Early
    429,  # Too Many Requests
    500,
    502,
    503,
    504,
}

DEFAULT_PROXY_PATH = "/api/hls-proxy"


def is_remote(uri: str) -> bool:
    """Check if a URI is an http(s) URL."""
    return urlparse(uri).scheme in ("http", "https")


def is_absolute(uri: str) -> bool:
    """Check if a URI carries its own scheme."""
    return urlparse(uri).scheme in ("http", "https", "file", "data")


def parse_retry_after(response: Optional[httpx.Response]) -> Optional[float]:
    """Parse a numeric Retry-After header in seconds."""
    if response is None:
        return None
    raw = (response.headers.get("Retry-After") or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def resolve_uri(
    uri: str,
    base: str,
    proxy_path: str = DEFAULT_PROXY_PATH,
    proxy_param: str = "url",
) -> str:
    """
    Resolve a playlist-relative URI.

    Args:
        uri: URI found in a manifest
        base: URI of the manifest itself (URL, proxy URL or local path)
        proxy_path: Path identifying a rewriting proxy
        proxy_param: Query parameter carrying the proxied URL

    Returns:
        Absolute URL, proxy URL or local path
    """
    if not uri or is_absolute(uri) or not base:
        return uri

    parsed_base = urlparse(base)
    if proxy_path and parsed_base.path.endswith(proxy_path):
        original = parse_qs(parsed_base.query).get(proxy_param, [None])[0]
        if original:
            resolved = urljoin(original, uri)
            prefix = base.split("?", 1)[0]
            return f"{prefix}?{proxy_param}={quote(resolved, safe='')}"

    if parsed_base.scheme in ("http", "https", "file"):
        return urljoin(base, uri)

    # Local filesystem path
    if uri.startswith("/"):
        return uri
    return str(Path(base).parent / uri)


def _local_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


class ManifestLoader:
    """
    Fetches and parses manifests.

    Remote manifests are fetched with an httpx AsyncClient. Failures with a
    retryable status code or a transport error are retried with exponential
    backoff (or the server's Retry-After) up to ``retries`` attempts.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        retries: int = 3,
        backoff: float = 1.0,
        proxy_path: str = DEFAULT_PROXY_PATH,
        proxy_param: str = "url",
        default_segment_duration: float = 6.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize manifest loader.

        Args:
            timeout: HTTP timeout in seconds
            retries: Number of attempts for retryable failures
            backoff: Base delay between attempts in seconds
            proxy_path: Path identifying a rewriting proxy
            proxy_param: Query parameter carrying the proxied URL
            default_segment_duration: Duration for implicit segments
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = max(0.0, backoff)
        self.proxy_path = proxy_path
        self.proxy_param = proxy_param
        self.parser = ManifestParser(default_segment_duration)
        self._transport = transport

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Create a loader from a ManifestConfig."""
        return cls(
            timeout=config.fetch_timeout,
            retries=config.retries,
            backoff=config.backoff,
            proxy_path=config.proxy_path,
            proxy_param=config.proxy_param,
            default_segment_duration=config.default_segment_duration,
            transport=transport,
        )

    def resolve(self, uri: str, base: str) -> str:
        """Resolve a manifest-relative URI against ``base``."""
        return resolve_uri(uri, base, self.proxy_path, self.proxy_param)

    async def fetch(self, uri: str) -> str:
        """
        Get raw manifest text.

        Args:
            uri: URL, file:// URI or local path

        Returns:
            Manifest text

        Raises:
            InputError: If uri is empty or a local file doesn't exist
            ManifestError: If the HTTP fetch fails
        """
        if not uri:
            raise InputError("Manifest URI is required")

        if not is_remote(uri):
            path = _local_path(uri)
            if not path.is_file():
                raise InputError(f"Manifest file not found: {path}")
            logger.debug(f"Reading manifest from {path}")
            return path.read_text(encoding="utf-8", errors="replace")

        return await self._fetch_remote(uri)

    async def _fetch_remote(self, url: str) -> str:
        last_error: Optional[Exception] = None

        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self._transport
        ) as client:
            for attempt in range(self.retries):
                try:
                    logger.debug(f"Fetching manifest {url} (attempt {attempt + 1})")
                    response = await client.get(url)
                    response.raise_for_status()
                    return response.text
                except httpx.HTTPStatusError as e:
                    last_error = e
                    status = e.response.status_code
                    if status not in RETRYABLE_STATUS_CODES or attempt >= self.retries - 1:
                        raise ManifestError(
                            f"Failed to fetch manifest: {status} {e.response.reason_phrase}",
                            uri=url,
                            status_code=status,
                        )
                    retry_after = parse_retry_after(e.response)
                    delay = retry_after if retry_after is not None else self.backoff * (2**attempt)
                except httpx.TransportError as e:
                    last_error = e
                    if attempt >= self.retries - 1:
                        break
                    delay = self.backoff * (2**attempt)

                logger.warning(f"Manifest fetch failed ({last_error}), retrying in {delay:.1f}s")
                if delay > 0:
                    await asyncio.sleep(delay)

        raise ManifestError(f"Failed to fetch manifest: {last_error}", uri=url)

    async def load(self, uri: str) -> Playlist:
        """
        Fetch and parse a manifest.

        Args:
            uri: URL, file:// URI or local path

        Returns:
            Parsed playlist with ``base_uri`` set to ``uri``
        """
        content = await self.fetch(uri)
        return self.parser.parse(content, base_uri=uri)

    async def load_media(self, uri: str, variant: Optional[int] = None) -> MediaPlaylist:
        """
        Load a media playlist, descending from a master playlist if needed.

        Args:
            uri: Manifest URI
            variant: Index of the quality level to follow (highest
                bandwidth when None)

        Returns:
            MediaPlaylist

        Raises:
            InputError: If the variant index is out of range
            ManifestError: If the master has no usable variant
        """
        playlist = await self.load(uri)
        if isinstance(playlist, MediaPlaylist):
            return playlist

        level = self._select_level(playlist, variant)
        media_uri = self.resolve(level.uri, uri)
        logger.info(f"Following variant {level.resolution} ({level.bandwidth} bps): {media_uri}")

        media = await self.load(media_uri)
        if not isinstance(media, MediaPlaylist):
            raise ManifestError(f"Variant is not a media playlist: {media_uri}", uri=media_uri)
        return media

    @staticmethod
    def _select_level(playlist: MasterPlaylist, variant: Optional[int]):
        if not playlist.quality_levels:
            raise ManifestError("Master playlist has no quality levels", uri=playlist.base_uri)
        if variant is None:
            return playlist.highest_bandwidth()
        if not 0 <= variant < len(playlist.quality_levels):
            raise InputError(
                f"Variant {variant} out of range (0-{len(playlist.quality_levels) - 1})"
            )
        return playlist.quality_levels[variant]
