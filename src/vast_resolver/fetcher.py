"""
VAST Document Fetcher

Retrieves a URL into a parsed VastDocument. Supports ``http``/``https``
through a pooled httpx client and ``file://`` (or bare paths) from disk.
Every failure is returned as ``FetchResult.error``; ``fetch`` never raises.
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import httpx

from .config import VastParserConfig, VastResolverConfig
from .document import VastDocument, parse_document
from .events import VastEvents
from .exceptions import VastException, VastFetchError, VastFetchTimeoutError
from .http_client_manager import HttpClientManager, get_http_client_manager
from .log_config import get_context_logger


@dataclass
class FetchOptions:
    """Options for a single document fetch."""

    timeout: float | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class FetchResult:
    """
    Outcome of one fetch.

    Attributes:
        url: URL that was fetched
        document: Parsed document on success
        error: Failure (network, HTTP status, timeout, malformed XML)
        response_time: Seconds spent fetching and parsing
    """

    url: str
    document: VastDocument | None = None
    error: VastException | None = None
    response_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None


@runtime_checkable
class DocumentFetcher(Protocol):
    """Anything that turns a URL into a FetchResult."""

    async def fetch(self, url: str, options: FetchOptions | None = None) -> FetchResult: ...


class UrlDocumentFetcher:
    """Default document fetcher for network and local URLs.

    Examples:
        >>> fetcher = UrlDocumentFetcher()
        >>> result = await fetcher.fetch("https://ads.example.com/vast")
        >>> result.ok
        True
    """

    def __init__(
        self,
        config: VastResolverConfig | None = None,
        client: httpx.AsyncClient | None = None,
        manager: HttpClientManager | None = None,
    ):
        self.config = config or VastResolverConfig()
        self.client = client
        self.manager = manager
        self.logger = get_context_logger("vast_fetcher")

    @property
    def parser_config(self) -> VastParserConfig:
        return self.config.parser

    def _http_client(self) -> httpx.AsyncClient:
        if self.client is not None:
            return self.client
        manager = self.manager or get_http_client_manager()
        return manager.get_fetch_client(
            timeout=self.config.fetch_timeout, verify=self.config.ssl_verify
        )

    async def fetch(self, url: str, options: FetchOptions | None = None) -> FetchResult:
        """Fetch and parse one VAST document.

        Args:
            url: Document URL (``http``, ``https``, ``file`` or a local path)
            options: Timeout and header overrides

        Returns:
            FetchResult with either a valid document or an error
        """
        options = options or FetchOptions()
        start_time = time.time()
        self.logger.debug(VastEvents.FETCH_STARTED, url=url)

        try:
            raw = await self._read(url, options)
        except VastFetchError as e:
            elapsed = time.time() - start_time
            self.logger.warning(
                VastEvents.FETCH_FAILED,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
                response_time=round(elapsed, 3),
            )
            return FetchResult(url=url, error=e, response_time=elapsed)

        document = parse_document(raw, self.parser_config)
        elapsed = time.time() - start_time
        if not document.is_valid:
            return FetchResult(url=url, error=document.error, response_time=elapsed)

        self.logger.debug(
            VastEvents.FETCH_COMPLETED,
            url=url,
            response_length=len(document.raw),
            response_time=round(elapsed, 3),
        )
        return FetchResult(url=url, document=document, response_time=elapsed)

    async def _read(self, url: str, options: FetchOptions) -> bytes:
        scheme = urlparse(url).scheme.lower()
        if scheme in ("http", "https"):
            return await self._read_http(url, options)
        # Single-letter schemes are Windows drive letters
        if scheme in ("file", "") or len(scheme) == 1:
            return await self._read_file(url)
        raise VastFetchError(f"Unsupported URL scheme: {scheme}", url=url)

    async def _read_http(self, url: str, options: FetchOptions) -> bytes:
        timeout = options.timeout or self.config.fetch_timeout
        headers = {**self.config.headers, **options.headers}
        client = self._http_client()
        try:
            response = await client.get(url, headers=headers, timeout=timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise VastFetchTimeoutError(
                "VAST document request timed out", url=url, timeout=timeout, cause=e
            ) from e
        except httpx.HTTPStatusError as e:
            raise VastFetchError(
                f"VAST document request failed with HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise VastFetchError(
                f"VAST document request failed: {e}", url=url, cause=e
            ) from e
        return response.content

    async def _read_file(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme == "file":
            path = Path(url2pathname(unquote(parsed.path)))
        else:
            path = Path(url)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise VastFetchError(f"Cannot read VAST file: {e}", url=url, cause=e) from e


__all__ = ["FetchOptions", "FetchResult", "DocumentFetcher", "UrlDocumentFetcher"]
