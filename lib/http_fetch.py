# =============================================================================
# lib/http_fetch.py - Network Fetch for Foreign-Hosted Assets
# =============================================================================
# Downloads legacy-hosted bytes and issues HEAD probes against public URLs.
# httpx.Client is thread-safe and keeps a connection pool, so a single
# fetcher is shared by the migrator and the verifier's worker threads.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.exceptions import AssetDownloadError
from lib.r2_storage import mime_from_url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class FetchedAsset:
    body: bytes
    content_type: str


class AssetFetcher:
    """
    Thin httpx wrapper.

    Example:
        with AssetFetcher() as fetcher:
            asset = fetcher.download("https://legacy.example.com/o/logo.png")
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT):
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def download(self, url: str) -> FetchedAsset:
        """
        Download an asset.

        The content type comes from the response header, falling back to a
        guess from the URL extension.

        Raises:
            AssetDownloadError: On transport failure or a non-2xx status
        """
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise AssetDownloadError(url, str(e)) from e

        if not response.is_success:
            raise AssetDownloadError(url, f"{response.status_code} {response.reason_phrase}")

        content_type = response.headers.get("content-type") or mime_from_url(url)
        logger.debug(f"Downloaded {len(response.content)} bytes from {url}")
        return FetchedAsset(body=response.content, content_type=content_type)

    def head_status(self, url: str) -> int | None:
        """Return the HEAD status code for url, or None if the request failed."""
        try:
            return self._client.head(url).status_code
        except httpx.HTTPError as e:
            logger.debug(f"HEAD failed for {url}: {e}")
            return None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> AssetFetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
