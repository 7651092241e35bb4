"""Blocklist acquisition with HTTP cache freshness validation.

Freshness rules for a cached HTTP source (any one forces a re-fetch):

1. force_download is set
2. the entry has no metadata
3. the entry is older than 24 hours
4. a HEAD request reports a different ETag or Last-Modified
5. the HEAD request itself fails
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit

import httpx

from site_categorizer.collectors.base import BaseSource, LocalListSource, RemoteListSource
from site_categorizer.collectors.cache import ListCache
from site_categorizer.constants import CACHE_MAX_AGE_HOURS, DEFAULT_REQUEST_TIMEOUT
from site_categorizer.errors import SourceFetchError
from site_categorizer.schema import CacheEntry, FetchResult

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")


class HttpListSource(RemoteListSource):
    """
    HTTP(S) list source backed by an optional ListCache.
    """

    def __init__(
        self,
        cache: Optional[ListCache] = None,
        force_download: bool = False,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None,
        max_age: timedelta = timedelta(hours=CACHE_MAX_AGE_HOURS),
    ):
        """
        Initialize HTTP source.

        Args:
            cache: Disk cache (None disables caching)
            force_download: Ignore cached entries and always download
            timeout: Per-request timeout in seconds
            client: Optional httpx client
            max_age: Cached entries older than this are stale
        """
        super().__init__(name="HTTP", timeout=timeout, client=client)
        self.cache = cache
        self.force_download = force_download
        self.max_age = max_age

    def fetch(self, url: str) -> FetchResult:
        if self.cache is not None and not self.force_download:
            entry = self.cache.read(url)
            if entry is not None and not self.is_stale(url, entry):
                logger.debug("Using cached list for %s", url)
                return FetchResult(
                    url=url,
                    success=True,
                    hosts=list(entry.hosts),
                    metadata=entry.metadata,
                    from_cache=True,
                )

        try:
            result = self._download(url)
        except SourceFetchError as e:
            return self._failure_from(e)
        if self.cache is not None:
            self.cache.write(url, result.hosts, result.metadata)
        return result

    def is_stale(self, url: str, entry: CacheEntry) -> bool:
        """
        Decide whether a cached entry must be re-fetched.

        Args:
            url: Source URL
            entry: Cached entry for url

        Returns:
            True if the entry is stale
        """
        if self.force_download:
            return True
        if entry.metadata is None:
            return True
        if self.cache is not None and self.cache.is_expired(entry, self.max_age):
            return True

        try:
            response = self.client.head(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug("HEAD %s failed, refreshing: %s", url, e)
            return True
        if response.is_error:
            return True

        etag = response.headers.get("etag")
        if etag and etag != entry.metadata.etag:
            return True

        last_modified = response.headers.get("last-modified")
        if last_modified and last_modified != entry.metadata.last_modified:
            return True

        return False

    def _download(self, url: str) -> FetchResult:
        """
        GET one list.

        Raises:
            SourceFetchError: On timeout, connection, URL or HTTP status failures
        """
        try:
            response = self.client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise SourceFetchError(url, "timeout", f"Timeout: {e}") from e
        except httpx.ConnectError as e:
            raise SourceFetchError(url, "connection", f"Connection failed: {e}") from e
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise SourceFetchError(url, "invalid_url", f"Invalid URL: {e}") from e
        except httpx.HTTPStatusError as e:
            raise SourceFetchError(url, "http", f"HTTP {e.response.status_code}: {e}") from e
        except httpx.HTTPError as e:
            raise SourceFetchError(url, "http", f"HTTP error: {e}") from e

        return self._success(
            url,
            response.text,
            etag=response.headers.get("etag"),
            last_modified=response.headers.get("last-modified"),
        )


class BlocklistFetcher(BaseSource):
    """
    Entry point for fetching list sources of any supported scheme.

    Dispatches ``http(s)://`` to HttpListSource and ``file://`` to
    LocalListSource; any other scheme is rejected as invalid.
    """

    def __init__(
        self,
        cache_dir: Optional[Union[str, Path]] = None,
        force_download: bool = False,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        super().__init__(name="Blocklist")
        self.cache = ListCache(cache_dir) if cache_dir else None
        self.http = HttpListSource(
            cache=self.cache,
            force_download=force_download,
            timeout=timeout,
            client=client,
        )
        self.local = LocalListSource()

    @property
    def client(self) -> httpx.Client:
        return self.http.client

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch one source.

        Args:
            url: Source URL

        Returns:
            FetchResult; invalid URLs produce a failed result
        """
        if not isinstance(url, str) or not url.strip():
            return self._failure(str(url), "invalid_url", "Empty or non-string source URL")

        try:
            scheme = urlsplit(url).scheme.lower()
        except ValueError as e:
            return self._failure(url, "invalid_url", f"Malformed URL: {e}")

        if scheme in REMOTE_SCHEMES:
            return self.http.fetch(url)
        if scheme == "file":
            return self.local.fetch(url)
        return self._failure(url, "invalid_url", f"Unsupported source URL: {url}")

    def close(self) -> None:
        self.http.close()
