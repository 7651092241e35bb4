"""Base classes for list sources."""

import hashlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

import httpx

from site_categorizer.errors import SourceFetchError
from site_categorizer.schema import FetchMetadata, FetchResult, FetchStatus, utcnow
from site_categorizer.utils.list_parser import parse_content

logger = logging.getLogger(__name__)


def content_hash(body: str) -> str:
    """SHA-256 hex digest of a raw list body."""
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


class BaseSource(ABC):
    """
    Abstract base class for blocklist sources.

    Subclasses implement fetch() for one URL scheme family. Expected failures
    never raise: they are returned as a failed FetchResult.
    """

    def __init__(self, name: str):
        """
        Initialize the source.

        Args:
            name: Human-readable name for this source type
        """
        self.name = name

    @abstractmethod
    def fetch(self, url: str) -> FetchResult:
        """
        Retrieve and parse one list.

        Args:
            url: Source URL

        Returns:
            FetchResult with hosts and metadata
        """
        raise NotImplementedError(f"{self.name} must implement fetch()")

    def _success(self, url: str, body: str, etag: Optional[str] = None,
                 last_modified: Optional[str] = None) -> FetchResult:
        """Parse a downloaded body into a successful result."""
        metadata = FetchMetadata(
            url=url,
            status=FetchStatus.SUCCESS,
            last_updated=utcnow(),
            etag=etag,
            last_modified=last_modified,
            content_hash=content_hash(body),
        )
        return FetchResult(url=url, success=True, hosts=parse_content(body), metadata=metadata)

    def _failure(self, url: str, error_type: str, message: str) -> FetchResult:
        """Record a failed fetch; the source contributes no hosts."""
        logger.warning("Failed to fetch %s (%s): %s", url, error_type, message)
        metadata = FetchMetadata(
            url=url,
            status=FetchStatus.FAILED,
            last_updated=utcnow(),
            error=message,
            error_type=error_type,
        )
        return FetchResult(url=url, success=False, metadata=metadata, error=message)

    def _failure_from(self, error: SourceFetchError) -> FetchResult:
        return self._failure(error.url, error.error_type, str(error))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class LocalListSource(BaseSource):
    """
    Source for ``file://`` lists.

    Local files need no cache and no network access. Both
    ``file://relative/list.txt`` and ``file:///absolute/list.txt`` are accepted.
    """

    def __init__(self):
        super().__init__(name="LocalFile")

    @staticmethod
    def path_for(url: str) -> Path:
        parts = urlsplit(url)
        return Path(unquote(parts.netloc + parts.path))

    def read(self, url: str) -> str:
        """
        Read the list body behind a ``file://`` URL.

        Raises:
            SourceFetchError: If the file cannot be read
        """
        path = self.path_for(url)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceFetchError(url, "io", f"Cannot read {path}: {e}") from e

    def fetch(self, url: str) -> FetchResult:
        try:
            body = self.read(url)
        except SourceFetchError as e:
            return self._failure_from(e)
        return self._success(url, body)


class RemoteListSource(BaseSource):
    """
    Base class for sources fetched over HTTP(S).

    Holds the shared httpx client and request timeout.
    """

    def __init__(self, name: str, timeout: float = 10, client: Optional[httpx.Client] = None):
        """
        Initialize remote source.

        Args:
            name: Human-readable name
            timeout: Per-request timeout in seconds
            client: Optional pre-configured httpx client (injected in tests)
        """
        super().__init__(name)
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": "site-categorizer/0.1"},
        )

    def close(self) -> None:
        """Close the underlying client if this source created it."""
        if self._owns_client:
            self.client.close()
