"""Data records shared across fetchers, the category graph and dataset integration."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utcnow() -> datetime:
    """Timezone-aware current time used for every timestamp in the package."""
    return datetime.now(timezone.utc)


class FetchStatus(str, Enum):
    """Outcome of retrieving a single list source."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class FetchMetadata:
    """
    Per-source fetch bookkeeping.

    Attributes:
        url: Source URL
        status: success or failed
        last_updated: When the source was last fetched (or the failure recorded)
        etag: ETag response header, if the server sent one
        last_modified: Last-Modified response header, if the server sent one
        content_hash: SHA-256 hex digest of the raw response body
        error: Error message when status is failed
        error_type: Failure class (timeout, connection, invalid_url, http, io)
    """

    url: str
    status: FetchStatus = FetchStatus.SUCCESS
    last_updated: datetime = field(default_factory=utcnow)
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    content_hash: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FetchMetadata":
        return cls(
            url=data["url"],
            status=FetchStatus(data.get("status", FetchStatus.SUCCESS.value)),
            last_updated=data.get("last_updated") or utcnow(),
            etag=data.get("etag"),
            last_modified=data.get("last_modified"),
            content_hash=data.get("content_hash"),
            error=data.get("error"),
            error_type=data.get("error_type"),
        )


@dataclass
class FetchResult:
    """
    Result of fetching one list source.

    A failed fetch is a normal result, not an exception: ``hosts`` is empty
    and ``metadata.status`` is ``failed``.
    """

    url: str
    success: bool
    hosts: list[str] = field(default_factory=list)
    metadata: Optional[FetchMetadata] = None
    from_cache: bool = False
    error: Optional[str] = None


@dataclass
class CacheEntry:
    """Persisted record for one source URL."""

    hosts: list[str]
    metadata: Optional[FetchMetadata]
    cached_at: datetime


@dataclass
class DatasetMetadata:
    """
    Provenance record for one integrated dataset.

    ``data_hash`` is the dedup key: identical content yields the same record.
    """

    data_hash: str
    source_type: str  # csv | kaggle
    identifier: str  # URL or owner/name
    total_entries: int
    processed_at: datetime = field(default_factory=utcnow)


@dataclass
class IntegrationResult:
    """Categories extracted from a dataset plus its metadata."""

    categories: dict[str, list[str]]
    metadata: DatasetMetadata


@dataclass
class DatasetSource:
    """A dataset to load automatically when a client is constructed."""

    source_type: str  # csv | kaggle
    url: Optional[str] = None
    owner: Optional[str] = None
    name: Optional[str] = None
    category_mappings: dict[str, Any] = field(default_factory=dict)
    use_cache: bool = True


@dataclass
class ListHealthReport:
    """Outcome of checking every configured list source."""

    summary: dict[str, int]
    missing_categories: list[str] = field(default_factory=list)
    unreachable_lists: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    successful_lists: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
