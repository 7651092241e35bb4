"""On-disk cache of parsed list sources.

One pickle file per source URL, named after the SHA-256 of the URL. The
directory is not locked: concurrent writers may corrupt an entry, in which
case the next read treats it as a miss and the source is fetched again.
"""

import hashlib
import logging
import pickle
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

from site_categorizer.errors import CacheCorruptionError
from site_categorizer.schema import CacheEntry, FetchMetadata, utcnow

logger = logging.getLogger(__name__)


class ListCache:
    """
    Pickle-backed cache keyed per source URL.

    Args:
        cache_dir: Directory holding ``<sha256(url)>.cache`` files
    """

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def key_for(url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest() + ".cache"

    def path_for(self, url: str) -> Path:
        return self.cache_dir / self.key_for(url)

    def read(self, url: str) -> Optional[CacheEntry]:
        """
        Read the entry for ``url``.

        Returns:
            CacheEntry, or None on a miss or an unreadable entry
        """
        path = self.path_for(url)
        if not path.exists():
            return None

        try:
            return self._load(path)
        except CacheCorruptionError as e:
            logger.warning("Discarding corrupt cache entry for %s: %s", url, e)
            return None

    def write(self, url: str, hosts: list[str], metadata: Optional[FetchMetadata]) -> bool:
        """
        Persist hosts and metadata for ``url``.

        Returns:
            True if the entry was written
        """
        record = {
            "hosts": list(hosts),
            "metadata": metadata.to_dict() if metadata else None,
            "cached_at": utcnow(),
        }
        path = self.path_for(url)
        tmp_path = path.with_suffix(".tmp")
        try:
            with open(tmp_path, "wb") as f:
                pickle.dump(record, f, protocol=pickle.HIGHEST_PROTOCOL)
            tmp_path.replace(path)
        except OSError as e:
            logger.warning("Could not write cache entry for %s: %s", url, e)
            return False
        return True

    def is_expired(self, entry: CacheEntry, max_age: timedelta) -> bool:
        return utcnow() - entry.cached_at > max_age

    def clear(self) -> int:
        """Delete every cache file. Returns the number removed."""
        removed = 0
        for path in self.cache_dir.glob("*.cache"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed

    def _load(self, path: Path) -> CacheEntry:
        try:
            with open(path, "rb") as f:
                record = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError, AttributeError,
                ImportError, IndexError, TypeError, ValueError) as e:
            raise CacheCorruptionError(f"{path.name}: {e}") from e

        if not isinstance(record, dict) or not isinstance(record.get("hosts"), list):
            raise CacheCorruptionError(f"{path.name}: unexpected record shape")

        cached_at = record.get("cached_at")
        if not isinstance(cached_at, datetime):
            raise CacheCorruptionError(f"{path.name}: missing cached_at")
        if cached_at.tzinfo is None:
            raise CacheCorruptionError(f"{path.name}: cached_at has no timezone")

        metadata = record.get("metadata")
        try:
            parsed_metadata = FetchMetadata.from_dict(metadata) if metadata else None
        except (KeyError, ValueError, TypeError) as e:
            raise CacheCorruptionError(f"{path.name}: bad metadata ({e})") from e

        return CacheEntry(hosts=record["hosts"], metadata=parsed_metadata, cached_at=cached_at)
