"""Tabular dataset acquisition: direct CSV URLs and Kaggle archives.

Datasets are returned as row dicts (all values strings). Kaggle downloads
arrive as ZIP archives; a single-CSV archive yields that file's rows, a
multi-CSV archive yields ``{file_stem: rows}``.

Processed results can be cached as JSON in ``cache_path``::

    csv_https___example_com_sites_csv_processed.json
    kaggle_owner_name_processed.json

Kaggle credentials are looked up in this order:

1. explicit ``username``/``api_key``
2. the credentials file (``~/.kaggle/kaggle.json`` by default)
3. ``KAGGLE_USERNAME`` / ``KAGGLE_KEY`` environment variables
"""

import hashlib
import io
import json
import logging
import os
import re
import time
import zipfile
from pathlib import Path
from typing import Any, Optional, Union

import httpx
import pandas as pd

from site_categorizer.errors import DatasetConfigurationError, DatasetDownloadError, DatasetParseError

logger = logging.getLogger(__name__)

KAGGLE_BASE_URL = "https://www.kaggle.com/api/v1"
DEFAULT_DOWNLOAD_PATH = Path("./downloads")
DEFAULT_CACHE_PATH = Path("./cache")
DEFAULT_DATASET_TIMEOUT = 30

UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")

DatasetRows = list[dict[str, str]]
Dataset = Union[DatasetRows, dict[str, DatasetRows]]


def default_credentials_file() -> Path:
    return Path.home() / ".kaggle" / "kaggle.json"


def sanitize_identifier(identifier: str) -> str:
    """
    Make a URL or owner/name safe for use in a file name.

    Examples:
        >>> sanitize_identifier("owner/data-set.v2")
        'owner_data-set_v2'
    """
    return UNSAFE_CHARS.sub("_", identifier)


def cache_key(identifier: str, source_type: str) -> str:
    return f"{source_type}_{sanitize_identifier(identifier)}_processed.json"


def parse_csv_text(content: str) -> DatasetRows:
    """
    Parse a CSV body with a header row into row dicts.

    Every value is read as a string; empty cells become "".

    Raises:
        DatasetParseError: If the body is empty or cannot be tokenized
    """
    try:
        df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise DatasetParseError(f"Empty CSV content: {e}") from e
    except pd.errors.ParserError as e:
        raise DatasetParseError(f"Failed to parse CSV content: {e}") from e

    return df.fillna("").to_dict("records")


def parse_csv_file(path: Path) -> DatasetRows:
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise DatasetParseError(f"Cannot read CSV file {path}: {e}") from e
    return parse_csv_text(content)


def count_total_entries(dataset: Any) -> int:
    if isinstance(dataset, dict):
        return sum(len(v) if isinstance(v, list) else 1 for v in dataset.values())
    if isinstance(dataset, list):
        return len(dataset)
    return 1


def generate_dataset_hash(data: Any) -> str:
    """
    SHA-256 of a dataset's canonical JSON form.

    Identical content always hashes the same regardless of dict key order.
    """
    if isinstance(data, str):
        content = data
    else:
        content = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class DatasetProcessor:
    """
    Downloads, parses and caches tabular datasets.

    Args:
        username: Kaggle username
        api_key: Kaggle API key
        credentials_file: Path to a kaggle.json file
        download_path: Directory for downloaded archives and extracted files
        cache_path: Directory for processed JSON caches
        timeout: Request timeout in seconds
        enable_kaggle: Allow Kaggle datasets at all
        client: Optional httpx client (injected in tests)
    """

    def __init__(
        self,
        username: Optional[str] = None,
        api_key: Optional[str] = None,
        credentials_file: Optional[Union[str, Path]] = None,
        download_path: Optional[Union[str, Path]] = None,
        cache_path: Optional[Union[str, Path]] = None,
        timeout: float = DEFAULT_DATASET_TIMEOUT,
        enable_kaggle: bool = True,
        client: Optional[httpx.Client] = None,
    ):
        self.username = username
        self.api_key = api_key
        self.credentials_file = Path(credentials_file) if credentials_file else default_credentials_file()
        self.download_path = Path(download_path) if download_path else DEFAULT_DOWNLOAD_PATH
        self.cache_path = Path(cache_path) if cache_path else DEFAULT_CACHE_PATH
        self.timeout = timeout
        self.kaggle_enabled = enable_kaggle

        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": "site-categorizer/0.1"},
        )

        self.download_path.mkdir(parents=True, exist_ok=True)
        self.cache_path.mkdir(parents=True, exist_ok=True)

    # === Credentials ===

    def _file_credentials(self) -> dict[str, Any]:
        if not self.credentials_file.exists():
            return {}
        try:
            data = json.loads(self.credentials_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise DatasetConfigurationError(f"Invalid credentials file format: {e}") from e
        except OSError as e:
            raise DatasetConfigurationError(f"Failed to read credentials file: {e}") from e
        if not isinstance(data, dict):
            raise DatasetConfigurationError(f"Invalid credentials file format: {self.credentials_file}")
        return data

    def credentials(self) -> Optional[tuple[str, str]]:
        """
        Resolve Kaggle credentials.

        Returns:
            (username, key), or None when either part is missing
        """
        from_file = self._file_credentials() if not (self.username and self.api_key) else {}

        username = self.username or from_file.get("username") or os.getenv("KAGGLE_USERNAME")
        key = self.api_key or from_file.get("key") or os.getenv("KAGGLE_KEY")

        if not username or not str(username).strip() or not key or not str(key).strip():
            return None
        return str(username), str(key)

    # === Public API ===

    def process_csv_dataset(self, url: str, use_cache: bool = False) -> DatasetRows:
        """
        Download and parse a CSV dataset.

        Args:
            url: Direct URL to a CSV file
            use_cache: Read and write the processed JSON cache

        Returns:
            List of row dicts

        Raises:
            DatasetDownloadError: If the request fails
            DatasetParseError: If the body is not valid CSV
        """
        key = cache_key(url, "csv")
        if use_cache:
            cached = self._load_cache(key)
            if cached is not None:
                logger.debug("Using cached dataset %s", url)
                return cached

        response = self._get(url)
        rows = parse_csv_text(response.text)

        if use_cache:
            self._write_cache(key, rows)
        return rows

    def process_kaggle_dataset(self, owner: str, name: str, use_cache: bool = False) -> Dataset:
        """
        Download, extract and parse a Kaggle dataset.

        With use_cache, a processed JSON cache or previously extracted files
        are used without contacting Kaggle and without credentials.

        Args:
            owner: Dataset owner
            name: Dataset name
            use_cache: Reuse cached or extracted data when available

        Returns:
            Row dicts for a single-CSV dataset, else {file_stem: rows}

        Raises:
            DatasetConfigurationError: Kaggle disabled or credentials missing
            DatasetDownloadError: If the request fails
            DatasetParseError: If the archive or a CSV file is malformed
        """
        if not self.kaggle_enabled:
            raise DatasetConfigurationError(
                "Kaggle functionality is disabled; enable it to use Kaggle datasets"
            )

        dataset_path = f"{owner}/{name}"
        key = cache_key(dataset_path, "kaggle")
        extracted_dir = self.extracted_dir(dataset_path)

        if use_cache:
            cached = self._load_cache(key)
            if cached is not None:
                return cached
            if extracted_dir.is_dir() and any(extracted_dir.iterdir()):
                logger.debug("Using extracted files for %s", dataset_path)
                return self._read_extracted(extracted_dir)

        credentials = self.credentials()
        if credentials is None:
            raise DatasetConfigurationError(
                f"Kaggle credentials required to download {dataset_path!r}. Set "
                "KAGGLE_USERNAME/KAGGLE_KEY, pass credentials explicitly, or place "
                "kaggle.json in ~/.kaggle/"
            )

        response = self._get(f"{KAGGLE_BASE_URL}/datasets/download/{dataset_path}", auth=credentials)

        zip_path = self.download_path / f"{dataset_path.replace('/', '_')}_{int(time.time())}.zip"
        try:
            zip_path.write_bytes(response.content)
            self._extract(zip_path, extracted_dir)
        finally:
            zip_path.unlink(missing_ok=True)

        result = self._read_extracted(extracted_dir)
        if use_cache:
            self._write_cache(key, result)
        return result

    def extracted_dir(self, dataset_path: str) -> Path:
        return self.download_path / sanitize_identifier(dataset_path.replace("/", "_"))

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    # === Internals ===

    def _get(self, url: str, auth: Optional[tuple[str, str]] = None) -> httpx.Response:
        try:
            response = self.client.get(url, auth=auth, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise DatasetDownloadError(f"Request timed out: {url}") from e
        except httpx.HTTPStatusError as e:
            raise DatasetDownloadError(
                f"Failed to download dataset {url}: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DatasetDownloadError(f"Failed to download dataset {url}: {e}") from e
        return response

    @staticmethod
    def _extract(zip_path: Path, target: Path) -> None:
        target.mkdir(parents=True, exist_ok=True)
        try:
            with zipfile.ZipFile(zip_path) as archive:
                archive.extractall(target)
        except zipfile.BadZipFile as e:
            raise DatasetParseError(f"Failed to extract zip file: {e}") from e

    @staticmethod
    def _read_extracted(directory: Path) -> Dataset:
        csv_files = sorted(directory.rglob("*.csv"))
        if not csv_files:
            raise DatasetParseError(f"No CSV files found in {directory}")

        result = {path.stem: parse_csv_file(path) for path in csv_files}
        if len(result) == 1:
            return next(iter(result.values()))
        return result

    def _load_cache(self, key: str) -> Optional[Dataset]:
        path = self.cache_path / key
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.debug("Ignoring unreadable dataset cache %s: %s", path.name, e)
            return None

    def _write_cache(self, key: str, data: Dataset) -> None:
        path = self.cache_path / key
        try:
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not write dataset cache %s: %s", path.name, e)
