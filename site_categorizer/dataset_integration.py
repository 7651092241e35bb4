"""Turn tabular dataset rows into category -> domain entries.

Column detection is heuristic and per row, so files with mixed column
layouts still integrate:

    url,category                      -> url / category
    Website,Type                      -> Website / Type
    domain_name,classification_label  -> domain_name / classification_label

Explicit ``url_column`` + ``category_column`` mappings override detection.
"""

import logging
import re
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlsplit

from site_categorizer.collectors.datasets import count_total_entries, generate_dataset_hash
from site_categorizer.errors import DatasetParseError
from site_categorizer.schema import DatasetMetadata, IntegrationResult

logger = logging.getLogger(__name__)

URL_INDICATORS = ("url", "domain", "website", "site", "link", "address")
CATEGORY_INDICATORS = ("category", "class", "type", "classification", "label")

DEFAULT_FILE_NAME = "default"
FALLBACK_CATEGORY = "dataset_category"

_HAS_SCHEME = re.compile(r"^\w+://")


def _first_matching(keys: Iterable[str], indicators: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        lowered = str(key).lower()
        if any(indicator in lowered for indicator in indicators):
            return key
    return None


def detect_url_column(keys: Iterable[str]) -> Optional[str]:
    """
    First key that looks like a URL/domain column.

    Examples:
        >>> detect_url_column(["id", "Website", "Type"])
        'Website'
        >>> detect_url_column(["id", "name"]) is None
        True
    """
    return _first_matching(keys, URL_INDICATORS)


def detect_category_column(keys: Iterable[str]) -> Optional[str]:
    """First key that looks like a category/label column."""
    return _first_matching(keys, CATEGORY_INDICATORS)


def extract_domain(value: Optional[str]) -> Optional[str]:
    """
    Extract a lower-cased domain from a URL or bare domain.

    Falls back to plain string stripping when the value cannot be parsed.

    Examples:
        >>> extract_domain("https://www.Example.com/page")
        'example.com'
        >>> extract_domain("example.org")
        'example.org'
        >>> extract_domain("   ") is None
        True
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None

    candidate = value if _HAS_SCHEME.match(value) else f"http://{value}"
    try:
        domain = urlsplit(candidate).hostname
    except ValueError:
        domain = _HAS_SCHEME.sub("", value).split("/", 1)[0].lower()

    if not domain:
        return None
    if domain.startswith("www."):
        domain = domain[4:]
    return domain or None


def map_category_name(name: Any, category_map: Optional[Mapping[str, str]] = None) -> str:
    """
    Map a raw category label to a category slug.

    Examples:
        >>> map_category_name("Adult Content!")
        'adult_content'
        >>> map_category_name("phish", {"phish": "phishing"})
        'phishing'
        >>> map_category_name("???")
        'dataset_category'
    """
    if category_map and name in category_map:
        return category_map[name]

    slug = re.sub(r"[^a-z0-9_]", "_", str(name).lower())
    slug = re.sub(r"_+", "_", slug).strip("_")
    return slug or FALLBACK_CATEGORY


def _row_category(
    row: Mapping[str, Any],
    category_col: Optional[str],
    file_name: str,
    category_map: Optional[Mapping[str, str]],
) -> str:
    if category_col is not None and row.get(category_col) is not None:
        return map_category_name(str(row[category_col]).strip().lower(), category_map)
    return map_category_name(file_name, category_map)


def _integrate_rows(
    rows: list,
    file_name: str,
    mappings: Mapping[str, Any],
    categories: dict[str, list[str]],
) -> None:
    if not isinstance(rows, list) or not rows:
        return

    category_map = mappings.get("category_map")
    explicit_url = mappings.get("url_column")
    explicit_category = mappings.get("category_column")
    explicit = bool(explicit_url and explicit_category)

    for row in rows:
        if not isinstance(row, Mapping):
            continue

        if explicit:
            url_col, category_col = explicit_url, explicit_category
        else:
            url_col = detect_url_column(row.keys())
            category_col = detect_category_column(row.keys())
            if url_col is None:
                continue

        domain = extract_domain(row.get(url_col))
        if domain is None:
            continue

        category = _row_category(row, category_col, file_name, category_map)
        domains = categories.setdefault(category, [])
        if domain not in domains:
            domains.append(domain)


def integrate_dataset_into_categorization(
    dataset: Any,
    mappings: Optional[Mapping[str, Any]] = None,
    *,
    source_type: str = "csv",
    identifier: str = "",
) -> IntegrationResult:
    """
    Extract category -> domains from a dataset.

    Args:
        dataset: Row dicts, or {file_name: rows} for multi-file datasets
        mappings: Optional ``url_column``, ``category_column`` and
            ``category_map`` overrides
        source_type: csv or kaggle, recorded in the metadata
        identifier: URL or owner/name, recorded in the metadata

    Returns:
        IntegrationResult with categories and content-hash metadata

    Raises:
        DatasetParseError: If the dataset is neither a list nor a dict

    Examples:
        >>> rows = [{"url": "https://m.example.com", "category": "malware"}]
        >>> integrate_dataset_into_categorization(rows).categories
        {'malware': ['m.example.com']}
    """
    mappings = mappings or {}
    categories: dict[str, list[str]] = {}

    if isinstance(dataset, dict):
        for file_name, rows in dataset.items():
            _integrate_rows(rows, str(file_name), mappings, categories)
    elif isinstance(dataset, list):
        _integrate_rows(dataset, DEFAULT_FILE_NAME, mappings, categories)
    else:
        raise DatasetParseError(f"Unsupported dataset format: {type(dataset).__name__}")

    metadata = DatasetMetadata(
        data_hash=generate_dataset_hash(dataset),
        source_type=source_type,
        identifier=identifier,
        total_entries=count_total_entries(dataset),
    )
    logger.debug(
        "Integrated %d entries from %s into %d categories",
        metadata.total_entries, identifier or source_type, len(categories),
    )
    return IntegrationResult(categories=categories, metadata=metadata)
