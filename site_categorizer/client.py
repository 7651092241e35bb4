"""
Categorization client.

Builds the category graph from configured sources at construction and
answers categorization queries against it:

    client = CategoryClient(host_urls={"malware": ["https://example.org/malware.txt"]})
    client.categorise("https://sub.bad.com/page")   # ['malware']
    client.categorise_ip("203.0.113.7")             # exact IP match only
    client.resolve_and_categorise("bad.com")        # domain + resolved A records

The client is synchronous and not thread-safe: callers must not reload
while other calls are querying the same instance.
"""

import dataclasses
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol

import dns.exception
import dns.resolver
import httpx
from rich.console import Console

from site_categorizer.collectors.blocklist import BlocklistFetcher
from site_categorizer.collectors.datasets import DatasetProcessor
from site_categorizer.collectors.health import ListHealthChecker
from site_categorizer.config import CategorizerSettings
from site_categorizer.constants import (
    URL_KIND_CHANNEL,
    URL_KIND_LIVE,
    URL_KIND_MUSIC,
    URL_KIND_PLAYLIST,
    URL_KIND_SHORTS,
)
from site_categorizer.dataset_integration import integrate_dataset_into_categorization
from site_categorizer.errors import DatasetConfigurationError, DatasetError, InvalidInputError
from site_categorizer.filters.content_classifier import ContentClassifier, load_pattern_table
from site_categorizer.filters.iab import map_category_to_code
from site_categorizer.filters.pipeline import RefinementPipeline
from site_categorizer.filters.smart_rules import RuleEngine
from site_categorizer.graph import CategoryGraph, CategoryGraphBuilder
from site_categorizer.schema import DatasetMetadata, DatasetSource, FetchMetadata, IntegrationResult, ListHealthReport
from site_categorizer.utils.domain_utils import extract_host, is_blog_url, is_ipv4, unique

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class CategoryStore(Protocol):
    """Optional persistence layer consulted before the in-memory graph."""

    def categorise(self, host: str) -> list[str]:
        ...

    def categorise_ip(self, ip: str) -> list[str]:
        ...


class DnsResolver(Protocol):
    """The part of dns.resolver.Resolver used here."""

    def resolve(self, qname: str, rdtype: str = ..., **kwargs: Any) -> Any:
        ...


class CategoryClient:
    """
    Categorizes URLs, domains and IPs against blocklist-derived categories.

    Args:
        settings: Client options (defaults to CategorizerSettings())
        http_client: Shared httpx client for lists, patterns, datasets and health checks
        resolver: DNS resolver (defaults to dnspython with ``dns_servers``)
        store: Optional persistence collaborator
        **options: Field overrides applied on top of ``settings``
    """

    def __init__(
        self,
        settings: Optional[CategorizerSettings] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        resolver: Optional[DnsResolver] = None,
        store: Optional[CategoryStore] = None,
        **options: Any,
    ):
        settings = settings or CategorizerSettings()
        if options:
            settings = dataclasses.replace(settings, **options)
        self.settings = settings
        self.store = store
        self._resolver = resolver

        self.fetcher = BlocklistFetcher(
            cache_dir=settings.cache_dir,
            force_download=settings.force_download,
            timeout=settings.request_timeout,
            client=http_client,
        )

        # === Refinement ===

        self.rule_engine = RuleEngine(settings.smart_rules)
        self.smart_rules = self.rule_engine.rules

        self.content_classifier: Optional[ContentClassifier] = None
        if settings.regex_categorization:
            patterns = load_pattern_table(
                settings.regex_patterns_file,
                client=self.fetcher.client,
                timeout=settings.request_timeout,
            )
            self.content_classifier = ContentClassifier(patterns)
        self.regex_patterns = (
            self.content_classifier.patterns if self.content_classifier else MappingProxyType({})
        )

        self.pipeline = RefinementPipeline(
            rule_engine=self.rule_engine if settings.smart_categorization else None,
            content_classifier=self.content_classifier,
            iab_version=settings.iab_version if settings.iab_compliance else None,
        )

        # === Datasets ===

        self.dataset_processor: Optional[DatasetProcessor] = None
        if settings.dataset_config is not None:
            dc = settings.dataset_config
            self.dataset_processor = DatasetProcessor(
                username=dc.username,
                api_key=dc.api_key,
                credentials_file=dc.credentials_file,
                download_path=dc.download_path,
                cache_path=dc.cache_path,
                timeout=dc.timeout,
                enable_kaggle=dc.enable_kaggle,
                client=http_client,
            )
        self.dataset_metadata: dict[str, DatasetMetadata] = {}
        self._integrations: dict[str, IntegrationResult] = {}

        self.graph: CategoryGraph = self._build_graph()

        if settings.auto_load_datasets and settings.datasets:
            self._auto_load(settings.datasets)

    # === Graph state ===

    @property
    def host_urls(self) -> dict[str, list[str]]:
        return self.settings.host_urls

    @property
    def hosts(self) -> dict[str, list[str]]:
        return self.graph.hosts

    @property
    def metadata(self) -> dict[str, FetchMetadata]:
        return self.graph.metadata

    @property
    def dataset_categories(self) -> set[str]:
        return self.graph.dataset_categories

    def _build_graph(self) -> CategoryGraph:
        graph = CategoryGraphBuilder(self.fetcher).build(self.settings.host_urls)
        logger.info("Loaded %d categories with %d hosts", len(graph), sum(len(h) for h in graph.hosts.values()))
        return graph

    def reload(self) -> "CategoryClient":
        """Rebuild the graph from its sources, dropping dataset entries."""
        self.graph = self._build_graph()
        return self

    def reload_with_datasets(self) -> "CategoryClient":
        """Rebuild the graph and re-merge every dataset integrated so far."""
        self.graph = self._build_graph()
        for result in self._integrations.values():
            self.graph.merge(result.categories)
        return self

    # === Categorization ===

    def _lookup(self, host: str) -> list[str]:
        if self.store is not None:
            stored = self.store.categorise_ip(host) if is_ipv4(host) else self.store.categorise(host)
            if stored:
                return list(stored)
        return self.graph.match_host(host)

    def categorise(self, url: str) -> list[str]:
        """
        Categorize a URL or bare domain.

        Args:
            url: URL, domain or IP literal

        Returns:
            Category names (or IAB codes) in definition order; [] when unmatched

        Raises:
            InvalidInputError: If url is not a string or has no host
        """
        host = extract_host(url)
        return self.pipeline.refine(url, host, self._lookup(host))

    def categorise_ip(self, ip: str) -> list[str]:
        """Categories whose entries contain ``ip`` exactly."""
        if not isinstance(ip, str) or not ip.strip():
            raise InvalidInputError(f"Expected an IP address string, got {ip!r}")
        ip = ip.strip()

        raw: list[str] = []
        if self.store is not None:
            raw = list(self.store.categorise_ip(ip) or [])
        if not raw:
            raw = self.graph.match_exact(ip)
        return self.pipeline.refine(ip, ip, raw)

    def resolve_and_categorise(self, domain: str) -> list[str]:
        """
        Categorize a domain and every IPv4 address it resolves to.

        DNS failures are logged and the domain-only result is returned.
        """
        host = extract_host(domain)
        categories = self.categorise(domain)
        for ip in self.resolve(host):
            categories.extend(self.categorise_ip(ip))
        return unique(categories)

    def resolve(self, host: str) -> list[str]:
        """A-record addresses for host, or [] on any DNS failure."""
        try:
            resolver = self._resolver or self._default_resolver()
            answer = resolver.resolve(host, "A", lifetime=self.settings.request_timeout)
        except (dns.exception.DNSException, ValueError) as e:
            # ValueError: a dns_servers entry is not an IP address or DoH URL
            logger.warning("DNS resolution failed for %s: %s", host, e)
            return []
        return [str(record) for record in answer]

    def _default_resolver(self) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = list(self.settings.dns_servers)
        resolver.timeout = self.settings.request_timeout
        resolver.lifetime = self.settings.request_timeout
        self._resolver = resolver
        return resolver

    def is_video_url(self, url: Any) -> bool:
        """True if regex classification marks url as video content."""
        if self.content_classifier is None:
            return False
        try:
            host = extract_host(url)
        except InvalidInputError:
            return False
        return self.content_classifier.classify(url, self._lookup(host)).is_video

    def _is_url_kind(self, url: Any, kind: str) -> bool:
        if self.content_classifier is None:
            return False
        try:
            host = extract_host(url)
        except InvalidInputError:
            return False
        return self.content_classifier.matches_kind(url, kind, self._lookup(host))

    def is_shorts_url(self, url: Any) -> bool:
        """True for short-form video pages (YouTube Shorts, TikTok videos)."""
        return self._is_url_kind(url, URL_KIND_SHORTS)

    def is_playlist_url(self, url: Any) -> bool:
        """True for playlist, album and showcase pages."""
        return self._is_url_kind(url, URL_KIND_PLAYLIST)

    def is_music_video_url(self, url: Any) -> bool:
        """True for YouTube Music pages, music mixes and music channels."""
        return self._is_url_kind(url, URL_KIND_MUSIC)

    def is_channel_url(self, url: Any) -> bool:
        """True for channel and profile pages rather than single videos."""
        return self._is_url_kind(url, URL_KIND_CHANNEL)

    def is_live_stream_url(self, url: Any) -> bool:
        return self._is_url_kind(url, URL_KIND_LIVE)

    @staticmethod
    def is_blog_url(url: Any) -> bool:
        return is_blog_url(url)

    def iab_compliant(self) -> bool:
        return self.settings.iab_compliance

    def get_iab_mapping(self, category: str) -> str:
        return map_category_to_code(category, self.settings.iab_version)

    # === Accounting ===

    @staticmethod
    def _bytes(hosts: list[str]) -> int:
        return sum(len(h.encode("utf-8")) for h in hosts)

    def count_of_hosts(self) -> int:
        return sum(len(h) for h in self.graph.hosts.values())

    def count_of_categories(self) -> int:
        return len(self.graph.hosts)

    def count_of_dataset_hosts(self) -> int:
        return sum(len(self.graph.hosts.get(c, [])) for c in self.dataset_categories)

    def count_of_dataset_categories(self) -> int:
        return len(self.dataset_categories)

    def size_of_data_bytes(self) -> int:
        return sum(self._bytes(h) for h in self.graph.hosts.values())

    def size_of_dataset_data_bytes(self) -> int:
        return sum(self._bytes(self.graph.hosts.get(c, [])) for c in self.dataset_categories)

    def size_of_blocklist_data_bytes(self) -> int:
        return sum(
            self._bytes(hosts) for category, hosts in self.graph.hosts.items()
            if category not in self.dataset_categories
        )

    def size_of_data(self) -> float:
        """Size of all host entries in megabytes."""
        return round(self.size_of_data_bytes() / BYTES_PER_MB, 2)

    def size_of_dataset_data(self) -> float:
        return round(self.size_of_dataset_data_bytes() / BYTES_PER_MB, 2)

    def size_of_blocklist_data(self) -> float:
        return round(self.size_of_blocklist_data_bytes() / BYTES_PER_MB, 2)

    # === Datasets ===

    def _require_processor(self) -> DatasetProcessor:
        if self.dataset_processor is None:
            raise DatasetConfigurationError(
                "Dataset processing is not configured; pass dataset_config to enable it"
            )
        return self.dataset_processor

    def load_csv_dataset(
        self,
        url: str,
        category_mappings: Optional[Mapping[str, Any]] = None,
        use_cache: bool = False,
    ) -> IntegrationResult:
        """
        Download a CSV dataset and merge it into the graph.

        Raises:
            DatasetConfigurationError: If no dataset_config was given
            DatasetDownloadError: If the download fails
            DatasetParseError: If the CSV is malformed
        """
        data = self._require_processor().process_csv_dataset(url, use_cache=use_cache)
        return self._integrate(data, category_mappings, "csv", url)

    def load_kaggle_dataset(
        self,
        owner: str,
        name: str,
        category_mappings: Optional[Mapping[str, Any]] = None,
        use_cache: bool = True,
    ) -> IntegrationResult:
        """
        Download a Kaggle dataset and merge it into the graph.

        Raises:
            DatasetConfigurationError: If unconfigured or credentials are missing
        """
        data = self._require_processor().process_kaggle_dataset(owner, name, use_cache=use_cache)
        return self._integrate(data, category_mappings, "kaggle", f"{owner}/{name}")

    def _integrate(
        self,
        data: Any,
        category_mappings: Optional[Mapping[str, Any]],
        source_type: str,
        identifier: str,
    ) -> IntegrationResult:
        result = integrate_dataset_into_categorization(
            data, category_mappings, source_type=source_type, identifier=identifier,
        )
        data_hash = result.metadata.data_hash
        if data_hash in self.dataset_metadata:
            logger.debug("Dataset %s already loaded (hash %s)", identifier, data_hash[:12])
        else:
            self.dataset_metadata[data_hash] = result.metadata
        self._integrations[data_hash] = result

        self.graph.merge(result.categories)
        logger.info(
            "Merged %s dataset %s: %d categories",
            source_type, identifier, len(result.categories),
        )
        return result

    def _auto_load(self, datasets: list[DatasetSource]) -> None:
        for source in datasets:
            try:
                if source.source_type == "csv" and source.url:
                    self.load_csv_dataset(source.url, source.category_mappings, use_cache=source.use_cache)
                elif source.source_type == "kaggle" and source.owner and source.name:
                    self.load_kaggle_dataset(
                        source.owner, source.name, source.category_mappings, use_cache=source.use_cache,
                    )
                else:
                    logger.warning("Skipping incomplete dataset source: %s", source)
            except DatasetError as e:
                logger.warning("Failed to auto-load dataset %s: %s", source.url or source.name, e)

    def dataset_history(
        self,
        limit: Optional[int] = None,
        source_type: Optional[str] = None,
    ) -> list[DatasetMetadata]:
        """
        Dataset metadata records, newest first.

        Args:
            limit: Maximum number of records
            source_type: Only records of this type (csv/kaggle)
        """
        records = [
            (m.processed_at, i, m) for i, m in enumerate(self.dataset_metadata.values())
            if source_type is None or m.source_type == source_type
        ]
        records.sort(key=lambda r: (r[0], r[1]), reverse=True)
        history = [m for _, _, m in records]
        return history[:limit] if limit is not None else history

    # === Maintenance ===

    def check_all_lists(self, console: Optional[Console] = None) -> ListHealthReport:
        """HEAD-check every configured source and print a report."""
        checker = ListHealthChecker(self.fetcher.client, self.settings.request_timeout, console=console)
        return checker.check(self.settings.host_urls)

    def close(self) -> None:
        self.fetcher.close()
        if self.dataset_processor is not None:
            self.dataset_processor.close()

    def __enter__(self) -> "CategoryClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
