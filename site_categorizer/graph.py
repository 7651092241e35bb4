"""Category graph: category name -> deduplicated host entries.

Category definitions mix source URLs and references to other categories::

    {
        "malware": ["https://example.org/malware.txt"],
        "phishing": ["https://example.org/phishing.txt"],
        "threats": ["malware", "phishing"],
    }

Sources are fetched first; references are then resolved in dependency
order, so a category may reference one defined later in the mapping.
Reference cycles are rejected.
"""

import logging
from collections.abc import Mapping
from typing import Iterable, Optional

from site_categorizer.collectors.base import BaseSource
from site_categorizer.errors import CategoryReferenceError
from site_categorizer.schema import FetchMetadata
from site_categorizer.utils.domain_utils import host_suffixes, is_ipv4, unique

logger = logging.getLogger(__name__)


class CategoryGraph:
    """
    Resolved mapping of categories to host entries.

    Mutations go through set_hosts()/merge() so the lookup index stays in
    sync. Not thread-safe: callers must not reload while querying.
    """

    def __init__(
        self,
        hosts: Optional[dict[str, list[str]]] = None,
        metadata: Optional[dict[str, FetchMetadata]] = None,
    ):
        self.hosts: dict[str, list[str]] = dict(hosts or {})
        self.metadata: dict[str, FetchMetadata] = dict(metadata or {})
        self.dataset_categories: set[str] = set()
        self._index: dict[str, frozenset[str]] = {}

    def __len__(self) -> int:
        return len(self.hosts)

    def set_hosts(self, category: str, hosts: Iterable[str]) -> None:
        self.hosts[category] = unique(hosts)
        self._index.pop(category, None)

    def merge(self, categories: Mapping[str, Iterable[str]], dataset: bool = True) -> None:
        """
        Union new hosts into existing categories, creating missing ones.

        Args:
            categories: Category -> hosts to add
            dataset: Mark every touched category as dataset-derived
        """
        for category, new_hosts in categories.items():
            self.set_hosts(category, [*self.hosts.get(category, []), *new_hosts])
            if dataset:
                self.dataset_categories.add(category)

    def _host_set(self, category: str) -> frozenset[str]:
        index = self._index.get(category)
        if index is None:
            index = frozenset(self.hosts.get(category, ()))
            self._index[category] = index
        return index

    def match_host(self, host: str) -> list[str]:
        """
        Categories containing ``host`` or one of its parent domains.

        IP literals only match exactly.

        Returns:
            Category names in definition order
        """
        candidates = [host] if is_ipv4(host) else list(host_suffixes(host))
        return [
            category for category in self.hosts
            if any(candidate in self._host_set(category) for candidate in candidates)
        ]

    def match_exact(self, value: str) -> list[str]:
        """Categories containing ``value`` verbatim."""
        return [category for category in self.hosts if value in self._host_set(category)]


class CategoryGraphBuilder:
    """
    Builds a CategoryGraph from category definitions.

    Args:
        source: Fetcher used for every source URL
    """

    def __init__(self, source: BaseSource):
        self.source = source

    @staticmethod
    def partition(
        host_urls: Mapping[str, list[str]],
    ) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
        """
        Split each definition into source URLs and category references.

        An entry equal to another category's name is a reference; anything
        else is handed to the fetcher as a source URL.
        """
        sources: dict[str, list[str]] = {}
        references: dict[str, list[str]] = {}
        for category, entries in host_urls.items():
            sources[category] = []
            references[category] = []
            for entry in entries or []:
                if isinstance(entry, str) and entry in host_urls and entry != category:
                    references[category].append(entry)
                else:
                    sources[category].append(entry)
        return sources, references

    @staticmethod
    def resolution_order(references: Mapping[str, list[str]]) -> list[str]:
        """
        Order categories so every reference is resolved before its users.

        Raises:
            CategoryReferenceError: If references form a cycle
        """
        order: list[str] = []
        done: set[str] = set()
        visiting: list[str] = []

        def visit(category: str) -> None:
            if category in done:
                return
            if category in visiting:
                cycle = visiting[visiting.index(category):] + [category]
                raise CategoryReferenceError(cycle)
            visiting.append(category)
            for ref in references.get(category, []):
                visit(ref)
            visiting.pop()
            done.add(category)
            order.append(category)

        for category in references:
            visit(category)
        return order

    def build(self, host_urls: Mapping[str, list[str]]) -> CategoryGraph:
        """
        Fetch every source and resolve references.

        Args:
            host_urls: Category -> source URLs and/or category names

        Returns:
            CategoryGraph in definition order
        """
        sources, references = self.partition(host_urls)
        order = self.resolution_order(references)

        # === Source-backed hosts ===

        metadata: dict[str, FetchMetadata] = {}
        raw: dict[str, list[str]] = {}
        for category, urls in sources.items():
            collected: set[str] = set()
            for url in urls:
                result = self.source.fetch(url)
                if result.metadata is not None:
                    metadata[str(url)] = result.metadata
                collected.update(result.hosts)
            raw[category] = sorted(collected)
            logger.debug("Category %s: %d hosts from %d sources", category, len(raw[category]), len(urls))

        # === Symbol references ===

        resolved: dict[str, list[str]] = {}
        for category in order:
            hosts = list(raw[category])
            for ref in references[category]:
                hosts.extend(resolved[ref])
            resolved[category] = unique(hosts)

        graph = CategoryGraph(metadata=metadata)
        for category in host_urls:
            graph.set_hosts(category, resolved[category])
        return graph
