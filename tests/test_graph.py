"""Tests for category graph building and host matching."""

import pytest

from site_categorizer.collectors.base import BaseSource
from site_categorizer.errors import CategoryReferenceError, ConfigurationError
from site_categorizer.graph import CategoryGraph, CategoryGraphBuilder
from site_categorizer.schema import FetchMetadata, FetchResult, FetchStatus
from site_categorizer.utils.domain_utils import unique


class DictSource(BaseSource):
    """In-memory source: url -> hosts. Unknown URLs fail."""

    def __init__(self, lists):
        super().__init__(name="Dict")
        self.lists = lists
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        if url not in self.lists:
            return self._failure(url, "http", "HTTP 404")
        return FetchResult(url=url, success=True, hosts=list(self.lists[url]), metadata=FetchMetadata(url=url))


def build(host_urls, lists):
    return CategoryGraphBuilder(DictSource(lists)).build(host_urls)


def test_raw_hosts_are_sorted_and_deduplicated():
    graph = build(
        {"malware": ["u1", "u2"]},
        {"u1": ["evil.com", "bad.com"], "u2": ["bad.com", "awful.com"]},
    )
    assert graph.hosts["malware"] == ["awful.com", "bad.com", "evil.com"]


def test_reference_combines_referenced_categories():
    lists = {"urlA": ["a1.com", "shared.com"], "urlB": ["b1.com", "shared.com"]}
    graph = build({"a": ["urlA"], "b": ["urlB"], "combined": ["a", "b"]}, lists)

    assert graph.hosts["combined"] == unique(graph.hosts["a"] + graph.hosts["b"])
    assert graph.hosts["combined"] == ["a1.com", "shared.com", "b1.com"]


def test_multi_level_and_forward_references_resolve():
    graph = build(
        {"everything": ["threats", "extra"], "threats": ["malware"], "malware": ["u1"], "extra": ["u2"]},
        {"u1": ["bad.com"], "u2": ["odd.com"]},
    )

    assert graph.hosts["threats"] == ["bad.com"]
    assert graph.hosts["everything"] == ["bad.com", "odd.com"]


def test_mixed_sources_and_references():
    graph = build(
        {"malware": ["u1"], "threats": ["u2", "malware"]},
        {"u1": ["bad.com"], "u2": ["phish.com"]},
    )
    assert graph.hosts["threats"] == ["phish.com", "bad.com"]


def test_reference_cycle_is_rejected():
    with pytest.raises(CategoryReferenceError) as exc_info:
        build({"a": ["b"], "b": ["c"], "c": ["a"]}, {})

    assert isinstance(exc_info.value, ConfigurationError)
    assert exc_info.value.cycle == ["a", "b", "c", "a"]
    assert "a -> b -> c -> a" in str(exc_info.value)


def test_definition_order_is_kept():
    graph = build({"zeta": ["u1"], "alpha": ["u1"], "mid": ["zeta"]}, {"u1": ["x.com"]})
    assert list(graph.hosts) == ["zeta", "alpha", "mid"]


def test_failed_source_records_metadata_and_contributes_nothing():
    graph = build({"malware": ["good", "broken"]}, {"good": ["bad.com"]})

    assert graph.hosts["malware"] == ["bad.com"]
    assert graph.metadata["broken"].status == FetchStatus.FAILED
    assert graph.metadata["good"].status == FetchStatus.SUCCESS


def test_match_host_uses_domain_suffixes():
    graph = CategoryGraph()
    graph.set_hosts("malware", ["bad.com"])
    graph.set_hosts("ads", ["ads.example.com"])

    assert graph.match_host("bad.com") == ["malware"]
    assert graph.match_host("deep.sub.bad.com") == ["malware"]
    assert graph.match_host("notbad.com") == []
    assert graph.match_host("example.com") == []
    assert graph.match_host("x.ads.example.com") == ["ads"]


def test_ip_entries_match_exactly():
    graph = CategoryGraph()
    graph.set_hosts("malware", ["203.0.113.7"])

    assert graph.match_host("203.0.113.7") == ["malware"]
    assert graph.match_exact("203.0.113.7") == ["malware"]
    assert graph.match_exact("203.0.113.70") == []


def test_merge_unions_and_marks_dataset_categories():
    graph = CategoryGraph()
    graph.set_hosts("malware", ["bad.com"])

    graph.merge({"malware": ["bad.com", "worse.com"], "phishing": ["phish.com"]})

    assert graph.hosts["malware"] == ["bad.com", "worse.com"]
    assert graph.hosts["phishing"] == ["phish.com"]
    assert graph.dataset_categories == {"malware", "phishing"}
    assert graph.match_host("a.worse.com") == ["malware"]
