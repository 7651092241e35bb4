"""Tests for turning dataset rows into categories."""

import pytest

from site_categorizer.dataset_integration import (
    detect_category_column,
    detect_url_column,
    extract_domain,
    integrate_dataset_into_categorization,
    map_category_name,
)
from site_categorizer.errors import DatasetParseError


def test_column_detection_first_match_wins():
    assert detect_url_column(["id", "Website", "domain"]) == "Website"
    assert detect_category_column(["id", "Website", "Type", "label"]) == "Type"
    assert detect_url_column(["id", "name"]) is None
    assert detect_category_column([]) is None


@pytest.mark.parametrize("value,expected", [
    ("https://www.Example.com/page", "example.com"),
    ("example.org", "example.org"),
    ("  sub.example.net/path  ", "sub.example.net"),
    ("", None),
    (None, None),
])
def test_extract_domain(value, expected):
    assert extract_domain(value) == expected


@pytest.mark.parametrize("name,expected", [
    ("Malware", "malware"),
    ("Adult Content!", "adult_content"),
    ("__a--b__", "a_b"),
    ("???", "dataset_category"),
])
def test_map_category_name(name, expected):
    assert map_category_name(name) == expected


def test_map_category_name_override():
    assert map_category_name("phish", {"phish": "phishing"}) == "phishing"


def test_url_category_rows():
    rows = [
        {"url": "https://m.example.com", "category": "malware"},
        {"url": "https://p.example.com", "category": "phishing"},
    ]

    result = integrate_dataset_into_categorization(rows, source_type="csv", identifier="https://x/data.csv")

    assert "m.example.com" in result.categories["malware"]
    assert "p.example.com" in result.categories["phishing"]
    assert result.metadata.total_entries == 2
    assert result.metadata.source_type == "csv"
    assert result.metadata.identifier == "https://x/data.csv"
    assert len(result.metadata.data_hash) == 64


def test_mixed_column_layouts_and_skipped_rows():
    rows = [
        {"url": "https://a.example.com", "category": "Ads"},
        {"Website": "www.b.example.com", "Type": "ads"},
        {"name": "no url column"},
        {"url": "   ", "category": "ads"},
    ]

    result = integrate_dataset_into_categorization(rows)

    assert result.categories == {"ads": ["a.example.com", "b.example.com"]}


def test_explicit_mappings_override_detection():
    rows = [
        {"link": "ignored.example.com", "host": "h.example.com", "kind": "Bad Stuff"},
    ]

    result = integrate_dataset_into_categorization(
        rows,
        {"url_column": "host", "category_column": "kind", "category_map": {"bad stuff": "malware"}},
    )

    assert result.categories == {"malware": ["h.example.com"]}


def test_multi_file_dataset_uses_file_name_as_category():
    dataset = {
        "Gambling Sites": [{"domain": "casino.example.com"}, {"domain": "casino.example.com"}],
        "news": [{"domain": "paper.example.com"}],
    }

    result = integrate_dataset_into_categorization(dataset, source_type="kaggle", identifier="owner/name")

    assert result.categories == {
        "gambling_sites": ["casino.example.com"],
        "news": ["paper.example.com"],
    }
    assert result.metadata.total_entries == 3


def test_single_file_without_category_column_uses_default():
    result = integrate_dataset_into_categorization([{"domain": "x.example.com"}])
    assert result.categories == {"default": ["x.example.com"]}


def test_identical_content_has_identical_hash():
    rows = [{"url": "https://m.example.com", "category": "malware"}]
    first = integrate_dataset_into_categorization(rows)
    second = integrate_dataset_into_categorization([dict(r) for r in rows])

    assert first.metadata.data_hash == second.metadata.data_hash


def test_unsupported_dataset_shape():
    with pytest.raises(DatasetParseError):
        integrate_dataset_into_categorization("not a dataset")
