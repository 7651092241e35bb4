"""Tests for IAB taxonomy mapping."""

import pytest

from site_categorizer.errors import ConfigurationError
from site_categorizer.filters.iab import category_exists, get_iab_categories, map_category_to_code, supported_versions
from site_categorizer.filters.pipeline import RefinementPipeline
from site_categorizer.filters.smart_rules import RuleEngine


def test_map_category_to_code():
    assert map_category_to_code("malware", "v2") == "IAB25"
    assert map_category_to_code("malware", "v3") == "626"
    assert map_category_to_code("gambling", "v3") == "7-39"


def test_unknown_category_maps_to_unknown():
    assert map_category_to_code("made_up", "v2") == "Unknown"
    assert not category_exists("made_up")


def test_get_iab_categories_deduplicates():
    assert get_iab_categories(["malware", "phishing", "news", "made_up"], "v2") == ["IAB25", "IAB12", "Unknown"]


def test_unsupported_version():
    assert supported_versions() == ["v2", "v3"]
    with pytest.raises(ConfigurationError):
        map_category_to_code("malware", "v9")


def test_pipeline_runs_stages_in_order():
    pipeline = RefinementPipeline(rule_engine=RuleEngine(), iab_version="v2")

    result = pipeline.refine("https://reddit.com/", "reddit.com", ["reddit", "news"])

    # news is removed by the smart rule before IAB mapping
    assert result == ["IAB14"]


def test_pipeline_with_no_stages_is_identity():
    assert RefinementPipeline().refine("https://x.com", "x.com", ["a", "b"]) == ["a", "b"]
