"""
Refinement pipeline applied to raw categorizations.

Stages run in a fixed order, each only when enabled:

1. Smart rules (domain-triggered transformations)
2. Regex content classification (video-like categories only)
3. IAB taxonomy mapping
"""

from typing import Optional

from site_categorizer.errors import ConfigurationError
from site_categorizer.filters.content_classifier import ContentClassifier
from site_categorizer.filters.iab import get_iab_categories, supported_versions
from site_categorizer.filters.smart_rules import RuleEngine


class RefinementPipeline:
    """
    Composes the optional refinement stages.

    Args:
        rule_engine: Smart rule table, or None to skip
        content_classifier: Regex classifier, or None to skip
        iab_version: IAB taxonomy version ("v2"/"v3"), or None to skip

    Raises:
        ConfigurationError: If iab_version is not a supported taxonomy version
    """

    def __init__(
        self,
        rule_engine: Optional[RuleEngine] = None,
        content_classifier: Optional[ContentClassifier] = None,
        iab_version: Optional[str] = None,
    ):
        if iab_version is not None and iab_version not in supported_versions():
            raise ConfigurationError(
                f"Unsupported IAB version {iab_version!r}; expected one of {supported_versions()}"
            )
        self.rule_engine = rule_engine
        self.content_classifier = content_classifier
        self.iab_version = iab_version

    def refine_categories(self, url: str, host: str, categories: list[str]) -> list[str]:
        """Smart rules and content classification, without IAB mapping."""
        result = list(categories)
        if self.rule_engine is not None:
            result = self.rule_engine.apply(url, host, result)
        if self.content_classifier is not None:
            result = self.content_classifier.apply(url, result)
        return result

    def refine(self, url: str, host: str, categories: list[str]) -> list[str]:
        """
        Run every enabled stage.

        Args:
            url: Full URL as given by the caller
            host: Normalized host
            categories: Raw categories from the graph

        Returns:
            Final category names, or IAB codes when IAB mapping is enabled
        """
        result = self.refine_categories(url, host, categories)
        if self.iab_version is not None:
            result = get_iab_categories(result, self.iab_version)
        return result
