"""Domain-triggered smart rules.

A rule fires when the categorized host equals or is a subdomain of one of
its trigger domains, then transforms the category list in a fixed order:

1. remove_categories:       drop the listed categories
2. keep_primary_only:       keep only these, unless none are present
3. add_categories_by_path:  add categories when the URL matches a pattern
4. allowed_categories_only: final whitelist

Rules are data. Built-in defaults are merged with user rules by name at
construction time; a user rule replaces the default of the same name.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional, Union

from site_categorizer.errors import ConfigurationError
from site_categorizer.utils.domain_utils import matches_domain, normalize_domain, unique


@dataclass(frozen=True)
class SmartRule:
    """One domain-triggered transformation."""

    name: str
    domains: tuple[str, ...]
    remove_categories: frozenset[str] = frozenset()
    keep_primary_only: Optional[tuple[str, ...]] = None
    add_categories_by_path: tuple[tuple[re.Pattern, tuple[str, ...]], ...] = ()
    allowed_categories_only: Optional[tuple[str, ...]] = None

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "SmartRule":
        """
        Build a rule from a plain mapping.

        Args:
            name: Rule name
            data: Mapping with ``domains`` and any transformation keys;
                path patterns may be strings or compiled regexes

        Raises:
            ConfigurationError: If ``domains`` is missing or a pattern is invalid
        """
        domains = data.get("domains")
        if not domains:
            raise ConfigurationError(f"Smart rule {name!r} needs a non-empty 'domains' list")

        path_rules = []
        for pattern, categories in (data.get("add_categories_by_path") or {}).items():
            try:
                compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(f"Smart rule {name!r}: bad path pattern {pattern!r}: {e}") from e
            path_rules.append((compiled, tuple(categories)))

        keep = data.get("keep_primary_only")
        allowed = data.get("allowed_categories_only")
        return cls(
            name=name,
            domains=tuple(normalize_domain(d) for d in domains),
            remove_categories=frozenset(data.get("remove_categories") or ()),
            keep_primary_only=tuple(keep) if keep else None,
            add_categories_by_path=tuple(path_rules),
            allowed_categories_only=tuple(allowed) if allowed else None,
        )

    def matches(self, host: str) -> bool:
        return any(matches_domain(host, domain) for domain in self.domains)

    def apply(self, url: str, categories: list[str]) -> list[str]:
        """Transform ``categories`` for a URL whose host triggered this rule."""
        result = [c for c in categories if c not in self.remove_categories]

        if self.keep_primary_only:
            primary = [c for c in result if c in self.keep_primary_only]
            if primary:
                result = primary

        for pattern, extra in self.add_categories_by_path:
            if pattern.search(url):
                result = unique([*result, *extra])

        if self.allowed_categories_only is not None:
            result = [c for c in result if c in self.allowed_categories_only]

        return result


DEFAULT_SMART_RULES: Mapping[str, SmartRule] = MappingProxyType({
    rule.name: rule for rule in (
        SmartRule.from_mapping("social_media_platforms", {
            "domains": [
                "reddit.com", "facebook.com", "instagram.com", "twitter.com",
                "x.com", "linkedin.com", "tiktok.com", "youtube.com",
                "pinterest.com", "snapchat.com",
            ],
            # Broad topical lists tag whole platforms; drop those tags
            "remove_categories": [
                "health_and_fitness", "forums", "news", "politics",
                "education", "government", "shopping",
            ],
        }),
        SmartRule.from_mapping("search_engines", {
            "domains": [
                "google.com", "bing.com", "yahoo.com", "duckduckgo.com",
                "baidu.com", "yandex.com", "ask.com",
            ],
            "remove_categories": [
                "news", "shopping", "travel", "health_and_fitness",
                "education", "forums",
            ],
        }),
        SmartRule.from_mapping("link_shorteners", {
            "domains": [
                "bit.ly", "tinyurl.com", "t.co", "goo.gl", "ow.ly",
                "is.gd", "buff.ly", "rebrand.ly",
            ],
            "keep_primary_only": ["redirect", "url_shorteners", "tracking"],
        }),
    )
})


def merge_rules(
    defaults: Mapping[str, SmartRule],
    user_rules: Optional[Mapping[str, Union[SmartRule, Mapping[str, Any]]]] = None,
) -> dict[str, SmartRule]:
    """
    Merge user rules into defaults by name.

    A user rule fully replaces the default with the same name and keeps its
    position; new names are appended in the order given.
    """
    merged = dict(defaults)
    for name, rule in (user_rules or {}).items():
        merged[name] = rule if isinstance(rule, SmartRule) else SmartRule.from_mapping(name, rule)
    return merged


class RuleEngine:
    """
    Immutable rule table applied to raw categorizations.

    Args:
        user_rules: Rules merged over DEFAULT_SMART_RULES
        defaults: Base rule table
    """

    def __init__(
        self,
        user_rules: Optional[Mapping[str, Union[SmartRule, Mapping[str, Any]]]] = None,
        defaults: Mapping[str, SmartRule] = DEFAULT_SMART_RULES,
    ):
        self.rules: Mapping[str, SmartRule] = MappingProxyType(merge_rules(defaults, user_rules))

    def apply(self, url: str, host: str, categories: list[str]) -> list[str]:
        """
        Apply every matching rule, cumulatively, in table order.

        Args:
            url: Full URL as given by the caller
            host: Normalized host of url
            categories: Raw category list

        Returns:
            Transformed category list
        """
        result = list(categories)
        for rule in self.rules.values():
            if rule.matches(host):
                result = rule.apply(url, result)
        return result
