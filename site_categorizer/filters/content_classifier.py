"""
Regex content classification for video URLs.

A domain-level category such as ``youtube`` says nothing about whether a URL
points at an actual video. When a categorization contains a video-like
category, the full URL is tested against a pattern table and a
``<category>_content`` marker is added on a match:

    https://youtube.com/watch?v=abc123  ->  [youtube, youtube_content]
    https://youtube.com/                ->  [youtube]

The pattern table is plain text, loaded once:

    # Source: youtube
    https?://(?:www\\.)?youtube\\.com/watch
    # Source: vimeo
    https?://(?:www\\.)?vimeo\\.com/\\d+
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union
from urllib.parse import unquote, urlsplit

import httpx

from site_categorizer.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    URL_KIND_SECTIONS,
    VIDEO_CATEGORIES,
    VIDEO_URL_PATTERNS_FILE,
)
from site_categorizer.utils.domain_utils import unique

logger = logging.getLogger(__name__)

SOURCE_HEADER = re.compile(r"^#\s*Source:\s*(.+?)\s*$", re.IGNORECASE)

PatternTable = Mapping[str, tuple[re.Pattern, ...]]


@dataclass
class ContentClassification:
    """Result of content classification for one URL."""

    categories: list[str]  # Input categories plus any *_content markers
    content_categories: list[str]  # Markers added by this pass
    matched_sources: list[str]  # Pattern table sections that matched

    @property
    def is_video(self) -> bool:
        return bool(self.content_categories)


def parse_pattern_text(text: str) -> PatternTable:
    """
    Parse pattern resource text into an immutable table.

    Lines before the first ``# Source:`` header are ignored. Patterns that
    fail to compile are skipped with a warning.

    Args:
        text: Resource body

    Returns:
        Mapping of source name -> compiled patterns
    """
    table: dict[str, list[re.Pattern]] = {}
    current: Optional[str] = None

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        header = SOURCE_HEADER.match(line)
        if header:
            current = header.group(1)
            table.setdefault(current, [])
            continue
        if line.startswith("#"):
            continue
        if current is None:
            logger.debug("Ignoring pattern outside a source section (line %d)", line_no)
            continue

        try:
            table[current].append(re.compile(line, re.IGNORECASE))
        except re.error as e:
            logger.warning("Skipping invalid regex on line %d (%s): %s", line_no, current, e)

    return MappingProxyType({name: tuple(patterns) for name, patterns in table.items()})


def _read_pattern_source(source: Union[str, Path], client: Optional[httpx.Client], timeout: float) -> str:
    source_str = str(source)
    scheme = urlsplit(source_str).scheme.lower() if "://" in source_str else ""

    if scheme in ("http", "https"):
        if client is not None:
            response = client.get(source_str, timeout=timeout)
        else:
            response = httpx.get(source_str, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return response.text

    if scheme == "file":
        parts = urlsplit(source_str)
        return Path(unquote(parts.netloc + parts.path)).read_text(encoding="utf-8")

    return Path(source_str).read_text(encoding="utf-8")


def load_pattern_table(
    source: Union[str, Path] = VIDEO_URL_PATTERNS_FILE,
    client: Optional[httpx.Client] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> PatternTable:
    """
    Load the pattern table from a local path, ``file://`` URL or ``http(s)://`` URL.

    An unreadable resource yields an empty table; classification then
    never adds markers.
    """
    try:
        text = _read_pattern_source(source, client, timeout)
    except (OSError, httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Could not load regex patterns from %s: %s", source, e)
        return MappingProxyType({})

    table = parse_pattern_text(text)
    logger.debug("Loaded %d pattern sections from %s", len(table), source)
    return table


class ContentClassifier:
    """
    Adds ``<category>_content`` markers to video-like categorizations.

    For each video-like category present, the URL is tested against the
    table section of the same name when one exists, otherwise against every
    platform section. URL kind sections (shorts, playlist, music, channel,
    live_stream) are only consulted by matches_kind().
    """

    def __init__(
        self,
        patterns: Optional[PatternTable] = None,
        video_categories: frozenset[str] = VIDEO_CATEGORIES,
    ):
        """
        Initialize content classifier.

        Args:
            patterns: Pattern table (defaults to the bundled resource)
            video_categories: Categories that enable classification
        """
        self.patterns = patterns if patterns is not None else load_pattern_table()
        self.video_categories = video_categories

    def _patterns_for(self, category: str) -> list[tuple[str, re.Pattern]]:
        if category in self.patterns:
            return [(category, p) for p in self.patterns[category]]
        return [
            (name, p)
            for name, patterns in self.patterns.items()
            if name not in URL_KIND_SECTIONS
            for p in patterns
        ]

    def matches_kind(self, url: str, kind: str, categories: list[str]) -> bool:
        """
        Whether a URL in a video-like category matches the ``kind`` section.

        Args:
            url: Full URL
            kind: Section name such as ``shorts`` or ``channel``
            categories: Categories for the URL's host

        Returns:
            False when no category is video-like or the table has no such section
        """
        if not any(c in self.video_categories for c in categories):
            return False
        return any(pattern.search(url) for pattern in self.patterns.get(kind, ()))

    def classify(self, url: str, categories: list[str]) -> ContentClassification:
        """
        Classify a URL given its domain-level categories.

        Args:
            url: Full URL
            categories: Categories from earlier stages

        Returns:
            ContentClassification with the extended category list
        """
        video_like = [c for c in categories if c in self.video_categories]
        added: list[str] = []
        matched: list[str] = []

        for category in video_like:
            for source, pattern in self._patterns_for(category):
                if pattern.search(url):
                    added.append(f"{category}_content")
                    matched.append(source)
                    break

        return ContentClassification(
            categories=unique([*categories, *added]),
            content_categories=added,
            matched_sources=unique(matched),
        )

    def apply(self, url: str, categories: list[str]) -> list[str]:
        return self.classify(url, categories).categories
