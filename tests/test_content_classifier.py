"""Tests for regex content classification."""

from site_categorizer.filters.content_classifier import ContentClassifier, load_pattern_table, parse_pattern_text

PATTERNS = """
# Video patterns
# Source: youtube
https?://(?:www\\.)?youtube\\.com/watch\\?v=\\w+
# Source: vimeo
https?://(?:www\\.)?vimeo\\.com/\\d+
([unclosed
"""


def test_parse_pattern_text_sections_and_bad_regex():
    table = parse_pattern_text(PATTERNS)

    assert list(table) == ["youtube", "vimeo"]
    assert len(table["youtube"]) == 1
    assert len(table["vimeo"]) == 1


def test_patterns_before_first_header_are_ignored():
    table = parse_pattern_text("orphan.*\n# Source: a\nx+\n")
    assert list(table) == ["a"]


def test_matching_category_section_adds_content_marker():
    classifier = ContentClassifier(parse_pattern_text(PATTERNS))

    result = classifier.classify("https://youtube.com/watch?v=abc123", ["youtube"])

    assert result.categories == ["youtube", "youtube_content"]
    assert result.matched_sources == ["youtube"]
    assert result.is_video


def test_no_match_leaves_categories_unchanged():
    classifier = ContentClassifier(parse_pattern_text(PATTERNS))
    assert classifier.apply("https://youtube.com/", ["youtube"]) == ["youtube"]


def test_category_without_section_uses_all_patterns():
    classifier = ContentClassifier(parse_pattern_text(PATTERNS))

    assert classifier.apply("https://vimeo.com/123456", ["video"]) == ["video", "video_content"]
    assert classifier.apply("https://youtube.com/watch?v=abc", ["video"]) == ["video", "video_content"]


def test_same_named_section_restricts_patterns():
    classifier = ContentClassifier(parse_pattern_text(PATTERNS))
    assert classifier.apply("https://vimeo.com/123456", ["youtube"]) == ["youtube"]


def test_non_video_categories_are_not_classified():
    classifier = ContentClassifier(parse_pattern_text(PATTERNS))
    assert classifier.apply("https://youtube.com/watch?v=abc", ["news"]) == ["news"]


def test_load_pattern_table_from_path_and_file_url(tmp_path):
    path = tmp_path / "patterns.txt"
    path.write_text(PATTERNS)

    assert list(load_pattern_table(path)) == ["youtube", "vimeo"]
    assert list(load_pattern_table(f"file://{path}")) == ["youtube", "vimeo"]


def test_load_pattern_table_over_http(routes, http_client):
    routes.add("GET", "https://patterns.example.org/video.txt", PATTERNS)

    table = load_pattern_table("https://patterns.example.org/video.txt", client=http_client)

    assert list(table) == ["youtube", "vimeo"]


def test_unreachable_pattern_source_yields_empty_table(http_client, tmp_path):
    assert dict(load_pattern_table(tmp_path / "missing.txt")) == {}
    assert dict(load_pattern_table("https://patterns.example.org/none.txt", client=http_client)) == {}


def test_bundled_patterns_load():
    table = load_pattern_table()
    assert {"youtube", "vimeo"} <= set(table)
