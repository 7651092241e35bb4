"""Tests for list format detection and parsing."""

import pytest

from site_categorizer.utils.list_parser import ListFormat, detect_format, parse_content, parse_list


@pytest.mark.parametrize("content,expected", [
    ("0.0.0.0 x.com", ListFormat.HOSTS),
    ("127.0.0.1   x.com", ListFormat.HOSTS),
    ("||x.com^", ListFormat.UBLOCK),
    ("address=/x.com/0.0.0.0", ListFormat.DNSMASQ),
    ("x.com", ListFormat.PLAIN),
    ("", ListFormat.PLAIN),
])
def test_detect_format(content, expected):
    assert detect_format(content) == expected


def test_detect_format_precedence():
    mixed = "||ads.com^\naddress=/track.com/0.0.0.0\n0.0.0.0 bad.com"
    assert detect_format(mixed) == ListFormat.HOSTS

    assert detect_format("||ads.com^\naddress=/track.com/0.0.0.0") == ListFormat.DNSMASQ


def test_detect_format_skips_comments_and_blank_lines():
    content = "# Title: test list\n\n# 0.0.0.0 commented.com\n||ads.com^\n"
    assert detect_format(content) == ListFormat.UBLOCK


def test_detect_format_only_samples_first_lines():
    lines = [f"site{i}.com" for i in range(20)] + ["0.0.0.0 late.com"]
    assert detect_format("\n".join(lines)) == ListFormat.PLAIN


def test_parse_hosts_drops_placeholders():
    content = "\n".join([
        "# hosts file",
        "127.0.0.1 localhost",
        "255.255.255.255 broadcasthost",
        "0.0.0.0 0.0.0.0",
        "0.0.0.0 Bad.COM",
        "0.0.0.0 www.evil.com.  # trailing comment",
    ])
    assert parse_list(content, ListFormat.HOSTS) == ["bad.com", "evil.com"]


def test_parse_ublock_strips_options():
    content = "! comment\n||ads.example.com^$third-party\n||track.example.com^\n@@||allowed.com^"
    assert parse_list(content, ListFormat.UBLOCK) == ["ads.example.com", "track.example.com"]


def test_parse_dnsmasq():
    content = "address=/ads.example.com/0.0.0.0\nserver=8.8.8.8\naddress=/track.example.com/"
    assert parse_list(content, ListFormat.DNSMASQ) == ["ads.example.com", "track.example.com"]


def test_parse_plain_normalizes_entries():
    content = "# plain list\nExample.com\n\nwww.other.org.\n"
    assert parse_list(content, ListFormat.PLAIN) == ["example.com", "other.org"]


def test_parse_content_detects_and_parses():
    assert parse_content("0.0.0.0 bad.com\n0.0.0.0 evil.com") == ["bad.com", "evil.com"]
