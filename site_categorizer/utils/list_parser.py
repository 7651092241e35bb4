"""Blocklist format detection and host extraction.

Four list dialects are recognized:

- hosts:   ``0.0.0.0 ads.example.com``
- dnsmasq: ``address=/ads.example.com/0.0.0.0``
- ublock:  ``||ads.example.com^$third-party``
- plain:   one domain per line

Lines that do not fit the detected dialect are dropped silently.
"""

import re
from enum import Enum

from site_categorizer.utils.domain_utils import normalize_domain

HOSTS_LINE_PATTERN = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}\s+")
DNSMASQ_PATTERN = re.compile(r"address=/([^/]+)/")

# Number of content lines inspected by detect_format()
DETECTION_SAMPLE_SIZE = 20

# Placeholder names found in hosts files that are never real entries
HOSTS_PLACEHOLDERS = {
    "localhost", "localhost.localdomain", "local", "broadcasthost",
    "0.0.0.0", "ip6-localhost", "ip6-loopback",
}


class ListFormat(str, Enum):
    """Supported blocklist dialects."""

    HOSTS = "hosts"
    DNSMASQ = "dnsmasq"
    UBLOCK = "ublock"
    PLAIN = "plain"


def _content_lines(content: str) -> list[str]:
    """Stripped lines with blanks and ``#`` comments removed."""
    lines = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            lines.append(line)
    return lines


def detect_format(content: str) -> ListFormat:
    """
    Classify raw list text into a dialect.

    Inspects up to the first 20 non-empty, non-comment lines. hosts wins over
    dnsmasq, dnsmasq over ublock; anything else is plain.

    Examples:
        >>> detect_format("0.0.0.0 x.com")
        <ListFormat.HOSTS: 'hosts'>
        >>> detect_format("||x.com^")
        <ListFormat.UBLOCK: 'ublock'>
    """
    sample = _content_lines(content)[:DETECTION_SAMPLE_SIZE]

    if any(HOSTS_LINE_PATTERN.match(line) for line in sample):
        return ListFormat.HOSTS
    if any("address=/" in line for line in sample):
        return ListFormat.DNSMASQ
    if any(line.startswith("||") for line in sample):
        return ListFormat.UBLOCK
    return ListFormat.PLAIN


def _parse_hosts_line(line: str) -> str:
    parts = line.split()
    if len(parts) < 2 or not HOSTS_LINE_PATTERN.match(line):
        return ""
    if parts[1].lower() in HOSTS_PLACEHOLDERS:
        return ""
    return parts[1]


def _parse_dnsmasq_line(line: str) -> str:
    match = DNSMASQ_PATTERN.search(line)
    return match.group(1) if match else ""


def _parse_ublock_line(line: str) -> str:
    if not line.startswith("||"):
        return ""
    entry = line[2:]
    # Options ($...) and separators (^...) are not part of the host
    for marker in ("$", "^"):
        index = entry.find(marker)
        if index != -1:
            entry = entry[:index]
    return entry


_LINE_PARSERS = {
    ListFormat.HOSTS: _parse_hosts_line,
    ListFormat.DNSMASQ: _parse_dnsmasq_line,
    ListFormat.UBLOCK: _parse_ublock_line,
    ListFormat.PLAIN: str.strip,
}


def parse_list(content: str, fmt: ListFormat) -> list[str]:
    """
    Extract host entries from list text in a known dialect.

    Args:
        content: Raw list body
        fmt: Dialect, usually from detect_format()

    Returns:
        Normalized host entries in file order (duplicates kept)
    """
    parse_line = _LINE_PARSERS[ListFormat(fmt)]

    hosts = []
    for line in _content_lines(content):
        entry = normalize_domain(parse_line(line))
        if entry:
            hosts.append(entry)
    return hosts


def parse_content(content: str) -> list[str]:
    """Detect the dialect of ``content`` and parse it."""
    return parse_list(content, detect_format(content))
