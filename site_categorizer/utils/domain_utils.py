"""Domain utilities for normalization, host extraction and matching."""

import re
from typing import Iterable, Iterator, Optional
from urllib.parse import urlsplit

import tldextract

from site_categorizer.errors import InvalidInputError

IPV4_PATTERN = re.compile(r"^(?:\d{1,3}\.){3}\d{1,3}$")
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")

# Offline extractor: uses the public suffix snapshot bundled with tldextract
_TLD_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())

BLOG_PLATFORMS = {
    'wordpress.com', 'blogspot.com', 'blogger.com', 'medium.com',
    'substack.com', 'tumblr.com', 'ghost.io', 'livejournal.com',
    'hashnode.dev', 'write.as',
}

SEARCH_ENGINES = {
    'google.com', 'bing.com', 'yahoo.com', 'duckduckgo.com',
    'baidu.com', 'yandex.com', 'ask.com',
}

BLOG_PATH_PATTERN = re.compile(
    r"/(?:blogs?|posts?|articles?|diary|journal)(?:/|$)"
    r"|[/-]blog-|-blog(?:/|$|-)",
    re.IGNORECASE,
)
BLOG_NAME_PATTERN = re.compile(r"blog|diary|journal", re.IGNORECASE)


def normalize_domain(domain: str) -> str:
    """
    Normalize a domain to a canonical form.

    - Converts to lowercase
    - Strips www. prefix
    - Handles URLs by extracting domain
    - Strips whitespace and trailing dots

    Args:
        domain: Raw domain string or URL

    Returns:
        Normalized domain string

    Examples:
        >>> normalize_domain("WWW.EXAMPLE.COM")
        'example.com'
        >>> normalize_domain("https://www.example.com/path")
        'example.com'
        >>> normalize_domain("  example.com.  ")
        'example.com'
    """
    if not domain:
        return ""

    domain = domain.strip()

    # If it looks like a URL, parse it
    if "://" in domain:
        parsed = urlsplit(domain)
        domain = parsed.netloc or parsed.path

    domain = domain.lower().rstrip(".")

    if domain.startswith("www."):
        domain = domain[4:]

    return domain


def extract_host(url: str) -> str:
    """
    Extract the normalized host component from a URL or bare domain.

    A scheme is assumed when missing; path, query, credentials and port are
    dropped; the result is lower-cased with any leading ``www.`` removed.

    Args:
        url: URL, domain or IP literal

    Returns:
        Host string

    Raises:
        InvalidInputError: If ``url`` is not a string or contains no host

    Examples:
        >>> extract_host("https://WWW.Example.com:8443/a?b=c")
        'example.com'
        >>> extract_host("sub.example.com/path")
        'sub.example.com'
    """
    if not isinstance(url, str):
        raise InvalidInputError(f"Expected a URL string, got {type(url).__name__}")

    candidate = url.strip()
    if not SCHEME_PATTERN.match(candidate):
        candidate = f"http://{candidate}"

    try:
        host = urlsplit(candidate).hostname
    except ValueError as e:
        raise InvalidInputError(f"Cannot parse URL {url!r}: {e}") from e

    if not host:
        raise InvalidInputError(f"No host found in {url!r}")

    host = host.rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    if not host:
        raise InvalidInputError(f"No host found in {url!r}")
    return host


def is_ipv4(value: str) -> bool:
    """
    Check if a string is an IPv4 dotted quad.

    Examples:
        >>> is_ipv4("192.168.0.1")
        True
        >>> is_ipv4("example.com")
        False
    """
    if not IPV4_PATTERN.match(value):
        return False
    return all(int(octet) <= 255 for octet in value.split("."))


def host_suffixes(host: str) -> Iterator[str]:
    """
    Yield the host and every parent domain, most specific first.

    Examples:
        >>> list(host_suffixes("a.b.example.com"))
        ['a.b.example.com', 'b.example.com', 'example.com', 'com']
    """
    labels = host.split(".")
    for i in range(len(labels)):
        yield ".".join(labels[i:])


def matches_domain(host: str, domain: str) -> bool:
    """
    Suffix match on a domain boundary.

    ``host`` matches ``domain`` when it is equal to it or a strict subdomain.

    Examples:
        >>> matches_domain("old.reddit.com", "reddit.com")
        True
        >>> matches_domain("notreddit.com", "reddit.com")
        False
    """
    return host == domain or host.endswith("." + domain)


def unique(items: Iterable[str]) -> list[str]:
    """Deduplicate while preserving first-seen order."""
    return list(dict.fromkeys(items))


def is_blog_url(url: Optional[str]) -> bool:
    """
    Heuristic check for blog content.

    Recognizes blog hosting platforms, ``blog.``/``journal.`` subdomains,
    registered names containing blog/diary/journal, and blog-like paths
    (``/blog``, ``/posts/...``, ``/article/...``). Search engine result pages
    are never blogs.

    Args:
        url: Absolute http(s) URL

    Returns:
        True if the URL looks like blog content
    """
    if not url or not isinstance(url, str):
        return False
    if not re.match(r"^https?://", url, re.IGNORECASE):
        return False

    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False

    extracted = _TLD_EXTRACT(host)
    registered = f"{extracted.domain}.{extracted.suffix}" if extracted.suffix else extracted.domain

    if registered in SEARCH_ENGINES:
        return False

    if registered in BLOG_PLATFORMS:
        return True

    subdomain_labels = extracted.subdomain.split(".") if extracted.subdomain else []
    if any(label in ("blog", "blogs", "journal") for label in subdomain_labels):
        return True

    if BLOG_NAME_PATTERN.search(extracted.domain):
        return True

    return bool(BLOG_PATH_PATTERN.search(parts.path or ""))
