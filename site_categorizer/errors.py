"""Exception hierarchy for site-categorizer.

Only configuration, input and dataset errors reach callers. Source fetch,
cache and DNS problems are recovered internally and reported through
result objects instead.
"""


class CategorizerError(Exception):
    """Base class for all site-categorizer errors."""


class ConfigurationError(CategorizerError):
    """Invalid or incomplete client configuration."""


class CategoryReferenceError(ConfigurationError):
    """Category definitions reference each other in a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__("Circular category reference: " + " -> ".join(cycle))


class InvalidInputError(CategorizerError, ValueError):
    """A URL, domain or IP passed for categorization could not be parsed."""


class SourceFetchError(CategorizerError):
    """A blocklist source could not be retrieved.

    Attributes:
        url: Source URL
        error_type: Short failure class (timeout, connection, invalid_url, http, io)
    """

    def __init__(self, url: str, error_type: str, message: str):
        self.url = url
        self.error_type = error_type
        super().__init__(message)


class CacheCorruptionError(CategorizerError):
    """A cache file exists but cannot be deserialized."""


class DatasetError(CategorizerError):
    """Base class for dataset acquisition and integration failures."""


class DatasetConfigurationError(DatasetError):
    """Dataset processing is disabled, unconfigured or lacks credentials."""


class DatasetParseError(DatasetError):
    """A CSV body or dataset archive is malformed."""


class DatasetDownloadError(DatasetError):
    """A dataset download request failed."""
