"""Configuration management for site-categorizer.

Loads defaults from environment variables and a .env file; per-client
options live in CategorizerSettings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from site_categorizer.constants import (
    DEFAULT_DNS_SERVERS,
    DEFAULT_HOST_URLS,
    DEFAULT_IAB_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    VIDEO_URL_PATTERNS_FILE,
)
from site_categorizer.schema import DatasetSource

# Load .env file from project root
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Application configuration."""

    # Blocklist cache (unset disables the disk cache)
    CACHE_DIR: Optional[str] = os.getenv("SITE_CATEGORIZER_CACHE_DIR")
    FORCE_DOWNLOAD: bool = _env_bool("SITE_CATEGORIZER_FORCE_DOWNLOAD")

    # Network
    REQUEST_TIMEOUT: float = float(os.getenv("SITE_CATEGORIZER_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT)))
    DNS_SERVERS: list[str] = _env_list("SITE_CATEGORIZER_DNS_SERVERS", DEFAULT_DNS_SERVERS)

    # Refinement
    SMART_CATEGORIZATION: bool = _env_bool("SITE_CATEGORIZER_SMART_CATEGORIZATION")
    REGEX_CATEGORIZATION: bool = _env_bool("SITE_CATEGORIZER_REGEX_CATEGORIZATION")
    REGEX_PATTERNS_FILE: str = os.getenv("SITE_CATEGORIZER_REGEX_PATTERNS_FILE", str(VIDEO_URL_PATTERNS_FILE))
    IAB_COMPLIANCE: bool = _env_bool("SITE_CATEGORIZER_IAB_COMPLIANCE")
    IAB_VERSION: str = os.getenv("SITE_CATEGORIZER_IAB_VERSION", DEFAULT_IAB_VERSION)

    # Datasets
    DATASET_DOWNLOAD_PATH: Optional[str] = os.getenv("SITE_CATEGORIZER_DATASET_DOWNLOAD_PATH")
    DATASET_CACHE_PATH: Optional[str] = os.getenv("SITE_CATEGORIZER_DATASET_CACHE_PATH")
    DATASET_TIMEOUT: float = float(os.getenv("SITE_CATEGORIZER_DATASET_TIMEOUT", "30"))
    ENABLE_KAGGLE: bool = _env_bool("SITE_CATEGORIZER_ENABLE_KAGGLE", "true")

    # Kaggle API
    KAGGLE_USERNAME: Optional[str] = os.getenv("KAGGLE_USERNAME")
    KAGGLE_KEY: Optional[str] = os.getenv("KAGGLE_KEY")

    @classmethod
    def dataset_configured(cls) -> bool:
        return bool(cls.DATASET_DOWNLOAD_PATH or cls.DATASET_CACHE_PATH)

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of warnings/errors
        """
        warnings = []

        if not cls.CACHE_DIR:
            warnings.append(
                "SITE_CATEGORIZER_CACHE_DIR not set - every list will be downloaded on each start."
            )

        if cls.IAB_VERSION not in ("v2", "v3"):
            warnings.append(f"Unsupported IAB version {cls.IAB_VERSION!r}; expected v2 or v3")

        if cls.REQUEST_TIMEOUT <= 0:
            warnings.append(f"Request timeout must be positive, got {cls.REQUEST_TIMEOUT}")

        if cls.REGEX_CATEGORIZATION and "://" not in cls.REGEX_PATTERNS_FILE \
                and not Path(cls.REGEX_PATTERNS_FILE).exists():
            warnings.append(f"Regex patterns file not found: {cls.REGEX_PATTERNS_FILE}")

        if cls.ENABLE_KAGGLE and cls.dataset_configured() and not (cls.KAGGLE_USERNAME and cls.KAGGLE_KEY):
            warnings.append(
                "KAGGLE_USERNAME/KAGGLE_KEY not set - Kaggle datasets will only load from cache "
                "unless ~/.kaggle/kaggle.json exists."
            )

        return warnings

    @classmethod
    def print_status(cls):
        """Print configuration status."""
        from rich.console import Console
        from rich.table import Table

        console = Console()

        table = Table(title="Site Categorizer Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="yellow")
        table.add_column("Status", style="green")

        # Cache
        if cls.CACHE_DIR:
            table.add_row("Cache Directory", cls.CACHE_DIR, "✓ Set")
        else:
            table.add_row("Cache Directory", "Not set", "✗ Disabled")

        # Network
        table.add_row("Request Timeout", f"{cls.REQUEST_TIMEOUT}s", "✓")
        table.add_row("DNS Servers", ", ".join(cls.DNS_SERVERS), "✓")

        # Refinement
        table.add_row("Smart Categorization", "On" if cls.SMART_CATEGORIZATION else "Off", "✓")
        table.add_row("Regex Categorization", "On" if cls.REGEX_CATEGORIZATION else "Off", "✓")
        table.add_row(
            "IAB Compliance",
            f"On ({cls.IAB_VERSION})" if cls.IAB_COMPLIANCE else "Off",
            "✓" if cls.IAB_VERSION in ("v2", "v3") else "✗"
        )

        # Kaggle
        if cls.KAGGLE_USERNAME and cls.KAGGLE_KEY:
            key_preview = cls.KAGGLE_KEY[:4] + "..." if len(cls.KAGGLE_KEY) > 4 else "***"
            table.add_row("Kaggle Credentials", f"{cls.KAGGLE_USERNAME} / {key_preview}", "✓ Set")
        else:
            table.add_row("Kaggle Credentials", "Not set", "✗ Missing")

        console.print(table)

        # Print warnings
        warnings = cls.validate()
        if warnings:
            console.print("\n[yellow]Warnings:[/yellow]")
            for warning in warnings:
                console.print(f"  ⚠️  {warning}")


@dataclass
class DatasetConfig:
    """Options for the dataset processor."""

    download_path: Optional[str] = None
    cache_path: Optional[str] = None
    timeout: float = 30
    username: Optional[str] = None
    api_key: Optional[str] = None
    credentials_file: Optional[str] = None
    enable_kaggle: bool = True


@dataclass
class CategorizerSettings:
    """
    Options for one CategoryClient.

    Attributes:
        host_urls: Category -> source URLs and/or category names
        cache_dir: Blocklist cache directory (None disables caching)
        force_download: Ignore cached lists
        dns_servers: Nameservers for resolve_and_categorise
        request_timeout: Per-request timeout in seconds
        smart_categorization: Apply smart rules
        smart_rules: User rules merged over the built-in defaults by name
        regex_categorization: Apply regex content classification
        regex_patterns_file: Local path, file:// or http(s):// URL
        iab_compliance: Map results to IAB codes
        iab_version: v2 or v3
        dataset_config: Enables dataset loading when set
        auto_load_datasets: Load ``datasets`` at construction
        datasets: Datasets to auto-load
    """

    host_urls: dict[str, list[str]] = field(default_factory=lambda: dict(DEFAULT_HOST_URLS))
    cache_dir: Optional[str] = None
    force_download: bool = False
    dns_servers: list[str] = field(default_factory=lambda: list(DEFAULT_DNS_SERVERS))
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    smart_categorization: bool = False
    smart_rules: dict[str, Any] = field(default_factory=dict)
    regex_categorization: bool = False
    regex_patterns_file: str = str(VIDEO_URL_PATTERNS_FILE)
    iab_compliance: bool = False
    iab_version: str = DEFAULT_IAB_VERSION
    dataset_config: Optional[DatasetConfig] = None
    auto_load_datasets: bool = False
    datasets: list[DatasetSource] = field(default_factory=list)

    @classmethod
    def from_env(cls, **overrides: Any) -> "CategorizerSettings":
        """
        Build settings from Config, then apply keyword overrides.

        Examples:
            >>> settings = CategorizerSettings.from_env(host_urls={"ads": []})
            >>> settings.host_urls
            {'ads': []}
        """
        dataset_config = None
        if Config.dataset_configured():
            dataset_config = DatasetConfig(
                download_path=Config.DATASET_DOWNLOAD_PATH,
                cache_path=Config.DATASET_CACHE_PATH,
                timeout=Config.DATASET_TIMEOUT,
                username=Config.KAGGLE_USERNAME,
                api_key=Config.KAGGLE_KEY,
                enable_kaggle=Config.ENABLE_KAGGLE,
            )

        values: dict[str, Any] = dict(
            cache_dir=Config.CACHE_DIR,
            force_download=Config.FORCE_DOWNLOAD,
            dns_servers=list(Config.DNS_SERVERS),
            request_timeout=Config.REQUEST_TIMEOUT,
            smart_categorization=Config.SMART_CATEGORIZATION,
            regex_categorization=Config.REGEX_CATEGORIZATION,
            regex_patterns_file=Config.REGEX_PATTERNS_FILE,
            iab_compliance=Config.IAB_COMPLIANCE,
            iab_version=Config.IAB_VERSION,
            dataset_config=dataset_config,
        )
        values.update(overrides)
        return cls(**values)
