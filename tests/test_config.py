"""Tests for environment-driven configuration."""

from site_categorizer.config import CategorizerSettings, Config, DatasetConfig
from site_categorizer.constants import DEFAULT_DNS_SERVERS, DEFAULT_HOST_URLS


def test_settings_defaults():
    settings = CategorizerSettings()

    assert settings.host_urls == DEFAULT_HOST_URLS
    assert settings.host_urls is not DEFAULT_HOST_URLS
    assert settings.dns_servers == DEFAULT_DNS_SERVERS
    assert settings.iab_version == "v3"
    assert settings.dataset_config is None


def test_from_env_reads_config(monkeypatch):
    monkeypatch.setattr(Config, "CACHE_DIR", "/tmp/lists")
    monkeypatch.setattr(Config, "DNS_SERVERS", ["9.9.9.9"])
    monkeypatch.setattr(Config, "IAB_COMPLIANCE", True)
    monkeypatch.setattr(Config, "DATASET_DOWNLOAD_PATH", None)
    monkeypatch.setattr(Config, "DATASET_CACHE_PATH", None)

    settings = CategorizerSettings.from_env(host_urls={"ads": []})

    assert settings.cache_dir == "/tmp/lists"
    assert settings.dns_servers == ["9.9.9.9"]
    assert settings.iab_compliance
    assert settings.host_urls == {"ads": []}
    assert settings.dataset_config is None


def test_from_env_builds_dataset_config(monkeypatch):
    monkeypatch.setattr(Config, "DATASET_DOWNLOAD_PATH", "/tmp/downloads")
    monkeypatch.setattr(Config, "DATASET_CACHE_PATH", None)
    monkeypatch.setattr(Config, "KAGGLE_USERNAME", "me")
    monkeypatch.setattr(Config, "KAGGLE_KEY", "secret")

    settings = CategorizerSettings.from_env()

    assert isinstance(settings.dataset_config, DatasetConfig)
    assert settings.dataset_config.download_path == "/tmp/downloads"
    assert settings.dataset_config.username == "me"


def test_validate_flags_bad_values(monkeypatch):
    monkeypatch.setattr(Config, "CACHE_DIR", None)
    monkeypatch.setattr(Config, "IAB_VERSION", "v9")

    warnings = Config.validate()

    assert any("SITE_CATEGORIZER_CACHE_DIR" in w for w in warnings)
    assert any("v9" in w for w in warnings)
