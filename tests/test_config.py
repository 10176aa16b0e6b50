"""Tests for configuration models."""

from pathlib import Path

import pytest
from docseek.models.config import (
    DocumentOptions,
    FetcherKind,
    ScrapeOptions,
    SpiderConfig,
    StrategyKind,
)
from pydantic import ValidationError


class TestSpiderConfig:
    """Tests for SpiderConfig."""

    def test_defaults(self):
        config = SpiderConfig()
        assert config.network.timeout_ms == 30000
        assert config.network.rate_limit == 1.0
        assert config.network.max_retries == 0
        assert config.browser.headless is True
        assert config.browser.wait_until == "networkidle"
        assert config.cache.enabled is True
        assert config.cache.backend == "file"
        assert config.cache.default_expiry_ms == 300000
        assert config.log_level == "INFO"

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            SpiderConfig(network={"speed": "fast"})

    def test_load_from_yaml_file(self, tmp_path):
        config_file = tmp_path / "docseek.yaml"
        config_file.write_text(
            """
network:
  user_agent: CouncilBot/2.0
  rate_limit: 0.25
  headers:
    Accept-Language: en
browser:
  max_contexts: 4
cache:
  backend: memory
  default_expiry_ms: 60000
log_level: DEBUG
"""
        )

        config = SpiderConfig.from_yaml_file(config_file)

        assert config.network.user_agent == "CouncilBot/2.0"
        assert config.network.rate_limit == 0.25
        assert config.network.headers == {"Accept-Language": "en"}
        assert config.browser.max_contexts == 4
        assert config.cache.backend == "memory"
        assert config.cache.default_expiry_ms == 60000
        assert config.log_level == "DEBUG"

    def test_empty_yaml(self):
        assert SpiderConfig.from_yaml("") == SpiderConfig()

    def test_yaml_round_trip(self):
        config = SpiderConfig(network={"user_agent": "Bot/1.0", "timeout_ms": 5000}, cache={"directory": "/tmp/c"})
        loaded = SpiderConfig.from_yaml(config.to_yaml())

        assert loaded.network.user_agent == "Bot/1.0"
        assert loaded.network.timeout_ms == 5000
        assert loaded.cache.directory == Path("/tmp/c")

    def test_from_env(self):
        environ = {
            "DOCSEEK_TIMEOUT": "12000",
            "DOCSEEK_USER_AGENT": "EnvBot/1.0",
            "DOCSEEK_RATE_LIMIT": "0",
            "DOCSEEK_CACHE_DIR": "/var/cache/docseek",
            "DOCSEEK_CACHE_BACKEND": "MEMORY",
            "DOCSEEK_LOG_LEVEL": "warning",
            "UNRELATED": "x",
        }

        config = SpiderConfig.from_env(environ)

        assert config.network.timeout_ms == 12000
        assert config.network.user_agent == "EnvBot/1.0"
        assert config.network.rate_limit == 0
        assert config.cache.directory == Path("/var/cache/docseek")
        assert config.cache.backend == "memory"
        assert config.log_level == "WARNING"

    def test_from_env_overrides_base(self):
        base = SpiderConfig(network={"user_agent": "FileBot/1.0", "rate_limit": 2.0})
        config = SpiderConfig.from_env({"DOCSEEK_RATE_LIMIT": "0.5"}, base=base)

        assert config.network.user_agent == "FileBot/1.0"
        assert config.network.rate_limit == 0.5

    def test_from_env_ignores_empty_values(self):
        assert SpiderConfig.from_env({"DOCSEEK_USER_AGENT": ""}).network.user_agent is None

    def test_from_env_invalid_value(self):
        with pytest.raises(ValidationError):
            SpiderConfig.from_env({"DOCSEEK_TIMEOUT": "soon"})


class TestScrapeOptions:
    """Tests for per-call options."""

    def test_defaults(self):
        options = ScrapeOptions()
        assert options.strategy == StrategyKind.BASIC
        assert options.fetcher is None
        assert options.max_iterations == 10
        assert options.click_delay_ms == 100
        assert options.cache is True

    def test_strategy_from_string(self):
        assert ScrapeOptions(strategy="tree").strategy == StrategyKind.TREE

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            ScrapeOptions(max_iterations=0)
        with pytest.raises(ValidationError):
            ScrapeOptions(cache_expiry_ms=-1)
        with pytest.raises(ValidationError):
            ScrapeOptions(strategy="deep")

    def test_document_options_default_to_normalized_fetcher(self):
        options = DocumentOptions().to_scrape_options()
        assert options.strategy == StrategyKind.BASIC
        assert options.fetcher == FetcherKind.NORMALIZED

    def test_document_options_tree_uses_browser(self):
        options = DocumentOptions(strategy="tree", cache_expiry_ms=0).to_scrape_options()
        assert options.fetcher is None
        assert options.cache_expiry_ms == 0
