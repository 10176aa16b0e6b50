"""Pydantic configuration models for docseek."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class StrategyKind(str, Enum):
    """How content is extracted from a page."""

    BASIC = "basic"
    TREE = "tree"


class FetcherKind(str, Enum):
    """Which fetch client tier retrieves the page."""

    STATIC = "static"
    NORMALIZED = "normalized"
    BROWSER = "browser"


class NetworkConfig(BaseModel):
    """Configuration for page fetching."""

    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    max_retries: int = Field(0, ge=0, description="Transport retries for failed requests")
    timeout_ms: int = Field(30000, ge=1, description="Default session timeout in milliseconds")
    rate_limit: float = Field(
        1.0,
        ge=0,
        description="Seconds to wait once per invocation before navigation",
    )
    headers: dict[str, str] = Field(default_factory=dict, description="Extra headers for every request")

    model_config = {"extra": "forbid"}


class BrowserConfig(BaseModel):
    """Configuration for the Playwright-backed interactive client."""

    headless: bool = Field(True, description="Run browser in headless mode")
    max_contexts: int = Field(2, ge=1, description="Maximum concurrent browser contexts")
    wait_until: Literal["load", "domcontentloaded", "networkidle"] = Field(
        "networkidle",
        description="Navigation wait condition",
    )
    post_load_delay: float = Field(0.5, ge=0, description="Seconds to settle after page load")
    download_wait: float = Field(2.0, ge=0, description="Seconds to wait for a triggered download")

    model_config = {"extra": "forbid"}


class CacheConfig(BaseModel):
    """Configuration for the result cache."""

    enabled: bool = Field(True, description="Enable result caching")
    backend: Literal["file", "memory"] = Field("file", description="Cache store backend")
    directory: Path = Field(Path(".cache/docseek"), description="Directory for the file backend")
    namespace: str = Field("docseek", min_length=1, description="Prefix for every cache key")
    default_expiry_ms: int = Field(300000, ge=0, description="Default entry TTL in milliseconds")

    model_config = {"extra": "forbid"}


class ScrapeOptions(BaseModel):
    """
    Per-call options for Spider.scrape().

    Values left as None fall back to the Spider's SpiderConfig.
    """

    strategy: StrategyKind = Field(StrategyKind.BASIC, description="Extraction strategy")
    fetcher: Optional[FetcherKind] = Field(
        None,
        description="Fetch client tier (basic only; tree always uses the browser)",
    )
    max_iterations: int = Field(10, ge=1, description="Expansion rounds for the tree strategy")
    click_delay_ms: int = Field(100, ge=0, description="Settle delay after each click")
    custom_selectors: list[str] = Field(
        default_factory=list,
        description="Extra expandable-element selectors, tried after the defaults",
    )
    cache: bool = Field(True, description="Read and write the result cache")
    cache_expiry_ms: Optional[int] = Field(None, ge=0, description="Cache TTL; 0 disables caching")
    timeout_ms: Optional[int] = Field(None, ge=1, description="Bound on the whole fetch session")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")

    model_config = {"extra": "forbid"}


class DocumentOptions(BaseModel):
    """Per-call options for Spider.resolve_document()."""

    strategy: StrategyKind = Field(StrategyKind.BASIC, description="Extraction strategy")
    fetcher: Optional[FetcherKind] = Field(
        None, description="Fetch client tier (normalized for basic, browser for tree when unset)"
    )
    cache: bool = Field(True, description="Read and write the result cache")
    cache_expiry_ms: Optional[int] = Field(None, ge=0, description="Cache TTL; 0 disables caching")
    timeout_ms: Optional[int] = Field(None, ge=1, description="Bound on each fetch session")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")

    model_config = {"extra": "forbid"}

    def to_scrape_options(self) -> ScrapeOptions:
        return ScrapeOptions(
            strategy=self.strategy,
            fetcher=self.fetcher or (None if self.strategy is StrategyKind.TREE else FetcherKind.NORMALIZED),
            cache=self.cache,
            cache_expiry_ms=self.cache_expiry_ms,
            timeout_ms=self.timeout_ms,
            headers=dict(self.headers),
        )


# Environment variables understood by SpiderConfig.from_env()
ENV_PREFIX = "DOCSEEK_"


class SpiderConfig(BaseModel):
    """
    Root configuration model for docseek.

    Example:
        config = SpiderConfig(
            network=NetworkConfig(rate_limit=0.5),
            cache=CacheConfig(backend="memory"),
        )

    YAML format:
        network:
          user_agent: MyBot/1.0
          rate_limit: 0.5
        cache:
          directory: ./.cache/docseek
    """

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> SpiderConfig:
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> SpiderConfig:
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text())

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional[SpiderConfig] = None,
    ) -> SpiderConfig:
        """
        Build a config from DOCSEEK_* environment variables.

        Recognized variables:
            DOCSEEK_TIMEOUT: default timeout in milliseconds
            DOCSEEK_USER_AGENT: User-Agent header
            DOCSEEK_RATE_LIMIT: seconds to wait before each navigation
            DOCSEEK_CACHE_DIR: file cache directory
            DOCSEEK_CACHE_BACKEND: "file" or "memory"
            DOCSEEK_LOG_LEVEL: logging level

        Args:
            environ: Mapping to read (defaults to os.environ)
            base: Config whose values are overridden (defaults to SpiderConfig())

        Returns:
            New validated SpiderConfig
        """
        env = os.environ if environ is None else environ
        data = (base or cls()).model_dump()

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value else None

        if (timeout := get("TIMEOUT")) is not None:
            data["network"]["timeout_ms"] = timeout
        if (user_agent := get("USER_AGENT")) is not None:
            data["network"]["user_agent"] = user_agent
        if (rate_limit := get("RATE_LIMIT")) is not None:
            data["network"]["rate_limit"] = rate_limit
        if (cache_dir := get("CACHE_DIR")) is not None:
            data["cache"]["directory"] = cache_dir
        if (backend := get("CACHE_BACKEND")) is not None:
            data["cache"]["backend"] = backend.lower()
        if (log_level := get("LOG_LEVEL")) is not None:
            data["log_level"] = log_level.upper()

        return cls.model_validate(data)
