"""Docseek configuration, link and result models."""

from .config import (
    BrowserConfig,
    CacheConfig,
    DocumentOptions,
    FetcherKind,
    NetworkConfig,
    ScrapeOptions,
    SpiderConfig,
    StrategyKind,
)
from .links import LinkRecord, LinkSet
from .results import (
    DocumentResult,
    DownloadInfo,
    LandingPattern,
    ResolutionResult,
    ResolverState,
    ScrapeMetrics,
    ScrapeResult,
)

__all__ = [
    # Config
    "BrowserConfig",
    "CacheConfig",
    "DocumentOptions",
    "FetcherKind",
    "NetworkConfig",
    "ScrapeOptions",
    "SpiderConfig",
    "StrategyKind",
    # Links
    "LinkRecord",
    "LinkSet",
    # Results
    "DocumentResult",
    "DownloadInfo",
    "LandingPattern",
    "ResolutionResult",
    "ResolverState",
    "ScrapeMetrics",
    "ScrapeResult",
]
