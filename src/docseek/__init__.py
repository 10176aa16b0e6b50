"""
docseek - Find the documents behind index pages and landing pages.

Usage:
    from docseek import Spider, StrategyKind

    async with Spider() as spider:
        index = await spider.scrape("https://example.com/minutes", strategy=StrategyKind.TREE)
        for link in index.links:
            print(link.href)

        doc = await spider.resolve_document("https://example.com/download/agenda")
        print(doc.is_pdf, doc.url)
"""

__version__ = "0.1.0"

from .core.expansion import ExpansionEngine
from .core.resolver import LandingPageSignature, RedirectResolver
from .core.spider import Spider, scrape_document, scrape_index
from .errors import (
    BrowserUnavailableError,
    DocseekError,
    FetchFailedError,
    InteractionFailedError,
    InvalidInputError,
    ScrapeTimeoutError,
)
from .models.config import (
    BrowserConfig,
    CacheConfig,
    DocumentOptions,
    FetcherKind,
    NetworkConfig,
    ScrapeOptions,
    SpiderConfig,
    StrategyKind,
)
from .models.links import LinkRecord, LinkSet
from .models.results import (
    DocumentResult,
    DownloadInfo,
    LandingPattern,
    ResolutionResult,
    ResolverState,
    ScrapeMetrics,
    ScrapeResult,
)

__all__ = [
    "__version__",
    # Core
    "Spider",
    "scrape_index",
    "scrape_document",
    "ExpansionEngine",
    "RedirectResolver",
    "LandingPageSignature",
    # Config
    "SpiderConfig",
    "NetworkConfig",
    "BrowserConfig",
    "CacheConfig",
    "ScrapeOptions",
    "DocumentOptions",
    "StrategyKind",
    "FetcherKind",
    # Results
    "ScrapeResult",
    "ScrapeMetrics",
    "DocumentResult",
    "DownloadInfo",
    "ResolutionResult",
    "ResolverState",
    "LandingPattern",
    "LinkRecord",
    "LinkSet",
    # Errors
    "DocseekError",
    "BrowserUnavailableError",
    "InvalidInputError",
    "FetchFailedError",
    "InteractionFailedError",
    "ScrapeTimeoutError",
]
