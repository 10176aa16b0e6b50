"""Browser resource pooling."""

from .browser_pool import (
    PLAYWRIGHT_AVAILABLE,
    BrowserContextManager,
    BrowserContextPool,
    require_playwright,
)

__all__ = [
    "PLAYWRIGHT_AVAILABLE",
    "BrowserContextManager",
    "BrowserContextPool",
    "require_playwright",
]
