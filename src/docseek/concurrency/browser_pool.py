"""Browser context pool for interactive scraping."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from types import TracebackType
from typing import TYPE_CHECKING

from ..errors import BrowserUnavailableError

logger = logging.getLogger(__name__)

# Check for Playwright availability
PLAYWRIGHT_AVAILABLE = False
try:
    from playwright.async_api import async_playwright

    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    pass

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright


def require_playwright() -> None:
    """Raise BrowserUnavailableError with install instructions when Playwright is missing."""
    if not PLAYWRIGHT_AVAILABLE:
        raise BrowserUnavailableError(
            "Playwright is required for the tree strategy and browser fetcher. "
            "Install with: pip install docseek[js]"
        )


class BrowserContextPool:
    """
    Pool of isolated browser contexts sharing one browser process.

    Each acquire() hands out a fresh page in a context nobody else is using,
    so concurrent scrapes never share DOM state. Contexts accept downloads
    so that document URLs can be captured instead of rendered.

    Example:
        async with BrowserContextPool(max_contexts=2) as pool:
            async with pool.acquire() as page:
                await page.goto("https://example.com")
                html = await page.content()

    Requires: pip install docseek[js]
    """

    def __init__(
        self,
        max_contexts: int = 2,
        headless: bool = True,
        user_agent: str | None = None,
        timeout: float = 30.0,
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        """
        Initialize the browser context pool.

        Args:
            max_contexts: Maximum number of concurrent browser contexts
            headless: Run browser in headless mode
            user_agent: Custom user agent string
            timeout: Default timeout for page operations (seconds)
            extra_headers: Headers sent with every browser request
        """
        require_playwright()

        self._max_contexts = max_contexts
        self._headless = headless
        self._user_agent = user_agent
        self._timeout = timeout * 1000  # Playwright uses milliseconds
        self._extra_headers = extra_headers or {}

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._context_pool: list[BrowserContext] = []
        self._available: asyncio.Queue[BrowserContext] = asyncio.Queue()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def _create_context(self) -> BrowserContext:
        """Create a new browser context."""
        context_options: dict[str, object] = {
            "viewport": {"width": 1920, "height": 1080},
            "java_script_enabled": True,
            "ignore_https_errors": True,
            "accept_downloads": True,
        }

        if self._user_agent:
            context_options["user_agent"] = self._user_agent
        if self._extra_headers:
            context_options["extra_http_headers"] = self._extra_headers

        if self._browser is None:
            raise RuntimeError("Browser not initialized")
        context = await self._browser.new_context(**context_options)  # type: ignore[arg-type]
        context.set_default_timeout(self._timeout)
        return context

    async def __aenter__(self) -> BrowserContextPool:
        """Start the browser and pre-create contexts."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._headless,
        )
        self._semaphore = asyncio.Semaphore(self._max_contexts)

        for _ in range(self._max_contexts):
            context = await self._create_context()
            self._context_pool.append(context)
            await self._available.put(context)

        self._initialized = True
        logger.info(f"Browser pool initialized with {self._max_contexts} contexts")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close every context, the browser and Playwright."""
        for context in self._context_pool:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Error closing context: {e}")

        self._context_pool.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self._initialized = False
        logger.info("Browser pool shut down")

    def acquire(self) -> BrowserContextManager:
        """
        Acquire a page in an unused context.

        Example:
            async with pool.acquire() as page:
                await page.goto(url)
        """
        if not self._initialized:
            raise RuntimeError("Browser pool not initialized. Use 'async with' context.")
        return BrowserContextManager(self)

    async def _get_context(self) -> BrowserContext:
        if self._semaphore is None:
            raise RuntimeError("Pool not initialized")
        await self._semaphore.acquire()
        return await self._available.get()

    async def _return_context(self, context: BrowserContext) -> None:
        # Close leftover pages (popups included) so the next user starts clean
        for page in context.pages:
            with contextlib.suppress(Exception):
                await page.close()

        await self._available.put(context)
        if self._semaphore is not None:
            self._semaphore.release()


class BrowserContextManager:
    """Context manager for acquiring a page from the pool."""

    def __init__(self, pool: BrowserContextPool) -> None:
        self._pool = pool
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def __aenter__(self) -> Page:
        """Acquire context and create page."""
        self._context = await self._pool._get_context()
        try:
            self._page = await self._context.new_page()
        except BaseException:
            await self._pool._return_context(self._context)
            self._context = None
            raise
        return self._page

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close page and return context to pool."""
        if self._page:
            with contextlib.suppress(Exception):
                await self._page.close()
            self._page = None

        if self._context:
            await self._pool._return_context(self._context)
            self._context = None
