"""Interactive fetch client backed by Playwright."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..concurrency.browser_pool import BrowserContextPool, require_playwright
from ..errors import FetchFailedError, InteractionFailedError
from ..extraction.content import infer_content_type, is_pdf_bytes
from ..extraction.links import extract_links
from ..models.config import FetcherKind
from ..models.links import LinkRecord
from ..models.results import DownloadInfo
from .protocols import FetchedPage, FetchOptions, FetchOutcome

logger = logging.getLogger(__name__)

# Check for Playwright availability
PLAYWRIGHT_AVAILABLE = False
try:
    from playwright.async_api import Error as PlaywrightError

    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    pass

if TYPE_CHECKING:
    from playwright.async_api import Download, ElementHandle, Page


# Tag and sibling index from <html> down; ids are skipped because scripts rewrite them
STRUCTURAL_PATH_JS = """
(el) => {
    const parts = [];
    let node = el;
    while (node && node.nodeType === 1) {
        const parent = node.parentElement;
        const index = parent ? Array.prototype.indexOf.call(parent.children, node) + 1 : 1;
        parts.unshift(`${node.tagName}:nth-child(${index})`);
        node = parent;
    }
    return parts.join(' > ');
}
"""

# jQuery-bound handlers (jqueryFileTree and friends) only fire through jQuery's own click()
CLICK_JS = """
(el) => {
    if (typeof window.jQuery !== 'undefined') {
        window.jQuery(el).click();
    } else {
        el.click();
    }
}
"""


def is_download_error(message: str) -> bool:
    """Whether a navigation error means the browser started a download instead."""
    return "Download is starting" in message or "net::ERR_ABORTED" in message


async def capture_download(download: Download) -> DownloadInfo:
    """Read a finished Playwright download into a DownloadInfo."""
    url = download.url
    filename = download.suggested_filename
    try:
        path = await download.path()
    except PlaywrightError as e:
        logger.warning(f"Download capture failed for {url}: {e}")
        return DownloadInfo(url=url, content_type=infer_content_type(filename), filename=filename, error=str(e))

    if path is None:
        return DownloadInfo(
            url=url,
            content_type=infer_content_type(filename),
            filename=filename,
            error="Download path not available",
        )

    content = await asyncio.to_thread(Path(path).read_bytes)
    content_type = infer_content_type(filename)
    if content_type == "application/octet-stream" and is_pdf_bytes(content):
        content_type = "application/pdf"
    return DownloadInfo(url=url, content_type=content_type, content=content, filename=filename)


class PlaywrightSession:
    """InteractiveSession over a live Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def query_all(self, selector: str) -> list[ElementHandle]:
        return await self._page.query_selector_all(selector)

    async def is_visible(self, element: ElementHandle) -> bool:
        return await element.is_visible()

    async def click(self, element: ElementHandle) -> None:
        try:
            await element.evaluate(CLICK_JS)
        except PlaywrightError as e:
            raise InteractionFailedError(f"Click failed: {e}") from e

    async def structural_path(self, element: ElementHandle) -> str:
        path: str = await element.evaluate(STRUCTURAL_PATH_JS)
        return path

    async def current_html(self) -> str:
        return await self._page.content()

    async def current_links(self) -> list[LinkRecord]:
        return extract_links(await self._page.content()).links()


class BrowserFetchClient:
    """
    Fetch and interact with pages in a real browser.

    Navigations that turn into file downloads are reported as
    DOWNLOAD_COMPLETED pages when the payload was captured.

    Example:
        async with BrowserContextPool() as pool:
            client = BrowserFetchClient(pool)
            async with client.open(url, FetchOptions()) as page:
                links = await page.interactive.current_links()

    Requires: pip install docseek[js]
    """

    kind = FetcherKind.BROWSER

    def __init__(
        self,
        pool: BrowserContextPool,
        wait_until: str = "networkidle",
        post_load_delay: float = 0.5,
        download_wait: float = 2.0,
        default_timeout: float = 30.0,
    ) -> None:
        """
        Initialize the browser fetch client.

        Args:
            pool: Browser context pool providing isolated pages
            wait_until: Navigation wait condition
            post_load_delay: Seconds to let scripts settle after load
            download_wait: Seconds to wait for a download to be reported
            default_timeout: Navigation timeout when options carry none (seconds)
        """
        require_playwright()
        self._pool = pool
        self._wait_until = wait_until
        self._post_load_delay = post_load_delay
        self._download_wait = download_wait
        self._default_timeout = default_timeout

    async def fetch(self, url: str, options: FetchOptions) -> FetchedPage:
        async with self.open(url, options) as page:
            page.interactive = None
            return page

    @contextlib.asynccontextmanager
    async def open(self, url: str, options: FetchOptions) -> AsyncIterator[FetchedPage]:
        async with self._pool.acquire() as page:
            captures: list[asyncio.Task[DownloadInfo]] = []
            page.on("download", lambda download: captures.append(asyncio.ensure_future(capture_download(download))))
            try:
                fetched = await self._navigate(page, url, options, captures)
                yield fetched
            finally:
                for task in captures:
                    if not task.done():
                        task.cancel()

    async def _navigate(
        self,
        page: Page,
        url: str,
        options: FetchOptions,
        captures: list[asyncio.Task[DownloadInfo]],
    ) -> FetchedPage:
        headers = options.request_headers()
        if headers:
            await page.set_extra_http_headers(headers)
        timeout_ms = (options.timeout or self._default_timeout) * 1000

        try:
            response = await page.goto(url, wait_until=self._wait_until, timeout=timeout_ms)  # type: ignore[arg-type]
        except PlaywrightError as e:
            if is_download_error(str(e)):
                logger.debug(f"Navigation to {url} started a download")
                return await self._collect_download(url, captures)
            logger.error(f"Browser navigation failed for {url}: {e}")
            raise FetchFailedError(f"Navigation to {url} failed: {e}", url=url) from e

        if response is not None and response.status >= 400:
            logger.error(f"Browser navigation failed for {url}: HTTP {response.status}")
            raise FetchFailedError(f"HTTP {response.status} loading {url}", url=url, status_code=response.status)

        if self._post_load_delay:
            await asyncio.sleep(self._post_load_delay)

        html = await page.content()
        content_type = "text/html"
        if response is not None:
            content_type = (await response.all_headers()).get("content-type", content_type).split(";")[0]

        return FetchedPage(
            final_url=page.url,
            html=html,
            static_links=extract_links(html),
            outcome=FetchOutcome.PAGE_LOADED,
            content_type=content_type,
            status_code=response.status if response is not None else None,
            interactive=PlaywrightSession(page),
        )

    async def _collect_download(self, url: str, captures: list[asyncio.Task[Any]]) -> FetchedPage:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._download_wait
        while not captures and loop.time() < deadline:
            await asyncio.sleep(0.1)

        if not captures:
            raise FetchFailedError(f"Navigation to {url} started a download but none was captured", url=url)

        info: DownloadInfo = await captures[0]
        if not info.ok:
            raise FetchFailedError(f"Download from {url} failed: {info.error or 'empty payload'}", url=url)

        return FetchedPage(
            final_url=info.url or url,
            outcome=FetchOutcome.DOWNLOAD_COMPLETED,
            content_type=info.content_type,
            download=info,
        )
