"""Spider: fetch, expand, resolve and cache in one place."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

from pydantic import ValidationError

from ..cache import CacheStore, build_cache_key, create_cache_store
from ..concurrency.browser_pool import BrowserContextPool
from ..errors import InvalidInputError, ScrapeTimeoutError
from ..extraction.content import base_content_type, is_pdf_bytes, summarize_html
from ..fetchers.browser import BrowserFetchClient
from ..fetchers.normalized import NormalizedFetchClient
from ..fetchers.protocols import FetchClient, FetchedPage, FetchOptions, InteractiveFetchClient
from ..fetchers.static import StaticFetchClient
from ..http.client import AsyncHttpClient
from ..models.config import DocumentOptions, FetcherKind, ScrapeOptions, SpiderConfig, StrategyKind
from ..models.results import (
    DocumentResult,
    DownloadInfo,
    ResolutionResult,
    ScrapeMetrics,
    ScrapeResult,
    pattern_value,
)
from ..security.url_validator import UrlValidator
from .expansion import ExpansionEngine
from .resolver import RedirectResolver, normalize_landing_url

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".txt", ".md", ".rtf")

DIRECT_DOWNLOAD_STRATEGY = "direct-download"

BASIC_CONFIDENCE = 1.0
TREE_DOWNLOAD_CONFIDENCE = 0.8


class Spider:
    """
    Primary API for docseek.

    Owns the HTTP transport, the fetch clients and the cache store for its
    lifetime. The browser is only started the first time a scrape needs it.

    Example:
        async with Spider() as spider:
            index = await spider.scrape("https://example.com/minutes", strategy="tree")
            for link in index.links:
                print(link.href)

            doc = await spider.resolve_document("https://example.com/download/agenda")
            if doc.is_pdf:
                Path("agenda.pdf").write_bytes(doc.file_bytes or b"")
    """

    def __init__(
        self,
        config: Optional[SpiderConfig] = None,
        *,
        cache: Optional[CacheStore] = None,
        clients: Optional[Mapping[FetcherKind, FetchClient]] = None,
        resolver: Optional[RedirectResolver] = None,
        validator: Optional[UrlValidator] = None,
    ) -> None:
        """
        Initialize the Spider.

        Args:
            config: Configuration (defaults to SpiderConfig())
            cache: Cache store (built from config.cache when None)
            clients: Fetch clients to use instead of the built-in ones
            resolver: Landing-page resolver (default families when None)
            validator: URL validator for inputs
        """
        self.config = config or SpiderConfig()
        self.resolver = resolver or RedirectResolver()
        self._validator = validator or UrlValidator()
        self._cache = cache
        self._clients: dict[FetcherKind, FetchClient] = dict(clients or {})

        self._http_client: Optional[AsyncHttpClient] = None
        self._browser_pool: Optional[BrowserContextPool] = None
        self._browser_lock = asyncio.Lock()
        self._entered = False

    @property
    def cache(self) -> Optional[CacheStore]:
        return self._cache

    async def __aenter__(self) -> Spider:
        """Create the transport, static clients and cache."""
        network = self.config.network

        if FetcherKind.STATIC not in self._clients or FetcherKind.NORMALIZED not in self._clients:
            self._http_client = AsyncHttpClient(
                max_retries=network.max_retries,
                user_agent=network.user_agent,
                proxy=network.proxy,
                default_timeout=network.timeout_ms / 1000,
                default_headers=network.headers,
            )
            await self._http_client.__aenter__()
            self._clients.setdefault(FetcherKind.STATIC, StaticFetchClient(self._http_client))
            self._clients.setdefault(FetcherKind.NORMALIZED, NormalizedFetchClient(self._http_client))

        if self._cache is None and self.config.cache.enabled:
            self._cache = create_cache_store(self.config.cache)
            # Evict expired entries on startup
            await self._cache.evict_expired()

        self._entered = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Shut down the browser (if started) and the transport."""
        if self._browser_pool:
            await self._browser_pool.__aexit__(exc_type, exc_val, exc_tb)
            self._browser_pool = None
            self._clients.pop(FetcherKind.BROWSER, None)

        if self._http_client:
            await self._http_client.__aexit__(exc_type, exc_val, exc_tb)
            self._http_client = None

        self._entered = False

    def _ensure_open(self) -> None:
        if not self._entered:
            raise RuntimeError("Spider not initialized. Use 'async with' context manager.")

    def _validate_url(self, url: str) -> None:
        result = self._validator.validate(url)
        if not result.is_valid:
            raise InvalidInputError(f"Invalid URL {url!r}: {result.rejection_reason}")

    async def _browser_client(self) -> InteractiveFetchClient:
        """Return the interactive client, starting the browser on first use."""
        async with self._browser_lock:
            client = self._clients.get(FetcherKind.BROWSER)
            if client is None:
                browser = self.config.browser
                network = self.config.network
                pool = BrowserContextPool(
                    max_contexts=browser.max_contexts,
                    headless=browser.headless,
                    user_agent=network.user_agent,
                    timeout=network.timeout_ms / 1000,
                    extra_headers=network.headers,
                )
                await pool.__aenter__()
                self._browser_pool = pool
                client = BrowserFetchClient(
                    pool,
                    wait_until=browser.wait_until,
                    post_load_delay=browser.post_load_delay,
                    download_wait=browser.download_wait,
                    default_timeout=network.timeout_ms / 1000,
                )
                self._clients[FetcherKind.BROWSER] = client

        if not isinstance(client, InteractiveFetchClient):
            raise InvalidInputError("The configured browser client does not support interaction")
        return client

    async def _client_for(self, fetcher: FetcherKind) -> FetchClient:
        if fetcher is FetcherKind.BROWSER:
            return await self._browser_client()
        client = self._clients.get(fetcher)
        if client is None:
            raise InvalidInputError(f"No fetch client configured for '{fetcher.value}'")
        return client

    @staticmethod
    def _merge_options(model: type[Any], options: Any, overrides: Mapping[str, Any]) -> Any:
        base = options.model_dump() if options is not None else {}
        try:
            return model.model_validate({**base, **overrides})
        except ValidationError as e:
            raise InvalidInputError(f"Invalid options: {e}") from e

    def _resolve_fetcher(self, options: ScrapeOptions) -> FetcherKind:
        if options.strategy is StrategyKind.TREE:
            if options.fetcher not in (None, FetcherKind.BROWSER):
                raise InvalidInputError(
                    f"The tree strategy needs the browser fetcher, not '{options.fetcher.value}'"
                )
            return FetcherKind.BROWSER
        return options.fetcher or FetcherKind.STATIC

    def _fetch_options(self, options: ScrapeOptions, timeout: float) -> FetchOptions:
        headers = {**self.config.network.headers, **options.headers}
        return FetchOptions(headers=headers, timeout=timeout, user_agent=self.config.network.user_agent)

    def _timeout_for(self, timeout_ms: Optional[int]) -> float:
        return (timeout_ms or self.config.network.timeout_ms) / 1000

    def cache_key(self, url: str, options: ScrapeOptions) -> str:
        """
        Cache key for a scrape.

        Covers everything that changes the result: strategy, fetcher tier,
        per-call headers and, for the tree strategy, the expansion settings.
        """
        fetcher = self._resolve_fetcher(options)
        params: dict[str, Any] = {"fetcher": fetcher.value, "headers": dict(sorted(options.headers.items()))}
        if options.strategy is StrategyKind.TREE:
            params["max_iterations"] = options.max_iterations
            params["click_delay_ms"] = options.click_delay_ms
            params["custom_selectors"] = list(options.custom_selectors)
        return build_cache_key(self.config.cache.namespace, options.strategy.value, url, params)

    async def scrape(
        self,
        url: str,
        options: Optional[ScrapeOptions] = None,
        **overrides: Any,
    ) -> ScrapeResult:
        """
        Scrape a page for links.

        Args:
            url: Page to scrape (http or https)
            options: Per-call options
            **overrides: Individual ScrapeOptions fields (e.g. strategy="tree")

        Returns:
            ScrapeResult (from_cache is set when served from the cache)

        Raises:
            InvalidInputError: Bad URL or option combination
            FetchFailedError: Navigation or HTTP failure
            ScrapeTimeoutError: The fetch and expansion exceeded timeout_ms
        """
        self._ensure_open()
        opts: ScrapeOptions = self._merge_options(ScrapeOptions, options, overrides)
        self._validate_url(url)
        fetcher = self._resolve_fetcher(opts)

        ttl_ms = opts.cache_expiry_ms if opts.cache_expiry_ms is not None else self.config.cache.default_expiry_ms
        use_cache = opts.cache and ttl_ms > 0 and self._cache is not None
        key = self.cache_key(url, opts)

        if use_cache:
            cached = await self._read_cache(key)
            if cached is not None:
                return cached

        rate_limit = self.config.network.rate_limit
        if rate_limit > 0:
            await asyncio.sleep(rate_limit)

        timeout = self._timeout_for(opts.timeout_ms)
        try:
            result = await asyncio.wait_for(self._scrape_fresh(url, opts, fetcher, timeout), timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Scrape of {url} timed out after {timeout:.1f}s")
            raise ScrapeTimeoutError(f"Scrape of {url} timed out after {timeout:.1f}s", url=url, timeout=timeout) from e

        if use_cache and self._cache is not None:
            await self._cache.set(key, result.to_dict(), ttl_ms / 1000)
        return result

    async def _read_cache(self, key: str) -> Optional[ScrapeResult]:
        assert self._cache is not None
        data = await self._cache.get(key)
        if data is None:
            logger.debug(f"Cache miss: {key}")
            return None
        try:
            result = ScrapeResult.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache entry {key}: {e}")
            return None
        logger.debug(f"Cache hit: {key}")
        result.from_cache = True
        return result

    async def _scrape_fresh(
        self,
        url: str,
        options: ScrapeOptions,
        fetcher: FetcherKind,
        timeout: float,
    ) -> ScrapeResult:
        start = time.monotonic()
        fetch_options = self._fetch_options(options, timeout)

        if options.strategy is StrategyKind.TREE:
            result = await self._scrape_tree(url, options, fetch_options)
        else:
            client = await self._client_for(fetcher)
            page = await client.fetch(url, fetch_options)
            result = self._basic_result(page, fetcher)

        result.metrics.duration = time.monotonic() - start
        result.resolution = self.resolver.resolve(result.url, result.content)
        return result

    async def _scrape_tree(self, url: str, options: ScrapeOptions, fetch_options: FetchOptions) -> ScrapeResult:
        client = await self._browser_client()
        engine = ExpansionEngine(
            max_iterations=options.max_iterations,
            click_delay=options.click_delay_ms / 1000,
            custom_selectors=options.custom_selectors,
        )

        async with client.open(url, fetch_options) as page:
            if page.is_download or page.interactive is None:
                return self._download_result(page, StrategyKind.TREE, FetcherKind.BROWSER, TREE_DOWNLOAD_CONFIDENCE)

            expansion = await engine.expand(page.interactive, page.static_links)
            content = await page.interactive.current_html()

        return ScrapeResult(
            url=page.final_url,
            content=content,
            links=expansion.links,
            strategy=StrategyKind.TREE,
            fetcher=FetcherKind.BROWSER,
            metrics=ScrapeMetrics(
                link_count=len(expansion.links),
                interaction_count=expansion.interaction_count,
                complete=True,
            ),
            confidence=expansion.confidence,
            content_type=page.content_type,
        )

    def _basic_result(self, page: FetchedPage, fetcher: FetcherKind) -> ScrapeResult:
        if page.is_download:
            return self._download_result(page, StrategyKind.BASIC, fetcher, BASIC_CONFIDENCE)

        links = page.static_links.links()
        return ScrapeResult(
            url=page.final_url,
            content=page.html,
            links=links,
            strategy=StrategyKind.BASIC,
            fetcher=fetcher,
            metrics=ScrapeMetrics(link_count=len(links), complete=True),
            confidence=BASIC_CONFIDENCE,
            content_type=page.content_type,
        )

    @staticmethod
    def _download_result(
        page: FetchedPage,
        strategy: StrategyKind,
        fetcher: FetcherKind,
        confidence: float,
    ) -> ScrapeResult:
        logger.info(f"{page.final_url} returned a download ({page.content_type})")
        return ScrapeResult(
            url=page.final_url,
            content="",
            links=[],
            strategy=strategy,
            fetcher=fetcher,
            metrics=ScrapeMetrics(complete=True),
            confidence=confidence,
            content_type=page.content_type,
            download=page.download,
        )

    async def resolve_document(
        self,
        url: str,
        options: Optional[DocumentOptions] = None,
        **overrides: Any,
    ) -> DocumentResult:
        """
        Turn a URL into the document it stands for.

        Landing pages (WordPress Download Manager, CivicWeb previews,
        DocuShare) are resolved to their document URL, which is then fetched
        exactly once with the static client and classified by what it
        actually serves. Other pages become HTML documents with text,
        title and description.

        Args:
            url: Document or landing page URL
            options: Per-call options
            **overrides: Individual DocumentOptions fields

        Returns:
            DocumentResult

        Raises:
            InvalidInputError: Bad URL or option combination
            FetchFailedError: The page or the resolved document failed to load
            ScrapeTimeoutError: A fetch exceeded timeout_ms
        """
        self._ensure_open()
        opts: DocumentOptions = self._merge_options(DocumentOptions, options, overrides)
        self._validate_url(url)

        target = normalize_landing_url(url)
        result = await self.scrape(target, opts.to_scrape_options())

        if result.download is not None:
            return self._download_document(result.download, url, DIRECT_DOWNLOAD_STRATEGY)

        resolution = result.resolution or self.resolver.resolve(result.url, result.content)
        if resolution.is_provisional:
            return await self._confirm_resolution(resolution, url, opts)

        return self._page_document(result, url)

    async def _confirm_resolution(
        self,
        resolution: ResolutionResult,
        source_url: str,
        options: DocumentOptions,
    ) -> DocumentResult:
        """Fetch a provisional candidate once and classify it by content."""
        strategy = pattern_value(resolution.matched_pattern) or DIRECT_DOWNLOAD_STRATEGY
        candidate = resolution.resolved_url
        # The candidate comes from page markup, so it gets the same checks as caller input
        self._validate_url(candidate)
        client = await self._client_for(FetcherKind.STATIC)

        timeout = self._timeout_for(options.timeout_ms)
        fetch_options = self._fetch_options(ScrapeOptions(headers=options.headers), timeout)
        try:
            page = await asyncio.wait_for(client.fetch(candidate, fetch_options), timeout)
        except asyncio.TimeoutError as e:
            raise ScrapeTimeoutError(
                f"Fetching resolved document {candidate} timed out after {timeout:.1f}s",
                url=candidate,
                timeout=timeout,
            ) from e

        if page.download is not None:
            logger.debug(f"Resolved document confirmed: {candidate} ({page.content_type})")
            return self._download_document(page.download, source_url, strategy)

        # The candidate answered with a page, so the landing page did not lead to a file
        logger.info(f"Resolved URL {candidate} served HTML, not a document")
        title, description, text = summarize_html(page.html)
        return DocumentResult(
            url=page.final_url,
            source_url=source_url,
            is_pdf=False,
            complete=False,
            strategy=strategy,
            content_type=page.content_type,
            text=text,
            html=page.html,
            title=title,
            description=description,
        )

    @staticmethod
    def _download_document(download: DownloadInfo, source_url: str, strategy: str) -> DocumentResult:
        filename = download.filename or ""
        is_pdf = (
            base_content_type(download.content_type) == "application/pdf"
            or filename.lower().endswith(".pdf")
            or is_pdf_bytes(download.content)
        )
        return DocumentResult(
            url=download.url or source_url,
            source_url=source_url,
            is_pdf=is_pdf,
            complete=download.ok,
            strategy=strategy,
            content_type="application/pdf" if is_pdf else download.content_type,
            text="",
            title=download.filename,
            file_bytes=download.content,
            filename=download.filename,
            is_download=True,
        )

    @staticmethod
    def _page_document(result: ScrapeResult, source_url: str) -> DocumentResult:
        if base_content_type(result.content_type) == "application/pdf":
            return DocumentResult(
                url=result.url,
                source_url=source_url,
                is_pdf=True,
                complete=result.metrics.complete,
                strategy=result.strategy.value,
                content_type="application/pdf",
            )

        title, description, text = summarize_html(result.content)
        return DocumentResult(
            url=result.url,
            source_url=source_url,
            is_pdf=False,
            complete=result.metrics.complete,
            strategy=result.strategy.value,
            content_type=result.content_type,
            text=text,
            html=result.content,
            title=title,
            description=description,
        )

    async def find_document_links(
        self,
        url: str,
        extensions: Optional[Iterable[str]] = None,
    ) -> list[str]:
        """
        List absolute links on a page that point at documents.

        Args:
            url: Page to scan
            extensions: File extensions to accept (default .pdf .doc .docx .txt .md .rtf)

        Returns:
            Unique absolute URLs in page order
        """
        wanted = tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in (extensions if extensions is not None else DEFAULT_DOCUMENT_EXTENSIONS)
        )
        result = await self.scrape(url, strategy=StrategyKind.BASIC, fetcher=FetcherKind.STATIC)

        found: dict[str, None] = {}
        for link in result.links:
            absolute = urljoin(result.url, link.href)
            parsed = urlparse(absolute)
            if parsed.scheme not in ("http", "https"):
                continue
            if parsed.path.lower().endswith(wanted):
                found.setdefault(absolute, None)
        return list(found)


async def scrape_index(
    url: str,
    options: Optional[ScrapeOptions] = None,
    *,
    config: Optional[SpiderConfig] = None,
    **overrides: Any,
) -> ScrapeResult:
    """
    Scrape one page with a Spider scoped to this call.

    Example:
        result = await scrape_index("https://example.com/docs", strategy="tree", max_iterations=5)
    """
    async with Spider(config) as spider:
        return await spider.scrape(url, options, **overrides)


async def scrape_document(
    url: str,
    options: Optional[DocumentOptions] = None,
    *,
    config: Optional[SpiderConfig] = None,
    **overrides: Any,
) -> DocumentResult:
    """Resolve one document with a Spider scoped to this call."""
    async with Spider(config) as spider:
        return await spider.resolve_document(url, options, **overrides)
