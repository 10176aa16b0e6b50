"""Plain HTTP fetch client (no JavaScript)."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from ..errors import FetchFailedError
from ..extraction.content import (
    base_content_type,
    filename_from_disposition,
    filename_from_url,
    infer_content_type,
    is_html_content_type,
    is_pdf_bytes,
)
from ..extraction.links import extract_links
from ..http.protocols import HttpClient, HttpResponse
from ..models.config import FetcherKind
from ..models.results import DownloadInfo
from .protocols import FetchedPage, FetchOptions, FetchOutcome

logger = logging.getLogger(__name__)


class StaticFetchClient:
    """
    Fetch pages over plain HTTP and extract their links.

    Responses that are not HTML (an attachment disposition, a non-HTML
    Content-Type, or a body starting with %PDF-) come back as
    DOWNLOAD_COMPLETED pages carrying the payload.

    Example:
        async with AsyncHttpClient() as http:
            client = StaticFetchClient(http)
            page = await client.fetch("https://example.com", FetchOptions())
            print(page.static_links.hrefs())
    """

    kind = FetcherKind.STATIC

    def __init__(self, http_client: HttpClient) -> None:
        self._client = http_client

    async def fetch(self, url: str, options: FetchOptions) -> FetchedPage:
        response = await self._get(url, options)

        if self._is_download(response):
            return self._download_page(response)

        html = self._render_html(self._client.decode_content(response))
        return FetchedPage(
            final_url=response.url,
            html=html,
            static_links=extract_links(html),
            outcome=FetchOutcome.PAGE_LOADED,
            content_type=base_content_type(response.content_type) or "text/html",
            status_code=response.status_code,
        )

    def _render_html(self, html: str) -> str:
        """Hook for subclasses that post-process markup."""
        return html

    async def _get(self, url: str, options: FetchOptions) -> HttpResponse:
        try:
            response = await self._client.get(
                url,
                timeout=options.timeout,
                headers=options.request_headers(),
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Fetch failed for {url}: {e}")
            raise FetchFailedError(f"Failed to fetch {url}: {e}", url=url) from e

        if not response.ok:
            logger.error(f"Fetch failed for {url}: HTTP {response.status_code}")
            raise FetchFailedError(
                f"HTTP {response.status_code} fetching {url}",
                url=url,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _is_download(response: HttpResponse) -> bool:
        disposition = response.header("Content-Disposition") or ""
        if disposition.lower().startswith("attachment"):
            return True
        if is_pdf_bytes(response.content):
            return True
        content_type = base_content_type(response.content_type)
        return bool(content_type) and not is_html_content_type(content_type)

    @staticmethod
    def _download_page(response: HttpResponse) -> FetchedPage:
        filename = filename_from_disposition(response.header("Content-Disposition")) or filename_from_url(
            response.url
        )
        content_type = base_content_type(response.content_type)
        if not content_type or content_type == "application/octet-stream":
            content_type = "application/pdf" if is_pdf_bytes(response.content) else infer_content_type(filename)

        logger.debug(f"Download response from {response.url} ({content_type})")
        return FetchedPage(
            final_url=response.url,
            outcome=FetchOutcome.DOWNLOAD_COMPLETED,
            content_type=content_type,
            status_code=response.status_code,
            download=DownloadInfo(
                url=response.url,
                content_type=content_type,
                content=response.content,
                filename=filename,
            ),
        )
