"""Tests for HTTP-backed fetch clients."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from docseek.errors import FetchFailedError
from docseek.fetchers.browser import is_download_error
from docseek.fetchers.normalized import NormalizedFetchClient
from docseek.fetchers.protocols import FetchClient, FetchOptions, FetchOutcome
from docseek.fetchers.static import StaticFetchClient
from docseek.http.protocols import HttpResponse
from docseek.models.config import FetcherKind


def make_response(
    content: bytes,
    content_type: str = "text/html; charset=utf-8",
    status_code: int = 200,
    url: str = "https://example.com/page",
    headers: dict | None = None,
) -> HttpResponse:
    return HttpResponse(
        status_code=status_code,
        content=content,
        content_type=content_type,
        headers={"Content-Type": content_type, **(headers or {})},
        url=url,
    )


def make_client(response=None, error=None):
    """Mock HttpClient returning one response or raising one error."""
    client = MagicMock()
    if error is not None:
        client.get = AsyncMock(side_effect=error)
    else:
        client.get = AsyncMock(return_value=response)
    client.decode_content = MagicMock(side_effect=lambda r: r.content.decode("utf-8"))
    return client


class TestStaticFetchClient:
    """Tests for StaticFetchClient classification."""

    @pytest.mark.asyncio
    async def test_html_page(self):
        client = make_client(make_response(b'<html><body><a href="/a.pdf">A</a></body></html>'))
        fetcher = StaticFetchClient(client)

        page = await fetcher.fetch("https://example.com/page", FetchOptions())

        assert page.outcome == FetchOutcome.PAGE_LOADED
        assert page.content_type == "text/html"
        assert page.static_links.hrefs() == ["/a.pdf"]
        assert page.download is None
        assert page.interactive is None

    @pytest.mark.asyncio
    async def test_pdf_content_type_is_download(self):
        response = make_response(
            b"%PDF-1.7 data",
            content_type="application/pdf",
            url="https://example.com/files/agenda.pdf",
        )
        page = await StaticFetchClient(make_client(response)).fetch(response.url, FetchOptions())

        assert page.is_download
        assert page.content_type == "application/pdf"
        assert page.download.content == b"%PDF-1.7 data"
        assert page.download.filename == "agenda.pdf"
        assert page.download.ok

    @pytest.mark.asyncio
    async def test_pdf_signature_wins_over_wrong_content_type(self):
        response = make_response(b"\n%PDF-1.4 body", content_type="text/html")
        page = await StaticFetchClient(make_client(response)).fetch(response.url, FetchOptions())

        assert page.is_download
        assert page.html == ""

    @pytest.mark.asyncio
    async def test_attachment_disposition_is_download(self):
        response = make_response(
            b"col1,col2",
            content_type="application/octet-stream",
            url="https://example.com/download/?wpdmdl=3",
            headers={"Content-Disposition": 'attachment; filename="budget.docx"'},
        )
        page = await StaticFetchClient(make_client(response)).fetch(response.url, FetchOptions())

        assert page.is_download
        assert page.download.filename == "budget.docx"
        assert page.content_type == "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        response = make_response(b"Not found", status_code=404)
        fetcher = StaticFetchClient(make_client(response))

        with pytest.raises(FetchFailedError) as exc_info:
            await fetcher.fetch(response.url, FetchOptions())

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == response.url

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        fetcher = StaticFetchClient(make_client(error=aiohttp.ClientConnectionError("refused")))

        with pytest.raises(FetchFailedError, match="refused"):
            await fetcher.fetch("https://example.com/", FetchOptions())

    @pytest.mark.asyncio
    async def test_options_forwarded(self):
        client = make_client(make_response(b"<html></html>"))
        options = FetchOptions(headers={"Accept-Language": "en"}, timeout=5.0, user_agent="TestBot/1.0")

        await StaticFetchClient(client).fetch("https://example.com/page", options)

        client.get.assert_awaited_once_with(
            "https://example.com/page",
            timeout=5.0,
            headers={"Accept-Language": "en", "User-Agent": "TestBot/1.0"},
        )

    def test_satisfies_protocol(self):
        fetcher = StaticFetchClient(make_client())
        assert isinstance(fetcher, FetchClient)
        assert fetcher.kind == FetcherKind.STATIC


class TestNormalizedFetchClient:
    """Tests for NormalizedFetchClient."""

    @pytest.mark.asyncio
    async def test_repairs_fragment_markup(self):
        client = make_client(make_response(b'<ul><li><a href="/x.pdf">x</a>'))
        fetcher = NormalizedFetchClient(client)

        page = await fetcher.fetch("https://example.com/page", FetchOptions())

        assert fetcher.kind == FetcherKind.NORMALIZED
        assert page.html.startswith("<html>")
        assert "<body>" in page.html
        assert page.static_links.hrefs() == ["/x.pdf"]


class TestDownloadErrorDetection:
    """Tests for is_download_error."""

    def test_download_messages(self):
        assert is_download_error("Page.goto: Download is starting")
        assert is_download_error("net::ERR_ABORTED at https://x/file.pdf")

    def test_other_errors(self):
        assert not is_download_error("net::ERR_NAME_NOT_RESOLVED")
