"""Shared fakes for docseek tests."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

import pytest
from docseek.errors import FetchFailedError, InteractionFailedError
from docseek.extraction.links import extract_links
from docseek.fetchers.protocols import FetchedPage, FetchOptions, FetchOutcome
from docseek.models.config import FetcherKind, SpiderConfig
from docseek.models.links import LinkRecord, LinkSet
from docseek.models.results import DownloadInfo


@dataclass(eq=False)
class FakeElement:
    """An expandable node: clicking it reveals children and links."""

    path: str
    selector: str = "li.collapsed > a"
    reveals: list[FakeElement] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    visible: bool = True
    fails: bool = False


class FakeSession:
    """
    In-memory interactive page.

    Only elements that are present in the DOM can be queried; clicking an
    element adds the nodes and links it reveals.
    """

    def __init__(self, roots: Optional[list[FakeElement]] = None, links: Optional[list[str]] = None) -> None:
        self.present: list[FakeElement] = list(roots or [])
        self.link_set = LinkSet(LinkRecord(href=href) for href in links or [])
        self.clicks: list[str] = []
        self.click_attempts: list[str] = []

    async def query_all(self, selector: str) -> list[Any]:
        return [element for element in self.present if element.selector == selector]

    async def is_visible(self, element: Any) -> bool:
        return element.visible

    async def click(self, element: Any) -> None:
        self.click_attempts.append(element.path)
        if element.fails:
            raise InteractionFailedError(f"Cannot click {element.path}")
        self.clicks.append(element.path)
        for child in element.reveals:
            if child not in self.present:
                self.present.append(child)
        self.link_set.merge(LinkRecord(href=href) for href in element.links)

    async def structural_path(self, element: Any) -> str:
        return element.path

    async def current_html(self) -> str:
        anchors = "".join(f'<a href="{href}">{href}</a>' for href in self.link_set.hrefs())
        return f"<html><body>{anchors}</body></html>"

    async def current_links(self) -> list[LinkRecord]:
        return self.link_set.links()


def nested_tree() -> list[FakeElement]:
    """Three nested folders, each revealing one document."""
    level3 = FakeElement(path="HTML:nth-child(1) > BODY:nth-child(2) > UL > LI:nth-child(3)", links=["/c.pdf"])
    level2 = FakeElement(
        path="HTML:nth-child(1) > BODY:nth-child(2) > UL > LI:nth-child(2)",
        reveals=[level3],
        links=["/b.pdf"],
    )
    level1 = FakeElement(
        path="HTML:nth-child(1) > BODY:nth-child(2) > UL > LI:nth-child(1)",
        reveals=[level2],
        links=["/a.pdf"],
    )
    return [level1]


class FakeFetchClient:
    """Static fetch client answering from a url -> FetchedPage table."""

    def __init__(self, pages: dict[str, FetchedPage], kind: FetcherKind = FetcherKind.STATIC) -> None:
        self.kind = kind
        self.pages = pages
        self.calls: list[str] = []
        self.options: list[FetchOptions] = []

    async def fetch(self, url: str, options: FetchOptions) -> FetchedPage:
        self.calls.append(url)
        self.options.append(options)
        page = self.pages.get(url)
        if page is None:
            raise FetchFailedError(f"HTTP 404 fetching {url}", url=url, status_code=404)
        return page


class FakeInteractiveClient:
    """Browser stand-in that yields FakeSession-backed pages."""

    kind = FetcherKind.BROWSER

    def __init__(
        self,
        session_factory: Any = None,
        download: Optional[DownloadInfo] = None,
        delay: float = 0.0,
    ) -> None:
        self.session_factory = session_factory or (lambda: FakeSession(nested_tree()))
        self.download = download
        self.delay = delay
        self.opened = 0
        self.closed = 0

    async def fetch(self, url: str, options: FetchOptions) -> FetchedPage:
        async with self.open(url, options) as page:
            page.interactive = None
            return page

    @contextlib.asynccontextmanager
    async def open(self, url: str, options: FetchOptions) -> AsyncIterator[FetchedPage]:
        self.opened += 1
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.download is not None:
                yield FetchedPage(
                    final_url=url,
                    outcome=FetchOutcome.DOWNLOAD_COMPLETED,
                    content_type=self.download.content_type,
                    download=self.download,
                )
                return

            session = self.session_factory()
            html = await session.current_html()
            yield FetchedPage(
                final_url=url,
                html=html,
                static_links=extract_links(html),
                interactive=session,
            )
        finally:
            self.closed += 1


def html_page(url: str, html: str, content_type: str = "text/html") -> FetchedPage:
    return FetchedPage(final_url=url, html=html, static_links=extract_links(html), content_type=content_type)


def download_page(url: str, content: bytes, content_type: str = "application/pdf", filename: Optional[str] = None):
    return FetchedPage(
        final_url=url,
        outcome=FetchOutcome.DOWNLOAD_COMPLETED,
        content_type=content_type,
        download=DownloadInfo(url=url, content_type=content_type, content=content, filename=filename),
    )


@pytest.fixture
def fast_config() -> SpiderConfig:
    """Config with no throttle and an in-memory cache."""
    return SpiderConfig(network={"rate_limit": 0}, cache={"backend": "memory"})
