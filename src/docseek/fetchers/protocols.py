"""Protocol definitions for fetch clients and interactive sessions."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from ..models.config import FetcherKind
from ..models.links import LinkRecord, LinkSet
from ..models.results import DownloadInfo


class FetchOutcome(str, Enum):
    """What navigating to a URL produced."""

    PAGE_LOADED = "page_loaded"
    DOWNLOAD_COMPLETED = "download_completed"


@dataclass(frozen=True)
class FetchOptions:
    """
    Per-request options passed to fetch clients.

    Attributes:
        headers: Extra request headers
        timeout: Request timeout in seconds (client default if None)
        user_agent: User-Agent override
    """

    headers: dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    user_agent: Optional[str] = None

    def request_headers(self) -> dict[str, str]:
        headers = dict(self.headers)
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers


@dataclass
class FetchedPage:
    """
    Result of one fetch.

    Attributes:
        final_url: URL after redirects
        html: Page markup (empty for downloads)
        static_links: Links extracted from the markup
        outcome: Whether a page rendered or a download completed
        content_type: Content-Type of the response or download
        status_code: HTTP status, when known
        download: Captured payload for DOWNLOAD_COMPLETED outcomes
        interactive: Live session, set only by interactive clients inside open()
    """

    final_url: str
    html: str = ""
    static_links: LinkSet = field(default_factory=LinkSet)
    outcome: FetchOutcome = FetchOutcome.PAGE_LOADED
    content_type: str = "text/html"
    status_code: Optional[int] = None
    download: Optional[DownloadInfo] = None
    interactive: Optional[InteractiveSession] = None

    @property
    def is_download(self) -> bool:
        return self.outcome is FetchOutcome.DOWNLOAD_COMPLETED


@runtime_checkable
class InteractiveSession(Protocol):
    """
    Element-level control over a live, navigated page.

    Element handles are opaque to callers and only valid until the next
    DOM mutation; structural_path() gives a stable fingerprint instead.
    """

    async def query_all(self, selector: str) -> list[Any]:
        """All elements currently matching a CSS selector."""
        ...

    async def is_visible(self, element: Any) -> bool:
        ...

    async def click(self, element: Any) -> None:
        """
        Click an element.

        Raises:
            InteractionFailedError: If the element could not be clicked
        """
        ...

    async def structural_path(self, element: Any) -> str:
        """Tag and sibling-index path from the document root to the element."""
        ...

    async def current_html(self) -> str:
        ...

    async def current_links(self) -> list[LinkRecord]:
        """Re-extract links from the live DOM."""
        ...


@runtime_checkable
class FetchClient(Protocol):
    """Anything that turns a URL into a FetchedPage."""

    kind: FetcherKind

    async def fetch(self, url: str, options: FetchOptions) -> FetchedPage:
        """
        Fetch a URL.

        Raises:
            FetchFailedError: On network errors, navigation errors or HTTP >= 400
        """
        ...


@runtime_checkable
class InteractiveFetchClient(FetchClient, Protocol):
    """A fetch client that can keep the page open for interaction."""

    def open(self, url: str, options: FetchOptions) -> AbstractAsyncContextManager[FetchedPage]:
        """
        Navigate to a URL and keep the page alive for the context's duration.

        The yielded page has ``interactive`` set unless the navigation
        completed as a download. The page is torn down on every exit path.
        """
        ...
