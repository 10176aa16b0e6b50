"""Result types produced by scrapes, expansion and landing-page resolution."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from .config import FetcherKind, StrategyKind
from .links import LinkRecord


class ResolverState(str, Enum):
    """Classification states of the redirect resolver."""

    UNCLASSIFIED = "unclassified"
    WORDPRESS_CANDIDATE = "wordpress_candidate"
    STRUCTURED_DOC_CANDIDATE = "structured_doc_candidate"
    NO_MATCH = "no_match"


class LandingPattern(str, Enum):
    """Known landing-page families."""

    WORDPRESS = "wordpress-pdf-link"
    CIVICWEB = "civicweb-pdf-link"
    DOCUSHARE = "docushare-doc-link"


def pattern_value(pattern: Optional[Union[LandingPattern, str]]) -> Optional[str]:
    if pattern is None:
        return None
    return pattern.value if isinstance(pattern, LandingPattern) else pattern


def _parse_pattern(value: Optional[str]) -> Optional[Union[LandingPattern, str]]:
    if not value:
        return None
    try:
        return LandingPattern(value)
    except ValueError:
        # Registered third-party families keep their plain name
        return value


@dataclass(frozen=True)
class ResolutionResult:
    """
    Outcome of classifying one (url, html) pair.

    A matched result is always provisional: the candidate URL still has to be
    fetched and its content inspected before it can be trusted.
    """

    resolved_url: str
    is_provisional: bool = False
    matched_pattern: Optional[Union[LandingPattern, str]] = None
    state: ResolverState = ResolverState.NO_MATCH

    @classmethod
    def no_match(cls, url: str) -> ResolutionResult:
        return cls(resolved_url=url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resolved_url": self.resolved_url,
            "is_provisional": self.is_provisional,
            "matched_pattern": pattern_value(self.matched_pattern),
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolutionResult:
        pattern = data.get("matched_pattern")
        return cls(
            resolved_url=data["resolved_url"],
            is_provisional=data.get("is_provisional", False),
            matched_pattern=_parse_pattern(pattern),
            state=ResolverState(data.get("state", ResolverState.NO_MATCH.value)),
        )


@dataclass
class DownloadInfo:
    """A file payload captured instead of a rendered page."""

    url: str
    content_type: str = "application/octet-stream"
    content: bytes = b""
    filename: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "content_type": self.content_type,
            "content": base64.b64encode(self.content).decode("ascii"),
            "filename": self.filename,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DownloadInfo:
        return cls(
            url=data["url"],
            content_type=data.get("content_type", "application/octet-stream"),
            content=base64.b64decode(data.get("content") or ""),
            filename=data.get("filename"),
            error=data.get("error"),
        )


@dataclass
class ScrapeMetrics:
    """Timing and counters for one scrape."""

    duration: float = 0.0
    link_count: int = 0
    interaction_count: int = 0
    complete: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration": round(self.duration, 3),
            "link_count": self.link_count,
            "interaction_count": self.interaction_count,
            "complete": self.complete,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrapeMetrics:
        return cls(
            duration=data.get("duration", 0.0),
            link_count=data.get("link_count", 0),
            interaction_count=data.get("interaction_count", 0),
            complete=data.get("complete", True),
        )


@dataclass
class ScrapeResult:
    """
    Result of Spider.scrape().

    Attributes:
        url: Final URL of the fetched page
        content: Rendered HTML (empty for download outcomes)
        links: Deduplicated links in discovery order
        strategy: Strategy that produced the result
        fetcher: Fetch client tier that retrieved the page
        metrics: Timing and counters
        confidence: Discovery quality in [0, 1]
        content_type: Content-Type of the page or download
        download: Captured payload when the URL triggered a download
        resolution: Landing-page classification of the page
        from_cache: True when served from the cache (not serialized)
    """

    url: str
    content: str
    links: list[LinkRecord]
    strategy: StrategyKind
    fetcher: FetcherKind
    metrics: ScrapeMetrics = field(default_factory=ScrapeMetrics)
    confidence: float = 1.0
    content_type: str = "text/html"
    download: Optional[DownloadInfo] = None
    resolution: Optional[ResolutionResult] = None
    from_cache: bool = False

    @property
    def is_download(self) -> bool:
        return self.download is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "content": self.content,
            "links": [link.to_dict() for link in self.links],
            "strategy": self.strategy.value,
            "fetcher": self.fetcher.value,
            "metrics": self.metrics.to_dict(),
            "confidence": self.confidence,
            "content_type": self.content_type,
            "download": self.download.to_dict() if self.download else None,
            "resolution": self.resolution.to_dict() if self.resolution else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrapeResult:
        download = data.get("download")
        resolution = data.get("resolution")
        return cls(
            url=data["url"],
            content=data.get("content", ""),
            links=[LinkRecord.from_dict(link) for link in data.get("links", [])],
            strategy=StrategyKind(data["strategy"]),
            fetcher=FetcherKind(data["fetcher"]),
            metrics=ScrapeMetrics.from_dict(data.get("metrics", {})),
            confidence=data.get("confidence", 1.0),
            content_type=data.get("content_type", "text/html"),
            download=DownloadInfo.from_dict(download) if download else None,
            resolution=ResolutionResult.from_dict(resolution) if resolution else None,
        )


@dataclass
class DocumentResult:
    """
    Result of Spider.resolve_document().

    ``strategy`` is "basic", "tree", "direct-download", or the value of the
    landing pattern that led to the document (e.g. "wordpress-pdf-link").
    """

    url: str
    source_url: str
    is_pdf: bool
    complete: bool
    strategy: str
    content_type: str = "text/html"
    text: Optional[str] = None
    html: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    file_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    is_download: bool = False

    def to_dict(self, include_bytes: bool = False) -> dict[str, Any]:
        """
        Convert to a JSON-friendly dict.

        Args:
            include_bytes: Embed file_bytes as base64 instead of its size
        """
        data: dict[str, Any] = {
            "url": self.url,
            "source_url": self.source_url,
            "is_pdf": self.is_pdf,
            "complete": self.complete,
            "strategy": self.strategy,
            "content_type": self.content_type,
            "title": self.title,
            "description": self.description,
            "filename": self.filename,
            "is_download": self.is_download,
        }
        if self.text is not None:
            data["text"] = self.text
        if self.file_bytes is not None:
            if include_bytes:
                data["file_bytes"] = base64.b64encode(self.file_bytes).decode("ascii")
            else:
                data["size"] = len(self.file_bytes)
        return data
