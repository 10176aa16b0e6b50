"""Landing-page classification and resolution to the real document URL."""

from __future__ import annotations

import html as html_lib
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import parse_qs, urljoin, urlparse

from ..models.results import LandingPattern, ResolutionResult, ResolverState, pattern_value

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx")
_EXT_GROUP = "|".join(DOCUMENT_EXTENSIONS)


@dataclass(frozen=True)
class LandingPageSignature:
    """
    One landing-page family.

    A page matches when either predicate holds. The extractor yields raw
    candidate hrefs from the HTML in preference order; the resolver decodes
    entities and makes them absolute. resolved_marker recognizes URLs this
    family produces, so they are never resolved again.

    Attributes:
        pattern: Name reported in ResolutionResult.matched_pattern
        state: Resolver state entered on a match
        url_predicate: Test on the page URL
        html_predicate: Test on the page HTML
        extractor: (url, html) -> raw hrefs
        resolved_marker: Test for URLs that are already resolution outputs
    """

    pattern: Union[LandingPattern, str]
    state: ResolverState
    url_predicate: Callable[[str], bool]
    html_predicate: Callable[[str], bool]
    extractor: Callable[[str, str], Iterator[str]]
    resolved_marker: Callable[[str], bool]


def _never(_: str) -> bool:
    return False


def _hrefs(*patterns: re.Pattern[str]) -> Callable[[str, str], Iterator[str]]:
    """Extractor yielding group 1 of every match, pattern by pattern."""

    def extract(url: str, html: str) -> Iterator[str]:
        for pattern in patterns:
            for match in pattern.finditer(html):
                yield match.group(1)

    return extract


# WordPress Download Manager

_WPDM_LINK = re.compile(r"""href=["']([^"']*wpdmdl=\d+[^"']*)["']""", re.IGNORECASE)
_WPDM_PDF_LINK = re.compile(r"""href=["']([^"']*\.pdf[^"']*)["']""", re.IGNORECASE)


def _wordpress_url(url: str) -> bool:
    return "/download/" in url


def _wordpress_html(html: str) -> bool:
    return "wpdm-download-link" in html or "wpdm_view_count" in html


def _wordpress_resolved(url: str) -> bool:
    # Every candidate either extractor yields carries one of these
    parsed = urlparse(url)
    if "wpdmdl" in parse_qs(parsed.query, keep_blank_values=True):
        return True
    return ".pdf" in url.lower()


# CivicWeb preview pages

_CIVICWEB_PREVIEW = re.compile(r"[?&]preview=\d+")
_CIVICWEB_LINK = re.compile(r"""href=["'](/filepro/document/\d+/[^"']+\.pdf)["']""", re.IGNORECASE)
_CIVICWEB_DOCUMENT = re.compile(r"/filepro/document/\d+/")


def _civicweb_url(url: str) -> bool:
    is_preview = "/filepro/documents/?preview=" in url or ("civicweb.net" in url and "/filepro/documents" in url)
    return is_preview and _CIVICWEB_PREVIEW.search(url) is not None


def _civicweb_resolved(url: str) -> bool:
    return _CIVICWEB_DOCUMENT.search(urlparse(url).path) is not None


# Xerox DocuShare

_DOCUSHARE_GET = re.compile(
    rf"""href=["'](/dsweb/Get/Document-\d+/[^"']+\.(?:{_EXT_GROUP}))["']""",
    re.IGNORECASE,
)
_DOCUSHARE_SERVICES = re.compile(
    rf"""href=["'](/dsweb/ServicesLib/Document-\d+/[^"']+\.(?:{_EXT_GROUP}))["']""",
    re.IGNORECASE,
)
_DOCUSHARE_ANY = re.compile(
    rf"""href=["'](/[^"']*(?:docushare|dsweb)[^"']+\.(?:{_EXT_GROUP}))["']""",
    re.IGNORECASE,
)
_DOCUSHARE_DOCUMENT = re.compile(rf"/dsweb/.+\.(?:{_EXT_GROUP})$", re.IGNORECASE)


def _docushare_url(url: str) -> bool:
    return "/docushare/dsweb/" in url or "DocuShare" in url


def _docushare_html(html: str) -> bool:
    return "DocuShare" in html or "/dsweb/Get/" in html or "/dsweb/ServicesLib/" in html


def _docushare_resolved(url: str) -> bool:
    return _DOCUSHARE_DOCUMENT.search(urlparse(url).path) is not None


WORDPRESS_SIGNATURE = LandingPageSignature(
    pattern=LandingPattern.WORDPRESS,
    state=ResolverState.WORDPRESS_CANDIDATE,
    url_predicate=_wordpress_url,
    html_predicate=_wordpress_html,
    extractor=_hrefs(_WPDM_LINK, _WPDM_PDF_LINK),
    resolved_marker=_wordpress_resolved,
)

CIVICWEB_SIGNATURE = LandingPageSignature(
    pattern=LandingPattern.CIVICWEB,
    state=ResolverState.STRUCTURED_DOC_CANDIDATE,
    url_predicate=_civicweb_url,
    html_predicate=_never,
    extractor=_hrefs(_CIVICWEB_LINK),
    resolved_marker=_civicweb_resolved,
)

DOCUSHARE_SIGNATURE = LandingPageSignature(
    pattern=LandingPattern.DOCUSHARE,
    state=ResolverState.STRUCTURED_DOC_CANDIDATE,
    url_predicate=_docushare_url,
    html_predicate=_docushare_html,
    extractor=_hrefs(_DOCUSHARE_GET, _DOCUSHARE_SERVICES, _DOCUSHARE_ANY),
    resolved_marker=_docushare_resolved,
)

DEFAULT_SIGNATURES: tuple[LandingPageSignature, ...] = (
    WORDPRESS_SIGNATURE,
    CIVICWEB_SIGNATURE,
    DOCUSHARE_SIGNATURE,
)


def normalize_landing_url(url: str) -> str:
    """
    Add the trailing slash WordPress download pages need.

    WordPress serves different content for /download/x and /download/x/,
    so a /download/ URL with no query string and no trailing slash gets one.
    """
    if "/download/" in url and "?" not in url and not url.endswith("/"):
        return url + "/"
    return url


class RedirectResolver:
    """
    Classify a page against known landing-page families.

    Evaluation order is fixed:

    1. Loop guard: a URL carrying any family's resolved marker is NO_MATCH,
       whatever its HTML says.
    2. The first family whose URL or HTML predicate holds and whose
       extractor finds a usable candidate wins. A family that matches but
       finds nothing lets later families try.
    3. Otherwise NO_MATCH with the URL unchanged.

    Matches are always provisional; the caller must fetch the candidate and
    inspect its content. resolve() has no side effects, so equal inputs
    give equal results.

    Example:
        resolver = RedirectResolver()
        result = resolver.resolve("https://x/download/doc/", html)
        if result.is_provisional:
            ...  # fetch result.resolved_url and check what it serves
    """

    def __init__(self, signatures: Optional[Iterable[LandingPageSignature]] = None) -> None:
        self._signatures: list[LandingPageSignature] = list(
            DEFAULT_SIGNATURES if signatures is None else signatures
        )

    @property
    def signatures(self) -> tuple[LandingPageSignature, ...]:
        return tuple(self._signatures)

    def register(self, signature: LandingPageSignature, index: Optional[int] = None) -> None:
        """
        Add a landing-page family.

        Args:
            signature: Family to add
            index: Position in evaluation order (appended when None)
        """
        if index is None:
            self._signatures.append(signature)
        else:
            self._signatures.insert(index, signature)

    def is_resolved_url(self, url: str) -> bool:
        """Whether url carries any family's resolved marker."""
        return any(signature.resolved_marker(url) for signature in self._signatures)

    def resolve(self, url: str, html: str) -> ResolutionResult:
        """
        Classify one (url, html) pair.

        Args:
            url: URL the HTML was fetched from
            html: Page markup

        Returns:
            ResolutionResult; provisional with a candidate URL on a match
        """
        if self.is_resolved_url(url):
            logger.debug(f"Already a resolved document URL, not resolving: {url}")
            return ResolutionResult.no_match(url)

        html = html or ""
        for signature in self._signatures:
            if not (signature.url_predicate(url) or signature.html_predicate(html)):
                continue

            candidate = self._first_candidate(signature, url, html)
            if candidate is None:
                logger.debug(f"Page looks like {pattern_value(signature.pattern)} but has no document link: {url}")
                continue

            logger.info(f"Landing page detected ({pattern_value(signature.pattern)}): {url} -> {candidate}")
            return ResolutionResult(
                resolved_url=candidate,
                is_provisional=True,
                matched_pattern=signature.pattern,
                state=signature.state,
            )

        return ResolutionResult.no_match(url)

    @staticmethod
    def _first_candidate(signature: LandingPageSignature, url: str, html: str) -> Optional[str]:
        for raw in signature.extractor(url, html):
            candidate = urljoin(url, html_lib.unescape(raw).strip())
            if candidate == url:
                continue
            if urlparse(candidate).scheme not in ("http", "https"):
                continue
            return candidate
        return None
