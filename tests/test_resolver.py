"""Tests for landing-page resolution."""

import re

import pytest
from docseek.core.resolver import (
    DEFAULT_SIGNATURES,
    LandingPageSignature,
    RedirectResolver,
    normalize_landing_url,
)
from docseek.models.results import LandingPattern, ResolutionResult, ResolverState

WPDM_PAGE = """
<html><body>
  <div class="wpdm-download-link">
    <a class="wpdm-download-link" href="?wpdmdl=99&amp;refresh=abc">Download</a>
  </div>
</body></html>
"""


class TestNormalizeLandingUrl:
    """Tests for normalize_landing_url."""

    def test_adds_trailing_slash_to_download_page(self):
        assert normalize_landing_url("https://x.org/download/agenda") == "https://x.org/download/agenda/"

    def test_leaves_query_urls_alone(self):
        url = "https://x.org/download/agenda?wpdmdl=4"
        assert normalize_landing_url(url) == url

    def test_leaves_other_urls_alone(self):
        assert normalize_landing_url("https://x.org/files/agenda") == "https://x.org/files/agenda"
        assert normalize_landing_url("https://x.org/download/agenda/") == "https://x.org/download/agenda/"


class TestWordPressResolution:
    """Tests for WordPress Download Manager pages."""

    @pytest.fixture
    def resolver(self):
        return RedirectResolver()

    def test_relative_wpdm_link_resolves_against_page(self, resolver):
        html = '<a href="?wpdmdl=99">Download</a>'
        result = resolver.resolve("https://x/download/doc/", html)

        assert result.resolved_url == "https://x/download/doc/?wpdmdl=99"
        assert result.is_provisional is True
        assert result.matched_pattern == LandingPattern.WORDPRESS
        assert result.state == ResolverState.WORDPRESS_CANDIDATE

    def test_html_entities_are_decoded(self, resolver):
        result = resolver.resolve("https://x.org/download/minutes/", WPDM_PAGE)
        assert result.resolved_url == "https://x.org/download/minutes/?wpdmdl=99&refresh=abc"

    def test_detected_by_html_marker_alone(self, resolver):
        result = resolver.resolve("https://x.org/files/minutes", WPDM_PAGE)
        assert result.is_provisional is True
        assert result.matched_pattern == LandingPattern.WORDPRESS

    def test_falls_back_to_pdf_link(self, resolver):
        html = '<a href="/wp-content/uploads/2024/agenda.pdf">PDF</a>'
        result = resolver.resolve("https://x.org/download/agenda/", html)
        assert result.resolved_url == "https://x.org/wp-content/uploads/2024/agenda.pdf"

    def test_resolved_output_is_not_resolved_again(self, resolver):
        """Feeding a resolution back in must not loop."""
        first = resolver.resolve("https://x/download/doc/", '<a href="?wpdmdl=99">Download</a>')
        second = resolver.resolve(first.resolved_url, '<a href="?wpdmdl=99">Download</a>')

        assert second == ResolutionResult.no_match(first.resolved_url)
        assert second.is_provisional is False

    def test_pdf_fallback_output_is_not_resolved_again(self, resolver):
        """A .pdf carried in the query string still marks the URL as resolved."""
        first = resolver.resolve("https://x/download/doc/", '<a href="?file=a.pdf">PDF</a>')
        assert first.resolved_url == "https://x/download/doc/?file=a.pdf"

        second = resolver.resolve(first.resolved_url, '<a href="?file=a.pdf">PDF</a><a href="?wpdmdl=5">Download</a>')

        assert second == ResolutionResult.no_match(first.resolved_url)
        assert second.is_provisional is False
        assert resolver.is_resolved_url(first.resolved_url)

    def test_pdf_urls_are_never_landing_pages(self, resolver):
        result = resolver.resolve("https://x.org/download/agenda.pdf", WPDM_PAGE)
        assert result.state == ResolverState.NO_MATCH

    def test_download_page_without_link_is_no_match(self, resolver):
        result = resolver.resolve("https://x.org/download/agenda/", "<p>Nothing here</p>")
        assert result == ResolutionResult.no_match("https://x.org/download/agenda/")

    def test_resolution_is_deterministic(self, resolver):
        html = '<a href="?wpdmdl=7">a</a><a href="?wpdmdl=8">b</a>'
        results = {resolver.resolve("https://x/download/doc/", html) for _ in range(5)}
        assert len(results) == 1
        assert next(iter(results)).resolved_url == "https://x/download/doc/?wpdmdl=7"


class TestCivicWebResolution:
    """Tests for CivicWeb preview pages."""

    def test_preview_page_resolves_to_document(self):
        url = "https://town.civicweb.net/filepro/documents/?preview=1234"
        html = '<iframe></iframe><a href="/filepro/document/1234/Agenda.pdf">Agenda</a>'

        result = RedirectResolver().resolve(url, html)

        assert result.resolved_url == "https://town.civicweb.net/filepro/document/1234/Agenda.pdf"
        assert result.matched_pattern == LandingPattern.CIVICWEB
        assert result.state == ResolverState.STRUCTURED_DOC_CANDIDATE

    def test_listing_without_preview_is_no_match(self):
        url = "https://town.civicweb.net/filepro/documents/55"
        html = '<a href="/filepro/document/1234/Agenda.pdf">Agenda</a>'
        assert RedirectResolver().resolve(url, html).state == ResolverState.NO_MATCH


class TestDocuShareResolution:
    """Tests for DocuShare pages."""

    def test_get_link_preferred(self):
        html = """
        <p>Powered by DocuShare</p>
        <a href="/dsweb/ServicesLib/Document-7/minutes.pdf">services</a>
        <a href="/dsweb/Get/Document-7/minutes.pdf">get</a>
        """
        result = RedirectResolver().resolve("https://docs.city.gov/docushare/dsweb/View/Document-7", html)

        assert result.resolved_url == "https://docs.city.gov/dsweb/Get/Document-7/minutes.pdf"
        assert result.matched_pattern == LandingPattern.DOCUSHARE

    def test_office_documents_supported(self):
        html = '<a href="/dsweb/Get/Document-9/budget.xlsx">budget</a>'
        result = RedirectResolver().resolve("https://docs.city.gov/docushare/dsweb/View/Document-9", html)
        assert result.resolved_url.endswith("/dsweb/Get/Document-9/budget.xlsx")

    def test_resolved_document_is_not_resolved_again(self):
        html = '<a href="/dsweb/Get/Document-9/budget.pdf">budget</a>'
        result = RedirectResolver().resolve("https://docs.city.gov/dsweb/Get/Document-9/budget.pdf", html)
        assert result.state == ResolverState.NO_MATCH


class TestRedirectResolver:
    """Tests for resolver ordering and registration."""

    def test_default_order(self):
        patterns = [signature.pattern for signature in RedirectResolver().signatures]
        assert patterns == [LandingPattern.WORDPRESS, LandingPattern.CIVICWEB, LandingPattern.DOCUSHARE]
        assert len(DEFAULT_SIGNATURES) == 3

    def test_plain_page_is_no_match(self):
        result = RedirectResolver().resolve("https://example.com/", '<a href="/about">About</a>')
        assert result == ResolutionResult.no_match("https://example.com/")

    def test_empty_html(self):
        result = RedirectResolver().resolve("https://example.com/", "")
        assert result.state == ResolverState.NO_MATCH

    def test_registered_signature(self):
        link = re.compile(r"""href=["']([^"']*/getfile\?id=\d+)["']""")
        signature = LandingPageSignature(
            pattern="laserfiche-link",
            state=ResolverState.STRUCTURED_DOC_CANDIDATE,
            url_predicate=lambda url: "/WebLink/" in url,
            html_predicate=lambda html: False,
            extractor=lambda url, html: (m.group(1) for m in link.finditer(html)),
            resolved_marker=lambda url: "/getfile?" in url,
        )
        resolver = RedirectResolver()
        resolver.register(signature, index=0)

        result = resolver.resolve("https://x.org/WebLink/Doc.aspx?id=5", '<a href="/WebLink/getfile?id=5">f</a>')

        assert result.resolved_url == "https://x.org/WebLink/getfile?id=5"
        assert result.matched_pattern == "laserfiche-link"
        assert resolver.is_resolved_url(result.resolved_url)

    def test_non_http_candidates_skipped(self):
        html = '<a href="javascript:void(0)?wpdmdl=1">x</a><a href="?wpdmdl=2">y</a>'
        result = RedirectResolver().resolve("https://x/download/doc/", html)
        assert result.resolved_url == "https://x/download/doc/?wpdmdl=2"

    def test_result_round_trips_through_dict(self):
        result = RedirectResolver().resolve("https://x/download/doc/", '<a href="?wpdmdl=99">d</a>')
        assert ResolutionResult.from_dict(result.to_dict()) == result
