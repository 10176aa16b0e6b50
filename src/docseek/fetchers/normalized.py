"""HTTP fetch client that normalizes markup through lxml."""

import logging

from bs4 import BeautifulSoup

from ..models.config import FetcherKind
from .static import StaticFetchClient

logger = logging.getLogger(__name__)


class NormalizedFetchClient(StaticFetchClient):
    """
    Static fetch client whose HTML is re-serialized by a lenient parser.

    Broken markup (unclosed tags, stray fragments) is repaired into a full
    <html><head><body> document before links are extracted, so pattern
    matching downstream sees a predictable structure. No JavaScript runs.
    """

    kind = FetcherKind.NORMALIZED

    def _render_html(self, html: str) -> str:
        try:
            return str(BeautifulSoup(html, "lxml"))
        except Exception as e:
            logger.warning(f"lxml failed to parse HTML, using raw content: {e}")
            return html
