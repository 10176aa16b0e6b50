"""HTML link and content extraction."""

from .content import (
    MIME_TYPES,
    infer_content_type,
    is_html_content_type,
    is_pdf_bytes,
    summarize_html,
)
from .links import build_link_record, extract_links

__all__ = [
    "MIME_TYPES",
    "build_link_record",
    "extract_links",
    "infer_content_type",
    "is_html_content_type",
    "is_pdf_bytes",
    "summarize_html",
]
