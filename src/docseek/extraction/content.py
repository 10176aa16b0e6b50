"""Page metadata, plain text and content-type helpers for document results."""

import logging
import os
import re
from typing import Optional
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

PDF_SIGNATURE = b"%PDF-"

# Used when a response carries no usable Content-Type
MIME_TYPES = {
    # Documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    ".rtf": "application/rtf",
    ".txt": "text/plain",
    ".csv": "text/csv",
    # Archives
    ".zip": "application/zip",
    ".rar": "application/vnd.rar",
    ".7z": "application/x-7z-compressed",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    # Media
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".wav": "audio/wav",
    ".avi": "video/x-msvideo",
    # Web
    ".html": "text/html",
    ".htm": "text/html",
    ".xml": "application/xml",
    ".json": "application/json",
}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")

_WHITESPACE = re.compile(r"\s+")
_FILENAME_PARAM = re.compile(r"filename\*?=(?:UTF-8'')?[\"']?([^\"';]+)", re.IGNORECASE)


def infer_content_type(filename: Optional[str]) -> str:
    """
    Infer a MIME type from a filename's extension.

    Returns:
        The MIME type, or application/octet-stream if unknown
    """
    if not filename:
        return DEFAULT_CONTENT_TYPE
    _, ext = os.path.splitext(filename.lower())
    return MIME_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def base_content_type(content_type: Optional[str]) -> str:
    """Content-Type without parameters, lowercased."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_html_content_type(content_type: Optional[str]) -> bool:
    return base_content_type(content_type).startswith(HTML_CONTENT_TYPES)


def is_pdf_bytes(content: Optional[bytes]) -> bool:
    """Check for the %PDF- signature, allowing leading whitespace."""
    if not content:
        return False
    return content[:1024].lstrip().startswith(PDF_SIGNATURE)


def filename_from_disposition(disposition: Optional[str]) -> Optional[str]:
    """Filename from a Content-Disposition header, if it names one."""
    if not disposition:
        return None
    match = _FILENAME_PARAM.search(disposition)
    if not match:
        return None
    return unquote(match.group(1).strip()) or None


def filename_from_url(url: str) -> Optional[str]:
    """Last path segment of a URL, if it looks like a file name."""
    name = unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])
    return name if "." in name else None


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    title = soup.find("title")
    if title is None:
        return None
    text = title.get_text().strip()
    return text or None


def extract_description(soup: BeautifulSoup) -> Optional[str]:
    meta = soup.find("meta", attrs={"name": re.compile(r"^description$", re.IGNORECASE)})
    if meta is None:
        return None
    content = meta.get("content")
    if not isinstance(content, str) or not content.strip():
        return None
    return content.strip()


def html_to_text(soup: BeautifulSoup) -> str:
    """Visible text with script and style removed and whitespace collapsed."""
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ")).strip()


def summarize_html(html: str) -> tuple[Optional[str], Optional[str], str]:
    """
    Extract title, meta description and plain text from a page.

    Returns:
        Tuple of (title, description, text)
    """
    soup = BeautifulSoup(html, "html.parser")
    title = extract_title(soup)
    description = extract_description(soup)
    text = html_to_text(soup)
    return title, description, text
