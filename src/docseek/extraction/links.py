"""Static HTML link extraction using BeautifulSoup."""

import logging
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..models.links import LinkRecord, LinkSet

logger = logging.getLogger(__name__)


def _attr(anchor: Tag, name: str) -> Optional[str]:
    value = anchor.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        # Multi-valued attributes (rel) come back as token lists
        return " ".join(value)
    return str(value)


def _classes(anchor: Tag) -> Optional[tuple[str, ...]]:
    raw = anchor.get("class")
    if raw is None:
        return None
    tokens = raw if isinstance(raw, list) else str(raw).split()
    unique = tuple(dict.fromkeys(token for token in tokens if token))
    return unique or None


def build_link_record(anchor: Tag) -> Optional[LinkRecord]:
    """
    Build a LinkRecord from an <a> element.

    Returns:
        The record, or None when the anchor has no usable href
    """
    href = anchor.get("href")
    if not isinstance(href, str) or not href.strip():
        return None

    return LinkRecord(
        href=href,
        text=anchor.get_text().strip(),
        title=_attr(anchor, "title"),
        aria_label=_attr(anchor, "aria-label"),
        rel=_attr(anchor, "rel"),
        target=_attr(anchor, "target"),
        classes=_classes(anchor),
    )


def extract_links(html: str | bytes) -> LinkSet:
    """
    Extract every anchor with a non-empty href, in document order.

    Hrefs are kept exactly as written. When several anchors share an href,
    the first one wins and the rest are dropped.

    Args:
        html: Page markup

    Returns:
        LinkSet of the page's links

    Example:
        links = extract_links('<a href="/a">A</a><a href="/a">A2</a>')
        assert [link.text for link in links] == ["A"]
    """
    link_set = LinkSet()
    if not html:
        return link_set

    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a"):
        record = build_link_record(anchor)
        if record is not None:
            link_set.add(record)

    logger.debug(f"Extracted {len(link_set)} links")
    return link_set
