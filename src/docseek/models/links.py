"""Link records and the first-wins link set."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class LinkRecord:
    """
    A link found on a page, with the metadata present in its markup.

    Attributes:
        href: The href exactly as found (absolute or relative, not normalized)
        text: Visible text of the link, stripped
        title: title attribute, if present
        aria_label: aria-label attribute, if present
        rel: rel attribute, if present
        target: target attribute, if present
        classes: Unique non-empty CSS class tokens in source order, if any
    """

    href: str
    text: str = ""
    title: Optional[str] = None
    aria_label: Optional[str] = None
    rel: Optional[str] = None
    target: Optional[str] = None
    classes: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict, omitting absent fields."""
        data: dict[str, Any] = {"href": self.href, "text": self.text}
        if self.title is not None:
            data["title"] = self.title
        if self.aria_label is not None:
            data["aria_label"] = self.aria_label
        if self.rel is not None:
            data["rel"] = self.rel
        if self.target is not None:
            data["target"] = self.target
        if self.classes is not None:
            data["classes"] = list(self.classes)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LinkRecord:
        classes = data.get("classes")
        return cls(
            href=data["href"],
            text=data.get("text", ""),
            title=data.get("title"),
            aria_label=data.get("aria_label"),
            rel=data.get("rel"),
            target=data.get("target"),
            classes=tuple(classes) if classes is not None else None,
        )


class LinkSet:
    """
    Insertion-ordered mapping of href to LinkRecord.

    The first record seen for an href wins; later records with the same
    href never overwrite its metadata.

    Example:
        links = LinkSet()
        links.add(LinkRecord(href="/a", text="A"))
        links.add(LinkRecord(href="/a", text="A2"))  # ignored
        assert links.get("/a").text == "A"
    """

    def __init__(self, records: Optional[Iterable[LinkRecord]] = None) -> None:
        self._records: dict[str, LinkRecord] = {}
        if records is not None:
            self.merge(records)

    def add(self, record: LinkRecord) -> bool:
        """
        Add a record unless its href is already present.

        Returns:
            True if the record was added
        """
        if record.href in self._records:
            return False
        self._records[record.href] = record
        return True

    def merge(self, records: Iterable[LinkRecord]) -> int:
        """
        Merge records into the set, first-wins.

        Returns:
            Number of hrefs that were new
        """
        added = 0
        for record in records:
            if self.add(record):
                added += 1
        return added

    def get(self, href: str) -> Optional[LinkRecord]:
        return self._records.get(href)

    def links(self) -> list[LinkRecord]:
        """Records in insertion order."""
        return list(self._records.values())

    def hrefs(self) -> list[str]:
        return list(self._records)

    def __contains__(self, href: object) -> bool:
        return href in self._records

    def __iter__(self) -> Iterator[LinkRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinkSet):
            return NotImplemented
        return self.links() == other.links()

    def __repr__(self) -> str:
        return f"LinkSet({len(self)} links)"
