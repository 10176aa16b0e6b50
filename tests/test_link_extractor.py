"""Tests for static link extraction and LinkSet."""

from docseek.extraction.links import extract_links
from docseek.models.links import LinkRecord, LinkSet


class TestExtractLinks:
    """Tests for extract_links."""

    def test_extracts_in_document_order(self):
        html = """
        <html><body>
            <a href="/b.pdf">B</a>
            <a href="https://example.com/a.pdf">A</a>
            <a href="minutes/c.docx">C</a>
        </body></html>
        """
        links = extract_links(html)
        assert links.hrefs() == ["/b.pdf", "https://example.com/a.pdf", "minutes/c.docx"]

    def test_hrefs_are_not_normalized(self):
        links = extract_links('<a href="../docs/./x.pdf#page=2">x</a>')
        assert links.hrefs() == ["../docs/./x.pdf#page=2"]

    def test_first_duplicate_wins(self):
        html = '<a href="/a" title="first">First</a><a href="/a" title="second">Second</a>'
        links = extract_links(html)

        assert len(links) == 1
        assert links.get("/a").text == "First"
        assert links.get("/a").title == "first"

    def test_skips_anchors_without_href(self):
        html = '<a name="top">Top</a><a href="">Empty</a><a href="   ">Blank</a><a href="/ok">OK</a>'
        assert extract_links(html).hrefs() == ["/ok"]

    def test_collects_metadata(self):
        html = (
            '<a href="/doc.pdf" title="Agenda" aria-label="Download agenda" rel="noopener nofollow" '
            'target="_blank" class="btn btn  primary btn">  Agenda  </a>'
        )
        record = extract_links(html).get("/doc.pdf")

        assert record == LinkRecord(
            href="/doc.pdf",
            text="Agenda",
            title="Agenda",
            aria_label="Download agenda",
            rel="noopener nofollow",
            target="_blank",
            classes=("btn", "primary"),
        )

    def test_absent_metadata_is_none(self):
        record = extract_links('<a href="/x">x</a>').get("/x")
        assert record.title is None
        assert record.classes is None
        assert record.to_dict() == {"href": "/x", "text": "x"}

    def test_nested_text(self):
        record = extract_links('<a href="/x"><span>Board</span> <b>Minutes</b></a>').get("/x")
        assert record.text == "Board Minutes"

    def test_accepts_bytes(self):
        assert extract_links(b'<a href="/x">x</a>').hrefs() == ["/x"]

    def test_empty_input(self):
        assert len(extract_links("")) == 0

    def test_deterministic(self):
        html = '<a href="/1">1</a><a href="/2">2</a><a href="/1">again</a>'
        assert extract_links(html) == extract_links(html)


class TestLinkSet:
    """Tests for LinkSet."""

    def test_add_reports_new_entries(self):
        links = LinkSet()
        assert links.add(LinkRecord(href="/a")) is True
        assert links.add(LinkRecord(href="/a", text="later")) is False
        assert links.get("/a").text == ""

    def test_merge_counts_added(self):
        links = LinkSet([LinkRecord(href="/a")])
        added = links.merge([LinkRecord(href="/a"), LinkRecord(href="/b"), LinkRecord(href="/c")])

        assert added == 2
        assert links.hrefs() == ["/a", "/b", "/c"]
        assert "/b" in links

    def test_record_dict_round_trip(self):
        record = LinkRecord(href="/a", text="A", rel="next", classes=("x",))
        assert LinkRecord.from_dict(record.to_dict()) == record
