"""Tests for multi-format report rendering."""
import json
import re
from datetime import datetime

import pytest

from scheduled_research.errors import UnsupportedFormatError
from scheduled_research.reports import (
    Citation,
    Report,
    ReportFormat,
    ReportSection,
    available_formats,
    get_renderer,
    render,
)
from scheduled_research.reports.base import BRAND_FOOTER
from scheduled_research.reports.html_renderer import safe_href
from scheduled_research.reports.pdf_renderer import LINES_PER_PAGE, PDF_TEXT_LIMIT, PDFRenderer


class TestReportFormat:
    """Format parsing and the registry."""

    def test_parse(self):
        assert ReportFormat.parse("HTML") == ReportFormat.HTML
        assert ReportFormat.parse("md") == ReportFormat.MARKDOWN

    def test_unsupported_format(self, sample_report):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            render(sample_report, "docx")
        assert "Unsupported format: docx" in str(exc_info.value)
        assert "html, markdown, json, pdf" in str(exc_info.value)

    def test_available_formats(self):
        assert available_formats() == ["html", "markdown", "json", "pdf"]

    @pytest.mark.parametrize(
        "fmt,content_type,filename",
        [
            ("html", "text/html; charset=utf-8", "research-report.html"),
            ("markdown", "text/markdown; charset=utf-8", "research-report.md"),
            ("json", "application/json", "research-report.json"),
            ("pdf", "application/pdf", "research-report.pdf"),
        ],
    )
    def test_download_metadata(self, sample_report, fmt, content_type, filename):
        rendered = render(sample_report, fmt)
        assert rendered.content_type == content_type
        assert rendered.filename == filename
        assert isinstance(rendered.body, bytes)


class TestJSONRenderer:
    """Structured export."""

    def test_round_trip(self, sample_report):
        """Parsing the export yields the same sections and citations."""
        payload = json.loads(render(sample_report, "json").content)

        assert payload["format"] == "structured"
        assert payload["version"] == "1.0"
        assert "exportedAt" in payload

        restored = Report.from_dict(payload)
        assert len(restored.sections) == 2
        assert len(restored.citations) == 3
        assert restored.sections == sample_report.sections
        assert restored.citations == sample_report.citations
        assert restored.metadata.generated_at == sample_report.metadata.generated_at

    def test_non_ascii_is_kept(self, sample_report):
        sample_report.title = "Marché de l'énergie"
        assert "Marché de l'énergie" in render(sample_report, "json").content


class TestMarkdownRenderer:
    """Markdown export."""

    def test_layout(self, sample_report):
        content = render(sample_report, "markdown").content

        assert content.startswith("# Quarterly Market Review\n")
        assert "Confidence: 85%" in content
        assert "## Executive Summary" in content
        assert "## Equities" in content
        assert "*Sources: [1] [2]*" in content
        assert "- [3] Central bank statement: [https://example.com/rates](https://example.com/rates)" \
               " (87.5% confidence)" in content
        assert content.endswith(f"*{BRAND_FOOTER}*")

    def test_never_truncates(self, sample_report):
        sample_report.sections[0].content = "word " * 20000
        assert ("word " * 20000).strip() in render(sample_report, "markdown").content


class TestHTMLRenderer:
    """HTML export."""

    def test_structure(self, sample_report):
        html = render(sample_report, "html").content

        assert "<title>Quarterly Market Review</title>" in html
        assert '<time datetime="2026-03-01T12:00:00">' in html
        assert "85% Confidence" in html
        assert '<a href="#cite-1" title="Earnings wrap">[1]</a>' in html
        assert '<li id="cite-3">' in html
        assert "<li>Tech led gains</li>" in html
        assert BRAND_FOOTER in html

    def test_user_text_is_escaped(self, sample_report):
        sample_report.title = "<script>alert(1)</script>"
        sample_report.summary = '"quoted" & <b>bold</b>'
        sample_report.sections[0].content = "<img src=x onerror=alert(1)>"

        html = render(sample_report, "html").content

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
        assert "<b>bold</b>" not in html
        assert "<img src=x" not in html

    def test_dangling_citation(self, sample_report):
        sample_report.sections[1].citations = ["3", "9"]
        html = render(sample_report, "html").content
        assert '<span class="missing-citation">[9]</span>' in html

    def test_unsafe_citation_link(self, sample_report):
        sample_report.citations[0].context = "javascript:alert(1)"
        html = render(sample_report, "html").content
        assert 'href="javascript:' not in html

    def test_markdown_link_scheme_is_neutralized(self, sample_report):
        sample_report.sections[0].content = (
            "[click](javascript:alert(document.cookie)) "
            "![x](javascript:alert(1)) "
            "[ok](https://example.com/a)"
        )
        html = render(sample_report, "html").content

        assert "javascript:" not in html
        assert '<a href="#">click</a>' in html
        assert 'src="#"' in html
        assert '<a href="https://example.com/a">ok</a>' in html

    def test_safe_href(self):
        assert safe_href("https://example.com/a") == "https://example.com/a"
        assert safe_href("javascript:alert(1)") == "#"
        assert safe_href("") == "#"


class TestPDFRenderer:
    """Degraded-fidelity PDF export."""

    def test_document_structure(self, sample_report):
        pdf = render(sample_report, "pdf").content

        assert pdf.startswith(b"%PDF-1.4\n")
        assert pdf.endswith(b"%%EOF\n")
        assert b"/BaseFont /Helvetica" in pdf
        assert b"(Quarterly Market Review) Tj" in pdf
        assert b"(EQUITIES) Tj" in pdf

    def test_xref_offset(self, sample_report):
        pdf = render(sample_report, "pdf").content
        offset = int(pdf.rsplit(b"startxref\n", 1)[1].split(b"\n")[0])
        assert pdf[offset:offset + 4] == b"xref"

    def test_ascii_only(self, sample_report):
        sample_report.title = "Résumé — Q1"
        pdf = render(sample_report, "pdf").content
        pdf.decode("ascii")
        assert b"Rsum  Q1" in pdf

    def test_escaping(self, sample_report):
        sample_report.title = "Growth (YoY) <b>"
        pdf = render(sample_report, "pdf").content
        assert b"Growth \\(YoY\\) &lt;b&gt;" in pdf

    def test_payload_is_truncated(self):
        report = Report(
            title="Long",
            summary="s",
            sections=[ReportSection(heading=f"H{i}", content="x" * 500) for i in range(20)],
            citations=[Citation(id="1", text="t", context="https://example.com", confidence=0.5)],
        )
        renderer = PDFRenderer()

        assert len(renderer.report_text(report)) > PDF_TEXT_LIMIT
        assert len(renderer.text_payload(report)) == PDF_TEXT_LIMIT
        assert "REFERENCES" not in renderer.text_payload(report)

    def test_long_report_spans_pages(self):
        report = Report(
            title="Many sources",
            summary="s",
            sections=[ReportSection(heading="Only", content="c")],
            citations=[
                Citation(id=str(i), text=f"Source {i}", context=f"https://example.com/{i}", confidence=0.5)
                for i in range(1, 26)
            ],
        )
        renderer = PDFRenderer()
        lines = renderer.page_lines(report)
        pdf = renderer.render_content(report)

        streams = re.findall(rb"stream\n(.*?)\nendstream", pdf, re.S)
        shown = [stream.count(b") Tj") for stream in streams]
        assert len(lines) > LINES_PER_PAGE
        assert len(streams) == 2
        assert pdf.count(b"/Type /Page /Parent") == 2
        assert b"/Count 2" in pdf
        assert all(count <= LINES_PER_PAGE for count in shown)
        assert sum(shown) == len(lines)
        assert b"(  URL: https://example.com/25) Tj" in streams[-1]

    def test_get_renderer(self):
        assert isinstance(get_renderer(ReportFormat.PDF), PDFRenderer)
        assert isinstance(get_renderer("pdf"), PDFRenderer)


class TestReportModel:
    """Report contract parsing."""

    def test_from_dict_accepts_zulu_timestamps(self):
        report = Report.from_dict({
            "title": "t",
            "summary": "s",
            "metadata": {"generatedAt": "2026-03-01T12:00:00Z", "totalSources": 2},
        })
        assert report.metadata.generated_at.year == 2026
        assert report.metadata.total_sources == 2

    def test_dangling_citations(self, sample_report):
        sample_report.sections[0].citations.append("7")
        assert sample_report.dangling_citations() == ["7"]

    def test_citation_lookup(self, sample_report):
        assert sample_report.citation("2").text == "Sector moves"
        assert sample_report.citation("42") is None
