"""
Text-only PDF export.

This is a deliberately simplified renderer, not a layout engine: the report
is flattened to plain text, non-ASCII characters are stripped, and the text
payload is capped at PDF_TEXT_LIMIT characters, laid out on as many
Helvetica pages as it needs.
Use the HTML, Markdown or JSON exports when full fidelity matters.
"""
import re
import textwrap

from .base import BaseRenderer, ReportFormat, escape_text, percent
from .models import Report

PDF_TEXT_LIMIT = 4000
LINE_WIDTH = 95
# 12pt leading from y=750 keeps 60 lines above the bottom margin
LINES_PER_PAGE = 60
RULE = "-" * 60

_NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")


def _pdf_string(text: str) -> str:
    """Escape a line for use inside a PDF literal string."""
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


class PDFRenderer(BaseRenderer):
    """Degraded-fidelity, text-only PDF export returned as bytes."""

    format = ReportFormat.PDF
    content_type = "application/pdf"
    extension = "pdf"

    def report_text(self, report: Report) -> str:
        """The report flattened to plain text, before escaping and truncation."""
        meta = report.metadata
        lines = [
            "RESEARCH REPORT",
            "",
            report.title,
            "",
            f"Generated: {meta.generated_at.isoformat()}",
            f"Sources: {meta.total_sources} | Verified Claims: {meta.verified_claims}",
            f"Confidence Score: {percent(meta.confidence_score)}",
            "",
            RULE,
            "",
            "EXECUTIVE SUMMARY",
            "",
            report.summary,
            "",
        ]

        for section in report.sections:
            lines += [RULE, "", section.heading.upper(), ""]
            lines.append(re.sub(r"\n+", " ", section.content).strip())
            if section.citations:
                lines.append("Sources: " + " ".join(f"[{ref}]" for ref in section.citations))
            lines.append("")

        lines += [RULE, "", "REFERENCES", ""]
        for cite in report.citations:
            lines.append(f"[{cite.id}] {cite.text} ({percent(cite.confidence)} confidence)")
            lines.append(f"  URL: {cite.context}")
            lines.append("")

        return "\n".join(lines)

    def text_payload(self, report: Report) -> str:
        """Escaped, ASCII-only and truncated text that goes on the page."""
        text = _NON_ASCII_RE.sub("", escape_text(self.report_text(report)))
        return text[:PDF_TEXT_LIMIT]

    def page_lines(self, report: Report) -> list[str]:
        """Payload wrapped to the page width, one entry per text line."""
        lines = []
        for line in self.text_payload(report).split("\n"):
            lines.extend(textwrap.wrap(line, LINE_WIDTH) or [""])
        return lines

    def render_content(self, report: Report) -> bytes:
        lines = self.page_lines(report)
        pages = [
            lines[start:start + LINES_PER_PAGE]
            for start in range(0, len(lines), LINES_PER_PAGE)
        ] or [[]]

        # 1 catalog, 2 page tree, 3 font, then a page + content stream pair per page
        page_numbers = [4 + 2 * i for i in range(len(pages))]
        kids = " ".join(f"{number} 0 R" for number in page_numbers)
        objects = [
            "<< /Type /Catalog /Pages 2 0 R >>",
            f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>",
            "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        ]
        for number, page in zip(page_numbers, pages):
            stream = "BT /F1 10 Tf 12 TL 50 750 Td\n"
            stream += "".join(f"({_pdf_string(line)}) Tj T*\n" for line in page)
            stream += "ET"
            objects.append(
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {number + 1} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
            )
            objects.append(f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream")

        out = "%PDF-1.4\n"
        offsets = []
        for number, body in enumerate(objects, 1):
            offsets.append(len(out))
            out += f"{number} 0 obj\n{body}\nendobj\n"

        xref_offset = len(out)
        out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n"
        out += "".join(f"{offset:010d} 00000 n \n" for offset in offsets)
        out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        out += f"startxref\n{xref_offset}\n%%EOF\n"

        return out.encode("ascii")
