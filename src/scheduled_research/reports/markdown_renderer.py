"""Markdown report renderer."""
from .base import BRAND_FOOTER, BaseRenderer, ReportFormat, percent
from .models import Report


class MarkdownRenderer(BaseRenderer):
    """Full-fidelity markdown export. Never truncates."""

    format = ReportFormat.MARKDOWN
    content_type = "text/markdown; charset=utf-8"
    extension = "md"

    def render_content(self, report: Report) -> str:
        meta = report.metadata
        lines = [
            f"# {report.title}",
            "",
            f"> Generated: {meta.generated_at.isoformat()} | Sources: {meta.total_sources}"
            f" | Verified Claims: {meta.verified_claims}"
            f" | Confidence: {percent(meta.confidence_score)}",
            "",
            "---",
            "",
            "## Executive Summary",
            "",
            report.summary,
            "",
        ]

        for section in report.sections:
            lines += [f"## {section.heading}", "", section.content, ""]
            if section.citations:
                refs = " ".join(f"[{ref}]" for ref in section.citations)
                lines += [f"*Sources: {refs}*", ""]

        lines += ["---", "", "## References", ""]
        for cite in report.citations:
            lines.append(
                f"- [{cite.id}] {cite.text}: [{cite.context}]({cite.context})"
                f" ({percent(cite.confidence)} confidence)"
            )

        lines += ["", "---", f"*{BRAND_FOOTER}*"]
        return "\n".join(lines)
