"""Report renderer registry."""
from typing import Union

from .base import BaseRenderer, RenderedReport, ReportFormat
from .html_renderer import HTMLRenderer
from .json_renderer import JSONRenderer
from .markdown_renderer import MarkdownRenderer
from .models import Citation, Report, ReportMetadata, ReportSection
from .pdf_renderer import PDFRenderer

RENDERERS: dict[ReportFormat, type[BaseRenderer]] = {
    ReportFormat.HTML: HTMLRenderer,
    ReportFormat.MARKDOWN: MarkdownRenderer,
    ReportFormat.JSON: JSONRenderer,
    ReportFormat.PDF: PDFRenderer,
}


def get_renderer(fmt: Union[ReportFormat, str]) -> BaseRenderer:
    """
    Renderer for a format.

    Raises:
        UnsupportedFormatError: For names outside ReportFormat.
    """
    if not isinstance(fmt, ReportFormat):
        fmt = ReportFormat.parse(fmt)
    return RENDERERS[fmt]()


def render(report: Report, fmt: Union[ReportFormat, str] = ReportFormat.HTML) -> RenderedReport:
    """Render a report into one of the export formats."""
    return get_renderer(fmt).render(report)


def available_formats() -> list[str]:
    return [fmt.value for fmt in ReportFormat]


__all__ = [
    "BaseRenderer",
    "Citation",
    "RenderedReport",
    "Report",
    "ReportFormat",
    "ReportMetadata",
    "ReportSection",
    "available_formats",
    "get_renderer",
    "render",
]
