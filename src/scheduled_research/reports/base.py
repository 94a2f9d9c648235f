"""Base classes for multi-format report renderers."""
import html
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..errors import UnsupportedFormatError
from .models import Report

BRAND_FOOTER = "Generated by the Scheduled Research Engine"


class ReportFormat(str, Enum):
    """Closed set of export formats."""
    HTML = "html"
    MARKDOWN = "markdown"
    JSON = "json"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: str) -> "ReportFormat":
        """Parse a user-supplied format name; "md" is accepted for markdown."""
        normalized = (value or "").strip().lower()
        if normalized == "md":
            return cls.MARKDOWN
        try:
            return cls(normalized)
        except ValueError:
            supported = ", ".join(f.value for f in cls)
            raise UnsupportedFormatError(
                f"Unsupported format: {value}. Supported: {supported}"
            ) from None


@dataclass
class RenderedReport:
    """A rendered export ready to be served as a download."""
    content: Union[str, bytes]
    content_type: str
    filename: str

    @property
    def body(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")


def escape_text(value: str) -> str:
    """Escape & < > " ' for markup output."""
    return html.escape(value or "", quote=True)


def percent(value: float) -> str:
    """0.875 -> '87.5%'."""
    return f"{value * 100:g}%"


class BaseRenderer(ABC):
    """Shared interface for any report renderer."""

    format: ReportFormat
    content_type: str
    extension: str

    @property
    def filename(self) -> str:
        return f"research-report.{self.extension}"

    def render(self, report: Report) -> RenderedReport:
        return RenderedReport(
            content=self.render_content(report),
            content_type=self.content_type,
            filename=self.filename,
        )

    @abstractmethod
    def render_content(self, report: Report) -> Union[str, bytes]:
        """Render the report body."""
