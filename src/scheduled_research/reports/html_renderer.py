"""HTML report renderer backed by a Jinja2 template."""
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import markdown
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup

from .base import BRAND_FOOTER, BaseRenderer, ReportFormat, escape_text, percent
from .models import Report

TEMPLATE_NAME = "report.html.jinja2"
LINKABLE_SCHEMES = {"http", "https"}
URL_ATTRIBUTES = ("href", "src")


def safe_href(url: str) -> str:
    """Only http(s) URLs become links; anything else points nowhere."""
    return url if urlparse(url or "").scheme.lower() in LINKABLE_SCHEMES else "#"


class SafeLinkTreeprocessor(Treeprocessor):
    """Rewrites href/src attributes produced by markdown links and images."""

    def run(self, root):
        for element in root.iter():
            for attribute in URL_ATTRIBUTES:
                value = element.get(attribute)
                if value is not None:
                    element.set(attribute, safe_href(value))


class SafeLinkExtension(Extension):
    def extendMarkdown(self, md):
        # Below "unescape" (0) so attributes hold their final values
        md.treeprocessors.register(SafeLinkTreeprocessor(md), "safe_links", -10)


def safe_markdown_html(content: str) -> str:
    """
    Render untrusted markdown to HTML.

    The text is escaped before conversion, so markup embedded in the source
    comes out as literal text and only markdown syntax produces tags. Link
    and image targets outside http(s) are replaced with "#".
    """
    return markdown.markdown(
        escape_text(content),
        extensions=["sane_lists", "tables", SafeLinkExtension()],
        output_format="html5",
    )


def section_body_html(content: str) -> Markup:
    return Markup(safe_markdown_html(content))


class HTMLRenderer(BaseRenderer):
    """Standalone, print-friendly HTML export."""

    format = ReportFormat.HTML
    content_type = "text/html; charset=utf-8"
    extension = "html"

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Args:
            template_dir: Path to Jinja2 templates. Defaults to reports/templates.
        """
        self.template_dir = template_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "jinja2"]),
        )
        self.env.filters["percent"] = percent
        self.env.filters["section_body"] = section_body_html
        self.env.filters["safe_href"] = safe_href

    def render_content(self, report: Report) -> str:
        template = self.env.get_template(TEMPLATE_NAME)
        return template.render(
            report=report,
            meta=report.metadata,
            dangling=set(report.dangling_citations()),
            footer=BRAND_FOOTER,
        )
