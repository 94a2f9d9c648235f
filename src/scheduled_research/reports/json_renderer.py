"""Structured JSON report export."""
import json
from datetime import datetime

from .base import BaseRenderer, ReportFormat
from .models import Report

EXPORT_VERSION = "1.0"


class JSONRenderer(BaseRenderer):
    """Lossless JSON export of the report contract plus export metadata."""

    format = ReportFormat.JSON
    content_type = "application/json"
    extension = "json"

    def render_content(self, report: Report) -> str:
        payload = {
            **report.to_dict(),
            "exportedAt": datetime.now().isoformat(),
            "format": "structured",
            "version": EXPORT_VERSION,
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)
