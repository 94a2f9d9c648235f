"""
Report synthesis with Gemini.

Implements the analysis capability: turns a research query and the
compiled source corpus into a markdown report.
"""
import logging
import os
from typing import Optional

import google.generativeai as genai  # type: ignore[import]
from dotenv import load_dotenv

from ..core.config import settings
from ..pipeline.capabilities import AnalysisResponse

load_dotenv(".env.local")

logger = logging.getLogger(__name__)

REPORT_PROMPT = """You are a research analyst. Write a {style} on the research question below.

Research question: "{query}"

Use only the source material provided. Cite sources inline with their URL.
If the sources disagree, say so. If something is not covered, list it under
"Open Questions" instead of guessing.

Source material:
{content}

{layout}
"""

# Layout instructions per report format
REPORT_LAYOUTS: dict[str, tuple[str, str]] = {
    "detailed": (
        "detailed research report",
        "Structure: # Title, ## Executive Summary, ## Key Findings, one ## section "
        "per major theme, ## Open Questions, ## Sources.",
    ),
    "executive": (
        "one-page executive brief",
        "Structure: # Title, ## Executive Summary (5 bullets max), "
        "## Recommendations, ## Sources. Keep it under 400 words.",
    ),
    "table": (
        "tabular research summary",
        "Structure: # Title, a short ## Summary paragraph, then a markdown table "
        "with columns Finding | Evidence | Source, then ## Sources.",
    ),
}


class GeminiReportAnalyzer:
    """
    Synthesizes research reports with Gemini.

    Errors are returned as AnalysisResponse(success=False); the pipeline
    decides what a failed analysis means for the run.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """
        Initialize analyzer.

        Args:
            model: Gemini model name. Defaults to settings.analysis_model.
            api_key: Google API key. Defaults to settings, then GOOGLE_API_KEY.
        """
        self.model = model or settings.analysis_model
        self.api_key = api_key or settings.google_api_key or os.getenv("GOOGLE_API_KEY")

        if self.api_key:
            genai.configure(api_key=self.api_key)  # type: ignore[attr-defined]
            self._genai_model = genai.GenerativeModel(self.model)  # type: ignore[attr-defined]
        else:
            self._genai_model = None
            logger.warning("No Google API key configured - report synthesis disabled")

    def build_prompt(self, query: str, content: str, report_format: str) -> str:
        style, layout = REPORT_LAYOUTS.get(report_format, REPORT_LAYOUTS["detailed"])
        return REPORT_PROMPT.format(style=style, query=query, content=content, layout=layout)

    async def analyze(
        self,
        query: str,
        content: str,
        type: str = "report",
        report_format: str = "detailed",
    ) -> AnalysisResponse:
        """
        Generate a report from compiled research content.

        Args:
            query: The composed research query
            content: Compiled source corpus
            type: Analysis type. Only "report" is supported.
            report_format: detailed, executive or table

        Returns:
            AnalysisResponse carrying the markdown report
        """
        if type != "report":
            return AnalysisResponse(success=False, error=f"Unsupported analysis type: {type}")

        if not self._genai_model:
            return AnalysisResponse(success=False, error="No Google API key configured")

        prompt = self.build_prompt(query, content, report_format)

        try:
            response = await self._genai_model.generate_content_async(
                prompt,
                generation_config={
                    "max_output_tokens": settings.analysis_max_output_tokens,
                    "temperature": 0.3,
                },
            )
            report = response.text.strip()
        except Exception as e:
            logger.error(f"Report synthesis error for '{query[:80]}': {e}")
            return AnalysisResponse(success=False, error=str(e))

        logger.info(f"Generated {report_format} report: {len(report)} chars")
        return AnalysisResponse(success=True, result=report)
