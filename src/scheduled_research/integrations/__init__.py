"""External service adapters for search, scraping, analysis and email."""
from .firecrawl import FirecrawlClient
from .gemini import GeminiReportAnalyzer
from .gmail import GmailClient, GmailReportSender

__all__ = [
    "FirecrawlClient",
    "GeminiReportAnalyzer",
    "GmailClient",
    "GmailReportSender",
]
