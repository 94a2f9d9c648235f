"""
Contracts of the external capabilities the pipeline drives.

Search, scrape, analysis and email are network services with their own
timeout policy. The pipeline only sees these protocols, which keeps the
run state machine and scheduler testable without any network state.
"""
from dataclasses import dataclass, field
from typing import Optional, Protocol

from ..models import SearchResult


@dataclass
class UnreachableSource:
    """A source the search capability could not reach."""
    name: str
    reason: str

    def __str__(self) -> str:
        return f"{self.name} ({self.reason})"


@dataclass
class SearchResponse:
    success: bool
    data: list[SearchResult] = field(default_factory=list)
    unreachable_sources: list[UnreachableSource] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ScrapeResponse:
    success: bool
    markdown: str = ""
    title: Optional[str] = None


@dataclass
class AnalysisResponse:
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None


@dataclass
class EmailResponse:
    success: bool
    message_id: Optional[str] = None


class SearchCapability(Protocol):
    async def search(
        self,
        query: str,
        limit: int,
        scrape_content: bool,
        strict_mode: bool,
        min_sources: int,
        country_code: Optional[str],
    ) -> SearchResponse: ...


class ScrapeCapability(Protocol):
    async def scrape(
        self,
        url: str,
        formats: list[str],
        only_main_content: bool,
    ) -> ScrapeResponse: ...


class AnalysisCapability(Protocol):
    async def analyze(
        self,
        query: str,
        content: str,
        type: str = "report",
        report_format: str = "detailed",
    ) -> AnalysisResponse: ...


class EmailCapability(Protocol):
    async def send_report(
        self,
        to: str,
        task_title: str,
        report_content: str,
        report_format: str,
    ) -> EmailResponse: ...
