"""Pytest fixtures for Scheduled Research tests."""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from scheduled_research.api.auth import create_access_token
from scheduled_research.api.server import app, limiter
from scheduled_research.core.config import settings
from scheduled_research.models import (
    DeliveryMethod,
    ExecutionMode,
    Job,
    ScheduleType,
    SearchResult,
)
from scheduled_research.pipeline.capabilities import (
    AnalysisResponse,
    EmailResponse,
    ScrapeResponse,
    SearchResponse,
)
from scheduled_research.pipeline.executor import ScheduledTaskExecutor
from scheduled_research.reports import Citation, Report, ReportMetadata, ReportSection
from scheduled_research.storage import SQLiteJobStore

REPORT_MARKDOWN = "# Market Report\n\nRevenue grew 12% year over year."


# --- Storage Fixtures ---

@pytest.fixture
def store(tmp_path) -> SQLiteJobStore:
    """Job store backed by a temporary database."""
    return SQLiteJobStore(tmp_path / "jobs.db")


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 10, 9, 0, 0)


@pytest.fixture
def sample_job() -> Job:
    """An automatic weekly job with email delivery."""
    return Job(
        title="EV battery supply chain",
        description="Latest developments in EV battery supply chains",
        industry="automotive",
        source_types=["news", "corporate"],
        geographic_focus="europe",
        delivery_method=DeliveryMethod.EMAIL,
        delivery_email="analyst@example.com",
        schedule_type=ScheduleType.WEEKLY,
        execution_mode=ExecutionMode.AUTOMATIC,
    )


# --- Capability Fixtures ---

def make_results(count: int, text: str = "Battery makers expanded capacity. " * 5) -> list[SearchResult]:
    return [
        SearchResult(
            url=f"https://news.example.com/article-{i}",
            title=f"Article {i}",
            markdown=text,
        )
        for i in range(count)
    ]


@pytest.fixture
def mock_search() -> AsyncMock:
    """Search capability returning three usable results."""
    search = AsyncMock()
    search.search = AsyncMock(return_value=SearchResponse(success=True, data=make_results(3)))
    return search


@pytest.fixture
def mock_scraper() -> AsyncMock:
    scraper = AsyncMock()
    scraper.scrape = AsyncMock(
        return_value=ScrapeResponse(success=True, markdown="Custom page body " * 10, title="Custom")
    )
    return scraper


@pytest.fixture
def mock_analyzer() -> AsyncMock:
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock(return_value=AnalysisResponse(success=True, result=REPORT_MARKDOWN))
    return analyzer


@pytest.fixture
def mock_email() -> AsyncMock:
    email = AsyncMock()
    email.send_report = AsyncMock(return_value=EmailResponse(success=True, message_id="msg-1"))
    return email


# --- Report Fixtures ---

@pytest.fixture
def sample_report() -> Report:
    """Report with two sections and three citations."""
    return Report(
        title="Quarterly Market Review",
        summary="Markets were **volatile** this quarter.",
        sections=[
            ReportSection(
                heading="Equities",
                content="Equities rose on strong earnings.\n\n- Tech led gains\n- Energy lagged",
                citations=["1", "2"],
            ),
            ReportSection(
                heading="Bonds",
                content="Yields fell after the rate decision.",
                citations=["3"],
            ),
        ],
        citations=[
            Citation(id="1", text="Earnings wrap", context="https://example.com/earnings", confidence=0.9),
            Citation(id="2", text="Sector moves", context="https://example.com/sectors", confidence=0.75),
            Citation(id="3", text="Central bank statement", context="https://example.com/rates", confidence=0.875),
        ],
        metadata=ReportMetadata(
            total_sources=3,
            verified_claims=5,
            confidence_score=0.85,
            generated_at=datetime(2026, 3, 1, 12, 0, 0),
        ),
    )


@pytest.fixture
def result_factory():
    """Factory for search results with enough text to pass the corpus minimum."""
    return make_results


# --- Authentication Fixtures ---

@pytest.fixture
def jwt_secret(monkeypatch) -> str:
    """Configure a signing secret for the duration of a test."""
    monkeypatch.setattr(settings, "jwt_secret_key", "test-secret-key")
    return "test-secret-key"


@pytest.fixture
def valid_token(jwt_secret) -> str:
    """Generate a valid JWT token for testing."""
    return create_access_token(subject="scheduler", expires_delta=timedelta(hours=1))


@pytest.fixture
def expired_token(jwt_secret) -> str:
    """Generate an expired JWT token for testing."""
    return create_access_token(subject="scheduler", expires_delta=timedelta(seconds=-1))


@pytest.fixture
def auth_headers(valid_token: str) -> dict[str, str]:
    """Generate Authorization headers with a valid token."""
    return {"Authorization": f"Bearer {valid_token}"}


# --- API Fixtures ---

@pytest.fixture
def test_client(store, mock_search, mock_scraper, mock_analyzer, mock_email):
    """Unauthenticated test client with an injected store and executor."""
    app.state.store = store
    app.state.executor = ScheduledTaskExecutor(
        store=store,
        search=mock_search,
        scraper=mock_scraper,
        analyzer=mock_analyzer,
        email=mock_email,
    )
    limiter.enabled = False
    with TestClient(app) as client:
        yield client
    app.state.store = None
    app.state.executor = None
    limiter.enabled = True
