"""
Firecrawl client - web search and page scraping.

Implements the search and scrape capabilities of the pipeline on top of
the Firecrawl REST API.
"""
import asyncio
import logging
import os
from typing import Optional

import aiohttp
from dotenv import load_dotenv

from ..core.config import settings
from ..core.rate_limiter import RateLimiter
from ..models import SearchResult
from ..pipeline.capabilities import ScrapeResponse, SearchResponse, UnreachableSource

load_dotenv(".env.local")

logger = logging.getLogger(__name__)


class FirecrawlClient:
    """
    Async Firecrawl API client.

    Search results without extracted text count as unreachable. When fewer
    than `min_sources` results carry text, the search is reported as failed
    together with the list of unreachable sources.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        requests_per_minute: int = 100,
    ):
        """
        Initialize the client.

        Args:
            api_key: Firecrawl API key. Defaults to settings, then FIRECRAWL_API_KEY.
            base_url: API base URL. Defaults to settings.
            requests_per_minute: Outbound rate limit
        """
        self.api_key = api_key or settings.firecrawl_api_key or os.getenv("FIRECRAWL_API_KEY")
        self.base_url = base_url or settings.firecrawl_base_url
        self.rate_limiter = RateLimiter(requests_per_minute)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, endpoint: str, payload: dict, timeout: int) -> dict:
        """POST to the API and return the decoded JSON body."""
        session = await self._ensure_session()
        await self.rate_limiter.async_wait()

        async with session.post(
            f"{self.base_url}/{endpoint}",
            json=payload,
            headers=self._headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if response.status != 200:
                error_text = await response.text()
                raise RuntimeError(f"Firecrawl {endpoint} returned {response.status}: {error_text[:200]}")
            return await response.json()

    async def search(
        self,
        query: str,
        limit: int,
        scrape_content: bool,
        strict_mode: bool,
        min_sources: int,
        country_code: Optional[str],
    ) -> SearchResponse:
        """
        Search the web for a research query.

        Args:
            query: Research query string
            limit: Maximum results to return
            scrape_content: Whether to extract page markdown for each result
            strict_mode: Strict verification policy in effect (logged only;
                the stricter min_sources is already applied by the caller)
            min_sources: Minimum results with extracted text
            country_code: ISO-3166 alpha-2 code to localize results

        Returns:
            SearchResponse
        """
        if not self.api_key:
            logger.warning("No Firecrawl API key configured")
            return SearchResponse(success=False, error="No Firecrawl API key configured")

        payload: dict = {"query": query, "limit": limit}
        if country_code:
            payload["country"] = country_code.upper()
        if scrape_content:
            payload["scrapeOptions"] = {
                "formats": ["markdown"],
                "onlyMainContent": True,
            }

        logger.info(f"Searching (strict={strict_mode}): {query[:100]}")

        try:
            data = await self._post("search", payload, settings.search_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Search timeout for '{query[:100]}'")
            return SearchResponse(success=False, error="Search timed out")
        except Exception as e:
            logger.error(f"Search error for '{query[:100]}': {e}")
            return SearchResponse(success=False, error=str(e))

        results = self._parse_search_results(data)
        reachable = [r for r in results if r.markdown]
        unreachable = [
            UnreachableSource(name=r.title or r.url, reason="no content")
            for r in results
            if not r.markdown
        ]

        if scrape_content and len(reachable) < min_sources:
            return SearchResponse(
                success=False,
                data=reachable,
                unreachable_sources=unreachable,
                error=f"Only {len(reachable)} reachable sources (minimum {min_sources})",
            )

        logger.info(f"Found {len(results)} results ({len(reachable)} with content)")
        return SearchResponse(success=True, data=results, unreachable_sources=unreachable)

    def _parse_search_results(self, data: dict) -> list[SearchResult]:
        """Parse Firecrawl search response."""
        results = []
        items = data.get("data", data.get("results", []))

        for item in items:
            metadata = item.get("metadata") or {}
            results.append(SearchResult(
                url=item.get("url", ""),
                title=item.get("title") or metadata.get("title", ""),
                description=item.get("description") or metadata.get("description", ""),
                markdown=item.get("markdown") or item.get("content") or "",
                published_date=metadata.get("publishedTime"),
                status=str(metadata["statusCode"]) if "statusCode" in metadata else None,
            ))

        return results

    async def scrape(
        self,
        url: str,
        formats: list[str],
        only_main_content: bool,
    ) -> ScrapeResponse:
        """
        Scrape a single URL.

        Args:
            url: URL to scrape
            formats: Firecrawl output formats, e.g. ["markdown"]
            only_main_content: Strip navigation and boilerplate

        Returns:
            ScrapeResponse with the page markdown and title
        """
        if not self.api_key:
            logger.warning("No Firecrawl API key configured")
            return ScrapeResponse(success=False)

        logger.info(f"Fetching: {url}")

        try:
            data = await self._post(
                "scrape",
                {"url": url, "formats": formats, "onlyMainContent": only_main_content},
                settings.scrape_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Fetch timeout for {url}")
            return ScrapeResponse(success=False)
        except Exception as e:
            logger.error(f"Fetch error for {url}: {e}")
            return ScrapeResponse(success=False)

        page = data.get("data") or {}
        return ScrapeResponse(
            success=bool(data.get("success", True)),
            markdown=page.get("markdown", ""),
            title=(page.get("metadata") or {}).get("title"),
        )

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
