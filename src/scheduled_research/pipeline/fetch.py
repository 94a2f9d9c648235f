"""
Fetch & Compile Stage.

Runs the policy-parameterized search, adds explicitly requested sites and
folds every retrieved text into one bounded corpus for the analysis step.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import InsufficientContentError, UpstreamError
from ..models import ResearchDepth, SearchResult
from .capabilities import ScrapeCapability, SearchCapability

logger = logging.getLogger(__name__)

DEPTH_BUDGETS: dict[ResearchDepth, int] = {
    ResearchDepth.QUICK: 5,
    ResearchDepth.STANDARD: 10,
    ResearchDepth.DEEP: 15,
}
DEFAULT_BUDGET = 10

STRICT_MIN_SOURCES = 3
DEFAULT_MIN_SOURCES = 2

MAX_CUSTOM_SITES = 5
MAX_SOURCE_CHARS = 5_000
MAX_CORPUS_CHARS = 50_000
MIN_CORPUS_CHARS = 100

INSUFFICIENT_CONTENT_MESSAGE = (
    "Insufficient content: compiled research corpus is below the "
    f"{MIN_CORPUS_CHARS} character minimum"
)


def result_budget(depth: Optional[ResearchDepth]) -> int:
    """Number of search results requested for a research depth."""
    return DEPTH_BUDGETS.get(depth, DEFAULT_BUDGET)


def compile_corpus(results: list[SearchResult]) -> str:
    """
    Concatenate source texts into one bounded corpus.

    Each source is capped at MAX_SOURCE_CHARS and the whole corpus at
    MAX_CORPUS_CHARS. Sources without text are skipped.
    """
    blocks = [
        f"## Source: {result.title}\nURL: {result.url}\n\n"
        f"{result.markdown[:MAX_SOURCE_CHARS]}\n\n---\n"
        for result in results
        if result.markdown
    ]
    return "\n".join(blocks)[:MAX_CORPUS_CHARS]


def dedupe_by_url(results: list[SearchResult]) -> list[SearchResult]:
    """Drop results without a URL and repeated URLs; first occurrence wins."""
    seen: set[str] = set()
    unique = []
    for result in results:
        if not result.url or result.url in seen:
            continue
        seen.add(result.url)
        unique.append(result)
    return unique


@dataclass
class CompiledResearch:
    """Output of the stage: the corpus plus what went into it."""
    corpus: str
    sources: list[SearchResult] = field(default_factory=list)
    custom_sites_scraped: int = 0

    @property
    def source_count(self) -> int:
        return len(self.sources)


class FetchCompileStage:
    """Search, custom-site scraping and corpus compilation for one run."""

    def __init__(self, search: SearchCapability, scraper: ScrapeCapability):
        self.search = search
        self.scraper = scraper

    async def run(
        self,
        query: str,
        strict: bool,
        depth: Optional[ResearchDepth],
        custom_websites: Optional[list[str]] = None,
        country_code: Optional[str] = None,
    ) -> CompiledResearch:
        """
        Execute the stage.

        Raises:
            UpstreamError: The search capability failed or reported failure.
            InsufficientContentError: The compiled corpus is too short.
        """
        results = await self._search(query, strict, depth, country_code)

        custom_results = await self._scrape_custom_sites(custom_websites or [])
        sources = dedupe_by_url(results + custom_results)

        corpus = compile_corpus(sources)
        logger.info(
            f"Compiled {len(corpus)} chars from {len(sources)} sources "
            f"({len(custom_results)} custom)"
        )

        if len(corpus) < MIN_CORPUS_CHARS:
            raise InsufficientContentError(INSUFFICIENT_CONTENT_MESSAGE)

        return CompiledResearch(
            corpus=corpus,
            sources=sources,
            custom_sites_scraped=len(custom_results),
        )

    async def _search(
        self,
        query: str,
        strict: bool,
        depth: Optional[ResearchDepth],
        country_code: Optional[str],
    ) -> list[SearchResult]:
        limit = result_budget(depth)
        min_sources = STRICT_MIN_SOURCES if strict else DEFAULT_MIN_SOURCES
        logger.info(
            f"Searching (limit={limit}, strict={strict}, min_sources={min_sources}): "
            f"{query[:100]}"
        )

        try:
            response = await self.search.search(
                query=query,
                limit=limit,
                scrape_content=True,
                strict_mode=strict,
                min_sources=min_sources,
                country_code=country_code,
            )
        except Exception as e:
            raise UpstreamError(f"Search failed: {e}") from e

        if not response.success:
            message = f"Search failed: {response.error or 'no usable sources'}"
            if response.unreachable_sources:
                unreachable = ", ".join(str(s) for s in response.unreachable_sources)
                message += f". Unreachable: {unreachable}"
            raise UpstreamError(message)

        logger.info(f"Search returned {len(response.data)} results")
        return list(response.data)

    async def _scrape_custom_sites(self, urls: list[str]) -> list[SearchResult]:
        """Scrape caller-provided sites one at a time; failures are skipped."""
        results = []
        for url in [u for u in urls if u][:MAX_CUSTOM_SITES]:
            try:
                response = await self.scraper.scrape(
                    url, formats=["markdown"], only_main_content=True
                )
            except Exception as e:
                logger.warning(f"Failed to scrape {url}: {e}")
                continue

            if not response.success or not response.markdown:
                logger.warning(f"Scrape of {url} returned no content")
                continue

            results.append(SearchResult(
                url=url,
                title=response.title or url,
                markdown=response.markdown,
                status="custom",
            ))
            logger.info(f"Scraped custom URL: {url}")

        return results
