"""Query Composer: builds the research query string from a job."""
from enum import Enum

from ..models import GeographicFocus, Job
from .geo import STRICT_COUNTRY, normalize_country

STRICT_MARKET_CLAUSE = "focused on Saudi Arabia (Tadawul / Nomu / CMA)"

# A sources clause is only added inside this inclusive range; zero tags and
# four or more tags both mean "no effective filter".
MIN_SOURCE_FILTER = 1
MAX_SOURCE_FILTER = 3


class SourceType(str, Enum):
    """Source-type tags a job can select."""
    NEWS = "news"
    ACADEMIC = "academic"
    SOCIAL = "social"
    GOVERNMENT = "government"
    CORPORATE = "corporate"
    BLOGS = "blogs"

    @classmethod
    def label_for(cls, tag: str) -> str:
        """Query label for a tag; unrecognized tags are returned unchanged."""
        try:
            return SOURCE_LABELS[cls(tag)]
        except ValueError:
            return tag


SOURCE_LABELS: dict[SourceType, str] = {
    SourceType.NEWS: "news sources",
    SourceType.ACADEMIC: "academic research",
    SourceType.SOCIAL: "social media",
    SourceType.GOVERNMENT: "government sources",
    SourceType.CORPORATE: "corporate reports",
    SourceType.BLOGS: "blog posts",
}


def _geography_clause(job: Job) -> str:
    if normalize_country(job.country) == STRICT_COUNTRY:
        return STRICT_MARKET_CLAUSE

    focus = job.geographic_focus
    if focus == GeographicFocus.COUNTRY.value and job.country:
        return f"focused on {job.country}"
    if focus and focus != GeographicFocus.GLOBAL.value:
        return f"in {focus.replace('-', ' ')}"
    return ""


def _sources_clause(job: Job) -> str:
    tags = job.source_types or []
    if not MIN_SOURCE_FILTER <= len(tags) <= MAX_SOURCE_FILTER:
        return ""
    return "from " + ", ".join(SourceType.label_for(tag) for tag in tags)


def compose_query(job: Job) -> str:
    """
    Build the natural-language research query for a job.

    Clause order: description, industry, geography, sources.
    """
    parts = [
        job.enhanced_description or job.description,
        f"in the {job.industry} industry" if job.industry else "",
        _geography_clause(job),
        _sources_clause(job),
    ]
    return " ".join(part for part in parts if part)
