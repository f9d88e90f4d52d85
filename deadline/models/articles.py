from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True, slots=True)
class DateWindow:
    start: date
    end: date
    label: str

    @property
    def date_restrict(self) -> str:
        """Google CSE sort restriction, e.g. ``date:r:20240101:20240630``."""
        return f"date:r:{self.start:%Y%m%d}:{self.end:%Y%m%d}"


@dataclass(slots=True)
class SearchResult:
    title: str
    link: str
    snippet: str
    display_link: str = ""
    published_date: str | None = None


@dataclass(slots=True)
class ScrapedArticle:
    url: str
    title: str
    content: str
    source: str
    relevance_score: int = 0
    time_period: str = ""


@dataclass(slots=True)
class PeriodSearchOutcome:
    """Everything the searcher and scraper gathered in one analysis run."""

    results: list[SearchResult] = field(default_factory=list)
    articles: list[ScrapedArticle] = field(default_factory=list)
    images: list[str] = field(default_factory=list)

    def period_breakdown(self) -> dict[str, int]:
        breakdown: dict[str, int] = {}
        for article in self.articles:
            breakdown[article.time_period] = breakdown.get(article.time_period, 0) + 1
        return breakdown
