from __future__ import annotations

from datetime import date

import pytest

from conftest import make_article, make_result
from deadline.errors import UpstreamError
from deadline.pipeline.period_search import PeriodSearcher, filter_results
from deadline.pipeline.windows import plan_windows
from deadline.tools.search_provider import SearchResponse

WINDOWS = plan_windows(date(2025, 6, 15))


class RecordingScraper:
    def __init__(self, scores: dict[str, int] | None = None):
        self.calls: list[tuple[list[str], str]] = []
        self.scores = scores or {}

    async def scrape_all(self, candidates, query, time_period=""):
        links = [c.link for c in candidates]
        self.calls.append((links, time_period))
        return [
            make_article(link, "body " * 50, score=self.scores.get(link, 0), period=time_period)
            for link in links
        ]


def _searcher(by_label: dict[str, list | Exception], scraper=None, sleeps=None):
    async def search(query, *, max_results, window):
        outcome = by_label.get(window.label, [])
        if isinstance(outcome, Exception):
            raise outcome
        return SearchResponse(results=outcome, provider="google")

    async def sleep(seconds):
        if sleeps is not None:
            sleeps.append(seconds)

    return PeriodSearcher(
        search=search,
        scraper=scraper or RecordingScraper(),
        delay_ms=500,
        sleep=sleep,
    )


def test_filter_results_drops_blocked_paywalled_and_incomplete():
    seen: set[str] = set()
    results = [
        make_result("https://twitter.com/a"),
        make_result("https://www.wsj.com/b"),
        make_result("https://news.com/no-title", title=""),
        make_result("https://news.com/no-snippet", snippet="  "),
        make_result("https://news.com/ok"),
        make_result("https://news.com/ok"),
    ]
    accepted = filter_results(results, seen)
    assert [r.link for r in accepted] == ["https://news.com/ok"]
    assert seen == {"https://news.com/ok"}


@pytest.mark.asyncio
async def test_urls_are_deduplicated_across_windows():
    shared = "https://news.com/shared"
    searcher = _searcher(
        {
            WINDOWS[0].label: [make_result(shared), make_result("https://news.com/old")],
            WINDOWS[1].label: [make_result(shared), make_result("https://news.com/early")],
            WINDOWS[3].label: [make_result(shared)],
        }
    )

    outcome = await searcher.run("query", WINDOWS)

    links = [r.link for r in outcome.results]
    assert links == ["https://news.com/shared", "https://news.com/old", "https://news.com/early"]
    assert outcome.period_breakdown() == {WINDOWS[0].label: 2, WINDOWS[1].label: 1}


@pytest.mark.asyncio
async def test_blocked_platforms_never_reach_results():
    searcher = _searcher(
        {WINDOWS[2].label: [make_result("https://twitter.com/x/status/1", title="Huge scoop")]}
    )
    outcome = await searcher.run("query", WINDOWS)
    assert outcome.results == []
    assert outcome.articles == []


@pytest.mark.asyncio
async def test_only_first_eight_survivors_are_scraped():
    scraper = RecordingScraper()
    results = [make_result(f"https://news.com/{i}") for i in range(10)]
    searcher = _searcher({WINDOWS[3].label: results}, scraper=scraper)

    outcome = await searcher.run("query", WINDOWS)

    assert len(outcome.results) == 10
    scraped = [links for links, label in scraper.calls if label == WINDOWS[3].label][0]
    assert scraped == [f"https://news.com/{i}" for i in range(8)]


@pytest.mark.asyncio
async def test_failed_window_contributes_nothing_and_run_continues():
    searcher = _searcher(
        {
            WINDOWS[0].label: UpstreamError("Search provider returned an HTML page instead of JSON"),
            WINDOWS[1].label: [make_result("https://news.com/early")],
        }
    )
    outcome = await searcher.run("query", WINDOWS)
    assert [r.link for r in outcome.results] == ["https://news.com/early"]


@pytest.mark.asyncio
async def test_delay_between_windows_but_not_after_last():
    sleeps: list[float] = []
    await _searcher({}, sleeps=sleeps).run("query", WINDOWS)
    assert sleeps == [0.5, 0.5, 0.5]


@pytest.mark.asyncio
async def test_articles_ordered_by_window_then_relevance():
    scores = {"https://a.com/low": 1, "https://a.com/high": 9, "https://b.com/recent": 50}
    searcher = _searcher(
        {
            WINDOWS[3].label: [make_result("https://b.com/recent")],
            WINDOWS[0].label: [make_result("https://a.com/low"), make_result("https://a.com/high")],
        },
        scraper=RecordingScraper(scores),
    )

    outcome = await searcher.run("query", WINDOWS)

    assert [a.url for a in outcome.articles] == [
        "https://a.com/high",
        "https://a.com/low",
        "https://b.com/recent",
    ]
