from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import make_result
from deadline.pipeline.scraper import ArticleScraper, FetchedPage, fetch_page, relevance_score

BODY = "Springfield fraud investigators traced the missing pension money to shell companies. " * 8
HTML = f"<html><head><title>Fraud probe widens | Daily</title></head><body><article>{BODY}</article></body></html>"


def _fetcher(pages: dict[str, FetchedPage | Exception]):
    async def fetch(url: str) -> FetchedPage:
        page = pages[url]
        if isinstance(page, Exception):
            raise page
        return page

    return fetch


def _html_page(url: str, text: str = HTML, status: int = 200, content_type: str = "text/html; charset=utf-8"):
    return FetchedPage(url=url, status_code=status, content_type=content_type, text=text)


def test_relevance_score_counts_long_terms_and_length_bonus():
    content = "Fraud in Springfield. The fraud case grew."
    assert relevance_score(content, "Springfield fraud case") == 4

    long_content = "fraud " + "x" * 1100
    assert relevance_score(long_content, "fraud") == 1 + 2
    longer_content = "fraud " + "x" * 2100
    assert relevance_score(longer_content, "fraud") == 1 + 2 + 3


@pytest.mark.asyncio
async def test_scrape_builds_article_from_html():
    url = "https://www.springfieldnews.com/fraud"
    scraper = ArticleScraper(_fetcher({url: _html_page(url)}), extract_in_thread=False)

    article = await scraper.scrape(url, "Springfield fraud case", "Recent Period (Last 3 months)")

    assert article is not None
    assert article.source == "springfieldnews.com"
    assert article.title == "Fraud probe widens"
    assert article.time_period == "Recent Period (Last 3 months)"
    assert article.relevance_score > 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "page",
    [
        _html_page("https://a.com", status=404),
        _html_page("https://a.com", content_type="application/pdf"),
        _html_page("https://a.com", text="<html>tiny</html>"),
        _html_page("https://a.com", text="<html><body>" + "<b>x</b>" * 40 + "</body></html>"),
    ],
)
async def test_scrape_rejects_unusable_pages(page):
    scraper = ArticleScraper(_fetcher({"https://a.com": page}), extract_in_thread=False)
    assert await scraper.scrape("https://a.com", "query") is None


@pytest.mark.asyncio
async def test_scrape_swallows_network_errors_and_timeouts():
    async def slow(_url):
        await asyncio.sleep(1)

    scraper = ArticleScraper(_fetcher({"https://a.com": RuntimeError("reset")}), extract_in_thread=False)
    assert await scraper.scrape("https://a.com", "query") is None

    slow_scraper = ArticleScraper(slow, timeout=0.01, extract_in_thread=False)
    assert await slow_scraper.scrape("https://b.com", "query") is None


@pytest.mark.asyncio
async def test_scrape_all_keeps_successes_only():
    pages = {
        "https://good.com/1": _html_page("https://good.com/1"),
        "https://bad.com/2": RuntimeError("boom"),
        "https://good.org/3": _html_page("https://good.org/3"),
    }
    scraper = ArticleScraper(_fetcher(pages))

    articles = await scraper.scrape_all(
        [make_result(url) for url in pages],
        "fraud",
        "Middle Period (6-3 months ago)",
    )

    assert [a.url for a in articles] == ["https://good.com/1", "https://good.org/3"]
    assert all(a.time_period == "Middle Period (6-3 months ago)" for a in articles)


class TrackingStream(httpx.AsyncByteStream):
    def __init__(self, body: bytes):
        self.body = body
        self.consumed = False

    async def __aiter__(self):
        self.consumed = True
        yield self.body


@pytest.mark.asyncio
async def test_fetch_page_skips_body_of_non_html_response():
    stream = TrackingStream(b"%PDF-1.7" + b"0" * 4096)
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, headers={"content-type": "application/pdf"}, stream=stream)
    )

    page = await fetch_page("https://a.com/report.pdf", transport=transport)

    assert page.status_code == 200
    assert page.content_type == "application/pdf"
    assert page.text == ""
    assert stream.consumed is False


@pytest.mark.asyncio
async def test_fetch_page_reads_html_body():
    stream = TrackingStream(HTML.encode())
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"}, stream=stream)
    )

    page = await fetch_page("https://a.com/story", transport=transport)

    assert page.text == HTML
    assert stream.consumed is True
