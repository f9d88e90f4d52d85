from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any

import pytest

from deadline.models.articles import ScrapedArticle, SearchResult
from deadline.services.supabase import EventStore


class FakeQuery:
    """Chainable stand-in for a supabase-py table query over in-memory rows."""

    def __init__(self, rows: list[dict[str, Any]], *, fail: Exception | None = None):
        self._rows = rows
        self._fail = fail
        self._op = "select"
        self._payload: Any = None
        self._filters: list[tuple[str, Any]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._count: str | None = None

    def select(self, *_columns, count=None):
        self._op = "select"
        self._count = count
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._op = "update"
        self._payload = payload
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(str(row.get(col)) == str(val) for col, val in self._filters)

    def execute(self):
        if self._fail:
            raise self._fail
        if self._op == "insert":
            new_rows = self._payload if isinstance(self._payload, list) else [self._payload]
            self._rows.extend(copy.deepcopy(new_rows))
            return SimpleNamespace(data=copy.deepcopy(new_rows), count=None)
        matched = [row for row in self._rows if self._matches(row)]
        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)
        if self._order:
            column, desc = self._order
            matched = sorted(matched, key=lambda r: str(r.get(column) or ""), reverse=desc)
        count = len(matched) if self._count else None
        if self._limit is not None:
            matched = matched[: self._limit]
        return SimpleNamespace(data=copy.deepcopy(matched), count=count)


class FakeSupabase:
    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = tables or {}
        self.failing: dict[str, Exception] = {}

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, []), fail=self.failing.get(name))


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def event_store(fake_supabase):
    return EventStore(client=fake_supabase)


def make_result(link: str, title: str = "Title", snippet: str = "Snippet", **kwargs) -> SearchResult:
    return SearchResult(title=title, link=link, snippet=snippet, **kwargs)


def make_article(
    url: str,
    content: str,
    *,
    source: str | None = None,
    title: str = "Story",
    score: int = 0,
    period: str = "",
) -> ScrapedArticle:
    from deadline.tools.web_utils import extract_domain

    return ScrapedArticle(
        url=url,
        title=title,
        content=content,
        source=source or extract_domain(url),
        relevance_score=score,
        time_period=period,
    )
