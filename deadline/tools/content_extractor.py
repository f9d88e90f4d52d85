from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from bs4 import BeautifulSoup, Comment, Tag

STRIP_TAGS = ("script", "style", "nav", "header", "footer", "aside", "form", "noscript")

CONTENT_MARKERS = re.compile(r"content|article|post|story|entry|body|text|main", re.IGNORECASE)

MIN_PARAGRAPH_CHARS = 50
MIN_PARAGRAPHS = 4

TITLE_SUFFIX = re.compile(r"\s+[-|–—]\s+[^-|–—]+$")


@dataclass
class ExtractedContent:
    title: str
    text: str
    method: str
    raw_length: int


class ContentStrategy(Protocol):
    name: str

    def extract(self, soup: BeautifulSoup) -> str | None: ...


def normalize_text(text: str) -> str:
    text = text.replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def tag_text(tag: Tag) -> str:
    # get_text decodes named and numeric entities
    return normalize_text(tag.get_text(" "))


def _largest(tags: list[Tag]) -> Tag | None:
    if not tags:
        return None
    return max(tags, key=lambda t: len(str(t)))


class ArticleOrMainStrategy:
    """Largest ``<article>`` or ``<main>`` block."""

    name = "article"

    def extract(self, soup: BeautifulSoup) -> str | None:
        block = _largest(soup.find_all(["article", "main"]))
        if block is None:
            return None
        return tag_text(block) or None


class ContentDivStrategy:
    """Largest ``<div>`` whose class or id looks like a content container."""

    name = "content_div"

    @staticmethod
    def _is_content_div(tag: Tag) -> bool:
        if tag.name != "div":
            return False
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = [classes]
        marker_source = " ".join(classes) + " " + str(tag.get("id") or "")
        return bool(CONTENT_MARKERS.search(marker_source))

    def extract(self, soup: BeautifulSoup) -> str | None:
        block = _largest(soup.find_all(self._is_content_div))
        if block is None:
            return None
        return tag_text(block) or None


class ParagraphStrategy:
    """All substantial ``<p>`` blocks, when the page has enough of them."""

    name = "paragraphs"

    def extract(self, soup: BeautifulSoup) -> str | None:
        paragraphs = soup.find_all("p")
        if len(paragraphs) < MIN_PARAGRAPHS:
            return None
        texts = [tag_text(p) for p in paragraphs]
        joined = " ".join(t for t in texts if len(t) > MIN_PARAGRAPH_CHARS)
        return joined or None


STRATEGIES: tuple[ContentStrategy, ...] = (
    ArticleOrMainStrategy(),
    ContentDivStrategy(),
    ParagraphStrategy(),
)


def clean_soup(raw_html: str) -> BeautifulSoup:
    soup = BeautifulSoup(raw_html, "html.parser")
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for tag in soup.find_all(list(STRIP_TAGS)):
        tag.extract()
    return soup


def extract_title(soup: BeautifulSoup) -> str:
    """Document title without the trailing `` - Site Name`` suffix."""
    if not soup.title:
        return ""
    title = normalize_text(soup.title.get_text())
    return TITLE_SUFFIX.sub("", title).strip()


def extract_page_title(raw_html: str) -> str:
    """Open Graph title, then Twitter card title, then ``<title>``."""
    soup = BeautifulSoup(raw_html, "html.parser")
    for attrs in ({"property": "og:title"}, {"name": "twitter:title"}):
        meta = soup.find("meta", attrs=attrs)
        content = meta.get("content") if meta else None
        if isinstance(content, str) and content.strip():
            return normalize_text(content)
    if soup.title:
        return normalize_text(soup.title.get_text())
    return ""


def extract_main_content(
    raw_html: str,
    *,
    strategies: tuple[ContentStrategy, ...] = STRATEGIES,
) -> ExtractedContent:
    """Run the strategy chain over cleaned markup; the first non-empty text wins."""
    # <title> lives in <head>, which cleaning leaves alone
    soup = clean_soup(raw_html)
    title = extract_title(soup)
    for strategy in strategies:
        text = strategy.extract(soup)
        if text:
            return ExtractedContent(
                title=title,
                text=text,
                method=strategy.name,
                raw_length=len(raw_html),
            )
    return ExtractedContent(title=title, text="", method="none", raw_length=len(raw_html))
