from __future__ import annotations

from dataclasses import dataclass, field

from deadline.config import settings
from deadline.models.articles import ScrapedArticle, SearchResult
from deadline.tools import web_utils

MIN_SLICE_CHARS = 100
BLOCK_SEPARATOR = "\n\n"
BLOCK_FOOTER = "\n---"


@dataclass(slots=True)
class PackedContext:
    text: str = ""
    included: list[ScrapedArticle] = field(default_factory=list)
    chars_by_source: dict[str, int] = field(default_factory=dict)

    @property
    def total_chars(self) -> int:
        return len(self.text)


def _block_header(rank: int, article: ScrapedArticle) -> str:
    return f"[{rank}] {article.source} - {article.title} ({article.time_period})\n"


def pack_articles(
    articles: list[ScrapedArticle],
    *,
    max_total_chars: int | None = None,
    max_chars_per_site: int | None = None,
) -> PackedContext:
    """Concatenate article blocks under a global and a per-domain character cap.

    Caps are counted on whole formatted blocks, header and footer included.
    Articles whose allowed slice falls under 100 characters are skipped.
    """
    max_total = max_total_chars or settings.max_total_chars
    max_per_site = max_chars_per_site or settings.max_chars_per_site

    packed = PackedContext()
    blocks: list[str] = []
    total = 0

    for rank, article in enumerate(articles, start=1):
        header = _block_header(rank, article)
        separator = BLOCK_SEPARATOR if blocks else ""
        overhead = len(header) + len(BLOCK_FOOTER)

        site_remaining = max_per_site - packed.chars_by_source.get(article.source, 0) - overhead
        global_remaining = max_total - total - len(separator) - overhead
        allowed = min(site_remaining, global_remaining, len(article.content))
        if allowed < MIN_SLICE_CHARS:
            continue

        block = f"{header}{article.content[:allowed]}{BLOCK_FOOTER}"
        if total + len(separator) + len(block) > max_total:
            continue

        blocks.append(block)
        total += len(separator) + len(block)
        packed.chars_by_source[article.source] = (
            packed.chars_by_source.get(article.source, 0) + len(block)
        )
        packed.included.append(article)

    packed.text = BLOCK_SEPARATOR.join(blocks)
    return packed


def format_snippets(results: list[SearchResult], limit: int | None = None) -> str:
    """Numbered ``N. [domain] title: snippet`` lines for the first ``limit`` results."""
    limit = limit or settings.max_snippets
    lines = []
    for index, result in enumerate(results[:limit], start=1):
        domain = result.display_link or web_utils.extract_domain(result.link)
        lines.append(f"{index}. [{domain}] {result.title}: {result.snippet}")
    return "\n".join(lines)
