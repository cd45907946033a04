"""Search, sorting and pagination over an in-memory article list."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar

from blogfront.models import Article

PAGE_SIZE = 15

ViewMode = Literal["card", "list"]

T = TypeVar("T")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _updated_key(article: Article) -> tuple[bool, datetime]:
    updated = article.updated_at
    if updated is None:
        return (False, _EPOCH)
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    return (True, updated)


def sort_articles(articles: Sequence[Article]) -> list[Article]:
    """Sort by last update, newest first; undated articles go last."""
    return sorted(articles, key=_updated_key, reverse=True)


def filter_articles(articles: Sequence[Article], query: str | None) -> list[Article]:
    """Keep articles whose title or content contains ``query`` (case-insensitive)."""
    keyword = (query or "").strip().casefold()
    if not keyword:
        return list(articles)
    return [
        article
        for article in articles
        if keyword in article.title.casefold()
        or (article.content is not None and keyword in article.content.casefold())
    ]


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated sequence."""

    items: list[T]
    number: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    @property
    def previous_number(self) -> int | None:
        return self.number - 1 if self.has_previous else None

    @property
    def next_number(self) -> int | None:
        return self.number + 1 if self.has_next else None


def paginate(items: Sequence[T], page: int, page_size: int = PAGE_SIZE) -> Page[T]:
    """Return page ``page`` (1-based) of ``items``.

    Out-of-range page numbers are clamped to the first or last page.
    """
    if page_size < 1:
        msg = f"page_size must be at least 1, got {page_size}"
        raise ValueError(msg)
    total = len(items)
    total_pages = math.ceil(total / page_size)
    number = min(max(page, 1), max(total_pages, 1))
    start = (number - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        number=number,
        page_size=page_size,
        total_items=total,
    )


def parse_page(value: str | int | None) -> int:
    """Parse a page number from a query-string value, defaulting to 1."""
    if value is None:
        return 1
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def parse_view_mode(value: str | None) -> ViewMode:
    return "list" if value == "list" else "card"


@dataclass(frozen=True)
class Listing:
    """A filtered, paginated view of the article list."""

    page: Page[Article]
    query: str
    total_matches: int


def build_listing(
    articles: Sequence[Article],
    query: str | None = None,
    page: int = 1,
    page_size: int = PAGE_SIZE,
) -> Listing:
    matches = filter_articles(articles, query)
    return Listing(
        page=paginate(matches, page, page_size),
        query=(query or "").strip(),
        total_matches=len(matches),
    )
