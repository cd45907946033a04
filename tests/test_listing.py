"""Tests for search, sorting and pagination."""

from datetime import datetime, timezone

import pytest

from blogfront.listing import (
    PAGE_SIZE,
    build_listing,
    filter_articles,
    paginate,
    parse_page,
    parse_view_mode,
    sort_articles,
)
from blogfront.models import Article


def _article(id: int, updated_at: datetime | None) -> Article:
    return Article(id=id, document_id=f"doc{id}", title=f"Post {id}", updated_at=updated_at)


class TestSortArticles:
    def test_newest_first(self) -> None:
        old = _article(1, datetime(2024, 1, 1, tzinfo=timezone.utc))
        new = _article(2, datetime(2024, 3, 1, tzinfo=timezone.utc))
        assert sort_articles([old, new]) == [new, old]

    def test_undated_last(self) -> None:
        undated = _article(1, None)
        dated = _article(2, datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert sort_articles([undated, dated]) == [dated, undated]

    def test_naive_and_aware_mix(self) -> None:
        naive = _article(1, datetime(2024, 2, 1))
        aware = _article(2, datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert sort_articles([aware, naive])[0] is naive

    def test_stable_for_equal_timestamps(self) -> None:
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        first, second = _article(1, stamp), _article(2, stamp)
        assert sort_articles([first, second]) == [first, second]


class TestFilterArticles:
    def test_matches_title_case_insensitive(self, articles: list[Article]) -> None:
        result = filter_articles(articles, "flask")
        assert [a.document_id for a in result] == ["doc2"]

    def test_matches_content(self, articles: list[Article]) -> None:
        result = filter_articles(articles, "python")
        assert [a.document_id for a in result] == ["doc3", "doc2"]

    def test_missing_content_never_matches(self, articles: list[Article]) -> None:
        assert filter_articles(articles, "pyproject") == [articles[0]]

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query_returns_all(
        self, articles: list[Article], query: str | None
    ) -> None:
        assert filter_articles(articles, query) == articles

    def test_query_is_trimmed(self, articles: list[Article]) -> None:
        assert len(filter_articles(articles, "  hello  ")) == 1

    def test_no_match(self, articles: list[Article]) -> None:
        assert filter_articles(articles, "rust") == []


class TestPaginate:
    def test_default_page_size(self) -> None:
        assert PAGE_SIZE == 15
        page = paginate(list(range(40)), 1)
        assert page.items == list(range(15))
        assert page.total_pages == 3

    def test_middle_page(self) -> None:
        page = paginate(list(range(40)), 2)
        assert page.items == list(range(15, 30))
        assert page.has_previous and page.has_next
        assert page.previous_number == 1
        assert page.next_number == 3

    def test_last_page_partial(self) -> None:
        page = paginate(list(range(40)), 3)
        assert page.items == list(range(30, 40))
        assert not page.has_next
        assert page.next_number is None

    def test_out_of_range_is_clamped(self) -> None:
        assert paginate(list(range(40)), 99).number == 3
        assert paginate(list(range(40)), 0).number == 1
        assert paginate(list(range(40)), -5).items == list(range(15))

    def test_empty(self) -> None:
        page = paginate([], 3)
        assert page.number == 1
        assert page.items == []
        assert page.total_pages == 0
        assert not page.has_previous
        assert not page.has_next

    def test_exact_multiple(self) -> None:
        assert paginate(list(range(30)), 1).total_pages == 2

    def test_invalid_page_size(self) -> None:
        with pytest.raises(ValueError, match="page_size"):
            paginate([1, 2], 1, page_size=0)


class TestParsing:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, 1), ("3", 3), (4, 4), ("abc", 1), ("0", 1), ("-2", 1), ("", 1)],
    )
    def test_parse_page(self, value: str | int | None, expected: int) -> None:
        assert parse_page(value) == expected

    def test_parse_view_mode(self) -> None:
        assert parse_view_mode("list") == "list"
        assert parse_view_mode("card") == "card"
        assert parse_view_mode("grid") == "card"
        assert parse_view_mode(None) == "card"


class TestBuildListing:
    def test_filters_then_paginates(self, articles: list[Article]) -> None:
        listing = build_listing(articles, "python", page=2, page_size=1)
        assert listing.total_matches == 2
        assert listing.page.number == 2
        assert [a.document_id for a in listing.page.items] == ["doc2"]

    def test_query_is_normalized(self, articles: list[Article]) -> None:
        assert build_listing(articles, "  flask ").query == "flask"
        assert build_listing(articles, None).query == ""
