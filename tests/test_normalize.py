"""Tests for articlestash.normalize - resolution to canonical Article."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from articlestash.items import ArticleField, FieldOutcome, FieldSource, Resolution
from articlestash.normalize import (
    normalize,
    normalize_body,
    normalize_title,
    parse_date,
    split_authors,
)


def _resolution(
    title: FieldOutcome | None = None,
    body: FieldOutcome | None = None,
    authors: FieldOutcome | None = None,
    date: FieldOutcome | None = None,
) -> Resolution:
    return Resolution(
        domain="example.com",
        title=title or FieldOutcome.unresolved(),
        body=body or FieldOutcome.unresolved(),
        authors=authors or FieldOutcome.unresolved(),
        date=date or FieldOutcome.unresolved(),
    )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

class TestNormalizeTitle:
    def test_collapses_whitespace(self):
        assert normalize_title("  Hello   World  ") == "Hello World"

    def test_newlines_and_tabs(self):
        assert normalize_title("Hello\n\t World") == "Hello World"

    def test_blank_is_none(self):
        assert normalize_title("   ") is None
        assert normalize_title(None) is None


class TestNormalizeBody:
    def test_strips(self):
        assert normalize_body("  <p>x</p>\n") == "<p>x</p>"

    def test_blank_is_none(self):
        assert normalize_body(" \n ") is None

    def test_relative_links_absolutized(self):
        body = normalize_body('<p><a href="/docs">docs</a></p>', "https://example.com/blog/post")
        assert 'href="https://example.com/docs"' in body


class TestSplitAuthors:
    def test_commas_and_ampersand(self):
        assert split_authors("Jane Doe, John Smith & A. Writer") == (
            "Jane Doe", "John Smith", "A. Writer",
        )

    def test_empty_tokens_dropped(self):
        assert split_authors(" , Jane  Doe ,, & ") == ("Jane Doe",)

    def test_order_and_duplicates_kept(self):
        assert split_authors("B, A, B") == ("B", "A", "B")

    def test_none(self):
        assert split_authors(None) == ()


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2023-11-05") == datetime(2023, 11, 5)

    def test_iso_datetime_with_offset(self):
        parsed = parse_date("2024-03-15T09:00:00+00:00")
        assert parsed == datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)

    def test_zulu(self):
        assert parse_date("2024-03-15T09:00:00Z").utcoffset() == timedelta(0)

    @pytest.mark.parametrize("raw", ["November 5, 2023", "Nov 5, 2023", "5 November 2023"])
    def test_human_formats(self, raw):
        assert parse_date(raw) == datetime(2023, 11, 5)

    def test_garbage_is_none(self):
        assert parse_date("not a date") is None

    def test_lenient_handles_other_formats(self):
        parsed = parse_date("5th November 2023", lenient=True)
        assert parsed is not None
        assert (parsed.year, parsed.month, parsed.day) == (2023, 11, 5)

    def test_strict_rejects_other_formats(self):
        assert parse_date("5th November 2023") is None


# ---------------------------------------------------------------------------
# normalize()
# ---------------------------------------------------------------------------

class TestNormalize:
    def test_full_article(self):
        res = _resolution(
            title=FieldOutcome.manual("  Hello   World  "),
            body=FieldOutcome.automatic("<p>Body</p>"),
            authors=FieldOutcome.manual("Jane Doe, John Smith & A. Writer"),
            date=FieldOutcome.automatic("2023-11-05"),
        )
        article = normalize(res, "example.com", url="https://example.com/p")
        assert article.title == "Hello World"
        assert article.body == "<p>Body</p>"
        assert article.authors == ("Jane Doe", "John Smith", "A. Writer")
        assert article.published_at == datetime(2023, 11, 5)
        assert article.url == "https://example.com/p"
        assert article.source_domain == "example.com"
        assert article.sources[ArticleField.TITLE] is FieldSource.MANUAL
        assert article.sources[ArticleField.BODY] is FieldSource.AUTOMATIC
        assert article.unresolved_fields == ()

    def test_unparseable_date_keeps_raw(self):
        article = normalize(_resolution(date=FieldOutcome.manual("not a date")), "example.com")
        assert article.published_at is None
        assert article.published_raw == "not a date"
        assert article.sources[ArticleField.DATE] is FieldSource.UNRESOLVED

    def test_blank_manual_title_becomes_unresolved(self):
        article = normalize(_resolution(title=FieldOutcome.manual("   ")), "example.com")
        assert article.title is None
        assert article.sources[ArticleField.TITLE] is FieldSource.UNRESOLVED

    def test_idempotent(self):
        res = _resolution(
            title=FieldOutcome.manual("T"),
            body=FieldOutcome.manual('<a href="/x">x</a>'),
        )
        first = normalize(res, "example.com", url="https://example.com/")
        second = normalize(res, "example.com", url="https://example.com/")
        assert first == second

    def test_malformed_body_link_does_not_fail(self):
        res = _resolution(
            title=FieldOutcome.manual("T"),
            body=FieldOutcome.manual('<p><a href="//[oops/x">link</a> text</p>'),
        )
        article = normalize(res, "example.com", url="https://example.com/post")
        assert 'href="//[oops/x"' in article.body
        assert article.sources[ArticleField.BODY] is FieldSource.MANUAL
