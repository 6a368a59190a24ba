"""Normalizer: turn a :class:`~articlestash.items.Resolution` into a canonical Article.

Pure data transformation; no I/O and no failure mode beyond leaving fields
unresolved.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

import dateparser

from articlestash.extractors.urlnorm import absolutize_links
from articlestash.items import Article, ArticleField, FieldSource, Resolution

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_AUTHOR_SEPARATORS_RE = re.compile(r"[,&]")

# Tried in order; the first format that parses wins.
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",     # 2023-11-05T10:30:00+01:00 / ...Z
    "%Y-%m-%dT%H:%M:%S.%f%z",  # 2023-11-05T10:30:00.123+01:00
    "%Y-%m-%dT%H:%M:%S",       # 2023-11-05T10:30:00
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",                # 2023-11-05
    "%B %d, %Y",               # November 5, 2023
    "%b %d, %Y",               # Nov 5, 2023
    "%d %B %Y",                # 5 November 2023
)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_title(raw: str | None) -> str | None:
    if raw is None:
        return None
    return collapse_whitespace(raw) or None


def normalize_body(raw: str | None, url: str = "") -> str | None:
    if raw is None:
        return None
    body = raw.strip()
    if not body:
        return None
    return absolutize_links(body, url)


def split_authors(raw: str | None) -> tuple[str, ...]:
    """Split *raw* on commas and ampersands, keeping order and duplicates."""
    if raw is None:
        return ()
    tokens = (collapse_whitespace(t) for t in _AUTHOR_SEPARATORS_RE.split(raw))
    return tuple(t for t in tokens if t)


def parse_date(raw: str | None, *, lenient: bool = False) -> datetime | None:
    """Parse *raw* against :data:`DATE_FORMATS`, first match wins.

    With *lenient*, dateparser gets a final attempt on text none of the
    fixed formats accept.
    """
    if raw is None:
        return None
    text = collapse_whitespace(raw)
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    if lenient:
        parsed = dateparser.parse(
            text,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_DATES_FROM": "past",
            },
        )
        if parsed is not None:
            return parsed

    logger.debug("Unparseable publication date %r", text)
    return None


def normalize(
    resolution: Resolution,
    source_domain: str,
    *,
    url: str = "",
    lenient_dates: bool = False,
) -> Article:
    """Build the canonical :class:`~articlestash.items.Article` from *resolution*.

    Args:
        resolution:    Per-field outcomes from :func:`articlestash.resolver.resolve`.
        source_domain: Domain the selectors were resolved against.
        url:           Page URL; relative links in the body are made absolute
                       against it.
        lenient_dates: Let dateparser try dates none of the fixed formats accept.
    """
    title = normalize_title(resolution.title.value)
    body = normalize_body(resolution.body.value, url)
    authors = split_authors(resolution.authors.value)

    published_raw = None
    if resolution.date.value is not None:
        published_raw = collapse_whitespace(resolution.date.value) or None
    published_at = parse_date(published_raw, lenient=lenient_dates)

    present = {
        ArticleField.TITLE: title is not None,
        ArticleField.BODY: body is not None,
        ArticleField.AUTHORS: bool(authors),
        ArticleField.DATE: published_at is not None,
    }
    sources = {
        f: resolution[f].source if present[f] else FieldSource.UNRESOLVED
        for f in ArticleField
    }

    return Article(
        url=url,
        source_domain=source_domain,
        title=title,
        body=body,
        authors=authors,
        published_at=published_at,
        published_raw=published_raw,
        sources=sources,
    )
