"""Deterministic title/author/date metadata extraction from HTML.

Priority chain (highest → lowest):
    JSON-LD → Open Graph / article:* → Twitter Card → HTML <meta> → <title> / <h1> / <time>

Dates are returned as raw text; parsing is the normalizer's job.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from articlestash.extractors.selector import safe_str

logger = logging.getLogger(__name__)

_ARTICLE_TYPES: frozenset[str] = frozenset(
    {
        "article",
        "blogposting",
        "newsarticle",
        "techarticle",
        "scholarlyarticle",
        "liveblogposting",
        "reportage",
        "report",
        "opinionnewsarticle",
        "analysisnewsarticle",
    },
)


def _first(*values: Any) -> Any:
    """Return the first non-empty, non-None value."""
    for v in values:
        if isinstance(v, str):
            v = v.strip()
        if v:
            return v
    return None


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

def _node_types(node: dict) -> set[str]:
    raw = node.get("@type", "")
    types = raw if isinstance(raw, list) else [raw]
    return {str(t).lower() for t in types}


def _extract_jsonld(soup: BeautifulSoup) -> dict:
    """Return the first article-like JSON-LD node (``@graph`` aware)."""
    fallback: dict = {}
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            raw = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue

        nodes: list = raw if isinstance(raw, list) else [raw]
        expanded: list = []
        for node in nodes:
            if isinstance(node, dict) and isinstance(node.get("@graph"), list):
                expanded.extend(node["@graph"])
            else:
                expanded.append(node)

        for node in expanded:
            if not isinstance(node, dict):
                continue
            types = _node_types(node)
            if types & _ARTICLE_TYPES:
                return node
            if not fallback and types & {"webpage", "website"}:
                fallback = node
    return fallback


def _names(value: Any) -> list[str]:
    """Flatten a JSON-LD ``author`` value (str | dict | list) into names."""
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, dict):
        name = value.get("name")
        return [str(name)] if name else []
    if isinstance(value, list):
        names: list[str] = []
        for item in value:
            names.extend(_names(item))
        return names
    return []


# ---------------------------------------------------------------------------
# Meta tags
# ---------------------------------------------------------------------------

def _meta_properties(soup: BeautifulSoup) -> dict[str, str]:
    """Collect ``og:``, ``article:``, ``twitter:`` and plain named ``<meta>`` values.

    The first occurrence of a key wins, except for ``article:author`` which
    may repeat and is joined with commas.
    """
    props: dict[str, str] = {}
    authors: list[str] = []
    for tag in soup.find_all("meta"):
        if not isinstance(tag, Tag):
            continue
        key = safe_str(tag.get("property") or tag.get("name")).strip().lower()
        content = safe_str(tag.get("content")).strip()
        if not key or not content:
            continue
        if key == "article:author":
            authors.append(content)
            continue
        props.setdefault(key, content)
    if authors:
        props["article:author"] = ", ".join(authors)
    return props


def _time_datetime(soup: BeautifulSoup) -> str | None:
    """Return the ``datetime`` attribute of the first ``<time>`` element, if any."""
    for time_tag in soup.find_all("time"):
        if isinstance(time_tag, Tag):
            value = safe_str(time_tag.get("datetime")).strip()
            if value:
                return value
    return None


def _text_of(soup: BeautifulSoup, name: str) -> str | None:
    tag = soup.find(name)
    if isinstance(tag, Tag):
        return tag.get_text(separator=" ").strip() or None
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(html: str, soup: BeautifulSoup | None = None) -> dict:
    """Extract title, authors and raw publication date from *html*.

    Args:
        html: Raw HTML string.
        soup: Pre-parsed BeautifulSoup object.  When provided the HTML is
              not re-parsed.

    Returns a dict with keys ``title``, ``authors`` (comma-joined names) and
    ``date_raw``; missing values are ``None``.
    """
    if soup is None:
        soup = BeautifulSoup(html or "", "lxml")

    jsonld = _extract_jsonld(soup)
    props = _meta_properties(soup)

    title = _first(
        jsonld.get("headline"),
        props.get("og:title"),
        props.get("twitter:title"),
        _text_of(soup, "h1"),
        _text_of(soup, "title"),
        jsonld.get("name"),
    )

    jsonld_authors = _names(jsonld.get("author"))
    authors = _first(
        ", ".join(jsonld_authors),
        props.get("article:author"),
        props.get("author"),
        props.get("twitter:creator"),
    )
    # og/article:author is often a profile URL rather than a name
    if isinstance(authors, str) and authors.startswith(("http://", "https://")):
        authors = _first(props.get("author"))

    date_raw = _first(
        jsonld.get("datePublished"),
        props.get("article:published_time"),
        props.get("pubdate"),
        props.get("date"),
        props.get("dc.date"),
        _time_datetime(soup),
    )

    logger.debug(
        "metadata: title=%r authors=%r date_raw=%r", title, authors, date_raw,
    )
    return {
        "title": str(title) if title else None,
        "authors": str(authors) if authors else None,
        "date_raw": str(date_raw) if date_raw else None,
    }
