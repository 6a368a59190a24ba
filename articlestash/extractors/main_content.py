"""Article body extraction with a three-tier cascade.

Tier 1: readability-lxml  (Mozilla Readability algorithm)
Tier 2: trafilatura       (second-opinion extractor)
Tier 3: DOM heuristic     (priority CSS selectors + paragraph density)
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Minimum words for a tier's output to be accepted
READABILITY_MIN_WORDS = 50
TRAFILATURA_MIN_WORDS = 30
DOM_MIN_WORDS = 10

# Trafilatura replaces readability when it yields this many times more words
_TRAFILATURA_PREFERENCE_RATIO = 1.4

# Priority CSS selectors for the DOM heuristic (tried in order)
_CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    '[itemprop="articleBody"]',
    "main",
    '[role="main"]',
    ".post-content",
    ".article-content",
    ".article-body",
    ".entry-content",
    ".post-body",
    ".story-body",
    "#article-content",
    "#content",
    "#main-content",
)

# Tags never part of an article body
_BOILERPLATE_TAGS: tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    "aside",
    "script",
    "style",
    "noscript",
    "form",
    "button",
    "template",
)

# Class/id substrings that mark non-content containers
_NOISE_SUBSTRINGS: tuple[str, ...] = (
    "sidebar",
    "comment",
    "advert",
    "banner",
    "promo",
    "related",
    "share",
    "social",
    "newsletter",
    "cookie",
    "consent",
    "gdpr",
    "popup",
    "modal",
)

_TEMPLATE_RE = re.compile(r"<template\b[^>]*>.*?</template>", re.DOTALL | re.IGNORECASE)


class BodyExtraction(NamedTuple):
    html: str
    method: str
    word_count: int


def count_words(html: str) -> int:
    if not html:
        return 0
    soup = BeautifulSoup(html, "lxml")
    return len(soup.get_text(separator=" ").split())


def _class_id_text(tag: Tag) -> str:
    return " ".join(
        [
            " ".join(tag.get("class") or []),
            str(tag.get("id") or ""),
            str(tag.get("role") or ""),
        ],
    ).lower()


def _is_noisy(tag: Tag) -> bool:
    combined = _class_id_text(tag)
    return any(noise in combined for noise in _NOISE_SUBSTRINGS)


def preprocess_html(html: str) -> str:
    """Drop ``<template>`` blocks and cookie/consent overlays before extraction.

    Templates are removed with a regex before parsing because lxml moves
    their children into the document body.
    """
    html = _TEMPLATE_RE.sub("", html)
    soup = BeautifulSoup(html, "lxml")
    for el in soup.find_all(["div", "section", "aside", "dialog"]):
        if isinstance(el, Tag) and not el.decomposed:
            combined = _class_id_text(el)
            if "cookie" in combined or "consent" in combined or "gdpr" in combined:
                el.decompose()
    return str(soup)


# ---------------------------------------------------------------------------
# Tier 1: readability-lxml
# ---------------------------------------------------------------------------

def _try_readability(html: str, url: str, min_words: int) -> BodyExtraction | None:
    try:
        from readability import Document  # type: ignore[import-untyped]

        content = Document(html, url=url or None).summary(html_partial=True)
    except Exception as exc:
        logger.debug("readability failed for %s: %s", url, exc)
        return None
    wc = count_words(content)
    if wc < min_words:
        return None
    return BodyExtraction(html=content, method="readability", word_count=wc)


# ---------------------------------------------------------------------------
# Tier 2: trafilatura
# ---------------------------------------------------------------------------

def _try_trafilatura(html: str, url: str, min_words: int) -> BodyExtraction | None:
    try:
        import trafilatura  # type: ignore[import-untyped]

        content = trafilatura.extract(
            html,
            url=url or None,
            output_format="html",
            include_links=True,
            include_images=True,
            include_tables=True,
            include_comments=False,
            favor_recall=True,
        )
    except Exception as exc:
        logger.debug("trafilatura failed for %s: %s", url, exc)
        return None
    if not content:
        return None
    wc = count_words(content)
    if wc < min_words:
        return None
    return BodyExtraction(html=content, method="trafilatura", word_count=wc)


# ---------------------------------------------------------------------------
# Tier 3: DOM heuristic
# ---------------------------------------------------------------------------

def _paragraph_words(tag: Tag) -> int:
    return sum(len(p.get_text(separator=" ").split()) for p in tag.find_all("p"))


def dom_heuristic_extract(html: str, min_words: int = DOM_MIN_WORDS) -> BodyExtraction | None:
    """Pick the best content container by selector priority, then paragraph density.

    Returns ``None`` when no candidate reaches *min_words*.
    """
    soup = BeautifulSoup(html, "lxml")

    for tag_name in _BOILERPLATE_TAGS:
        for el in soup.find_all(tag_name):
            el.decompose()
    for el in soup.find_all(["div", "section"]):
        if isinstance(el, Tag) and not el.decomposed and _is_noisy(el):
            el.decompose()

    for selector in _CONTENT_SELECTORS:
        elements = [e for e in soup.select(selector) if isinstance(e, Tag)]
        if not elements:
            continue
        best = max(elements, key=lambda e: len(e.get_text(separator=" ").split()))
        wc = len(best.get_text(separator=" ").split())
        if wc >= min_words:
            return BodyExtraction(
                html=best.decode_contents(), method="dom_heuristic", word_count=wc,
            )

    # Paragraph density: paragraph words weighted by the share of text in <p>
    best_score = 0.0
    best_el: Tag | None = None
    for el in soup.find_all(["div", "section", "body"]):
        if not isinstance(el, Tag):
            continue
        para_words = _paragraph_words(el)
        if para_words < min_words:
            continue
        total_words = len(el.get_text(separator=" ").split())
        score = para_words * (para_words / max(total_words, 1))
        if score > best_score:
            best_score, best_el = score, el

    if best_el is None:
        return None
    wc = len(best_el.get_text(separator=" ").split())
    return BodyExtraction(html=best_el.decode_contents(), method="dom_heuristic", word_count=wc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_main_content(
    html: str,
    url: str = "",
    *,
    readability_min_words: int = READABILITY_MIN_WORDS,
    trafilatura_min_words: int = TRAFILATURA_MIN_WORDS,
    dom_min_words: int = DOM_MIN_WORDS,
) -> BodyExtraction | None:
    """Extract the article body from *html*.

    Runs readability and trafilatura independently and keeps readability
    unless trafilatura found markedly more text (multi-section pages where
    readability fixates on one block).  Falls back to the DOM heuristic.

    Returns ``None`` when no tier produced enough text.
    """
    if not html or not html.strip():
        return None
    html = preprocess_html(html)

    r = _try_readability(html, url, readability_min_words)
    t = _try_trafilatura(html, url, trafilatura_min_words)
    logger.debug(
        "readability=%d words  trafilatura=%d words  url=%s",
        r.word_count if r else 0, t.word_count if t else 0, url,
    )

    if r and t:
        if t.word_count >= r.word_count * _TRAFILATURA_PREFERENCE_RATIO:
            return t
        return r
    if r or t:
        return r or t

    result = dom_heuristic_extract(html, dom_min_words)
    if result:
        logger.debug("dom_heuristic extracted %d words from %s", result.word_count, url)
    return result
