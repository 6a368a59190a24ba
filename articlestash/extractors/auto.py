"""Default automatic extractor: metadata chain + readability/trafilatura/DOM cascade."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from articlestash.errors import AutoExtractionError
from articlestash.extractors.main_content import (
    DOM_MIN_WORDS,
    READABILITY_MIN_WORDS,
    TRAFILATURA_MIN_WORDS,
    extract_main_content,
)
from articlestash.extractors.metadata import extract_metadata
from articlestash.items import AutoExtraction

logger = logging.getLogger(__name__)


class ReadabilityAutoExtractor:
    """Holistic whole-document extractor used when no manual selector applies.

    Satisfies :class:`articlestash.plugins.AutoExtractor`.
    """

    name = "readability"

    def __init__(
        self,
        readability_min_words: int = READABILITY_MIN_WORDS,
        trafilatura_min_words: int = TRAFILATURA_MIN_WORDS,
        dom_min_words: int = DOM_MIN_WORDS,
    ) -> None:
        self.readability_min_words = readability_min_words
        self.trafilatura_min_words = trafilatura_min_words
        self.dom_min_words = dom_min_words

    def extract(self, html: str, url: str = "") -> AutoExtraction:
        if not html or not html.strip():
            raise AutoExtractionError(f"empty document{f' for {url}' if url else ''}")

        meta = extract_metadata(html, soup=BeautifulSoup(html, "lxml"))
        body = extract_main_content(
            html,
            url,
            readability_min_words=self.readability_min_words,
            trafilatura_min_words=self.trafilatura_min_words,
            dom_min_words=self.dom_min_words,
        )
        if body is None:
            logger.info("No tier produced body content for %s", url or "<html>")

        return AutoExtraction(
            title=meta["title"],
            body=body.html if body else None,
            authors=meta["authors"],
            date_raw=meta["date_raw"],
            method=body.method if body else None,
        )
