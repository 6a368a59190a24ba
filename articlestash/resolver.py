"""Resolution engine: merge manual selectors and automatic extraction per field.

For every field independently:

1. If the domain's :class:`~articlestash.items.SelectorEntry` configures a
   selector for the field and it matches, the match wins, even when blank.
2. Otherwise the automatic extractor's value is used.  The extractor runs
   at most once per resolution and only if some field needs it.
3. If neither produced a value the field is unresolved.

The engine never raises for extraction problems; it degrades field by field.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from articlestash.errors import AutoExtractionError
from articlestash.extractors.selector import extract_selector, parse_html
from articlestash.items import (
    ArticleField,
    AutoExtraction,
    FieldOutcome,
    Resolution,
    SelectorNotFound,
)
from articlestash.plugins import AutoExtractor
from articlestash.sites import EMPTY_TABLE, SelectorTable, normalize_domain

logger = logging.getLogger(__name__)


class _AutoCache:
    """Runs the automatic extractor lazily, once."""

    def __init__(self, extractor: AutoExtractor, html: str, url: str) -> None:
        self._extractor = extractor
        self._html = html
        self._url = url
        self.result: AutoExtraction | None = None

    @property
    def invoked(self) -> bool:
        return self.result is not None

    def get(self, field: ArticleField) -> str | None:
        if self.result is None:
            try:
                self.result = self._extractor.extract(self._html, self._url)
            except AutoExtractionError as exc:
                logger.warning(
                    "Automatic extractor %s failed for %s: %s",
                    getattr(self._extractor, "name", type(self._extractor).__name__),
                    self._url or "<html>",
                    exc,
                )
                self.result = AutoExtraction()
        return self.result.get(field)


def default_auto_extractor() -> AutoExtractor:
    from articlestash.extractors.auto import ReadabilityAutoExtractor

    return ReadabilityAutoExtractor()


def resolve(
    domain: str,
    html: str,
    sites: SelectorTable | None = None,
    *,
    auto_extractor: AutoExtractor | None = None,
    url: str = "",
) -> Resolution:
    """Resolve every :class:`~articlestash.items.ArticleField` of *html*.

    Args:
        domain:         Domain key used for the selector lookup.
        html:           Raw HTML of the page.
        sites:          Manual selector table (default: empty).
        auto_extractor: Automatic extractor (default: readability cascade).
        url:            Page URL, passed to the automatic extractor as a hint.

    Returns:
        A :class:`~articlestash.items.Resolution` with one tagged outcome per
        field plus the selectors that matched nothing.
    """
    domain = normalize_domain(domain)
    entry = (sites or EMPTY_TABLE).lookup(domain)
    auto = _AutoCache(auto_extractor or default_auto_extractor(), html, url)

    soup: BeautifulSoup | None = None
    outcomes: dict[ArticleField, FieldOutcome] = {}
    misses: list[SelectorNotFound] = []

    for field in ArticleField:
        selector = entry.selector_for(field) if entry else None
        if selector is not None:
            if soup is None:
                soup = parse_html(html)
            value = extract_selector(soup, selector, field)
            if value is not None:
                outcomes[field] = FieldOutcome.manual(value)
                continue
            misses.append(SelectorNotFound(field=field, selector=selector))
            logger.debug(
                "Selector %r for %s on %s matched nothing; using automatic extraction",
                selector, field, domain,
            )

        value = auto.get(field)
        outcomes[field] = (
            FieldOutcome.automatic(value) if value is not None else FieldOutcome.unresolved()
        )

    resolution = Resolution(
        domain=domain,
        title=outcomes[ArticleField.TITLE],
        body=outcomes[ArticleField.BODY],
        authors=outcomes[ArticleField.AUTHORS],
        date=outcomes[ArticleField.DATE],
        selector_misses=tuple(misses),
        auto_invoked=auto.invoked,
        auto_method=auto.result.method if auto.result else None,
    )
    logger.debug(
        "Resolved %s: %s",
        domain,
        ", ".join(f"{f}={resolution[f].source}" for f in ArticleField),
    )
    return resolution
