"""Manual field extraction with an operator-supplied CSS selector."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from articlestash.items import ArticleField

logger = logging.getLogger(__name__)


def safe_str(val: object, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def element_value(el: Tag, field: ArticleField | None = None) -> str:
    """Return the payload of a matched element for *field*.

    - body: inner HTML of the element
    - ``<meta>``: its ``content`` attribute
    - date on ``<time datetime=...>``: the ``datetime`` attribute
    - anything else: the element's text
    """
    if field is ArticleField.BODY:
        return el.decode_contents()
    if el.name == "meta":
        return safe_str(el.get("content"))
    if field is ArticleField.DATE and el.name == "time":
        machine = safe_str(el.get("datetime")).strip()
        if machine:
            return machine
    return el.get_text()


def extract_selector(
    html: str | BeautifulSoup,
    css_selector: str,
    field: ArticleField | None = None,
) -> str | None:
    """Apply *css_selector* to *html* and return the first match's value.

    Args:
        html:         Raw HTML or a pre-parsed BeautifulSoup document.  Pass
                      the soup when applying several selectors to one page.
        css_selector: CSS selector, already validated by
                      :class:`~articlestash.items.SelectorEntry`.
        field:        Field being extracted; selects which part of the
                      element is returned (see :func:`element_value`).

    Returns:
        The matched value, possibly empty or whitespace only, or ``None``
        when the selector matches nothing.
    """
    soup = html if isinstance(html, BeautifulSoup) else parse_html(html)
    el = soup.select_one(css_selector)
    if not isinstance(el, Tag):
        logger.debug("Selector %r matched nothing", css_selector)
        return None
    return element_value(el, field)
