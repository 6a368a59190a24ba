"""URL helpers: domain keys, file slugs and link absolutization."""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

# Characters allowed in slugs
_SLUG_SAFE_RE = re.compile(r"[^\w\-]")
_MULTI_DASH_RE = re.compile(r"-{2,}")
_LEADING_TRAILING_DASH_RE = re.compile(r"^-+|-+$")

# Attributes holding URLs that must survive outside the source page
_URL_ATTRS: tuple[tuple[str, str], ...] = (
    ("a", "href"),
    ("img", "src"),
    ("source", "src"),
    ("video", "src"),
    ("video", "poster"),
    ("audio", "src"),
    ("iframe", "src"),
)

_ABSOLUTE_PREFIXES: tuple[str, ...] = ("#", "data:", "mailto:", "tel:", "javascript:")


def extract_domain(url: str) -> str:
    """Return the host of *url*, lowercased, without port or credentials.

    Example:
        https://User@Blog.Example.com:8443/post → blog.example.com
    """
    try:
        return (urlparse(url.strip()).hostname or "").rstrip(".")
    except ValueError:
        return ""


def _slugify(text: str, max_length: int) -> str:
    slug = _SLUG_SAFE_RE.sub("-", text)
    slug = _MULTI_DASH_RE.sub("-", slug)
    slug = _LEADING_TRAILING_DASH_RE.sub("", slug)
    slug = slug[:max_length]
    return _LEADING_TRAILING_DASH_RE.sub("", slug)


def url_to_slug(url: str, max_length: int = 100) -> str:
    """Convert a URL into a filesystem-safe slug.

    Example:
        https://example.com/blog/how-to-scrape-data → blog-how-to-scrape-data
    """
    try:
        parsed = urlparse(url)
        path = parsed.path.strip("/")
        if not path:
            path = parsed.netloc.replace(".", "-")
    except ValueError:
        path = url

    return _slugify(path, max_length) or "index"


def title_to_slug(title: str, max_length: int = 80) -> str:
    """Convert an article title into a lower-case ASCII slug.

    Returns an empty string when nothing slug-worthy remains.

    Example:
        "Hello, Wörld!  Part 2" → hello-world-part-2
    """
    ascii_text = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    return _slugify(ascii_text.lower().replace("_", "-"), max_length)


def absolutize_links(html: str, base_url: str) -> str:
    """Rewrite relative URL attributes in the HTML fragment *html* against *base_url*.

    The fragment is returned unchanged when *base_url* is empty or nothing
    needs rewriting, so already self-contained markup is not re-serialized.
    """
    if not base_url or not html:
        return html

    soup = BeautifulSoup(html, "html.parser")
    changed = False
    for tag_name, attr in _URL_ATTRS:
        for el in soup.find_all(tag_name):
            if not isinstance(el, Tag):
                continue
            value = el.get(attr)
            if not isinstance(value, str):
                continue
            value = value.strip()
            if not value or value.lower().startswith(_ABSOLUTE_PREFIXES):
                continue
            try:
                if urlparse(value).scheme:
                    continue
                absolute = urljoin(base_url, value)
            except ValueError:
                # malformed URL such as an unclosed IPv6 bracket; keep as is
                continue
            el[attr] = absolute
            changed = True

    return str(soup) if changed else html
