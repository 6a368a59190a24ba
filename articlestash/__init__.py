"""articlestash - save web articles as e-books or push them to a read-later service.

Each field (title, body, authors, date) comes from an operator-supplied CSS
selector when one is configured for the page's domain and matches, and from
automatic readability-style extraction otherwise.

Quick usage::

    from articlestash import fetch, load_sites

    result = fetch("https://example.com/blog/post", sites=load_sites("sites.toml"))
    print(result.article.title, result.article.authors)

Emit to an e-book::

    from articlestash import ArticleStash
    from articlestash.sinks import EpubSink

    result, path = ArticleStash(sink=EpubSink("~/books")).stash(url)
"""

from articlestash.client import ArticleStash
from articlestash.errors import (
    ArticleStashError,
    AutoExtractionError,
    ConfigError,
    ExtractionFailure,
    PartialExtractionWarning,
    SinkError,
)
from articlestash.items import Article, ArticleField, FieldOutcome, FieldSource, SelectorEntry
from articlestash.normalize import normalize
from articlestash.plugins import register_sink
from articlestash.query import ExtractionResult, FetchError, extract, fetch, fetch_html, stash
from articlestash.resolver import resolve
from articlestash.sites import SelectorTable, load_sites

__version__ = "0.1.0"
__all__ = [
    "Article",
    "ArticleField",
    "ArticleStash",
    "ArticleStashError",
    "AutoExtractionError",
    "ConfigError",
    "ExtractionFailure",
    "ExtractionResult",
    "FetchError",
    "FieldOutcome",
    "FieldSource",
    "PartialExtractionWarning",
    "SelectorEntry",
    "SelectorTable",
    "SinkError",
    "extract",
    "fetch",
    "fetch_html",
    "load_sites",
    "normalize",
    "register_sink",
    "resolve",
    "stash",
]
