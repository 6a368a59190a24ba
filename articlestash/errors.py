"""Exception taxonomy for articlestash.

``FetchError`` lives in :mod:`articlestash.query` next to the HTTP code that
raises it.  Selector misses are not exceptions at all; they are recorded as
:class:`~articlestash.items.SelectorNotFound` entries on the resolution.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class ArticleStashError(Exception):
    """Base class for all articlestash errors."""


def _where(domain: str, url: str) -> str:
    if url and domain:
        return f"{domain} ({url})"
    return url or domain or "<unknown domain>"


class PartialExtractionWarning(ArticleStashError, UserWarning):
    """Some fields could not be resolved, but the article is still emitted.

    Returned next to the :class:`~articlestash.items.Article` by
    :func:`articlestash.query.extract`; never raised by the pipeline.

    Attributes:
        domain -- domain the selectors were resolved against
        url    -- page URL, empty when only HTML was supplied
        fields -- names of the unresolved fields, in field order
    """

    def __init__(self, domain: str, fields: Iterable[str], url: str = "") -> None:
        self.domain = domain
        self.url = url
        self.fields = tuple(fields)
        super().__init__(
            f"Unresolved field(s) {', '.join(self.fields)} for {_where(domain, url)}",
        )


class ExtractionFailure(ArticleStashError):
    """Neither title nor body could be resolved; the document is not actionable."""

    def __init__(
        self,
        domain: str,
        missing: Iterable[str] = ("title", "body"),
        url: str = "",
    ) -> None:
        self.domain = domain
        self.url = url
        self.missing = tuple(missing)
        super().__init__(
            f"Could not extract {' and '.join(self.missing)} for {_where(domain, url)}. "
            f"Add or adjust manual selectors for {domain or 'this domain'} in the sites file.",
        )


class AutoExtractionError(ArticleStashError):
    """Raised by an automatic extractor that could not process the document."""


class SinkError(ArticleStashError):
    """Terminal failure of an output sink (network, disk, packaging)."""

    def __init__(self, message: str, sink: str = "") -> None:
        super().__init__(message)
        self.sink = sink


class ConfigError(ArticleStashError, ValueError):
    """Invalid configuration or selector file."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = Path(path) if path is not None else None
