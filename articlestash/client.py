"""articlestash.client - High-level ArticleStash class.

Bundles the selector table, automatic extractor, fetch options and an
output sink into one reusable object.

Usage::

    from articlestash import ArticleStash
    from articlestash.sinks import EpubSink
    from articlestash.sites import load_sites

    stasher = ArticleStash(sites=load_sites("sites.toml"), sink=EpubSink("~/books"))
    result, path = stasher.stash("https://example.com/blog/post")

    # Parse pre-fetched HTML (no network)
    result = stasher.parse(html, url="https://example.com/blog/post")
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from articlestash.config import DEFAULT_USER_AGENTS
from articlestash.query import extract as _extract
from articlestash.query import fetch as _fetch
from articlestash.sites import EMPTY_TABLE, SelectorTable

if TYPE_CHECKING:
    from articlestash.config import AppConfig
    from articlestash.plugins import AutoExtractor, OutputSink
    from articlestash.query import ExtractionResult


class ArticleStash:
    """Stateful entry point; holds no per-request state.

    Args:
        sites:          Manual selector table (default: empty).
        sink:           Output sink used by :meth:`stash`.
        auto_extractor: Automatic extractor (default: readability cascade).
        user_agents:    User agents tried in order when fetching.
        timeout:        Per-request network timeout in seconds.
        max_retries:    Retries per user agent on transient HTTP errors.
        error_log:      File receiving the body of HTTP error responses.
        lenient_dates:  Let dateparser handle unusual date formats.
    """

    def __init__(
        self,
        sites: SelectorTable | None = None,
        sink: OutputSink | None = None,
        auto_extractor: AutoExtractor | None = None,
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
        timeout: int = 30,
        max_retries: int = 3,
        error_log: str | Path | None = None,
        lenient_dates: bool = False,
    ) -> None:
        self._sites = sites or EMPTY_TABLE
        self._sink = sink
        self._auto_extractor = auto_extractor
        self._user_agents = tuple(user_agents)
        self._timeout = timeout
        self._max_retries = max_retries
        self._error_log = error_log
        self._lenient_dates = lenient_dates

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        sites: SelectorTable | None = None,
        sink: OutputSink | None = None,
    ) -> ArticleStash:
        return cls(
            sites=sites,
            sink=sink,
            user_agents=config.user_agents,
            timeout=config.timeout,
            max_retries=config.max_retries,
            error_log=config.resolved_error_log,
            lenient_dates=config.lenient_dates,
        )

    @property
    def sites(self) -> SelectorTable:
        return self._sites

    @property
    def sink(self) -> OutputSink | None:
        return self._sink

    def fetch(self, url: str) -> ExtractionResult:
        """Fetch and extract *url*.

        Raises:
            :class:`~articlestash.query.FetchError`: When no user agent succeeds.
            :class:`~articlestash.errors.ExtractionFailure`: When neither
                title nor body could be resolved.
        """
        return _fetch(
            url,
            sites=self._sites,
            user_agents=self._user_agents,
            timeout=self._timeout,
            max_retries=self._max_retries,
            error_log=self._error_log,
            auto_extractor=self._auto_extractor,
            lenient_dates=self._lenient_dates,
        )

    def parse(self, html: str, url: str = "") -> ExtractionResult:
        """Extract pre-fetched HTML; no network calls."""
        return _extract(
            html,
            url=url,
            sites=self._sites,
            auto_extractor=self._auto_extractor,
            lenient_dates=self._lenient_dates,
        )

    def emit(self, result: ExtractionResult) -> Any:
        """Hand an extracted article to the configured sink."""
        if self._sink is None:
            raise ValueError("ArticleStash has no sink configured")
        return self._sink.emit(result.article)

    def stash(self, url: str) -> tuple[ExtractionResult, Any]:
        """Fetch, extract and emit *url*; return ``(result, sink_output)``."""
        if self._sink is None:
            raise ValueError("ArticleStash has no sink configured")
        result = self.fetch(url)
        return result, self.emit(result)
