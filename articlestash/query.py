"""articlestash.query - fetch, extract and emit a single article.

Basic usage::

    from articlestash.query import fetch
    from articlestash.sites import load_sites

    result = fetch("https://example.com/blog/post", sites=load_sites("sites.toml"))
    print(result.article.title)
    print(result.article.authors)
    if result.warning:
        print(result.warning)

Pre-fetched HTML (no network)::

    from articlestash.query import extract

    result = extract(html, url="https://example.com/blog/post")

HTTP uses only the stdlib (``urllib``).
"""

from __future__ import annotations

import gzip
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from collections.abc import Sequence
from pathlib import Path
from typing import Any, NamedTuple
from urllib.parse import urlparse

from articlestash.config import DEFAULT_USER_AGENTS
from articlestash.errors import ExtractionFailure, PartialExtractionWarning
from articlestash.extractors.urlnorm import extract_domain
from articlestash.items import Article, ArticleField, Resolution
from articlestash.normalize import normalize
from articlestash.plugins import AutoExtractor, OutputSink
from articlestash.resolver import resolve
from articlestash.sites import SelectorTable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public exception
# ---------------------------------------------------------------------------

class FetchError(RuntimeError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
        body   -- decoded error response body, if any
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


def _decode_response_body(raw: bytes, headers: Any, url: str) -> str:
    encoding = ""
    if headers is not None:
        try:
            encoding = str(headers.get("Content-Encoding", "")).lower().strip()
        except AttributeError:
            encoding = ""

    try:
        if encoding == "gzip":
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"{encoding} decompression failed for {url}: {exc}", url=url) from exc

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except AttributeError:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def _retry_delay(attempt: int, retry_after: str | None = None) -> float:
    wait = 0
    if retry_after and retry_after.strip().isdigit():
        wait = int(retry_after)
    return max(wait, 2 ** attempt) + random.uniform(0, 1)


def fetch_html(
    url: str,
    *,
    timeout: int = 30,
    user_agent: str | None = None,
    max_retries: int = 3,
) -> str:
    """Fetch *url* and return the response body as a decoded string.

    Retries up to *max_retries* times with jittered exponential backoff on
    429/5xx responses and network-level failures.

    Raises:
        FetchError: On HTTP errors, connection failures, or non-HTTP URLs.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or DEFAULT_USER_AGENTS[-1],
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
        },
    )

    last_exc: FetchError | None = None
    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return _decode_response_body(resp.read(), resp.headers, url)

        except urllib.error.HTTPError as exc:
            body_text = ""
            try:
                body_text = _decode_response_body(exc.read() or b"", exc.headers, url)
            except (OSError, FetchError):
                body_text = ""
            last_exc = FetchError(
                f"HTTP {exc.code} fetching {url}: {exc.reason}",
                url=url,
                status=exc.code,
                body=body_text,
            )
            if exc.code in _RETRY_CODES and attempt < max_retries:
                retry_after = exc.headers.get("Retry-After") if exc.headers else None
                delay = _retry_delay(attempt, retry_after)
                logger.debug(
                    "HTTP %d for %s, retrying in %.1fs (attempt %d/%d)",
                    exc.code, url, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue
            raise last_exc from exc

        except urllib.error.URLError as exc:
            last_exc = FetchError(f"URL error fetching {url}: {exc.reason}", url=url)
            if attempt < max_retries:
                delay = _retry_delay(attempt)
                logger.debug(
                    "URL error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc.reason,
                )
                time.sleep(delay)
                continue
            raise last_exc from exc

        except (TimeoutError, ConnectionError) as exc:
            last_exc = FetchError(f"Network error fetching {url}: {exc}", url=url)
            if attempt < max_retries:
                time.sleep(_retry_delay(attempt))
                continue
            raise last_exc from exc

    raise last_exc or FetchError(f"Failed to fetch {url}", url=url)


def fetch_html_with_agents(
    url: str,
    user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
    *,
    timeout: int = 30,
    max_retries: int = 3,
    error_log: str | Path | None = None,
) -> str:
    """Fetch *url*, trying each user agent in turn until one succeeds.

    Some sites reject browser-like agents and others reject ``curl``; the
    first agent that gets a response wins.  The body of an HTTP error
    response is written to *error_log* (overwritten per failure) to help
    diagnose blocks.

    Raises:
        FetchError: When every user agent failed (``status`` is the last
            HTTP status seen).
    """
    last_exc: FetchError | None = None
    for ua in user_agents:
        try:
            return fetch_html(url, timeout=timeout, user_agent=ua, max_retries=max_retries)
        except FetchError as exc:
            last_exc = exc
            logger.warning("[%s]: %s", ua, exc)
            if exc.status and exc.body and error_log:
                log_path = Path(error_log)
                try:
                    log_path.parent.mkdir(parents=True, exist_ok=True)
                    log_path.write_text(exc.body, encoding="utf-8")
                    logger.warning("Response content written to %s", log_path)
                except OSError as log_exc:
                    logger.warning("Could not write error log %s: %s", log_path, log_exc)

    raise FetchError(
        f"All user-agents failed for {url}" + (f": {last_exc}" if last_exc else ""),
        url=url,
        status=last_exc.status if last_exc else 0,
        body=last_exc.body if last_exc else None,
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionResult(NamedTuple):
    article: Article
    resolution: Resolution
    warning: PartialExtractionWarning | None = None


def extract(
    html: str,
    *,
    url: str = "",
    domain: str | None = None,
    sites: SelectorTable | None = None,
    auto_extractor: AutoExtractor | None = None,
    lenient_dates: bool = False,
) -> ExtractionResult:
    """Resolve and normalize *html* into a canonical article.  No network access.

    Args:
        html:           Raw HTML of the page.
        url:            Original page URL (domain key default, link base).
        domain:         Selector lookup key; defaults to the host of *url*.
        sites:          Manual selector table; empty when omitted.
        auto_extractor: Automatic extractor; readability cascade when omitted.
        lenient_dates:  Fall back to dateparser for unusual date formats.

    Returns:
        :class:`ExtractionResult` whose ``warning`` lists unresolved fields.

    Raises:
        ExtractionFailure: If neither title nor body could be resolved.
    """
    domain = domain if domain is not None else extract_domain(url)
    resolution = resolve(domain, html, sites, auto_extractor=auto_extractor, url=url)
    article = normalize(resolution, resolution.domain, url=url, lenient_dates=lenient_dates)

    unresolved = article.unresolved_fields
    if ArticleField.TITLE in unresolved and ArticleField.BODY in unresolved:
        raise ExtractionFailure(resolution.domain, ("title", "body"), url=url)

    warning = None
    if unresolved:
        warning = PartialExtractionWarning(
            resolution.domain, [str(f) for f in unresolved], url=url,
        )
        logger.warning("%s", warning)
    return ExtractionResult(article=article, resolution=resolution, warning=warning)


def fetch(
    url: str,
    *,
    sites: SelectorTable | None = None,
    user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
    timeout: int = 30,
    max_retries: int = 3,
    error_log: str | Path | None = None,
    auto_extractor: AutoExtractor | None = None,
    lenient_dates: bool = False,
) -> ExtractionResult:
    """Fetch *url* and run :func:`extract` on the response.

    Raises:
        FetchError: If the page cannot be fetched with any user agent.
        ExtractionFailure: If neither title nor body could be resolved.
    """
    logger.info("fetch: %s", url)
    html = fetch_html_with_agents(
        url, user_agents, timeout=timeout, max_retries=max_retries, error_log=error_log,
    )
    return extract(
        html,
        url=url,
        sites=sites,
        auto_extractor=auto_extractor,
        lenient_dates=lenient_dates,
    )


def stash(url: str, sink: OutputSink, **kwargs: Any) -> tuple[ExtractionResult, Any]:
    """Fetch and extract *url*, then hand the article to *sink*.

    Keyword arguments are forwarded to :func:`fetch`.  The sink is never
    called when extraction fails.

    Returns:
        ``(extraction_result, sink_output)``

    Raises:
        FetchError, ExtractionFailure: From :func:`fetch`.
        SinkError: From the sink.
    """
    result = fetch(url, **kwargs)
    output = sink.emit(result.article)
    logger.info("Emitted %s via %s", url, sink.name)
    return result, output
