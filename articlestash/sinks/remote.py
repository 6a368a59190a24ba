"""Remote push sink: submit an article to an article-management service API.

The payload follows the common "save entry" shape used by read-it-later
services::

    {"url": ..., "title": ..., "content": ..., "authors": "A, B",
     "published_at": "2023-11-05T00:00:00"}
"""

from __future__ import annotations

import json
import logging
import random
import time
import urllib.error
import urllib.request
from typing import Any

from articlestash.auth import AuthSession
from articlestash.errors import SinkError
from articlestash.items import Article

logger = logging.getLogger(__name__)

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def article_payload(article: Article) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "url": article.url,
        "title": article.title or "",
        "content": article.body or "",
    }
    if article.authors:
        payload["authors"] = ", ".join(article.authors)
    if article.published_at is not None:
        payload["published_at"] = article.published_at.isoformat()
    return payload


class RemotePushSink:
    """POST articles as JSON to *endpoint*.

    Retries 429/5xx responses and network errors with jittered exponential
    backoff; a 401 triggers one credential refresh when *auth* supports it.
    """

    name = "remote"

    def __init__(
        self,
        endpoint: str,
        auth: AuthSession | None = None,
        timeout: int = 30,
        max_retries: int = 2,
    ) -> None:
        self.endpoint = endpoint
        self.auth = auth
        self.timeout = timeout
        self.max_retries = max_retries

    def _request(self, data: bytes) -> urllib.request.Request:
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        }
        if self.auth:
            self.auth.apply_headers(headers)
        return urllib.request.Request(self.endpoint, data=data, headers=headers, method="POST")

    def emit(self, article: Article) -> dict[str, Any]:
        """Submit *article*; return the decoded JSON response (``{}`` if empty).

        Raises:
            SinkError: On non-retryable HTTP errors, exhausted retries, or an
                undecodable response.
        """
        data = json.dumps(article_payload(article), ensure_ascii=False).encode("utf-8")
        refreshed = False
        attempt = 0
        while True:
            try:
                with urllib.request.urlopen(self._request(data), timeout=self.timeout) as resp:
                    raw = resp.read()
                break
            except urllib.error.HTTPError as exc:
                if exc.code == 401 and self.auth and not refreshed and self.auth.refresh_if_needed():
                    refreshed = True
                    continue
                if exc.code in _RETRY_CODES and attempt < self.max_retries:
                    delay = (2 ** attempt) + random.uniform(0, 1)
                    logger.debug("HTTP %d from %s, retrying in %.1fs", exc.code, self.endpoint, delay)
                    time.sleep(delay)
                    attempt += 1
                    continue
                raise SinkError(
                    f"HTTP {exc.code} from {self.endpoint}: {exc.reason}", sink=self.name,
                ) from exc
            except (urllib.error.URLError, TimeoutError, ConnectionError) as exc:
                if attempt < self.max_retries:
                    time.sleep((2 ** attempt) + random.uniform(0, 1))
                    attempt += 1
                    continue
                raise SinkError(f"Could not reach {self.endpoint}: {exc}", sink=self.name) from exc

        if not raw or not raw.strip():
            result: dict[str, Any] = {}
        else:
            try:
                decoded = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise SinkError(f"Invalid JSON response from {self.endpoint}: {exc}",
                                sink=self.name) from exc
            result = decoded if isinstance(decoded, dict) else {"response": decoded}
        logger.info("Pushed %s to %s", article.url or article.title, self.endpoint)
        return result
