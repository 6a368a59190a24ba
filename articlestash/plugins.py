"""articlestash.plugins - capability contracts and the output-sink registry.

Both contracts are ``runtime_checkable`` ``Protocol`` classes, so any object
with the right attributes works without inheriting from a base class::

    from articlestash.plugins import register_sink

    class PrintSink:
        name = "print"
        def emit(self, article):
            print(article.title)

    register_sink("print", lambda config: PrintSink())
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from articlestash.config import AppConfig
    from articlestash.items import Article, AutoExtraction

# ---------------------------------------------------------------------------
# Protocol definitions
# ---------------------------------------------------------------------------

@runtime_checkable
class AutoExtractor(Protocol):
    """Whole-document heuristic extractor.

    Invoked at most once per resolution.  Signals failure by raising
    :class:`~articlestash.errors.AutoExtractionError`.
    """

    name: str

    def extract(self, html: str, url: str = "") -> AutoExtraction:
        """Return a best-effort title/body/authors/date record for *html*."""
        ...


@runtime_checkable
class OutputSink(Protocol):
    """Consumer of canonical articles (e-book file, remote service, ...)."""

    name: str

    def emit(self, article: Article) -> Any:
        """Deliver *article*; raise :class:`~articlestash.errors.SinkError` on failure."""
        ...


SinkFactory = Callable[["AppConfig"], OutputSink]

# ---------------------------------------------------------------------------
# Module-level registry
# ---------------------------------------------------------------------------

_sinks: dict[str, SinkFactory] = {}


def register_sink(name: str, factory: SinkFactory) -> None:
    """Register *factory* to build the sink called *name* from an AppConfig."""
    _sinks[name] = factory


def available_sinks() -> list[str]:
    """Return registered sink names, sorted."""
    return sorted(_sinks)


def get_sink(name: str, config: AppConfig) -> OutputSink:
    """Build the sink registered as *name*.

    Raises:
        KeyError: If no sink is registered under *name*.
    """
    try:
        factory = _sinks[name]
    except KeyError:
        raise KeyError(
            f"unknown sink {name!r}; available: {', '.join(available_sinks()) or 'none'}",
        ) from None
    return factory(config)


def clear_plugins() -> None:
    """Remove all registered sinks. Primarily for use in tests."""
    _sinks.clear()
