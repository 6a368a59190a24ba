"""Markdown sink: render an article as a standalone ``.md`` document."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from markdownify import markdownify

from articlestash.errors import SinkError
from articlestash.items import Article
from articlestash.sinks.paths import article_slug, unique_path

logger = logging.getLogger(__name__)

_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)


def _detect_lang(el: object) -> str:
    """Return the ``language-*`` class of a code element for fenced blocks."""
    getter = getattr(el, "get", None)
    classes = (getter("class") if getter else None) or []
    for cls in classes:
        if isinstance(cls, str) and cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment to Markdown with ATX headings and ``-`` bullets."""
    if not html or not html.strip():
        return ""
    md = markdownify(
        html,
        heading_style="ATX",
        bullets="-",
        code_language_callback=_detect_lang,
        strip=["script", "style"],
    )
    md = _TRAILING_WHITESPACE_RE.sub("", md)
    md = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", md)
    return md.strip()


def format_markdown_article(article: Article) -> str:
    """Render a complete Markdown document with a metadata header."""
    lines: list[str] = [f"# {article.title or 'Untitled'}", ""]

    meta_parts: list[str] = []
    if article.authors:
        meta_parts.append(f"**Authors:** {', '.join(article.authors)}")
    if article.published_at is not None:
        meta_parts.append(f"**Published:** {article.published_at.date().isoformat()}")
    elif article.published_raw:
        meta_parts.append(f"**Published:** {article.published_raw}")
    if article.url:
        meta_parts.append(f"**Source:** <{article.url}>")
    if meta_parts:
        lines.extend(f"{part}  " for part in meta_parts)
        lines.append("")

    lines.append("---")
    lines.append("")
    lines.append(html_to_markdown(article.body or ""))
    return "\n".join(lines).rstrip() + "\n"


class MarkdownSink:
    """Write each article to ``<output_dir>/<slug>.md``."""

    name = "markdown"

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir).expanduser()

    def emit(self, article: Article) -> Path:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = unique_path(self.output_dir, article_slug(article), ".md")
            path.write_text(format_markdown_article(article), encoding="utf-8")
        except OSError as exc:
            raise SinkError(f"Could not write Markdown for {article.url or article.title}: {exc}",
                            sink=self.name) from exc
        logger.info("Wrote %s", path)
        return path
