"""Output file naming shared by the file-writing sinks."""

from __future__ import annotations

from pathlib import Path

from articlestash.extractors.urlnorm import title_to_slug, url_to_slug
from articlestash.items import Article


def article_slug(article: Article) -> str:
    """Slug of the title, else of the URL, else of the source domain."""
    if article.title:
        slug = title_to_slug(article.title)
        if slug:
            return slug
    if article.url:
        return url_to_slug(article.url)
    return title_to_slug(article.source_domain) or "article"


def unique_path(output_dir: Path, stem: str, suffix: str) -> Path:
    """Return ``output_dir/stem.suffix``, appending -2, -3, … if it already exists."""
    candidate = output_dir / f"{stem}{suffix}"
    counter = 2
    while candidate.exists():
        candidate = output_dir / f"{stem}-{counter}{suffix}"
        counter += 1
    return candidate
