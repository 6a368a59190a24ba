"""E-book sink: package an article as a single-chapter EPUB file."""

from __future__ import annotations

import html
import logging
from pathlib import Path

from ebooklib import epub
from lxml import etree

from articlestash.errors import SinkError
from articlestash.items import Article
from articlestash.sinks.paths import article_slug, unique_path

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


class EpubSink:
    """Write each article to ``<output_dir>/<slug>.epub``.

    Metadata: title, one creator per author, the source URL as description,
    and the publication date when known.
    """

    name = "epub"

    def __init__(self, output_dir: str | Path, language: str = "en") -> None:
        self.output_dir = Path(output_dir).expanduser()
        self.language = language

    def build_book(self, article: Article) -> epub.EpubBook:
        title = article.title or UNTITLED
        book = epub.EpubBook()
        book.set_identifier(article.url or f"urn:articlestash:{article_slug(article)}")
        book.set_title(title)
        book.set_language(self.language)
        for i, author in enumerate(article.authors, start=1):
            book.add_author(author, uid=f"creator{i}")
        if article.url:
            book.add_metadata("DC", "description", article.url)
        if article.published_at is not None:
            book.add_metadata("DC", "date", article.published_at.isoformat())

        chapter = epub.EpubHtml(title=title, file_name="main.xhtml", lang=self.language)
        chapter.content = f"<h1>{html.escape(title)}</h1>\n{article.body or ''}"
        book.add_item(chapter)

        book.toc = [epub.Link("main.xhtml", title, "main")]
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav", chapter]
        return book

    def emit(self, article: Article) -> Path:
        """Write the EPUB and return its path.

        Raises:
            SinkError: If the directory or file cannot be written or the
                content cannot be packaged.
        """
        path: Path | None = None
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = unique_path(self.output_dir, article_slug(article), ".epub")
            epub.write_epub(str(path), self.build_book(article), {})
        except (OSError, ValueError, epub.EpubException, etree.LxmlError) as exc:
            if path is not None:
                path.unlink(missing_ok=True)
            raise SinkError(f"Could not write EPUB for {article.url or article.title}: {exc}",
                            sink=self.name) from exc
        logger.info("Wrote %s", path)
        return path
