"""Tests for the output sinks and the sink registry."""

from __future__ import annotations

import json
import urllib.error
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from ebooklib import epub

from articlestash.auth import AuthSession
from articlestash.config import AppConfig, RemoteConfig
from articlestash.errors import ConfigError, SinkError
from articlestash.items import Article
from articlestash.plugins import OutputSink, available_sinks, get_sink, register_sink
from articlestash.sinks import EpubSink, MarkdownSink, RemotePushSink, register_builtin_sinks
from articlestash.sinks.markdown import format_markdown_article, html_to_markdown
from articlestash.sinks.paths import article_slug, unique_path
from articlestash.sinks.remote import article_payload


@pytest.fixture
def article() -> Article:
    return Article(
        url="https://example.com/notes/q3",
        source_domain="example.com",
        title="Quarterly Field Notes",
        body='<p>Counts are in the <a href="https://example.com/data.csv">sheet</a>.</p>',
        authors=("Jane Doe", "John Smith"),
        published_at=datetime(2023, 11, 5),
        published_raw="2023-11-05",
    )


def _mock_response(body: bytes) -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.read.return_value = body
    mock_resp.__enter__ = lambda s: s
    mock_resp.__exit__ = MagicMock(return_value=False)
    return mock_resp


# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------

class TestPaths:
    def test_slug_from_title(self, article):
        assert article_slug(article) == "quarterly-field-notes"

    def test_slug_falls_back_to_url(self):
        article = Article(url="https://example.com/notes/q3", source_domain="example.com")
        assert article_slug(article) == "notes-q3"

    def test_slug_falls_back_to_domain(self):
        assert article_slug(Article(source_domain="example.com")) == "example-com"

    def test_unique_path(self, tmp_path):
        (tmp_path / "a.epub").write_text("x")
        (tmp_path / "a-2.epub").write_text("x")
        assert unique_path(tmp_path, "a", ".epub") == tmp_path / "a-3.epub"


# ---------------------------------------------------------------------------
# EpubSink
# ---------------------------------------------------------------------------

class TestEpubSink:
    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(EpubSink(tmp_path), OutputSink)

    def test_writes_book(self, tmp_path, article):
        path = EpubSink(tmp_path / "books").emit(article)
        assert path == tmp_path / "books" / "quarterly-field-notes.epub"
        assert path.exists()

        book = epub.read_epub(str(path))
        assert book.get_metadata("DC", "title")[0][0] == "Quarterly Field Notes"
        creators = [c[0] for c in book.get_metadata("DC", "creator")]
        assert creators == ["Jane Doe", "John Smith"]
        assert book.get_metadata("DC", "description")[0][0] == article.url

        chapter = book.get_item_with_href("main.xhtml")
        content = chapter.get_content().decode("utf-8")
        assert "Counts are in the" in content

    def test_untitled_article(self, tmp_path):
        article = Article(source_domain="example.com", body="<p>Body only.</p>")
        book = EpubSink(tmp_path).build_book(article)
        assert book.title == "Untitled"

    def test_second_emit_does_not_overwrite(self, tmp_path, article):
        sink = EpubSink(tmp_path)
        first = sink.emit(article)
        second = sink.emit(article)
        assert first != second
        assert second.name == "quarterly-field-notes-2.epub"

    def test_partial_file_removed_on_failure(self, tmp_path, article):
        def _fail_midway(name, book, options):
            with open(name, "wb") as fh:
                fh.write(b"PK\x03\x04partial")
            raise OSError("disk full")

        with patch("articlestash.sinks.epub.epub.write_epub", side_effect=_fail_midway), \
             pytest.raises(SinkError, match="disk full"):
            EpubSink(tmp_path).emit(article)
        assert list(tmp_path.glob("*.epub")) == []

    def test_unwritable_directory(self, tmp_path, article):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(SinkError) as exc_info:
            EpubSink(blocker / "books").emit(article)
        assert exc_info.value.sink == "epub"


# ---------------------------------------------------------------------------
# MarkdownSink
# ---------------------------------------------------------------------------

class TestMarkdownSink:
    def test_html_to_markdown(self):
        md = html_to_markdown("<h2>Sub</h2><ul><li>one</li></ul>")
        assert "## Sub" in md
        assert "- one" in md

    def test_document_header(self, article):
        md = format_markdown_article(article)
        assert md.startswith("# Quarterly Field Notes\n")
        assert "**Authors:** Jane Doe, John Smith" in md
        assert "**Published:** 2023-11-05" in md
        assert "[sheet](https://example.com/data.csv)" in md

    def test_unparsed_date_shown_raw(self):
        article = Article(source_domain="x", title="T", body="<p>b</p>", published_raw="sometime")
        assert "**Published:** sometime" in format_markdown_article(article)

    def test_writes_file(self, tmp_path, article):
        path = MarkdownSink(tmp_path).emit(article)
        assert path.suffix == ".md"
        assert path.read_text(encoding="utf-8").startswith("# Quarterly Field Notes")


# ---------------------------------------------------------------------------
# RemotePushSink
# ---------------------------------------------------------------------------

class TestRemotePushSink:
    ENDPOINT = "https://reader.example.net/api/entries"

    def test_payload(self, article):
        payload = article_payload(article)
        assert payload["url"] == article.url
        assert payload["authors"] == "Jane Doe, John Smith"
        assert payload["published_at"] == "2023-11-05T00:00:00"

    def test_payload_omits_missing(self):
        payload = article_payload(Article(source_domain="x", title="T", body="B"))
        assert "authors" not in payload
        assert "published_at" not in payload

    def test_posts_json_with_bearer(self, article):
        sink = RemotePushSink(self.ENDPOINT, auth=AuthSession(bearer_token="tok"))
        with patch("urllib.request.urlopen", return_value=_mock_response(b'{"id": 7}')) as mock_open:
            assert sink.emit(article) == {"id": 7}
        req = mock_open.call_args[0][0]
        assert req.get_method() == "POST"
        assert req.get_header("Authorization") == "Bearer tok"
        assert json.loads(req.data)["title"] == "Quarterly Field Notes"

    def test_empty_response(self, article):
        with patch("urllib.request.urlopen", return_value=_mock_response(b"")):
            assert RemotePushSink(self.ENDPOINT).emit(article) == {}

    def test_401_refreshes_once(self, article):
        auth = AuthSession(bearer_token="old", refresh=lambda: "new")
        err = urllib.error.HTTPError(self.ENDPOINT, 401, "Unauthorized", {}, None)
        side_effect = [err, _mock_response(b"{}")]
        with patch("urllib.request.urlopen", side_effect=side_effect) as mock_open:
            RemotePushSink(self.ENDPOINT, auth=auth).emit(article)
        assert mock_open.call_args[0][0].get_header("Authorization") == "Bearer new"

    def test_5xx_retried(self, article):
        err = urllib.error.HTTPError(self.ENDPOINT, 502, "Bad Gateway", {}, None)
        with patch("urllib.request.urlopen", side_effect=[err, _mock_response(b"{}")]), \
             patch("time.sleep") as mock_sleep:
            RemotePushSink(self.ENDPOINT).emit(article)
        mock_sleep.assert_called_once()

    def test_4xx_raises_sink_error(self, article):
        err = urllib.error.HTTPError(self.ENDPOINT, 400, "Bad Request", {}, None)
        with patch("urllib.request.urlopen", side_effect=err), \
             pytest.raises(SinkError, match="HTTP 400"):
            RemotePushSink(self.ENDPOINT).emit(article)

    def test_invalid_json_response(self, article):
        with patch("urllib.request.urlopen", return_value=_mock_response(b"<html>")), \
             pytest.raises(SinkError, match="Invalid JSON"):
            RemotePushSink(self.ENDPOINT).emit(article)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestSinkRegistry:
    def test_builtins_registered(self):
        register_builtin_sinks()
        assert {"epub", "markdown", "remote"} <= set(available_sinks())

    def test_get_sink_uses_output_dir(self, tmp_path):
        sink = get_sink("epub", AppConfig(output_dir=tmp_path))
        assert isinstance(sink, EpubSink)
        assert sink.output_dir == tmp_path

    def test_remote_needs_config(self):
        with pytest.raises(ConfigError, match="remote"):
            get_sink("remote", AppConfig())

    def test_remote_from_config(self):
        config = AppConfig(remote=RemoteConfig(endpoint="https://reader.example.net/api", token="t"))
        sink = get_sink("remote", config)
        assert isinstance(sink, RemotePushSink)
        assert sink.auth.bearer_token == "t"

    def test_unknown_sink(self):
        with pytest.raises(KeyError, match="available"):
            get_sink("nope", AppConfig())

    def test_custom_sink(self):
        class PrintSink:
            name = "print"

            def emit(self, article):
                return article.title

        register_sink("print", lambda config: PrintSink())
        assert get_sink("print", AppConfig()).emit(Article(source_domain="x", title="T")) == "T"
