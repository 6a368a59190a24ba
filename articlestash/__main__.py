"""CLI entry point: python -m articlestash URL [options]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from bs4 import BeautifulSoup
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from articlestash.client import ArticleStash
from articlestash.config import load_config
from articlestash.errors import ConfigError, ExtractionFailure, SinkError
from articlestash.items import Article, ArticleField, FieldSource
from articlestash.plugins import available_sinks, get_sink
from articlestash.query import ExtractionResult, FetchError
from articlestash.sinks import register_builtin_sinks
from articlestash.sites import load_sites

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EXTRACTION = 1
EXIT_CONFIG = 2
EXIT_SINK = 3

_EXCERPT_CHARS = 400


def _build_parser() -> argparse.ArgumentParser:
    register_builtin_sinks()
    parser = argparse.ArgumentParser(
        prog="articlestash",
        description=(
            "Save a web article as an e-book (or push it to a read-later service).\n"
            "Per-site CSS selectors win; automatic extraction fills the gaps."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", metavar="URL", help="Article URL")
    parser.add_argument("--config", default=None, metavar="PATH",
                        help="Config file (default: <config dir>/config.toml)")
    parser.add_argument("--sites", default=None, metavar="PATH",
                        help="Selector table (default: <config dir>/sites.toml)")
    parser.add_argument("--sink", default=None, choices=available_sinks(),
                        help="Output sink (default: from config, else epub)")
    parser.add_argument("--out", default=None, metavar="DIR",
                        help="Output directory for file sinks")
    parser.add_argument("--yes", "-y", action="store_true", default=False,
                        help="Skip the confirmation prompt")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=False, show_path=False)],
        force=True,
    )


def _excerpt(body: str | None) -> str:
    if not body:
        return ""
    text = " ".join(BeautifulSoup(body, "lxml").get_text(" ").split())
    if len(text) > _EXCERPT_CHARS:
        return text[:_EXCERPT_CHARS].rstrip() + "…"
    return text


def _print_preview(console: Console, article: Article) -> None:
    tbl = Table(title=f"[bold cyan]{article.url or article.source_domain}[/bold cyan]",
                show_lines=True)
    tbl.add_column("Field", style="bold", no_wrap=True)
    tbl.add_column("Source", no_wrap=True)
    tbl.add_column("Value", overflow="fold")

    source_style = {
        FieldSource.MANUAL: "[green]manual[/green]",
        FieldSource.AUTOMATIC: "[yellow]automatic[/yellow]",
        FieldSource.UNRESOLVED: "[red]unresolved[/red]",
    }
    published = article.published_at.isoformat() if article.published_at else ""
    if not published and article.published_raw:
        published = f"{article.published_raw} [dim](unparsed)[/dim]"
    values = {
        ArticleField.TITLE: article.title or "",
        ArticleField.AUTHORS: ", ".join(article.authors),
        ArticleField.DATE: published,
        ArticleField.BODY: _excerpt(article.body),
    }
    for field in ArticleField:
        source = article.sources.get(field, FieldSource.UNRESOLVED)
        tbl.add_row(field.value, source_style[source], values[field])
    console.print(tbl)


def _fetch(console: Console, stasher: ArticleStash, url: str) -> ExtractionResult | None:
    try:
        result = stasher.fetch(url)
    except FetchError as exc:
        console.print(f"[red]ERROR:[/red] {exc}")
        return None
    except ExtractionFailure as exc:
        console.print(f"[red]ERROR:[/red] {exc}")
        return None
    _print_preview(console, result.article)
    if result.warning is not None:
        console.print(f"[yellow]WARNING:[/yellow] {result.warning}")
    return result


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    console = Console()

    try:
        config = load_config(args.config)
        updates: dict[str, object] = {}
        if args.out:
            updates["output_dir"] = Path(args.out).expanduser()
        if args.sink:
            updates["sink"] = args.sink
        if updates:
            config = config.model_copy(update=updates)
        sites = load_sites(args.sites or config.resolved_sites_file,
                           missing_ok=args.sites is None)
        sink = get_sink(config.sink, config)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return EXIT_CONFIG
    except KeyError as exc:
        console.print(f"[red]Configuration error:[/red] {exc.args[0]}")
        return EXIT_CONFIG

    stasher = ArticleStash.from_config(config, sites=sites, sink=sink)
    result = _fetch(console, stasher, args.url)
    if result is None:
        return EXIT_EXTRACTION

    if not args.yes and not Confirm.ask("Ok?", default=True, console=console):
        console.print("Nothing saved.")
        return EXIT_OK

    try:
        output = stasher.emit(result)
    except SinkError as exc:
        console.print(f"[red]Output error:[/red] {exc}")
        return EXIT_SINK

    if isinstance(output, Path):
        console.print(f"Saved [green]{output}[/green]")
    else:
        console.print(f"Sent to [green]{sink.name}[/green]: {output}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
