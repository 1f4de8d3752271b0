"""
Command-line interface for Feed Sync.

Uses Typer to expose stream fetching, full-content extraction and
bookmark comments. Supports loading .env files for the Feedly credential.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .core.types import FetchOptions, Stream
from .sync import build_orchestrator
from .utils.logging import setup_logging, truncate_text

app = typer.Typer(add_completion=False)
console = Console()


def _load(config: Path | None, log_level: str | None) -> AppConfig:
    # Load environment variables from .env if available
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging, Path.cwd())
    return cfg


@app.command()
def stream(
    stream_id: str = typer.Argument(..., help='Stream id: "feed/<url>", "user/<uid>/category/<label>", "all" or "pins".'),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    pages: int = typer.Option(1, "--pages", "-p", min=1, help="Number of pages to fetch."),
    num_entries: int | None = typer.Option(None, "--count", "-n", help="Entries per page."),
    order: str | None = typer.Option(None, "--order", help="newest or oldest."),
    unread_only: bool | None = typer.Option(None, "--unread-only/--all-entries"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Fetch a stream and print its entries."""
    cfg = _load(config, log_level)
    if num_entries is not None:
        cfg.settings.num_entries = num_entries
    if order:
        cfg.settings.entries_order = order
    if unread_only is not None:
        cfg.settings.only_unread = unread_only

    result = asyncio.run(_fetch_pages(cfg, stream_id, pages))
    _render_stream(result)


async def _fetch_pages(cfg: AppConfig, stream_id: str, pages: int) -> Stream:
    orchestrator = build_orchestrator(cfg)
    options: FetchOptions = orchestrator.default_options()
    result = await orchestrator.fetch_stream(stream_id, options)
    for _ in range(pages - 1):
        if result.continuation is None:
            break
        await orchestrator.fetch_more_entries(stream_id, result.continuation, options)
        result = orchestrator.cache.snapshot(stream_id) or result
    try:
        await orchestrator.wait_for_background()
    except Exception as exc:  # noqa: BLE001
        console.print(f"[yellow]Bookmark counts unavailable[/yellow]: {exc}")
    return orchestrator.cache.snapshot(stream_id) or result


def _render_stream(result: Stream) -> None:
    table = Table(title=f"{result.title or result.stream_id} ({len(result.entries)} entries)")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Bookmarks", justify="right")
    table.add_column("Read")
    table.add_column("Pinned")
    for entry in result.entries:
        table.add_row(
            truncate_text(entry.title, 80),
            entry.author,
            str(entry.bookmark_count),
            "yes" if entry.is_marked_as_read else "",
            "yes" if entry.is_pinned else "",
        )
    console.print(table)
    if result.continuation:
        console.print(f"More entries available (continuation: {result.continuation})")


@app.command()
def extract(
    url: str = typer.Argument(..., help="Article URL."),
    rules: Path = typer.Option(..., "--rules", "-r", exists=True, readable=True),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    follow: int = typer.Option(0, "--follow", help="Follow up to N next-page links."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Extract the full content of a page with a rule file."""
    cfg = _load(config, log_level)
    cfg.extract.rules_path = str(rules)

    async def _run():
        orchestrator = build_orchestrator(cfg)
        page = await orchestrator.fetch_full_content(url, url)
        pages = [page] if page else []
        while page and page.next_page_url and len(pages) <= follow:
            page = await orchestrator.fetch_full_content(url, page.next_page_url)
            if page:
                pages.append(page)
        return pages

    pages = asyncio.run(_run())
    if not pages:
        console.print("[red]The full content of this page can not be extracted.[/red]")
        raise typer.Exit(code=1)
    for index, page in enumerate(pages, start=1):
        console.rule(f"Page {index}: {page.url}")
        console.print(page.content, markup=False)


@app.command()
def comments(
    url: str = typer.Argument(..., help="Article URL."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
):
    """Print the bookmark comments of an article."""
    cfg = _load(config, None)
    orchestrator = build_orchestrator(cfg)
    items = asyncio.run(orchestrator.fetch_comments(url, url))
    for item in items:
        console.print(f"[bold]{item.user}[/bold] {item.comment}", highlight=False)
    console.print(f"{len(items)} comments")


if __name__ == "__main__":
    app()
