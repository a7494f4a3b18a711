"""Command-line interface for the changelog content pipeline."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import ContentConfig, ensure_config
from .documents.text import excerpt as generate_excerpt
from .documents.validation import ensure_valid
from .errors import ContentError
from .local.models import ContentEntry
from .local.repository import EntryRepository
from .rendering.converters import ContentConverter
from .service import ContentService
from .slugs.naming import derive_slug

app = typer.Typer(help="Render, summarise and store block-document changelog content.")
console = Console()

MARKDOWN_SUFFIXES = {".md", ".markdown"}


def _build_service(config: ContentConfig) -> ContentService:
    repository = EntryRepository(config.storage.workspace.resolve())
    return ContentService(repository, config.content)


def _resolve_config(ctx: typer.Context, **overrides: Any) -> ContentConfig:
    config_path: Optional[Path] = ctx.obj.get("config_path")
    try:
        return ensure_config(config_path=config_path, **overrides)
    except (RuntimeError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_raw_document(path: Path, converter: ContentConverter) -> Any:
    """Read a JSON block document, or import a Markdown file as one."""

    if not path.exists():
        raise typer.BadParameter(f"{path} does not exist")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in MARKDOWN_SUFFIXES:
        return converter.markdown_to_document(text).to_raw()
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}") from exc


def _format_entry(entry: ContentEntry, *, action: str) -> None:
    table = Table(title=f"Entry {action.title()} Summary")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Scope", entry.scope)
    table.add_row("Slug", entry.slug)
    table.add_row("Title", entry.title)
    table.add_row("Status", entry.status)
    table.add_row("Published", entry.published_at.isoformat() if entry.published_at else "-")
    table.add_row("Excerpt", entry.excerpt)
    console.print(table)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a configuration TOML file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_path": config_path}


@app.command()
def render(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON block document or Markdown file"),
    output_format: str = typer.Option(
        "html",
        "--format",
        "-f",
        help="Output format: html or markdown",
    ),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", help="Deepest nesting level rendered"),
) -> None:
    """Render a document to HTML (or Markdown)."""

    if output_format not in ("html", "markdown"):
        raise typer.BadParameter("--format must be 'html' or 'markdown'")

    config = _resolve_config(ctx, max_render_depth=max_depth)
    converter = ContentConverter(max_depth=config.content.max_render_depth)
    raw = _load_raw_document(path, converter)
    try:
        document = ensure_valid(raw, max_depth=config.content.max_render_depth)
    except ContentError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if output_format == "markdown":
        typer.echo(converter.document_to_markdown(document))
    else:
        typer.echo(converter.document_to_html(document))


@app.command()
def excerpt(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON block document or Markdown file"),
    max_length: Optional[int] = typer.Option(None, "--max-length", "-n", help="Maximum excerpt length"),
) -> None:
    """Print the plain-text excerpt of a document."""

    config = _resolve_config(ctx, excerpt_length=max_length)
    converter = ContentConverter(max_depth=config.content.max_render_depth)
    raw = _load_raw_document(path, converter)
    try:
        document = ensure_valid(raw, max_depth=config.content.max_render_depth)
    except ContentError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(generate_excerpt(document, config.content.excerpt_length))


@app.command()
def slug(title: str = typer.Argument(..., help="Title to derive a slug from")) -> None:
    """Print the URL-safe slug for a title."""

    value = derive_slug(title)
    if not value:
        raise typer.BadParameter("Title does not contain any letters or digits")
    typer.echo(value)


@app.command()
def publish(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON block document or Markdown file"),
    title: str = typer.Option(..., "--title", "-t", help="Title of the entry"),
    scope: str = typer.Option(..., "--scope", "-s", help="Scope the slug must be unique in, e.g. acme/changelog"),
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Directory holding stored entries",
    ),
    entry_slug: Optional[str] = typer.Option(None, "--slug", help="Explicit slug instead of one derived from the title"),
    entry_excerpt: Optional[str] = typer.Option(None, "--excerpt", help="Explicit excerpt"),
    status: str = typer.Option("draft", "--status", help="draft, published or archived"),
) -> None:
    """Store a document as a new entry in a scope."""

    config = _resolve_config(ctx, workspace=workspace)
    service = _build_service(config)
    raw = _load_raw_document(path, ContentConverter(max_depth=config.content.max_render_depth))
    try:
        entry = service.create_entry(
            scope,
            title=title,
            content=raw,
            slug=entry_slug,
            excerpt=entry_excerpt,
            status=status,
        )
    except (ContentError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"Stored entry at [bold]{entry.path}[/bold].")
    _format_entry(entry, action="publish")


@app.command("list")
def list_entries(
    ctx: typer.Context,
    scope: str = typer.Option(..., "--scope", "-s", help="Scope to list"),
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Directory holding stored entries",
    ),
) -> None:
    """List stored entries of a scope."""

    config = _resolve_config(ctx, workspace=workspace)
    service = _build_service(config)
    try:
        entries = service.repository.list_entries(scope)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    table = Table(title=f"Entries in {scope}")
    table.add_column("Slug", no_wrap=True)
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Excerpt")
    for entry in entries:
        table.add_row(entry.slug, entry.title, entry.status, entry.excerpt)
    console.print(table)


@app.command()
def rerender(
    ctx: typer.Context,
    entry_slug: str = typer.Argument(..., help="Slug of the entry to re-render"),
    scope: str = typer.Option(..., "--scope", "-s", help="Scope of the entry"),
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Directory holding stored entries",
    ),
) -> None:
    """Regenerate the stored HTML of an entry from its raw document."""

    config = _resolve_config(ctx, workspace=workspace)
    service = _build_service(config)
    try:
        entry = service.rerender_entry(scope, entry_slug)
    except (ContentError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _format_entry(entry, action="rerender")


def run() -> None:
    """Entry point for console scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
