"""CLI commands for blogfront."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from blogfront.config import BlogConfig, load_config, set_config_value
from blogfront.listing import build_listing
from blogfront.sources.cms import CMSClient, CMSError

app = typer.Typer(
    name="blogfront",
    help="Serve and export a blog backed by a headless CMS.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage configuration.")
app.add_typer(config_app, name="config")

console = Console()
logger = logging.getLogger(__name__)


def _get_config() -> BlogConfig:
    return load_config()


def _get_client(config: BlogConfig) -> CMSClient:
    return CMSClient(config.cms)


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port")] = None,
    debug: Annotated[
        bool | None, typer.Option("--debug/--no-debug", help="Flask debug mode")
    ] = None,
) -> None:
    """Run the blog web server."""
    from blogfront.web import create_app

    config = _get_config()
    host = host or config.server.host
    port = port or config.server.port
    debug = config.server.debug if debug is None else debug

    flask_app = create_app(config)
    console.print(
        f"[bold]Serving {config.site.title} on http://{host}:{port}[/bold] "
        f"[dim](CMS: {config.cms.base_url})[/dim]"
    )
    flask_app.run(host=host, port=port, debug=debug)


@app.command()
def build(
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Output directory")
    ] = None,
) -> None:
    """Export the blog as static HTML files."""
    from blogfront.output.site import build_site

    config = _get_config()
    output_dir = Path(output or config.build.output_dir).expanduser()

    with _get_client(config) as client:
        try:
            written = build_site(config, client, output_dir)
        except CMSError as e:
            console.print(f"[red]Failed to fetch articles: {e}[/red]")
            raise typer.Exit(1) from e

    console.print(f"[green]Wrote {len(written)} files to {output_dir}[/green]")


@app.command()
def articles(
    search: Annotated[
        str | None, typer.Option("--search", "-s", help="Filter by title or content")
    ] = None,
    page: Annotated[int, typer.Option("--page", "-n", help="Page number")] = 1,
) -> None:
    """List articles from the CMS."""
    from blogfront.output.html import format_timestamp

    config = _get_config()
    with _get_client(config) as client:
        try:
            items = client.list_articles()
        except CMSError as e:
            console.print(f"[red]Failed to fetch articles: {e}[/red]")
            raise typer.Exit(1) from e

    listing = build_listing(items, search, page, config.site.page_size)
    if not listing.page.items:
        console.print("[dim]No articles found.[/dim]")
        return

    table = Table(title=config.site.title)
    table.add_column("Title", style="bold")
    table.add_column("Document ID", style="dim")
    table.add_column("Updated")
    table.add_column("Tags")

    for article in listing.page.items:
        table.add_row(
            article.title,
            article.document_id,
            format_timestamp(
                article.updated_at, config.site.date_format, config.site.timezone
            ),
            ", ".join(tag.name for tag in article.tags),
        )

    console.print(table)
    console.print(
        f"[dim]Page {listing.page.number} / {listing.page.total_pages} "
        f"({listing.total_matches} articles)[/dim]"
    )


@app.command()
def show(
    document_id: Annotated[str, typer.Argument(help="Article document ID")],
    html: Annotated[
        bool, typer.Option("--html", help="Print the rendered HTML body")
    ] = False,
) -> None:
    """Print a single article."""
    from functools import partial

    from blogfront.output.markdown import (
        MarkdownRenderer,
        article_to_markdown,
    )
    from blogfront.sources.cms import absolute_url

    config = _get_config()
    with _get_client(config) as client:
        try:
            article = client.get_article(document_id)
        except CMSError as e:
            console.print(f"[red]Failed to fetch article: {e}[/red]")
            raise typer.Exit(1) from e

    if article is None:
        console.print("[red]Article not found.[/red]")
        raise typer.Exit(1)

    if html:
        renderer = MarkdownRenderer(
            promo=config.promo,
            resolve_url=partial(absolute_url, config.cms.base_url),
        )
        typer.echo(renderer.render(article.content))
    else:
        typer.echo(article_to_markdown(article))


@config_app.command("show")
def config_show() -> None:
    """Show current configuration."""
    config = _get_config()
    console.print("[bold]Current Configuration[/bold]\n")

    for name, section in config.sections().items():
        console.print(f"[bold cyan]\\[{name}][/bold cyan]")
        for key, value in section.__dict__.items():
            if key == "api_token" and value:
                value = "********"
            console.print(f"  {key} = {value}")
        console.print()


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Config key (e.g., cms.base_url)")],
    value: Annotated[str, typer.Argument(help="Value to set")],
) -> None:
    """Set a configuration value."""
    try:
        set_config_value(key, value)
        console.print(f"[green]Set {key} = {value}[/green]")
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
