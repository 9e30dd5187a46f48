"""Command-line interface for cacher.

Provides a Typer-based CLI for running the gateway and inspecting stored
cache records.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from cacher import __version__
from cacher.config import settings
from cacher.errors import InvalidRequest, RecordNotFound, RecordStoreError
from cacher.models import CacheRecord
from cacher.orchestrator import normalize_origin
from cacher.storage.records import RecordStore

console = Console()

app = typer.Typer(
    name="cacher",
    help="Content-caching gateway",
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"cacher version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """cacher: fetch content once, serve its cached location forever.

    ## Commands

    * [bold cyan]serve[/bold cyan] - Run the HTTP gateway
    * [bold cyan]lookup[/bold cyan] - Show the stored record for a URL
    """
    pass


@app.command()
def serve(
    port: int = typer.Option(settings.PORT, "--port", "-p", help="Port to run the server on"),
    host: str = typer.Option(settings.HOST, "--host", help="Interface to bind"),
    db_path: Path = typer.Option(
        settings.DB_PATH, "--db-path", help="Path to the records database"
    ),
    bucket: str = typer.Option(
        settings.S3_BUCKET, "--bucket", help="Destination bucket for cached content"
    ),
    log_level: str = typer.Option(settings.LOG_LEVEL, "--log-level", help="Logging level"),
) -> None:
    """Run the caching gateway."""
    settings.PORT = port
    settings.HOST = host
    settings.DB_PATH = db_path
    settings.S3_BUCKET = bucket
    settings.LOG_LEVEL = log_level

    from cacher.main import main as run_server

    run_server()


async def _read_record(db_path: Path, origin: str) -> CacheRecord:
    store = RecordStore(db_path, settings.TABLE_NAME)
    await store.initialize(read_only=True)
    try:
        return await store.get(origin)
    finally:
        await store.close()


@app.command()
def lookup(
    url: str = typer.Argument(..., help="Origin URL to look up"),
    db_path: Optional[Path] = typer.Option(
        None, "--db-path", help="Path to the records database"
    ),
) -> None:
    """Show the stored cache record for a URL without fetching anything."""
    db_path = db_path or settings.DB_PATH

    try:
        origin = normalize_origin(url)
    except InvalidRequest as e:
        console.print(f"[red]Invalid URL: {e}[/red]")
        raise typer.Exit(1)

    if not db_path.exists():
        console.print(f"[red]Database not found at {db_path}[/red]")
        raise typer.Exit(1)

    try:
        record = asyncio.run(_read_record(db_path, origin))
    except RecordNotFound:
        console.print(f"[yellow]No record for {origin}[/yellow]")
        raise typer.Exit(1)
    except RecordStoreError as e:
        console.print(f"[red]Error reading database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel.fit(
            f"[cyan]Original URL:[/cyan] {record.original_url}\n"
            f"[cyan]Cached URL:[/cyan] {record.cached_url}\n"
            f"[cyan]Recorded at:[/cyan] {record.time_at}",
            title="Cache Record",
            border_style="green",
        )
    )


def cli_entry() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli_entry()
