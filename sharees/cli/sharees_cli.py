#!/usr/bin/env python3
"""
Command line front end for sharee search.

Usage:
    sharees search "ann"                 - Search sharees on the configured server
    sharees search "ann" --folder        - Search for sharing a folder
    sharees search "ann" --global        - Include the global lookup server
    sharees search "ann" -x user:ann     - Hide sharees already shared with
    sharees types                        - List share type codes
    sharees config init PATH             - Write a default config file
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional, Tuple
import click
from rich.console import Console
from rich.table import Table
from loguru import logger

from ..core.bus import ErrorOccurred, ResultsReady
from ..core.config import Config
from ..core.models import LookupMode, ShareType
from ..core.search_model import ShareeSearchModel

console = Console()

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Route loguru output to stderr and, optionally, a rotating file."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level="DEBUG"
        )


def parse_exclusion(value: str) -> Tuple[int, str]:
    """Parse TYPE:ID where TYPE is a share type name or code."""
    share_type, sep, identifier = value.partition(":")
    if not sep or not identifier:
        raise click.BadParameter(f"expected TYPE:ID, got {value!r}")

    share_type = share_type.strip()
    if share_type.lstrip("-").isdigit():
        return int(share_type), identifier

    try:
        return int(ShareType[share_type.upper()]), identifier
    except KeyError:
        raise click.BadParameter(f"unknown share type {share_type!r}") from None


def load_config(config_path: Optional[str]) -> Config:
    if config_path:
        return Config.load(Path(config_path))
    try:
        return Config.load()
    except FileNotFoundError:
        logger.debug("No config file found, using defaults")
        return Config()


@click.group()
def cli():
    """Sharee search - find recipients to share files and folders with."""


@cli.command()
@click.argument("query")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--server", help="Server URL")
@click.option("--user", "-u", help="User name")
@click.option("--password", "-p", help="App password")
@click.option("--folder", is_flag=True, help="The shared item is a folder")
@click.option("--global", "global_lookup", is_flag=True, help="Search the global lookup server too")
@click.option("--exclude", "-x", multiple=True, help="TYPE:ID of a sharee to hide (repeatable)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def search(
    query: str,
    config_path: Optional[str],
    server: Optional[str],
    user: Optional[str],
    password: Optional[str],
    folder: bool,
    global_lookup: bool,
    exclude: Tuple[str, ...],
    verbose: bool
):
    """Search sharees matching QUERY."""
    config = load_config(config_path)
    if server:
        config.server.url = server.rstrip("/")
    if user:
        config.server.user = user
    if password:
        config.server.app_password = password

    setup_logging("DEBUG" if verbose else config.logging.level, config.logging.file)

    exclusions = [parse_exclusion(value) for value in exclude]

    if not query:
        console.print("[red]Empty query[/red]")
        sys.exit(1)

    if config.session() is None:
        console.print("[red]No server configured.[/red] Use --server and --user or a config file.")
        sys.exit(1)

    error = asyncio.run(run_search(config, query, folder, global_lookup, exclusions))
    if error is not None:
        sys.exit(1)


async def run_search(
    config: Config,
    query: str,
    folder: bool,
    global_lookup: bool,
    exclusions
) -> Optional[ErrorOccurred]:
    """Drive the model through one debounced search and print the outcome."""
    model = ShareeSearchModel.from_config(config)
    finished = asyncio.Event()
    outcome = {}

    def on_ready(event: ResultsReady):
        outcome["results"] = event
        finished.set()

    def on_error(event: ErrorOccurred):
        outcome["error"] = event
        finished.set()

    model.subscribe(ResultsReady.type, on_ready)
    model.subscribe(ErrorOccurred.type, on_error)

    model.item_is_folder = folder
    model.lookup_mode = LookupMode.GLOBAL_SEARCH if global_lookup else LookupMode.LOCAL_SEARCH
    model.exclusions = exclusions
    model.search_text = query

    try:
        await finished.wait()
    finally:
        model.close()

    error = outcome.get("error")
    if error is not None:
        console.print(f"[red]Search failed ({error.status_code}):[/red] {error.message}")
        return error

    display_results(model)
    return None


def display_results(model: ShareeSearchModel):
    """Display sharees in a table."""
    if model.row_count() == 0:
        console.print("[yellow]No sharees found[/yellow]")
        return

    table = Table(title=f"Sharees for {model.search_text!r}")
    table.add_column("Type", style="magenta")
    table.add_column("Share with", style="cyan")
    table.add_column("Name", no_wrap=False)

    for index in range(model.row_count()):
        row = model.row(index)
        table.add_row(
            row.candidate.share_type.name.lower(),
            row.candidate.identifier,
            row.display_label
        )

    console.print(table)


@cli.command()
def types():
    """List share type codes."""
    table = Table(title="Share types")
    table.add_column("Code", justify="right")
    table.add_column("Name", style="magenta")

    for share_type in ShareType:
        table.add_row(str(int(share_type)), share_type.name.lower())

    console.print(table)


@cli.group()
def config():
    """Manage the configuration file."""
    pass


@config.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: str, force: bool):
    """Write a default config file to PATH."""
    config_path = Path(path)
    if config_path.exists() and not force:
        console.print(f"[red]{config_path} already exists[/red] (use --force)")
        sys.exit(1)

    Config().save(config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
