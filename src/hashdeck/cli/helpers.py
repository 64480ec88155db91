"""Shared CLI helpers."""

import logging
from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler

from hashdeck.core.models import Card
from hashdeck.core.parser import ParseError
from hashdeck.core.storage import CollectionStorage

console = Console()


def configure_logging(verbose: bool = False) -> None:
    """Send library logs through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def load_collection(directory: Path) -> tuple[CollectionStorage, list[Card]]:
    """Load every card under `directory`, exiting with an error on malformed decks."""
    storage = CollectionStorage(directory)
    try:
        cards = storage.load_cards()
    except ParseError as e:
        rprint(f"[red]Parse error:[/red] {e}")
        raise typer.Exit(1)
    return storage, cards
