"""Main CLI entry point for hashdeck."""

import webbrowser
from collections import Counter
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.table import Table

from hashdeck.cli.helpers import configure_logging, console, load_collection
from hashdeck.core.metrics import FinishedView, session_view
from hashdeck.core.queue import QueueBuilder
from hashdeck.core.scheduler import AnswerControls, SessionScheduler
from hashdeck.core.session import ReviewSession
from hashdeck.web.app import create_app
from hashdeck.web.dependencies import ServerState

load_dotenv()

app = typer.Typer(
    name="hashdeck",
    help="Spaced repetition drills over markdown flashcard collections.",
    no_args_is_help=True,
)


# ============================================================================
# DRILL command
# ============================================================================


@app.command()
def drill(
    directory: Path = typer.Argument(
        Path("."),
        help="Collection directory containing markdown deck files",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        envvar="HASHDECK_HOST",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        8000,
        "--port",
        "-p",
        envvar="HASHDECK_PORT",
        help="Port to run the server on",
    ),
    answer_controls: AnswerControls = typer.Option(
        AnswerControls.FULL,
        "--answer-controls",
        envvar="HASHDECK_ANSWER_CONTROLS",
        help="Grade buttons: full (Forgot/Hard/Good/Easy) or binary (Forgot/Good)",
    ),
    card_limit: int | None = typer.Option(
        None,
        "--card-limit",
        "-l",
        envvar="HASHDECK_CARD_LIMIT",
        help="Maximum cards to review",
    ),
    shuffle: bool = typer.Option(
        False,
        "--shuffle/--no-shuffle",
        help="Shuffle the cards before building the queue",
    ),
    open_browser: bool = typer.Option(
        True,
        "--open/--no-open",
        help="Open the session in a web browser",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Start a review session in the browser."""
    import uvicorn

    configure_logging(verbose)
    storage, cards = load_collection(directory)
    queue = QueueBuilder(shuffle=shuffle, card_limit=card_limit).build_queue(cards)

    if not queue:
        rprint("[green]No cards to review![/green]")
        return

    def stop() -> None:
        server.should_exit = True

    session = ReviewSession(
        queue,
        SessionScheduler(),
        answer_controls=answer_controls,
        editor=storage.replace_card,
        on_shutdown=stop,
    )
    web_app = create_app(ServerState(session=session, collection_root=storage.root))
    server = uvicorn.Server(uvicorn.Config(web_app, host=host, port=port, log_level="warning"))

    url = f"http://{host}:{port}/"
    rprint(f"\n[bold]Review Session[/bold]: {len(queue)} card(s)")
    rprint(f"  URL: {url}")
    rprint("\n[dim]Press Ctrl+C to stop[/dim]\n")
    if open_browser:
        webbrowser.open(url)

    server.run()

    # Ctrl+C leaves the session running; close it so the summary is complete.
    session.finish()
    _print_summary(session)


def _print_summary(session: ReviewSession) -> None:
    view = session_view(session)
    if not isinstance(view, FinishedView):
        return
    table = Table(title="Session Stats")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total Cards", str(view.total_cards))
    table.add_row("Cards Reviewed", str(view.cards_reviewed))
    table.add_row("Duration (seconds)", str(view.duration_seconds))
    table.add_row("Pace (s/card)", f"{view.pace:.2f}")
    table.add_row("Grades Recorded", str(len(session.committed)))
    console.print(table)


# ============================================================================
# CHECK command
# ============================================================================


@app.command()
def check(
    directory: Path = typer.Argument(
        Path("."),
        help="Collection directory containing markdown deck files",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
) -> None:
    """Parse every deck in a collection and report card counts."""
    _storage, cards = load_collection(directory)

    per_deck = Counter(card.deck_name for card in cards)
    per_type = Counter(card.card_type.value for card in cards)

    table = Table(title=f"Collection: {directory}")
    table.add_column("Deck", style="cyan")
    table.add_column("Cards", justify="right")
    for deck_name, count in sorted(per_deck.items()):
        table.add_row(deck_name, str(count))
    console.print(table)

    rprint(
        f"\n[green]OK[/green]: {len(cards)} card(s) "
        f"({per_type.get('basic', 0)} basic, {per_type.get('cloze', 0)} cloze)"
    )


if __name__ == "__main__":
    app()
