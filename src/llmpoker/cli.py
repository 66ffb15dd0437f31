"""Command line interface for running LLM poker games."""

import asyncio
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import Config, require_api_key
from .display import EventRenderer, summarize_journal
from .errors import LLMPokerError
from .holdem import HoldemTable
from .journal import EventLog, journal_path, read_events
from .log import setup_logging
from .orchestrator import Orchestrator
from .providers import AnthropicProvider, DecisionProvider, RandomProvider
from .roster import load_roster

app = typer.Typer(help="Texas Hold'em tables played by language models")
console = Console()


@app.command()
def play(
    players: Path | None = typer.Option(None, "--players", "-p", help="Directory of player folders"),
    games: Path | None = typer.Option(None, "--games", "-g", help="Directory for game journals"),
    hands: int | None = typer.Option(None, "--hands", "-n", help="Stop after this many hands"),
    seed: int | None = typer.Option(None, "--seed", "-s", help="Deck seed for a reproducible game"),
    offline: bool = typer.Option(False, "--offline", help="Use random decisions instead of the API"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't print events as they happen"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Path to a TOML config file"),
):
    """Play a game until one player holds all the chips."""
    try:
        config = Config.load(config_file)
        setup_logging("DEBUG" if verbose else config.run.log_level)

        roster = load_roster(players or Path(config.run.players_dir))
        table_cfg = config.table
        table = HoldemTable(
            small_blind=table_cfg.small_blind,
            big_blind=table_cfg.big_blind,
            num_seats=table_cfg.num_seats,
            seed=seed if seed is not None else table_cfg.seed,
        )

        provider: DecisionProvider
        if offline:
            provider = RandomProvider(seed)
        else:
            require_api_key()
            provider = AnthropicProvider(
                model=config.provider.model,
                max_tokens=config.provider.max_tokens,
                temperature=config.provider.temperature,
                timeout=config.provider.timeout,
            )

        path = journal_path(games or Path(config.run.games_dir), datetime.now())
        with EventLog(path) as journal:
            orchestrator = Orchestrator(
                table=table,
                roster=roster,
                provider=provider,
                journal=journal,
                initial_chips=table_cfg.initial_chips,
                max_hands=hands if hands is not None else config.run.max_hands,
                on_event=None if quiet else EventRenderer(console),
            )
            winner = asyncio.run(orchestrator.run())

        if winner:
            console.print(f"\n[bold green]{winner}[/bold green] wins the game")
        else:
            console.print(f"\n[yellow]Stopped after {orchestrator.hand_index} hands[/yellow]")
        console.print(f"[dim]Journal: {path}[/dim]")

    except LLMPokerError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")
        raise typer.Exit(130)


@app.command()
def replay(
    journal: Path = typer.Argument(..., help="Journal file written by 'play'"),
    summary: bool = typer.Option(False, "--summary", help="Only print the per-hand summary"),
):
    """Print a recorded game."""
    if not journal.exists():
        console.print(f"[red]Error: no such journal: {journal}[/red]")
        raise typer.Exit(1)
    try:
        records = list(read_events(journal))
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not summary:
        render = EventRenderer(console)
        for record in records:
            render(record)
        console.print()
    console.print(summarize_journal(records))


@app.command()
def roster(
    players: Path | None = typer.Option(None, "--players", "-p", help="Directory of player folders"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Path to a TOML config file"),
):
    """List the players that would sit down."""
    try:
        config = Config.load(config_file)
        loaded = load_roster(players or Path(config.run.players_dir))
    except LLMPokerError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Roster")
    table.add_column("Seat", justify="right")
    table.add_column("Name", style="bold cyan")
    table.add_column("Decision settings")
    for player in loaded:
        settings = ", ".join(f"{k}={v}" for k, v in player.decision.items())
        table.add_row(str(player.seat_index), player.name, settings or "[dim]defaults[/dim]")
    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
