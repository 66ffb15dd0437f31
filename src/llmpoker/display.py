"""Rich display layer for journal records, live or replayed."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

_SUITS = {
    "clubs": ("♣", False),
    "diamonds": ("♦", True),
    "hearts": ("♥", True),
    "spades": ("♠", False),
}

_ACTION_COLORS = {
    "fold": "red",
    "check": "yellow",
    "call": "yellow",
    "bet": "green",
    "raise": "bold green",
}


def format_card(c: dict[str, str]) -> str:
    symbol, red = _SUITS.get(c.get("suit", ""), ("?", False))
    text = f"{c.get('rank', '?')}{symbol}"
    return f"[bold red]{text}[/bold red]" if red else f"[bold white]{text}[/bold white]"


def format_cards(cards: Iterable[dict[str, str]]) -> str:
    return " ".join(format_card(c) for c in cards) or "[dim]-[/dim]"


def _format_seats(record: dict[str, Any], names: dict[int, str]) -> str:
    parts = []
    for i, seat in enumerate(record.get("seats", [])):
        if i not in names:
            continue
        chips = seat["total_chips"] if seat else 0
        color = "green" if chips else "red"
        parts.append(f"{names[i]} [{color}]{chips:,}[/{color}]")
    return "  ".join(parts)


class EventRenderer:
    """Prints journal records as they arrive. Remembers seat names from game_start."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._names: dict[int, str] = {}

    def __call__(self, record: dict[str, Any]) -> None:
        handler = getattr(self, f"_on_{record.get('event')}", None)
        if handler is not None:
            handler(record)

    def _on_game_start(self, record: dict[str, Any]) -> None:
        self._names = {p["seat"]: p["name"] for p in record.get("players", [])}
        lines = [f"Seat {seat}: [bold cyan]{name}[/bold cyan]" for seat, name in sorted(self._names.items())]
        self.console.print(Panel("\n".join(lines), title="[bold]Game start[/bold]", expand=False))

    def _on_hand_start(self, record: dict[str, Any]) -> None:
        self.console.rule(f"[bold]Hand #{record['hand_index']}[/bold]")
        self.console.print(_format_seats(record, self._names))

    def _on_player_action(self, record: dict[str, Any]) -> None:
        action = record["action"]
        color = _ACTION_COLORS.get(action, "white")
        size = f" {record['bet_size']:,}" if record.get("bet_size") is not None else ""
        self.console.print(
            f"  {record['name']:<12} {format_cards(record.get('cards', []))}  "
            f"[{color}]{action}{size}[/{color}]"
        )

    def _on_decision_failure(self, record: dict[str, Any]) -> None:
        self.console.print(
            f"  [yellow]! {record['name']}: {record['kind']} failure, "
            f"playing {record['fallback']}[/yellow] [dim]{record['error']}[/dim]"
        )

    def _on_end_betting_round(self, record: dict[str, Any]) -> None:
        pots = ", ".join(f"{p['size']:,}" for p in record.get("pots", [])) or "0"
        self.console.print(
            f"[cyan]── {record.get('round', '')} done ──[/cyan] "
            f"Board: {format_cards(record.get('community_cards', []))}  Pots: {pots}"
        )

    def _on_showdown(self, record: dict[str, Any]) -> None:
        for i, pot_winners in enumerate(record.get("winners", [])):
            label = "Main pot" if i == 0 else f"Side pot {i}"
            for w in pot_winners:
                hand = f" with {w['hand']}" if w.get("hand") else ""
                self.console.print(
                    f"  [bold green]{w['name']}[/bold green] wins {w['amount']:,} ({label}){hand}"
                )

    def _on_hand_end(self, record: dict[str, Any]) -> None:
        self.console.print(_format_seats(record, self._names))

    def _on_game_end(self, record: dict[str, Any]) -> None:
        if record.get("winner"):
            body = f"[bold green]{record['winner']}[/bold green] wins after {record['hands_played']} hands"
        else:
            counts = ", ".join(f"{n} {c:,}" for n, c in record.get("chip_counts", {}).items())
            body = f"Stopped after {record['hands_played']} hands\n{counts}"
        self.console.print(Panel(body, title="[bold]Game over[/bold]", expand=False))


def summarize_journal(records: Iterable[dict[str, Any]]) -> Table:
    """Per-hand summary of a finished (or interrupted) run."""
    table = Table(title="Journal summary")
    table.add_column("Hand", justify="right")
    table.add_column("Actions", justify="right")
    table.add_column("Failures", justify="right")
    table.add_column("Rounds", justify="right")
    table.add_column("Winners")

    hand: dict[str, Any] | None = None
    for record in records:
        event = record.get("event")
        if event == "hand_start":
            hand = {"index": record["hand_index"], "actions": 0, "failures": 0, "rounds": 0, "winners": []}
        elif hand is None:
            continue
        elif event == "player_action":
            hand["actions"] += 1
        elif event == "decision_failure":
            hand["failures"] += 1
        elif event == "end_betting_round":
            hand["rounds"] += 1
        elif event == "showdown":
            for pot_winners in record.get("winners", []):
                hand["winners"].extend(f"{w['name']} +{w['amount']:,}" for w in pot_winners)
        elif event == "hand_end":
            failures = hand["failures"]
            table.add_row(
                str(hand["index"]),
                str(hand["actions"]),
                f"[yellow]{failures}[/yellow]" if failures else "0",
                str(hand["rounds"]),
                ", ".join(hand["winners"]),
            )
            hand = None
    return table
