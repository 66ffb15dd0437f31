"""Per-decision, read-only view of the table for one player."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .action import LegalActions
from .cards import Card
from .roster import Player, Roster
from .rules import GameRules


@dataclass(frozen=True)
class PotView:
    size: int
    eligible_players: tuple[str, ...]


@dataclass(frozen=True)
class SeatView:
    """One roster seat. Eliminated seats always show zero chips."""

    name: str
    status: str
    total_chips: int
    stack: int = 0
    bet_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        if self.status == "eliminated":
            return {"name": self.name, "status": self.status, "total_chips": 0}
        return {
            "name": self.name,
            "status": self.status,
            "total_chips": self.total_chips,
            "stack": self.stack,
            "bet_size": self.bet_size,
        }


@dataclass(frozen=True)
class Snapshot:
    """Everything a player is allowed to see when deciding."""

    name: str
    seat_index: int
    hole_cards: tuple[Card, ...]
    community_cards: tuple[Card, ...]
    pots: tuple[PotView, ...]
    legal_actions: LegalActions
    round: str
    seats: tuple[SeatView, ...]

    def to_template_data(self) -> dict[str, Any]:
        """Plain data handed to prompt templates."""
        return {
            "player": {"name": self.name, "seat_index": self.seat_index},
            "current_hand": {
                "hole_cards": [str(c) for c in self.hole_cards],
                "community_cards": [str(c) for c in self.community_cards],
                "pots": [
                    {"size": p.size, "eligible_players": list(p.eligible_players)}
                    for p in self.pots
                ],
                "legal_actions": self.legal_actions.to_dict(),
                "round": self.round,
            },
            "game": {"player_stacks": [s.to_dict() for s in self.seats]},
        }


def build_snapshot(
    table: GameRules,
    roster: Roster,
    player: Player,
    legal: LegalActions,
) -> Snapshot:
    """Build the snapshot for ``player``. Reads the table, never changes it."""
    table_seats = table.seats()
    seats: list[SeatView] = []
    for p in roster:
        seat = table_seats[p.seat_index] if p.seat_index < len(table_seats) else None
        if seat is None or seat.total_chips <= 0:
            seats.append(SeatView(name=p.name, status="eliminated", total_chips=0))
        else:
            seats.append(
                SeatView(
                    name=p.name,
                    status="active",
                    total_chips=seat.total_chips,
                    stack=seat.stack,
                    bet_size=seat.bet_size,
                )
            )

    hole = table.hole_cards()[player.seat_index] or ()
    pots = tuple(
        PotView(size=pot.size, eligible_players=tuple(roster.name_at(i) for i in pot.eligible_players))
        for pot in table.pots()
    )

    return Snapshot(
        name=player.name,
        seat_index=player.seat_index,
        hole_cards=tuple(hole),
        community_cards=tuple(table.community_cards()),
        pots=pots,
        legal_actions=legal,
        round=table.round_of_betting(),
        seats=tuple(seats),
    )
