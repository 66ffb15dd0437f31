"""The rules-engine surface the orchestrator drives.

The orchestrator only ever talks to a table through ``GameRules``; any engine
with this query/command surface can be dropped in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from .action import ActionKind, LegalActions
from .cards import Card


@dataclass(frozen=True)
class Seat:
    """An occupied seat. ``total_chips`` counts chips already bet this round."""

    stack: int
    bet_size: int = 0

    @property
    def total_chips(self) -> int:
        return self.stack + self.bet_size

    def to_dict(self) -> dict[str, int]:
        return {
            "total_chips": self.total_chips,
            "stack": self.stack,
            "bet_size": self.bet_size,
        }


@dataclass(frozen=True)
class Pot:
    """A main or side pot and the seats that can win it."""

    size: int
    eligible_players: tuple[int, ...]


@dataclass(frozen=True)
class Winner:
    """One winner of one pot."""

    seat_index: int
    hole_cards: tuple[Card, ...]
    hand: str | None
    amount: int


class GameRules(Protocol):
    """Hand/round lifecycle, legality and chip state for one table."""

    def num_seats(self) -> int: ...

    def sit_down(self, seat_index: int, chips: int) -> None: ...

    def seats(self) -> list[Seat | None]: ...

    def start_hand(self) -> None: ...

    def is_hand_in_progress(self) -> bool: ...

    def is_betting_round_in_progress(self) -> bool: ...

    def player_to_act(self) -> int: ...

    def legal_actions(self) -> LegalActions: ...

    def hole_cards(self) -> list[tuple[Card, ...] | None]: ...

    def action_taken(self, action: ActionKind, bet_size: int | None = None) -> None: ...

    def end_betting_round(self) -> None: ...

    def are_betting_rounds_completed(self) -> bool: ...

    def community_cards(self) -> list[Card]: ...

    def pots(self) -> list[Pot]: ...

    def showdown(self) -> None: ...

    def winners(self) -> list[list[Winner]]: ...

    def round_of_betting(self) -> str: ...


def seats_to_json(seats: list[Seat | None]) -> list[dict[str, Any] | None]:
    """Seat table as journal-friendly dicts, empty seats as None."""
    return [seat.to_dict() if seat else None for seat in seats]
