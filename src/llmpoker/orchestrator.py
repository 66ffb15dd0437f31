"""Game loop: hands and betting rounds, with exactly one decision per turn."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .action import LegalActions, TakenAction, fallback_action
from .errors import ConfigurationError, DecisionError, GameInvariantError
from .journal import EventKind, EventLog
from .prompts import render_prompt
from .providers import DecisionProvider
from .roster import Player, Roster
from .rules import GameRules, seats_to_json
from .snapshot import Snapshot, build_snapshot

log = logging.getLogger(__name__)

# Runaway guards against a rules engine that never settles
MAX_TURNS_PER_HAND = 1000
MAX_ROUNDS_PER_HAND = 16

INITIAL_CHIPS = 1000


@dataclass
class Orchestrator:
    """Plays hands until one seat holds all the chips.

    The table is only mutated between decisions: a turn resolves its decision
    (real or fallback) completely before ``action_taken`` is called.
    """

    table: GameRules
    roster: Roster
    provider: DecisionProvider
    journal: EventLog
    initial_chips: int = INITIAL_CHIPS
    render: Callable[[Player, Snapshot], str] = render_prompt
    max_hands: int | None = None

    # Called with each journal record after it is written
    on_event: Callable[[dict[str, Any]], None] | None = None

    hand_index: int = 0

    async def run(self) -> str | None:
        """Run the game. Returns the winner's name, or None if stopped by max_hands."""
        self._seat_players()
        self._emit(
            EventKind.GAME_START,
            seats=seats_to_json(self.table.seats()),
            players=[{"name": p.name, "seat": p.seat_index} for p in self.roster],
        )

        funded = self._funded_seats()
        while len(funded) > 1:
            if self.max_hands is not None and self.hand_index >= self.max_hands:
                log.info("Stopping after %d hands", self.hand_index)
                self._emit(
                    EventKind.GAME_END,
                    winner=None,
                    hands_played=self.hand_index,
                    reason="hand_limit",
                    chip_counts=self._chip_counts(),
                )
                return None
            self.hand_index += 1
            await self._play_hand()
            funded = self._funded_seats()

        if not funded:
            raise GameInvariantError("No funded seat left at the table", hand_index=self.hand_index)
        winner = self._player_at(funded[0]).name
        log.info("%s wins after %d hands", winner, self.hand_index)
        self._emit(EventKind.GAME_END, winner=winner, hands_played=self.hand_index)
        return winner

    # ── Hand / round / turn ──────────────────────────────────

    async def _play_hand(self) -> None:
        hand = self.hand_index
        self.table.start_hand()
        log.info("Hand %d started", hand)
        self._emit(EventKind.HAND_START, hand_index=hand, seats=seats_to_json(self.table.seats()))

        turns = rounds = 0
        while self.table.is_hand_in_progress():
            rounds += 1
            if rounds > MAX_ROUNDS_PER_HAND:
                raise GameInvariantError(
                    "Hand never finished", hand_index=hand, round=self.table.round_of_betting()
                )

            while self.table.is_betting_round_in_progress():
                turns += 1
                if turns > MAX_TURNS_PER_HAND:
                    raise GameInvariantError(
                        "Betting never settled",
                        hand_index=hand,
                        round=self.table.round_of_betting(),
                    )
                await self._play_turn()

            round_label = self.table.round_of_betting()
            self.table.end_betting_round()
            self._emit(
                EventKind.END_BETTING_ROUND,
                hand_index=hand,
                round=round_label,
                pots=[
                    {
                        "size": pot.size,
                        "eligible_players": [self.roster.name_at(i) for i in pot.eligible_players],
                    }
                    for pot in self.table.pots()
                ],
                community_cards=self.table.community_cards(),
            )

            if self.table.are_betting_rounds_completed():
                self.table.showdown()
                self._emit(
                    EventKind.SHOWDOWN,
                    hand_index=hand,
                    winners=[
                        [
                            {
                                "name": self.roster.name_at(w.seat_index),
                                "seat": w.seat_index,
                                "cards": w.hole_cards,
                                "hand": w.hand,
                                "amount": w.amount,
                            }
                            for w in pot_winners
                        ]
                        for pot_winners in self.table.winners()
                    ],
                )

        self._emit(EventKind.HAND_END, hand_index=hand, seats=seats_to_json(self.table.seats()))

    async def _play_turn(self) -> None:
        seat_index = self.table.player_to_act()
        round_label = self.table.round_of_betting()
        player = self._player_at(seat_index, round_label)
        legal = self.table.legal_actions()
        cards = self.table.hole_cards()[seat_index] or ()

        decision = await self._decide(player, legal, round_label)

        self.table.action_taken(decision.action, decision.bet_size)
        self._emit(
            EventKind.PLAYER_ACTION,
            hand_index=self.hand_index,
            round=round_label,
            name=player.name,
            cards=cards,
            action=decision.action,
            bet_size=decision.bet_size,
        )

    async def _decide(self, player: Player, legal: LegalActions, round_label: str) -> TakenAction:
        """Ask the provider; on any decision failure, journal it and fall back."""
        try:
            snapshot = build_snapshot(self.table, self.roster, player, legal)
            prompt = self.render(player, snapshot)
            return await self.provider.get_action(player, prompt, legal)
        except DecisionError as e:
            fallback = fallback_action(legal)
            if fallback is None:
                raise GameInvariantError(
                    "No passive action offered for fallback",
                    seat=player.seat_index,
                    hand_index=self.hand_index,
                    round=round_label,
                ) from e
            log.warning(
                "%s: %s failure (%s), falling back to %s",
                player.name,
                e.kind,
                e,
                fallback,
            )
            self._emit(
                EventKind.DECISION_FAILURE,
                hand_index=self.hand_index,
                round=round_label,
                name=player.name,
                seat=player.seat_index,
                kind=e.kind,
                error=str(e),
                fallback=fallback.action,
            )
            return fallback

    # ── Helpers ──────────────────────────────────────────────

    def _seat_players(self) -> None:
        num_seats = self.table.num_seats()
        if len(self.roster) > num_seats:
            raise ConfigurationError(f"Too many players ({len(self.roster)}, max {num_seats})")
        for player in self.roster:
            if player.seat_index >= num_seats:
                raise ConfigurationError(
                    f"{player.name} is assigned seat {player.seat_index}, table has {num_seats}"
                )
        for player in self.roster:
            log.debug("Seating %s at %d", player.name, player.seat_index)
            self.table.sit_down(player.seat_index, self.initial_chips)

    def _funded_seats(self) -> list[int]:
        return [i for i, seat in enumerate(self.table.seats()) if seat and seat.total_chips > 0]

    def _chip_counts(self) -> dict[str, int]:
        seats = self.table.seats()
        return {p.name: seats[p.seat_index].total_chips if seats[p.seat_index] else 0 for p in self.roster}

    def _player_at(self, seat_index: int, round_label: str | None = None) -> Player:
        player = self.roster.at_seat(seat_index)
        if player is None:
            raise GameInvariantError(
                "Rules engine named a seat with no player",
                seat=seat_index,
                hand_index=self.hand_index,
                round=round_label,
            )
        return player

    def _emit(self, kind: EventKind, /, **payload: Any) -> dict[str, Any]:
        record = self.journal.emit(kind, **payload)
        if self.on_event:
            self.on_event(record)
        return record
