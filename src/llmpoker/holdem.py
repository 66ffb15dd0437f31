"""No-Limit Texas Hold'em table implementing the GameRules surface.

Chip and card state lives here and only here. Hand ranking is delegated to
``treys``.
"""

from __future__ import annotations

from dataclasses import dataclass

from treys import Card as TreysCard
from treys import Evaluator

from .action import ActionKind, ChipRange, LegalActions
from .cards import Card, Deck
from .errors import RulesError
from .rules import Pot, Seat, Winner

STREETS = ("preflop", "flop", "turn", "river")
BOARD_CARDS = {"flop": 3, "turn": 1, "river": 1}


@dataclass
class _SeatState:
    stack: int
    bet_size: int = 0


class HoldemTable:
    """A single table. Drive it with start_hand / action_taken / end_betting_round / showdown.

    Bet and raise sizes are raise-to totals for the current round, as are the
    bounds of the offered chip range.
    """

    def __init__(
        self,
        small_blind: int,
        big_blind: int,
        num_seats: int = 9,
        seed: int | None = None,
    ) -> None:
        if not 0 < small_blind <= big_blind:
            raise ValueError(f"Invalid blinds {small_blind}/{big_blind}")
        if num_seats < 2:
            raise ValueError("A table needs at least two seats")
        self.small_blind = small_blind
        self.big_blind = big_blind
        self._num_seats = num_seats
        self._seats: list[_SeatState | None] = [None] * num_seats
        self._deck = Deck(seed=seed)
        self._evaluator = Evaluator()

        self._button: int | None = None
        self._hand_in_progress = False
        self._round_index = 0
        self._round_open = False
        self._rounds_completed = False
        self._pending: list[int] = []
        self._in_hand: list[int] = []
        self._folded: set[int] = set()
        self._contributed: dict[int, int] = {}
        self._hole: dict[int, tuple[Card, ...]] = {}
        self._board: list[Card] = []
        self._pots: list[Pot] = []
        self._winners: list[list[Winner]] = []
        self._biggest_bet = 0
        self._min_raise = big_blind

    # ── Queries ──────────────────────────────────────────────

    def num_seats(self) -> int:
        return self._num_seats

    def seats(self) -> list[Seat | None]:
        return [Seat(s.stack, s.bet_size) if s else None for s in self._seats]

    @property
    def button(self) -> int | None:
        return self._button

    def is_hand_in_progress(self) -> bool:
        return self._hand_in_progress

    def is_betting_round_in_progress(self) -> bool:
        return self._hand_in_progress and bool(self._pending)

    def are_betting_rounds_completed(self) -> bool:
        return self._rounds_completed

    def player_to_act(self) -> int:
        if not self.is_betting_round_in_progress():
            raise RulesError("No betting round in progress")
        return self._pending[0]

    def round_of_betting(self) -> str:
        if not self._hand_in_progress:
            raise RulesError("No hand in progress")
        return STREETS[self._round_index]

    def hole_cards(self) -> list[tuple[Card, ...] | None]:
        return [self._hole.get(i) for i in range(self._num_seats)]

    def community_cards(self) -> list[Card]:
        return list(self._board)

    def pots(self) -> list[Pot]:
        return list(self._pots)

    def winners(self) -> list[list[Winner]]:
        return [list(w) for w in self._winners]

    def legal_actions(self) -> LegalActions:
        seat_index = self.player_to_act()
        seat = self._seat(seat_index)
        to_call = self._biggest_bet - seat.bet_size

        actions = [ActionKind.FOLD, ActionKind.CALL] if to_call > 0 else [ActionKind.CHECK]

        total = seat.stack + seat.bet_size
        others_can_act = any(
            self._is_active(s) for s in self._in_hand if s != seat_index
        )
        chip_range = None
        if total > self._biggest_bet and others_can_act:
            actions.append(ActionKind.BET if self._biggest_bet == 0 else ActionKind.RAISE)
            chip_range = ChipRange(min(self._biggest_bet + self._min_raise, total), total)

        return LegalActions(tuple(actions), chip_range)

    # ── Commands ─────────────────────────────────────────────

    def sit_down(self, seat_index: int, chips: int) -> None:
        if self._hand_in_progress:
            raise RulesError("Cannot sit down during a hand")
        if not 0 <= seat_index < self._num_seats:
            raise RulesError(f"Seat {seat_index} does not exist (table has {self._num_seats})")
        if self._seats[seat_index] is not None:
            raise RulesError(f"Seat {seat_index} is taken")
        if chips <= 0:
            raise RulesError("A player must sit down with chips")
        self._seats[seat_index] = _SeatState(stack=chips)

    def start_hand(self) -> None:
        """Move the button, post blinds, deal hole cards and open pre-flop betting."""
        if self._hand_in_progress:
            raise RulesError("A hand is already in progress")
        funded = [i for i, s in enumerate(self._seats) if s and s.stack > 0]
        if len(funded) < 2:
            raise RulesError("At least 2 funded seats are needed to start a hand")

        if self._button is None:
            self._button = funded[0]
        else:
            self._button = self._clockwise_after(self._button, funded)[0]

        self._in_hand = funded
        self._folded = set()
        self._contributed = {s: 0 for s in funded}
        self._board = []
        self._pots = []
        self._winners = []
        self._round_index = 0
        self._rounds_completed = False
        self._deck.shuffle()

        order = self._clockwise_after(self._button, funded)
        if len(funded) == 2:
            # Heads-up: button posts the small blind
            sb_seat, bb_seat = self._button, order[0]
        else:
            sb_seat, bb_seat = order[0], order[1]
        self._move(sb_seat, min(self.small_blind, self._seat(sb_seat).stack))
        self._move(bb_seat, min(self.big_blind, self._seat(bb_seat).stack))

        self._hole = {s: tuple(self._deck.deal(2)) for s in order}
        self._hand_in_progress = True
        self._biggest_bet = max(self._seat(sb_seat).bet_size, self._seat(bb_seat).bet_size)
        self._min_raise = self.big_blind
        self._start_round(self._clockwise_after(bb_seat, funded))

    def action_taken(self, action: ActionKind, bet_size: int | None = None) -> None:
        seat_index = self.player_to_act()
        legal = self.legal_actions()
        if action not in legal:
            raise RulesError(f"Seat {seat_index} cannot {action.value}")
        if action.is_aggressive:
            if bet_size is None or legal.chip_range is None or bet_size not in legal.chip_range:
                raise RulesError(f"Illegal {action.value} size {bet_size} for seat {seat_index}")
        elif bet_size is not None:
            raise RulesError(f"{action.value} takes no bet size")

        seat = self._seat(seat_index)
        self._pending.pop(0)

        if action == ActionKind.FOLD:
            self._folded.add(seat_index)

        elif action == ActionKind.CALL:
            self._move(seat_index, min(self._biggest_bet - seat.bet_size, seat.stack))

        elif action.is_aggressive:
            assert bet_size is not None
            self._move(seat_index, bet_size - seat.bet_size)
            increment = bet_size - self._biggest_bet
            self._min_raise = max(self._min_raise, increment)
            self._biggest_bet = bet_size
            # A bet re-opens the action for everyone still able to act
            self._pending = [
                s
                for s in self._clockwise_after(seat_index, self._in_hand)
                if s != seat_index and self._is_active(s)
            ]

        if len(self._contenders()) <= 1:
            self._pending = []

    def end_betting_round(self) -> None:
        """Collect bets into pots, then deal the next street or finish betting."""
        if not self._hand_in_progress or not self._round_open:
            raise RulesError("No betting round to end")
        if self._pending:
            raise RulesError("Betting round still has players to act")
        self._round_open = False

        for s in self._in_hand:
            seat = self._seat(s)
            self._contributed[s] += seat.bet_size
            seat.bet_size = 0
        self._pots = self._collect_pots()
        self._biggest_bet = 0
        self._min_raise = self.big_blind

        contenders = self._contenders()
        can_bet = [s for s in contenders if self._seat(s).stack > 0]
        if len(contenders) <= 1 or self._round_index == len(STREETS) - 1 or len(can_bet) < 2:
            self._rounds_completed = True
            if len(contenders) > 1:
                for street in STREETS[self._round_index + 1 :]:
                    self._deal_street(street)
            return

        self._round_index += 1
        self._deal_street(STREETS[self._round_index])
        self._start_round(self._clockwise_after(self._button, self._in_hand))

    def showdown(self) -> None:
        """Award every pot, end the hand and stand up busted seats."""
        if not self._hand_in_progress or not self._rounds_completed:
            raise RulesError("Betting is not finished")

        contenders = self._contenders()
        scores: dict[int, int] = {}
        if len(contenders) > 1:
            board = [TreysCard.new(c.code) for c in self._board]
            for s in contenders:
                hand = [TreysCard.new(c.code) for c in self._hole[s]]
                scores[s] = self._evaluator.evaluate(hand, board)

        assert self._button is not None
        seat_order = self._clockwise_after(self._button, self._in_hand)
        results: list[list[Winner]] = []
        for pot in self._pots:
            eligible = [s for s in pot.eligible_players if s in contenders] or contenders
            if scores:
                # treys: lower score is a stronger hand
                best = min(scores[s] for s in eligible)
                eligible = [s for s in eligible if scores[s] == best]
            ordered = [s for s in seat_order if s in eligible]

            share, remainder = divmod(pot.size, len(ordered))
            pot_winners: list[Winner] = []
            for i, s in enumerate(ordered):
                amount = share + (1 if i < remainder else 0)
                self._seat(s).stack += amount
                pot_winners.append(
                    Winner(
                        seat_index=s,
                        hole_cards=self._hole[s],
                        hand=self._hand_name(scores[s]) if s in scores else None,
                        amount=amount,
                    )
                )
            results.append(pot_winners)

        self._winners = results
        self._hand_in_progress = False
        self._pending = []
        for i, seat in enumerate(self._seats):
            if seat is not None and seat.stack == 0:
                self._seats[i] = None

    # ── Internals ────────────────────────────────────────────

    def _seat(self, seat_index: int) -> _SeatState:
        seat = self._seats[seat_index]
        if seat is None:
            raise RulesError(f"Seat {seat_index} is empty")
        return seat

    def _move(self, seat_index: int, amount: int) -> None:
        """Move chips from a stack into the current bet."""
        seat = self._seat(seat_index)
        if amount > seat.stack:
            raise RulesError(f"Seat {seat_index} cannot bet {amount} with {seat.stack}")
        seat.stack -= amount
        seat.bet_size += amount

    def _clockwise_after(self, seat_index: int, seats: list[int]) -> list[int]:
        """``seats`` ordered clockwise, starting from the first seat after ``seat_index``."""
        return sorted(seats, key=lambda s: (s - seat_index - 1) % self._num_seats)

    def _contenders(self) -> list[int]:
        return [s for s in self._in_hand if s not in self._folded]

    def _is_active(self, seat_index: int) -> bool:
        """Still in the hand and able to put more chips in."""
        return seat_index in self._in_hand and seat_index not in self._folded and (
            self._seat(seat_index).stack > 0
        )

    def _start_round(self, order: list[int]) -> None:
        self._round_open = True
        active = [s for s in order if self._is_active(s)]
        owes = any(self._seat(s).bet_size < self._biggest_bet for s in active)
        # Nobody to bet against: the round has no decisions in it
        self._pending = active if len(active) >= 2 or owes else []

    def _deal_street(self, street: str) -> None:
        self._deck.deal(1)  # burn
        self._board.extend(self._deck.deal(BOARD_CARDS[street]))

    def _collect_pots(self) -> list[Pot]:
        """Main pot and side pots from each seat's total contribution.

        Each contribution level forms a pot that the non-folded seats who
        reached that level can win. Folded chips stay in the pot.
        """
        contributions = {s: c for s, c in self._contributed.items() if c > 0}
        pots: list[Pot] = []
        prev_level = 0
        for level in sorted(set(contributions.values())):
            size = sum(min(c, level) - min(c, prev_level) for c in contributions.values())
            eligible = tuple(
                s for s in self._contenders() if contributions.get(s, 0) >= level
            )
            prev_level = level
            if size == 0:
                continue
            if pots and (not eligible or pots[-1].eligible_players == eligible):
                pots[-1] = Pot(pots[-1].size + size, pots[-1].eligible_players)
            else:
                pots.append(Pot(size, eligible))
        return pots

    def _hand_name(self, score: int) -> str:
        return self._evaluator.class_to_string(self._evaluator.get_rank_class(score))
