"""Cards and the dealing deck."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Self


class Suit(IntEnum):
    """Card suits. Values don't affect hand ranking."""

    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3

    @property
    def letter(self) -> str:
        return "cdhs"[self.value]

    @property
    def symbol(self) -> str:
        """Unicode symbol for the suit."""
        return ["♣", "♦", "♥", "♠"][self.value]


class Rank(IntEnum):
    """Card ranks. Higher value = higher rank."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    @property
    def symbol(self) -> str:
        return "23456789TJQKA"[self.value - 2]


_RANKS = {r.symbol: r for r in Rank} | {"10": Rank.TEN}
_SUITS = {s.letter: s for s in Suit}


@dataclass(frozen=True, slots=True)
class Card:
    """A playing card with rank and suit.

    ``str(card)`` is the two-character code (``"As"``, ``"Td"``) used in
    prompts, the journal and by the hand evaluator.
    """

    rank: Rank
    suit: Suit

    @property
    def code(self) -> str:
        return f"{self.rank.symbol}{self.suit.letter}"

    @property
    def pretty(self) -> str:
        return f"{self.rank.symbol}{self.suit.symbol}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Card({self.code})"

    def to_dict(self) -> dict[str, str]:
        return {"rank": self.rank.symbol, "suit": self.suit.name.lower()}

    @classmethod
    def from_str(cls, s: str) -> Self:
        """Parse a card from a string like 'As', 'Kh', 'Td' or '10d'."""
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s!r}")
        rank = _RANKS.get(s[:-1].upper())
        if rank is None:
            raise ValueError(f"Invalid rank: {s[:-1]!r}")
        suit = _SUITS.get(s[-1].lower())
        if suit is None:
            raise ValueError(f"Invalid suit: {s[-1]!r}")
        return cls(rank=rank, suit=suit)


def card(s: str) -> Card:
    """Shorthand for Card.from_str()."""
    return Card.from_str(s)


def cards(s: str) -> list[Card]:
    """Parse space or comma separated cards."""
    return [card(part) for part in s.replace(",", " ").split()]


@dataclass
class Deck:
    """A standard 52-card deck with its own random source.

    Passing a seed makes every shuffle, and so every hand, reproducible.
    """

    seed: int | None = None
    cards: list[Card] = field(default_factory=list)
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)
        if not self.cards:
            self.reset()

    def reset(self) -> None:
        """Reset to a full 52-card deck."""
        self.cards = [Card(rank, suit) for suit in Suit for rank in Rank]

    def shuffle(self) -> None:
        """Refill and shuffle."""
        self.reset()
        self._rng.shuffle(self.cards)

    def deal(self, n: int = 1) -> list[Card]:
        """Deal n cards from the top of the deck."""
        if n > len(self.cards):
            raise ValueError(f"Cannot deal {n} cards, only {len(self.cards)} remaining")
        return [self.cards.pop() for _ in range(n)]

    def __len__(self) -> int:
        return len(self.cards)
