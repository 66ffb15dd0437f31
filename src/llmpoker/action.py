"""Action types, legality checks and the fallback choice."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InvalidDecisionError


class ActionKind(str, Enum):
    """Possible actions a player can take."""

    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"

    @property
    def is_aggressive(self) -> bool:
        """Bets and raises carry a size; nothing else does."""
        return self in (ActionKind.BET, ActionKind.RAISE)


# Cheapest first.
PASSIVE_PREFERENCE = (ActionKind.FOLD, ActionKind.CHECK, ActionKind.CALL)


@dataclass(frozen=True)
class ChipRange:
    """Inclusive bounds on a bet or raise-to size."""

    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < self.min:
            raise ValueError(f"Invalid chip range [{self.min}, {self.max}]")

    def __contains__(self, amount: object) -> bool:
        return isinstance(amount, int) and self.min <= amount <= self.max

    def to_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class LegalActions:
    """What the seat to act may do right now.

    Attributes:
        actions: Offered action kinds, in the rules engine's order.
        chip_range: Bet/raise-to bounds, present iff a bet or raise is offered.
    """

    actions: tuple[ActionKind, ...]
    chip_range: ChipRange | None = None

    def __post_init__(self) -> None:
        if not self.actions:
            raise ValueError("LegalActions must offer at least one action")
        aggressive = any(a.is_aggressive for a in self.actions)
        if aggressive != (self.chip_range is not None):
            raise ValueError("chip_range must be present iff bet or raise is offered")

    def __contains__(self, action: object) -> bool:
        return action in self.actions

    def to_dict(self) -> dict[str, Any]:
        return {
            "actions": [a.value for a in self.actions],
            "chip_range": self.chip_range.to_dict() if self.chip_range else None,
        }


@dataclass(frozen=True)
class TakenAction:
    """A resolved decision.

    Attributes:
        action: The action kind.
        bet_size: Raise-to total for bets and raises, None otherwise.
    """

    action: ActionKind
    bet_size: int | None = None

    def __post_init__(self) -> None:
        if self.action.is_aggressive != (self.bet_size is not None):
            raise ValueError(f"bet_size must be given iff action is bet or raise, got {self}")

    def __str__(self) -> str:
        if self.bet_size is not None:
            return f"{self.action.value} {self.bet_size}"
        return self.action.value


def _parse_bet_size(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise InvalidDecisionError(f"bet_size must be a number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise InvalidDecisionError(f"bet_size must be a number, got {value!r}") from None
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidDecisionError(f"bet_size must be a whole number of chips, got {value!r}")
        return int(value)
    raise InvalidDecisionError(f"bet_size must be a number, got {value!r}")


def validate_action(raw: Any, legal: LegalActions) -> TakenAction:
    """Turn a raw provider proposal into a TakenAction, or reject it.

    Out-of-range sizes are rejected, never clamped. A size sent with a
    non-aggressive action is ignored.

    Raises:
        InvalidDecisionError: The proposal is malformed or not legal.
    """
    if not isinstance(raw, Mapping):
        raise InvalidDecisionError(f"Proposal must be an object, got {type(raw).__name__}")

    try:
        action = ActionKind(raw.get("action"))
    except ValueError:
        raise InvalidDecisionError(f"Unknown action {raw.get('action')!r}") from None
    if action not in legal:
        offered = ", ".join(a.value for a in legal.actions)
        raise InvalidDecisionError(f"Action {action.value!r} is not legal (offered: {offered})")

    if not action.is_aggressive:
        return TakenAction(action)

    if "bet_size" not in raw:
        raise InvalidDecisionError(f"{action.value} requires a bet_size")
    bet_size = _parse_bet_size(raw["bet_size"])
    chip_range = legal.chip_range
    if chip_range is None or bet_size not in chip_range:
        raise InvalidDecisionError(
            f"bet_size {bet_size} outside allowed range "
            f"[{chip_range.min if chip_range else '-'}, {chip_range.max if chip_range else '-'}]"
        )
    return TakenAction(action, bet_size)


def fallback_action(legal: LegalActions) -> TakenAction | None:
    """The safe default: fold if legal, else the cheapest passive action."""
    for kind in PASSIVE_PREFERENCE:
        if kind in legal:
            return TakenAction(kind)
    return None
