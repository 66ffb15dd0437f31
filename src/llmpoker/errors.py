"""Error taxonomy for llmpoker.

Only ``DecisionError`` subclasses are recovered inside a turn. Everything else
escapes the orchestration loop.
"""

from __future__ import annotations


class LLMPokerError(Exception):
    """Base class for all llmpoker errors."""


class ConfigurationError(LLMPokerError):
    """Bad roster, config file or environment. Fatal before any hand starts."""


class DecisionError(LLMPokerError):
    """A decision provider failed to produce a usable action for one turn."""

    kind = "decision"


class ProviderError(DecisionError):
    """Transport or API failure, including timeouts."""

    kind = "transport"


class InvalidDecisionError(DecisionError):
    """The provider answered, but the proposal is malformed or illegal."""

    kind = "validation"


class PromptError(DecisionError):
    """The player's prompt template failed to render."""

    kind = "prompt"


class RulesError(LLMPokerError):
    """The rules engine was asked to do something illegal."""


class GameInvariantError(LLMPokerError):
    """The rules engine reported a state the orchestrator cannot continue from."""

    def __init__(
        self,
        message: str,
        *,
        seat: int | None = None,
        hand_index: int | None = None,
        round: str | None = None,
    ) -> None:
        self.seat = seat
        self.hand_index = hand_index
        self.round = round
        context = [
            f"{label}={value}"
            for label, value in (("hand", hand_index), ("round", round), ("seat", seat))
            if value is not None
        ]
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)
