"""llmpoker - Texas Hold'em games played by language models."""

__version__ = "0.1.0"

from .action import ActionKind, ChipRange, LegalActions, TakenAction, fallback_action, validate_action
from .cards import Card, Deck, Rank, Suit, card, cards
from .config import Config
from .errors import (
    ConfigurationError,
    DecisionError,
    GameInvariantError,
    InvalidDecisionError,
    LLMPokerError,
    PromptError,
    ProviderError,
    RulesError,
)
from .holdem import HoldemTable
from .journal import EventKind, EventLog, journal_path, read_events
from .orchestrator import Orchestrator
from .providers import (
    AnthropicProvider,
    DecisionProvider,
    PassiveProvider,
    PolicyProvider,
    RandomProvider,
    ScriptedProvider,
)
from .roster import Player, Roster, load_roster
from .rules import GameRules, Pot, Seat, Winner
from .snapshot import Snapshot, build_snapshot

__all__ = [
    "ActionKind",
    "AnthropicProvider",
    "Card",
    "ChipRange",
    "Config",
    "ConfigurationError",
    "DecisionError",
    "DecisionProvider",
    "Deck",
    "EventKind",
    "EventLog",
    "GameInvariantError",
    "GameRules",
    "HoldemTable",
    "InvalidDecisionError",
    "LLMPokerError",
    "LegalActions",
    "Orchestrator",
    "PassiveProvider",
    "Player",
    "PolicyProvider",
    "Pot",
    "PromptError",
    "ProviderError",
    "RandomProvider",
    "Rank",
    "Roster",
    "RulesError",
    "ScriptedProvider",
    "Seat",
    "Snapshot",
    "Suit",
    "TakenAction",
    "Winner",
    "build_snapshot",
    "card",
    "cards",
    "fallback_action",
    "journal_path",
    "load_roster",
    "read_events",
    "validate_action",
]
