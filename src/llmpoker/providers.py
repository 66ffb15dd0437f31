"""Decision providers: where a seat's action comes from.

Every provider answers one question, "what does this player do now?", through
``DecisionProvider.get_action``. Providers never retry and never touch the
table; any failure surfaces as a ``DecisionError`` for the orchestrator's
fallback policy.
"""

from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from .action import LegalActions, TakenAction, fallback_action, validate_action
from .errors import DecisionError, InvalidDecisionError, ProviderError
from .roster import Player

log = logging.getLogger(__name__)

ACTION_TOOL_NAME = "take_action"
DEFAULT_MODEL = "claude-3-5-haiku-latest"

_SYSTEM_PROMPT = (
    "You are {name}, an expert poker player making decisions in a Texas Hold'em game."
)

Proposal = Mapping[str, Any]


def action_schema(legal: LegalActions) -> dict[str, Any]:
    """JSON schema for a proposal, restricted to what is legal right now."""
    properties: dict[str, Any] = {
        "action": {
            "type": "string",
            "enum": [a.value for a in legal.actions],
            "description": "Action to take",
        },
    }
    if legal.chip_range is not None:
        properties["bet_size"] = {
            "type": "number",
            "minimum": legal.chip_range.min,
            "maximum": legal.chip_range.max,
            "description": 'Total to bet or raise to. Required for "bet" and "raise" actions.',
        }
    return {"type": "object", "properties": properties, "required": ["action"]}


def action_tool(legal: LegalActions) -> dict[str, Any]:
    return {
        "name": ACTION_TOOL_NAME,
        "description": "Take an action on the poker table",
        "input_schema": action_schema(legal),
    }


class DecisionProvider(ABC):
    """Source of decisions for one or more seats.

    Subclasses implement ``propose``; ``get_action`` bounds it with
    ``timeout`` and validates the result against the offered actions.
    """

    timeout: float | None = None

    @abstractmethod
    async def propose(self, player: Player, prompt: str, legal: LegalActions) -> Proposal:
        """Return the raw structured proposal, e.g. ``{"action": "raise", "bet_size": 300}``.

        Raises:
            ProviderError: Transport or API failure.
            InvalidDecisionError: No well-formed proposal in the response.
        """

    async def get_action(self, player: Player, prompt: str, legal: LegalActions) -> TakenAction:
        try:
            async with asyncio.timeout(self.timeout):
                raw = await self.propose(player, prompt, legal)
        except TimeoutError:
            raise ProviderError(f"No decision for {player.name} within {self.timeout}s") from None
        except DecisionError:
            raise
        except Exception as e:
            # Whatever the provider raises costs only this turn
            raise ProviderError(f"{type(e).__name__}: {e}") from e
        log.debug("%s proposed %r", player.name, raw)
        return validate_action(raw, legal)


class AnthropicProvider(DecisionProvider):
    """Decisions from Claude through the Messages API and a ``take_action`` tool.

    The player's ``decision["model"]`` overrides the default model.
    """

    def __init__(
        self,
        client: AsyncAnthropic | None = None,
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float | None = 60.0,
    ) -> None:
        # Exactly one API call per turn
        self._client = client if client is not None else AsyncAnthropic(max_retries=0)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    async def propose(self, player: Player, prompt: str, legal: LegalActions) -> Proposal:
        model = player.decision.get("model", self.model)
        log.debug("Calling %s for %s with prompt:\n%s", model, player.name, prompt)
        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                tools=[action_tool(legal)],
                system=_SYSTEM_PROMPT.format(name=player.name),
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise ProviderError(f"{type(e).__name__}: {e}") from e

        block = next(
            (
                b
                for b in response.content
                if getattr(b, "type", None) == "tool_use" and getattr(b, "name", None) == ACTION_TOOL_NAME
            ),
            None,
        )
        if block is None:
            text = " ".join(b.text for b in response.content if getattr(b, "type", None) == "text")
            raise InvalidDecisionError(f"No {ACTION_TOOL_NAME} call in response: {text[:200]!r}")
        return block.input


class ScriptedProvider(DecisionProvider):
    """Replays fixed proposals per player. Exception instances in a script are raised."""

    def __init__(self, scripts: Mapping[str, Iterable[Proposal | BaseException]]) -> None:
        self._scripts = {name: deque(items) for name, items in scripts.items()}
        self.calls: list[tuple[str, str, LegalActions]] = []

    async def propose(self, player: Player, prompt: str, legal: LegalActions) -> Proposal:
        self.calls.append((player.name, prompt, legal))
        script = self._scripts.get(player.name)
        if not script:
            raise ProviderError(f"Script for {player.name} is exhausted")
        item = script.popleft()
        if isinstance(item, BaseException):
            raise item
        return item


class PolicyProvider(DecisionProvider):
    """Proposals computed by a plain function of the player and legal actions."""

    def __init__(self, policy: Callable[[Player, LegalActions], Proposal]) -> None:
        self._policy = policy
        self.calls: list[tuple[str, str, LegalActions]] = []

    async def propose(self, player: Player, prompt: str, legal: LegalActions) -> Proposal:
        self.calls.append((player.name, prompt, legal))
        return self._policy(player, legal)


class RandomProvider(DecisionProvider):
    """Uniformly random legal actions. Useful for offline runs."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    async def propose(self, player: Player, prompt: str, legal: LegalActions) -> Proposal:
        kind = self._rng.choice(legal.actions)
        proposal: dict[str, Any] = {"action": kind.value}
        if kind.is_aggressive and legal.chip_range is not None:
            proposal["bet_size"] = self._rng.randint(legal.chip_range.min, legal.chip_range.max)
        return proposal


class PassiveProvider(DecisionProvider):
    """Always the fallback action: fold when facing a bet, otherwise check."""

    async def propose(self, player: Player, prompt: str, legal: LegalActions) -> Proposal:
        action = fallback_action(legal)
        if action is None:
            raise InvalidDecisionError("No passive action is legal")
        return {"action": action.action.value}
