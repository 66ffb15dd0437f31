"""Players and the roster they are loaded from."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from jinja2 import Template, TemplateSyntaxError

from .errors import ConfigurationError
from .prompts import compile_template

CONFIG_FILE = "config.json"
PROMPT_FILE = "prompt.j2"


@dataclass(frozen=True)
class Player:
    """A seated decision maker.

    Attributes:
        name: Display name, unique in the roster.
        seat_index: Table seat, fixed for the whole run.
        decision: Provider settings from the player's config (e.g. ``model``).
        template: Compiled prompt template.
        template_source: Raw template text.
    """

    name: str
    seat_index: int
    template: Template = field(repr=False, compare=False)
    template_source: str = field(default="", repr=False)
    decision: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "decision", MappingProxyType(dict(self.decision)))

    @classmethod
    def from_template(
        cls,
        name: str,
        seat_index: int,
        source: str,
        decision: Mapping[str, Any] | None = None,
    ) -> Player:
        return cls(
            name=name,
            seat_index=seat_index,
            template=compile_template(source),
            template_source=source,
            decision=decision or {},
        )


class Roster:
    """Players by seat. Names and seats are unique."""

    def __init__(self, players: list[Player]) -> None:
        self._by_seat: dict[int, Player] = {}
        self._by_name: dict[str, Player] = {}
        for player in players:
            if player.seat_index < 0:
                raise ConfigurationError(f"{player.name} has a negative seat index")
            if player.seat_index in self._by_seat:
                raise ConfigurationError(f"Seat {player.seat_index} assigned twice")
            if player.name in self._by_name:
                raise ConfigurationError(f"Duplicate player name {player.name!r}")
            self._by_seat[player.seat_index] = player
            self._by_name[player.name] = player

    def __iter__(self) -> Iterator[Player]:
        return iter(sorted(self._by_seat.values(), key=lambda p: p.seat_index))

    def __len__(self) -> int:
        return len(self._by_seat)

    def at_seat(self, seat_index: int) -> Player | None:
        return self._by_seat.get(seat_index)

    def by_name(self, name: str) -> Player | None:
        return self._by_name.get(name)

    def name_at(self, seat_index: int) -> str:
        player = self._by_seat.get(seat_index)
        return player.name if player else f"seat {seat_index}"


def load_roster(directory: str | Path) -> Roster:
    """Load every player sub-directory, in name order, onto consecutive seats.

    Each sub-directory holds ``config.json`` (``{"name": ..., "model": ...}``)
    and a ``prompt.j2`` template.
    """
    root = Path(directory)
    if not root.is_dir():
        raise ConfigurationError(f"Players directory not found: {root}")

    players: list[Player] = []
    for player_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        config_path = player_dir / CONFIG_FILE
        prompt_path = player_dir / PROMPT_FILE
        try:
            config = json.loads(config_path.read_text(encoding="utf-8"))
            source = prompt_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigurationError(f"{player_dir.name}: missing {Path(e.filename).name}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{config_path}: {e}") from e

        if not isinstance(config, dict) or not config.get("name"):
            raise ConfigurationError(f"{config_path}: a player needs a name")
        decision = {k: v for k, v in config.items() if k != "name"}
        try:
            player = Player.from_template(config["name"], len(players), source, decision)
        except TemplateSyntaxError as e:
            raise ConfigurationError(f"{prompt_path}:{e.lineno}: {e.message}") from e
        players.append(player)

    if not players:
        raise ConfigurationError(f"No players found in {root}")
    return Roster(players)
