"""Prompt templates (Jinja2) and rendering."""

from __future__ import annotations

import random
from collections.abc import Iterable
from typing import TYPE_CHECKING

from jinja2 import Environment, Template

from .errors import PromptError

if TYPE_CHECKING:
    from .roster import Player
    from .snapshot import Snapshot


def _random_number() -> str:
    return str(random.randint(0, 100))


def _cards(values: Iterable[object]) -> str:
    return ", ".join(str(v) for v in values) or "none"


def _make_environment() -> Environment:
    env = Environment(autoescape=False, keep_trailing_newline=True)
    env.globals["random_number"] = _random_number
    env.filters["cards"] = _cards
    return env


ENVIRONMENT = _make_environment()


def compile_template(source: str) -> Template:
    """Compile a player's template. Raises jinja2.TemplateSyntaxError."""
    return ENVIRONMENT.from_string(source)


def render_prompt(player: Player, snapshot: Snapshot) -> str:
    """Render ``player``'s template for this decision."""
    try:
        return player.template.render(**snapshot.to_template_data())
    except Exception as e:
        raise PromptError(f"Template for {player.name} failed to render: {e}") from e
