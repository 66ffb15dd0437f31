"""Tests for prompt rendering."""

import pytest

from llmpoker.errors import PromptError
from llmpoker.holdem import HoldemTable
from llmpoker.prompts import compile_template, render_prompt
from llmpoker.roster import Player, Roster
from llmpoker.snapshot import build_snapshot


def _snapshot_for(source: str):
    table = HoldemTable(50, 100, num_seats=2, seed=9)
    table.sit_down(0, 1000)
    table.sit_down(1, 1000)
    players = [Player.from_template("Alice", 0, source), Player.from_template("Bob", 1, "x")]
    roster = Roster(players)
    table.start_hand()
    alice = roster.by_name("Alice")
    return alice, build_snapshot(table, roster, alice, table.legal_actions()), table


class TestRenderPrompt:
    def test_renders_fields(self):
        source = "{{ player.name }} {{ current_hand.round }} {{ current_hand.legal_actions.actions | join('/') }}"
        player, snap, _ = _snapshot_for(source)
        assert render_prompt(player, snap) == "Alice preflop fold/call/raise"

    def test_cards_filter(self):
        player, snap, table = _snapshot_for("{{ current_hand.hole_cards | cards }}|{{ current_hand.community_cards | cards }}")
        hole = ", ".join(str(c) for c in table.hole_cards()[0])
        assert render_prompt(player, snap) == f"{hole}|none"

    def test_random_number_helper(self):
        player, snap, _ = _snapshot_for("{{ random_number() }}")
        assert 0 <= int(render_prompt(player, snap)) <= 100

    def test_render_failure_is_prompt_error(self):
        player, snap, _ = _snapshot_for("{{ current_hand.nothing.deeper }}")
        with pytest.raises(PromptError):
            render_prompt(player, snap)

    def test_loops_over_stacks(self):
        source = "{% for s in game.player_stacks %}{{ s.name }}={{ s.total_chips }};{% endfor %}"
        player, snap, _ = _snapshot_for(source)
        assert render_prompt(player, snap) == "Alice=1000;Bob=1000;"

    def test_compile_keeps_trailing_newline(self):
        assert compile_template("hi\n").render() == "hi\n"

    def test_runtime_error_is_prompt_error(self):
        """Errors raised while evaluating the template are wrapped too."""
        player, snap, _ = _snapshot_for("{{ 1 // 0 }}")
        with pytest.raises(PromptError, match="Alice"):
            render_prompt(player, snap)
