"""Tests for the game loop."""

import pytest

from llmpoker import orchestrator
from llmpoker.action import ActionKind, ChipRange, LegalActions
from llmpoker.errors import ConfigurationError, GameInvariantError, PromptError, ProviderError
from llmpoker.holdem import HoldemTable
from llmpoker.journal import EventLog, read_events
from llmpoker.orchestrator import Orchestrator
from llmpoker.prompts import render_prompt
from llmpoker.providers import PassiveProvider, PolicyProvider, ScriptedProvider
from llmpoker.roster import Player, Roster


def _roster(*names: str) -> Roster:
    return Roster([Player.from_template(name, i, "{{ player.name }}: {{ current_hand.round }}") for i, name in enumerate(names)])


def _make_game(tmp_path, provider, *names: str, num_seats: int | None = None, **kwargs) -> Orchestrator:
    """Heads-up by default: Alice on the button (small blind), Bob in the big blind."""
    names = names or ("Alice", "Bob")
    table = HoldemTable(50, 100, num_seats=num_seats or len(names), seed=1)
    journal = EventLog(tmp_path / "game.jsonl")
    return Orchestrator(table, _roster(*names), provider, journal, **kwargs)


def _events(game: Orchestrator) -> list[dict]:
    game.journal.close()
    return list(read_events(game.journal.path))


def _all_in(player, legal):
    """Shove whenever possible, otherwise call or check."""
    for kind in (ActionKind.RAISE, ActionKind.BET):
        if kind in legal:
            return {"action": kind.value, "bet_size": legal.chip_range.max}
    return {"action": "call" if ActionKind.CALL in legal else "check"}


class TestSingleHand:
    @pytest.mark.asyncio
    async def test_fold_preflop_journal(self, tmp_path):
        provider = ScriptedProvider({"Alice": [{"action": "fold"}]})
        game = _make_game(tmp_path, provider, max_hands=1)

        assert await game.run() is None
        events = _events(game)
        assert [e["event"] for e in events] == [
            "game_start",
            "hand_start",
            "player_action",
            "end_betting_round",
            "showdown",
            "hand_end",
            "game_end",
        ]

        action = events[2]
        assert action["name"] == "Alice"
        assert action["action"] == "fold"
        assert action["bet_size"] is None
        assert action["round"] == "preflop"
        assert len(action["cards"]) == 2

        assert events[3]["pots"] == [{"size": 150, "eligible_players": ["Bob"]}]
        [[winner]] = events[4]["winners"]
        assert (winner["name"], winner["amount"], winner["hand"]) == ("Bob", 150, None)
        assert [s["total_chips"] for s in events[5]["seats"]] == [950, 1050]
        assert events[6] == {
            "event": "game_end",
            "winner": None,
            "hands_played": 1,
            "reason": "hand_limit",
            "chip_counts": {"Alice": 950, "Bob": 1050},
        }
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_each_turn_gets_its_own_prompt(self, tmp_path):
        provider = ScriptedProvider({"Alice": [{"action": "call"}], "Bob": [{"action": "check"}]})
        game = _make_game(tmp_path, provider, max_hands=1)
        await game.run()
        assert [c[:2] for c in provider.calls[:3]] == [
            ("Alice", "Alice: preflop"),
            ("Bob", "Bob: preflop"),
            ("Bob", "Bob: flop"),
        ]


class TestDecisionFailures:
    @pytest.mark.asyncio
    async def test_provider_error_falls_back_to_fold(self, tmp_path):
        provider = ScriptedProvider({"Alice": [ProviderError("connection reset")]})
        game = _make_game(tmp_path, provider, max_hands=1)
        await game.run()

        events = _events(game)
        failure, action = events[2], events[3]
        assert failure["event"] == "decision_failure"
        assert failure["name"] == "Alice"
        assert failure["kind"] == "transport"
        assert failure["fallback"] == "fold"
        assert "connection reset" in failure["error"]
        assert action["event"] == "player_action"
        assert action["action"] == "fold"

    @pytest.mark.asyncio
    async def test_out_of_range_raise_falls_back(self, tmp_path):
        provider = ScriptedProvider({"Alice": [{"action": "raise", "bet_size": 5000}]})
        game = _make_game(tmp_path, provider, max_hands=1)
        await game.run()

        events = _events(game)
        assert events[2]["event"] == "decision_failure"
        assert events[2]["kind"] == "validation"
        assert events[3]["action"] == "fold"
        assert [s["total_chips"] for s in events[-2]["seats"]] == [950, 1050]

    @pytest.mark.asyncio
    async def test_unopened_failure_checks(self, tmp_path):
        """Bob has the option in the big blind, so his fallback is a check."""
        provider = ScriptedProvider({"Alice": [{"action": "call"}], "Bob": [ProviderError("timeout")]})
        game = _make_game(tmp_path, provider, max_hands=1)
        await game.run()

        events = _events(game)
        failure = next(e for e in events if e["event"] == "decision_failure")
        assert failure["name"] == "Bob"
        assert failure["fallback"] == "check"
        actions = [(e["name"], e["action"]) for e in events if e["event"] == "player_action"]
        assert actions[:2] == [("Alice", "call"), ("Bob", "check")]

    @pytest.mark.asyncio
    async def test_prompt_error_falls_back(self, tmp_path):
        def broken(player, snapshot):
            raise PromptError("bad template")

        provider = ScriptedProvider({})
        game = _make_game(tmp_path, provider, max_hands=1, render=broken)
        await game.run()

        events = _events(game)
        assert events[2]["kind"] == "prompt"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_provider_exception_falls_back(self, tmp_path):
        provider = ScriptedProvider({"Alice": [ConnectionError("socket reset")]})
        game = _make_game(tmp_path, provider, max_hands=1)
        assert await game.run() is None

        events = _events(game)
        assert events[2]["event"] == "decision_failure"
        assert events[2]["kind"] == "transport"
        assert "socket reset" in events[2]["error"]
        assert events[3]["action"] == "fold"
        assert events[-1]["event"] == "game_end"

    @pytest.mark.asyncio
    async def test_policy_bug_falls_back(self, tmp_path):
        def broken(player, legal):
            raise KeyError("boom")

        game = _make_game(tmp_path, PolicyProvider(broken), max_hands=1)
        await game.run()

        failures = [e for e in _events(game) if e["event"] == "decision_failure"]
        assert failures
        assert all(f["kind"] == "transport" for f in failures)

    @pytest.mark.asyncio
    async def test_template_runtime_error_falls_back(self, tmp_path):
        provider = ScriptedProvider({})
        table = HoldemTable(50, 100, num_seats=2, seed=1)
        roster = Roster([Player.from_template(name, i, "{{ 1 // 0 }}") for i, name in enumerate(("Alice", "Bob"))])
        game = Orchestrator(table, roster, provider, EventLog(tmp_path / "game.jsonl"), max_hands=1)
        await game.run()

        events = _events(game)
        assert events[2]["event"] == "decision_failure"
        assert events[2]["kind"] == "prompt"
        assert events[3]["action"] == "fold"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_no_passive_fallback(self, tmp_path, monkeypatch):
        provider = ScriptedProvider({"Alice": [ProviderError("down")]})
        game = _make_game(tmp_path, provider, max_hands=1)
        monkeypatch.setattr(
            game.table,
            "legal_actions",
            lambda: LegalActions((ActionKind.RAISE,), ChipRange(200, 1000)),
        )
        with pytest.raises(GameInvariantError):
            await game.run()


class TestWholeGame:
    @pytest.mark.asyncio
    async def test_plays_to_a_winner(self, tmp_path):
        provider = PolicyProvider(_all_in)
        seen = []
        game = _make_game(tmp_path, provider, "Alice", "Bob", "Carol", max_hands=50, on_event=seen.append)

        winner = await game.run()
        events = _events(game)
        assert seen == events

        end = events[-1]
        assert end["event"] == "game_end"
        if winner is not None:
            assert winner in ("Alice", "Bob", "Carol")
            assert end["winner"] == winner
            assert sum(s["total_chips"] for s in events[-2]["seats"] if s) == 3000
        else:
            assert end["reason"] == "hand_limit"
            assert sum(end["chip_counts"].values()) == 3000

    @pytest.mark.asyncio
    async def test_journal_is_consistent(self, tmp_path):
        provider = PolicyProvider(_all_in)
        game = _make_game(tmp_path, provider, "Alice", "Bob", "Carol", max_hands=10)
        await game.run()
        events = _events(game)

        assert events[0]["event"] == "game_start"
        assert [p["name"] for p in events[0]["players"]] == ["Alice", "Bob", "Carol"]
        assert sum(1 for e in events if e["event"] == "player_action") == len(provider.calls)

        starts = [e["hand_index"] for e in events if e["event"] == "hand_start"]
        ends = [e["hand_index"] for e in events if e["event"] == "hand_end"]
        assert starts == ends == list(range(1, len(starts) + 1))
        for e in events:
            if e["event"] == "hand_end":
                assert sum(s["total_chips"] for s in e["seats"] if s) == 3000

    @pytest.mark.asyncio
    async def test_render_called_once_per_decision(self, tmp_path):
        rendered = []

        def counting_render(player, snapshot):
            rendered.append(player.name)
            return render_prompt(player, snapshot)

        provider = PolicyProvider(_all_in)
        game = _make_game(tmp_path, provider, max_hands=5, render=counting_render)
        await game.run()
        assert rendered == [c[0] for c in provider.calls]


class TestFatalErrors:
    @pytest.mark.asyncio
    async def test_too_many_players(self, tmp_path):
        game = _make_game(tmp_path, ScriptedProvider({}), "Alice", "Bob", "Carol", num_seats=2)
        with pytest.raises(ConfigurationError):
            await game.run()
        assert _events(game) == []

    @pytest.mark.asyncio
    async def test_unknown_seat_to_act(self, tmp_path, monkeypatch):
        game = _make_game(tmp_path, ScriptedProvider({}), max_hands=1)
        monkeypatch.setattr(game.table, "player_to_act", lambda: 7)
        with pytest.raises(GameInvariantError) as excinfo:
            await game.run()
        assert excinfo.value.seat == 7
        assert excinfo.value.hand_index == 1
        assert [e["event"] for e in _events(game)] == ["game_start", "hand_start"]

    @pytest.mark.asyncio
    async def test_no_funded_seat_left(self, tmp_path, monkeypatch):
        game = _make_game(tmp_path, ScriptedProvider({"Alice": [{"action": "fold"}]}))

        def empty_table_after_hand(record):
            if record["event"] == "hand_end":
                monkeypatch.setattr(game.table, "seats", lambda: [None, None])

        game.on_event = empty_table_after_hand
        with pytest.raises(GameInvariantError) as excinfo:
            await game.run()
        assert excinfo.value.hand_index == 1
        assert "game_end" not in [e["event"] for e in _events(game)]

    @pytest.mark.asyncio
    async def test_betting_never_settles(self, tmp_path, monkeypatch):
        monkeypatch.setattr(orchestrator, "MAX_TURNS_PER_HAND", 5)
        game = _make_game(tmp_path, PassiveProvider(), max_hands=1)
        # Actions are accepted but never move the table on
        monkeypatch.setattr(game.table, "action_taken", lambda action, bet_size=None: None)

        with pytest.raises(GameInvariantError) as excinfo:
            await game.run()
        assert excinfo.value.hand_index == 1
        assert excinfo.value.round == "preflop"
        assert [e["event"] for e in _events(game)].count("player_action") == 5

    @pytest.mark.asyncio
    async def test_hand_never_finishes(self, tmp_path, monkeypatch):
        monkeypatch.setattr(orchestrator, "MAX_ROUNDS_PER_HAND", 3)
        game = _make_game(tmp_path, PassiveProvider(), max_hands=1)
        monkeypatch.setattr(game.table, "is_betting_round_in_progress", lambda: False)
        monkeypatch.setattr(game.table, "end_betting_round", lambda: None)

        with pytest.raises(GameInvariantError) as excinfo:
            await game.run()
        assert excinfo.value.hand_index == 1
        assert excinfo.value.round == "preflop"
        assert [e["event"] for e in _events(game)].count("end_betting_round") == 3


class TestTermination:
    @pytest.mark.asyncio
    async def test_heads_up_ends_with_one_funded_seat(self, tmp_path):
        """Both players shove every hand; the first hand that isn't split ends the game."""
        game = _make_game(tmp_path, PolicyProvider(_all_in))

        winner = await game.run()
        events = _events(game)
        assert winner in ("Alice", "Bob")
        assert [e["event"] for e in events].count("game_end") == 1
        assert events[-1] == {"event": "game_end", "winner": winner, "hands_played": game.hand_index}

        final = [s for s in events[-2]["seats"] if s]
        assert events[-2]["event"] == "hand_end"
        assert len(final) == 1
        assert final[0]["total_chips"] == 2000

    @pytest.mark.asyncio
    async def test_three_handed_game_ends(self, tmp_path):
        game = _make_game(tmp_path, PolicyProvider(_all_in), "Alice", "Bob", "Carol")

        winner = await game.run()
        events = _events(game)
        assert winner in ("Alice", "Bob", "Carol")
        assert [e["event"] for e in events].count("game_end") == 1
        final = [s for s in events[-2]["seats"] if s]
        assert len(final) == 1
        assert final[0]["total_chips"] == 3000
