"""Tests for game setup and the turn service.

Tests cover:
- New games: map, spawns, starting tribes
- Advancing stored games with player and AI orders
- Failed and timed-out turns leave the stored snapshot unchanged
- CLI commands end to end
"""

import json
import threading
import time

import pytest

from tribes import cli
from tribes.engine import orchestrator
from tribes.models.state import AIType
from tribes.parameters import INITIAL_TROOPS, VISIBILITY_RANGE
from tribes.services import GameNotFoundError, TurnService, new_game, starting_locations
from tribes.services import turn_service
from tribes.spatial import hex_distance
from tribes.storage import FileGameStateRepository


class TestNewGame:
    """Tests for new_game."""

    def test_tribes_start_at_spawns(self):
        state = new_game(["Ravagers", "Dustwalkers", "Ironhides"], radius=6, seed=2)
        assert [t.id for t in state.tribes] == ["tribe-1", "tribe-2", "tribe-3"]
        assert [t.location for t in state.tribes] == starting_locations(6, 3)
        for tribe in state.tribes:
            home = tribe.garrisons[tribe.location]
            assert home.troops == INITIAL_TROOPS
            assert [c.name for c in home.chiefs] == [f"{tribe.name} Chief"]
            assert state.get_hex(tribe.location).poi is None
            assert all(hex_distance(tribe.location, k) <= VISIBILITY_RANGE for k in tribe.explored_hexes)

    def test_map_is_a_disk(self):
        state = new_game(["A", "B"], radius=3)
        assert len(state.map_data) == 37

    def test_same_seed_same_map(self):
        assert new_game(["A", "B"], seed=5).map_data == new_game(["A", "B"], seed=5).map_data

    def test_ai_tribes(self):
        state = new_game(["A", "B"], ai_types={"B": AIType.BANDIT})
        assert not state.tribes[0].is_ai
        assert state.tribes[1].is_ai and state.tribes[1].ai_type == AIType.BANDIT

    def test_too_many_tribes(self):
        with pytest.raises(ValueError, match="At most 6"):
            new_game([str(i) for i in range(7)])


class TestTurnService:
    """Tests for TurnService."""

    @pytest.fixture
    def repo(self, tmp_path):
        return FileGameStateRepository(tmp_path / "games")

    @pytest.fixture
    def service(self, repo):
        with TurnService(repo, timeout=10) as svc:
            yield svc

    def test_advance_saves_next_turn(self, repo, service):
        repo.save_game("demo", new_game(["A", "B"], ai_types={"B": AIType.DEFENSIVE}))
        result = service.advance("demo", {"tribe-1": []})
        assert result.success
        assert repo.load_game("demo").turn == 2

    def test_ai_orders_do_not_override_submitted(self, repo, service, monkeypatch):
        repo.save_game("demo", new_game(["A", "B"], ai_types={"A": AIType.AGGRESSIVE, "B": AIType.DEFENSIVE}))
        seen = {}

        def spy(state, orders):
            seen.update(orders)
            return orchestrator.resolve_turn(state, orders)

        monkeypatch.setattr(turn_service, "resolve_turn", spy)
        service.advance("demo", {"tribe-1": []})
        assert seen["tribe-1"] == []
        assert "tribe-2" in seen

    def test_missing_game(self, service):
        with pytest.raises(GameNotFoundError):
            service.advance("nope")

    def test_failed_turn_not_saved(self, repo, service, monkeypatch):
        repo.save_game("demo", new_game(["A", "B"]))

        def broken(ctx):
            raise RuntimeError("boom")

        monkeypatch.setattr(orchestrator, "apply_upkeep", broken)
        result = service.advance("demo", {"tribe-1": []})
        assert not result.success
        assert repo.load_game("demo").turn == 1

    def test_timeout_not_saved(self, repo, monkeypatch):
        repo.save_game("demo", new_game(["A", "B"]))
        release = threading.Event()

        def slow(state, orders):
            release.wait(5)
            return orchestrator.resolve_turn(state, orders)

        monkeypatch.setattr(turn_service, "resolve_turn", slow)
        with TurnService(repo, timeout=0.05) as svc:
            started = time.monotonic()
            result = svc.advance("demo", {})
            assert time.monotonic() - started < 5
            release.set()
        assert not result.success
        assert "exceeded" in str(result.error)
        assert repo.load_game("demo").turn == 1


class TestCLI:
    """End-to-end tests for the command-line interface."""

    @pytest.fixture(autouse=True)
    def games_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TRIBES_STORAGE_BACKEND", "file")
        monkeypatch.setenv("TRIBES_GAMES_PATH", str(tmp_path / "games"))
        return tmp_path

    def test_new_resolve_show(self, games_dir, capsys):
        assert cli.main(["new", "demo", "--tribes", "Ravagers", "Dustwalkers", "--ai", "Dustwalkers=Bandit"]) == 0
        assert cli.main(["new", "demo", "--tribes", "X", "Y"]) == 1

        orders = games_dir / "orders.json"
        orders.write_text(json.dumps({"tribe-1": [{"action_type": "Set Rations", "ration_level": "Hard"}]}))
        assert cli.main(["resolve", "demo", "--actions", str(orders)]) == 0

        capsys.readouterr()
        assert cli.main(["show", "demo", "--tribe", "tribe-1"]) == 0
        out = capsys.readouterr().out
        assert "Turn 2" in out
        assert "Rations set to Hard" in out

    def test_simulate_and_list(self, capsys):
        cli.main(["new", "demo", "--tribes", "A", "B", "--ai", "A=Scavenger", "B=Trader"])
        assert cli.main(["simulate", "demo", "--turns", "3"]) == 0
        capsys.readouterr()
        assert cli.main(["list"]) == 0
        assert "demo: turn 4" in capsys.readouterr().out

    def test_show_json(self, capsys):
        cli.main(["new", "demo", "--tribes", "A", "B"])
        capsys.readouterr()
        cli.main(["show", "demo", "--json"])
        assert json.loads(capsys.readouterr().out)["turn"] == 1

    def test_missing_game(self, capsys):
        assert cli.main(["show", "ghost"]) == 1
        assert cli.main(["resolve", "ghost"]) == 1
