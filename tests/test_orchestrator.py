"""Tests for the turn orchestrator.

Tests cover:
- A committed turn advances the clock and records history
- The input state is never mutated
- Malformed actions are reported without failing the turn
- Any failure leaves the previous state in place
- Invariant checks
- Determinism for a fixed seed
- Scoring and history ranks
"""

import pytest

from tribes.engine import orchestrator
from tribes.engine.orchestrator import (
    InvariantViolation,
    TurnPhase,
    build_history_record,
    check_invariants,
    resolve_turn,
    tribe_score,
)
from tribes.models.actions import RecruitAction, RestAction
from tribes.models.state import DiplomaticRelation, DiplomaticStatus

HOME_A = "050.050"
HOME_B = "046.050"


class TestResolveTurn:
    """Tests for resolve_turn."""

    def test_commits_next_turn(self, state):
        result = resolve_turn(state, {"alpha": [RestAction(start_location=HOME_A)], "beta": []})
        assert result.success
        assert result.phase == TurnPhase.COMMITTED
        assert result.state.turn == 6
        assert len(result.state.history) == 1
        assert result.state.history[0].turn == 5

    def test_input_state_untouched(self, state):
        before = state.model_dump()
        resolve_turn(state, {"alpha": [RecruitAction(start_location=HOME_A, food_offered=30)]})
        assert state.model_dump() == before

    def test_results_attached_and_per_turn_fields_reset(self, state):
        result = resolve_turn(state, {"alpha": [RecruitAction(start_location=HOME_A, food_offered=30)]})
        alpha = result.state.get_tribe("alpha")
        assert alpha.actions == []
        assert alpha.turn_submitted is False
        assert any(r.action_type == "Recruit" and r.success for r in alpha.last_turn_results)
        assert result.results["alpha"] == alpha.last_turn_results

    def test_raw_dicts_accepted(self, state):
        result = resolve_turn(state, {"alpha": [{"action_type": "Recruit", "start_location": HOME_A, "food_offered": 30}]})
        alpha = result.state.get_tribe("alpha")
        # 11 recruits, then 31 troops eat 31 food
        assert alpha.garrisons[HOME_A].troops == 31
        assert alpha.global_resources.food == 100 - 30 - 31

    def test_malformed_action_reported(self, state):
        result = resolve_turn(state, {"alpha": [{"action_type": "Recruit", "start_location": HOME_A}]})
        assert result.success
        failed = [r for r in result.results["alpha"] if not r.success]
        assert failed and "Malformed" in failed[0].message

    def test_bad_hex_key_fails_only_that_action(self, state):
        state.map_data = []
        result = resolve_turn(state, {
            "alpha": [{"action_type": "Move", "start_location": HOME_A, "destination": "north", "troops": 3}],
            "beta": [{"action_type": "Rest", "start_location": HOME_B}],
        })
        assert result.success
        assert result.state.turn == 6
        assert not result.results["alpha"][0].success
        assert result.results["beta"][0].success

    def test_unsubmitted_tribe_skips_upkeep(self, state):
        result = resolve_turn(state, {"alpha": []})
        assert result.state.get_tribe("alpha").global_resources.food == 80
        assert result.state.get_tribe("beta").global_resources.food == 100

    def test_unknown_tribe_ignored(self, state):
        assert resolve_turn(state, {"gamma": []}).success

    def test_same_seed_same_result(self, state):
        orders = {"alpha": [RestAction(start_location=HOME_A)], "beta": [RestAction(start_location=HOME_B)]}
        first = resolve_turn(state, orders)
        second = resolve_turn(state, orders)
        assert first.state.model_dump() == second.state.model_dump()

    def test_same_seed_same_result_for_raw_orders(self, state):
        orders = {
            "alpha": [{"action_type": "Rest", "start_location": HOME_A},
                      {"action_type": "Recruit", "start_location": HOME_B, "food_offered": 10}],
            "beta": [{"action_type": "Set Rations", "ration_level": "Hard"}],
        }
        first = resolve_turn(state, orders)
        second = resolve_turn(state, orders)
        assert first.state.model_dump_json() == second.state.model_dump_json()
        ids = [r.action_id for r in first.state.get_tribe("alpha").last_turn_results[:2]]
        assert ids == ["alpha-t5-1", "alpha-t5-2"]

    def test_submitted_models_keep_their_ids(self, state):
        rest = RestAction(id="mine", start_location=HOME_A)
        result = resolve_turn(state, {"alpha": [rest], "beta": [RestAction(start_location=HOME_B)]})
        assert result.state.get_tribe("alpha").last_turn_results[0].action_id == "mine"
        assert result.state.get_tribe("beta").last_turn_results[0].action_id == "beta-t5-1"

    def test_failure_keeps_previous_state(self, state, monkeypatch):
        def broken(ctx):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(orchestrator, "apply_upkeep", broken)
        result = resolve_turn(state, {"alpha": [RecruitAction(start_location=HOME_A, food_offered=30)]})
        assert not result.success
        assert result.state is state
        assert result.phase == TurnPhase.UPKEEP
        assert "disk on fire" in str(result.error)
        assert isinstance(result.error.__cause__, RuntimeError)
        assert state.turn == 5

    def test_invariant_violation_aborts(self, state, monkeypatch):
        def corrupt(ctx):
            ctx.state.tribes[0].diplomacy["beta"] = DiplomaticRelation(status=DiplomaticStatus.WAR)

        monkeypatch.setattr(orchestrator, "process_diplomacy", corrupt)
        result = resolve_turn(state, {})
        assert not result.success
        assert isinstance(result.error, InvariantViolation)
        assert result.phase == TurnPhase.RESOLVING_DIPLOMACY


class TestInvariants:
    """Tests for check_invariants."""

    def test_clean_state_passes(self, state):
        check_invariants(state, TurnPhase.UPKEEP)

    def test_negative_stores(self, state):
        state.tribes[0].global_resources.food = -5
        with pytest.raises(InvariantViolation, match="negative stores"):
            check_invariants(state, TurnPhase.UPKEEP)

    def test_negative_troops(self, state):
        state.tribes[1].garrisons[HOME_B].troops = -1
        with pytest.raises(InvariantViolation) as exc:
            check_invariants(state, TurnPhase.EXECUTING_ACTIONS)
        assert exc.value.phase == TurnPhase.EXECUTING_ACTIONS

    def test_asymmetric_diplomacy(self, state):
        state.tribes[1].diplomacy["alpha"] = DiplomaticRelation(status=DiplomaticStatus.ALLIANCE)
        with pytest.raises(InvariantViolation, match="asymmetric"):
            check_invariants(state, TurnPhase.RESOLVING_DIPLOMACY)


class TestHistory:
    """Tests for scoring and history records."""

    def test_score_weights(self, state):
        # 20 troops, 10 weapons, 1 garrison, 0 techs, 1 chief
        assert tribe_score(state.tribes[0]) == pytest.approx(20 * 1.0 + 10 * 0.5 + 1 * 10.0 + 1 * 20.0)

    def test_ranks_by_score_with_stable_ties(self, state):
        record = build_history_record(state)
        assert [r.rank for r in record.tribe_records] == [1, 2]

        state.tribes[1].garrisons[HOME_B].troops = 40
        record = build_history_record(state)
        ranks = {r.tribe_id: r.rank for r in record.tribe_records}
        assert ranks == {"alpha": 2, "beta": 1}
