"""Tests for action executors.

Tests cover:
- Force validation (troops, weapons, chiefs, destinations)
- Move, Attack, Scout, Scavenge and Build Outpost dispatch and arrival
- Fast-tracking of one-turn journeys
- Recruit, Rest, Build Weapons, Set Rations and Defend formulas
- Start Research preconditions and up-front cost
- Rejected actions leave the state unchanged
"""

import pytest

from tribes.engine.diplomacy import set_relation
from tribes.engine.executors import execute_action
from tribes.models.actions import (
    AttackAction,
    BuildOutpostAction,
    BuildWeaponsAction,
    DefendAction,
    MoveAction,
    RationLevel,
    RecruitAction,
    ResourceType,
    RestAction,
    ScavengeAction,
    ScoutAction,
    SetRationsAction,
    StartResearchAction,
)
from tribes.models.hexmap import POI, POIType
from tribes.models.state import DiplomaticStatus, Garrison, JourneyType

HOME_A = "050.050"
HOME_B = "046.050"


def last_result(ctx, tribe_id):
    return ctx.results[tribe_id][-1]


class TestForceValidation:
    """Tests shared by every action that detaches a force."""

    def test_missing_garrison(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location="051.050", destination="052.050", troops=1))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert "no garrison" in result.message

    def test_too_many_troops(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination="052.050", troops=21))
        assert not last_result(ctx, "alpha").success
        assert alpha.garrisons[HOME_A].troops == 20
        assert ctx.state.journeys == []

    def test_too_many_weapons(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination="052.050", troops=5, weapons=11))
        assert not last_result(ctx, "alpha").success

    def test_chief_not_present(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(
            start_location=HOME_A, destination="052.050", troops=5, chiefs_to_move=["Birch"],
        ))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert "Birch" in result.message

    def test_destination_off_map(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination="070.050", troops=5))
        assert "not on the map" in last_result(ctx, "alpha").message

    @pytest.mark.parametrize("action_cls,field", [
        (MoveAction, "destination"),
        (ScoutAction, "destination"),
        (AttackAction, "target_location"),
    ])
    def test_malformed_destination_without_map(self, ctx, action_cls, field):
        ctx.state.map_data = []
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, action_cls(start_location=HOME_A, troops=5, **{field: "north"}))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert "not a valid hex" in result.message
        assert alpha.garrisons[HOME_A].troops == 20
        assert ctx.state.journeys == []

    def test_destination_is_start(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination=HOME_A, troops=5))
        assert not last_result(ctx, "alpha").success


class TestMove:
    """Tests for Move."""

    def test_short_move_resolves_immediately(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(
            start_location=HOME_A, destination="052.050", troops=8, weapons=3, chiefs_to_move=["Ash"],
        ))
        assert ctx.state.journeys == []
        assert alpha.garrisons[HOME_A].troops == 12
        moved = alpha.garrisons["052.050"]
        assert (moved.troops, moved.weapons, [c.name for c in moved.chiefs]) == (8, 3, ["Ash"])
        assert "052.050" in alpha.explored_hexes

    def test_long_move_is_queued(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination="054.050", troops=5))
        assert len(ctx.state.journeys) == 1
        journey = ctx.state.journeys[0]
        assert journey.type == JourneyType.MOVE
        assert journey.arrival_turn == 2
        assert journey.force.troops == 5
        assert "054.050" not in alpha.garrisons

    def test_cannot_move_into_neutral_garrison(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination=HOME_B, troops=5))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert "not at war" in result.message

    def test_move_into_enemy_garrison_is_allowed(self, ctx):
        alpha, beta = ctx.tribe("alpha"), ctx.tribe("beta")
        set_relation(alpha, beta, DiplomaticStatus.WAR)
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination=HOME_B, troops=5))
        assert ctx.state.journeys[0].type == JourneyType.MOVE


class TestAttack:
    """Tests for Attack."""

    def test_requires_war(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, AttackAction(start_location=HOME_A, target_location=HOME_B, troops=10))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert "declare war" in result.message

    def test_cannot_attack_own_garrison(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.garrisons["052.050"] = Garrison(troops=3)
        execute_action(ctx, alpha, AttackAction(start_location=HOME_A, target_location="052.050", troops=5))
        assert "your own garrison" in last_result(ctx, "alpha").message

    def test_attack_on_empty_hex_occupies_it(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, AttackAction(start_location=HOME_A, target_location="051.050", troops=5))
        assert alpha.garrisons["051.050"].troops == 5
        assert last_result(ctx, "alpha").data["occupied"] is True

    def test_adjacent_battle_resolves_this_turn(self, ctx, make_tribe):
        alpha = ctx.tribe("alpha")
        gamma = make_tribe("gamma", "051.050", troops=5, weapons=0)
        ctx.state.tribes.append(gamma)
        ctx.results["gamma"] = []
        set_relation(alpha, gamma, DiplomaticStatus.WAR)

        execute_action(ctx, alpha, AttackAction(
            start_location=HOME_A, target_location="051.050", troops=20, weapons=10,
        ))
        battle = [r for r in ctx.results["alpha"] if r.data.get("winner")]
        assert battle and battle[0].data["winner"] == "attacker"
        assert battle[0].data["attacker_troops_before"] == 20
        assert battle[0].data["defender_troops_before"] == 5

    def test_surviving_defenders_hold_hex_despite_fallback(self, ctx, make_tribe):
        alpha = ctx.tribe("alpha")
        gamma = make_tribe("gamma", "051.050", troops=15, weapons=5)
        gamma.garrisons["053.050"] = Garrison(troops=3)
        ctx.state.tribes.append(gamma)
        ctx.results["gamma"] = []
        set_relation(alpha, gamma, DiplomaticStatus.WAR)

        execute_action(ctx, alpha, AttackAction(
            start_location=HOME_A, target_location="051.050", troops=20, weapons=10,
        ))
        battle = [r for r in ctx.results["alpha"] if r.data.get("winner")][0]
        assert battle.data["winner"] == "attacker"
        assert battle.data["occupied"] is False
        assert 0 < gamma.garrisons["051.050"].troops < 15
        assert "051.050" not in alpha.garrisons
        returning = [j for j in ctx.state.journeys if j.owner_tribe_id == "alpha"]
        assert returning[0].type == JourneyType.RETURN
        assert returning[0].destination == HOME_A
        assert not any(j.owner_tribe_id == "gamma" for j in ctx.state.journeys)

    def test_hex_changes_hands_when_defenders_wiped_out(self, ctx, make_tribe):
        alpha = ctx.tribe("alpha")
        gamma = make_tribe("gamma", "051.050", troops=1, weapons=0)
        gamma.garrisons["053.050"] = Garrison(troops=3)
        ctx.state.tribes.append(gamma)
        ctx.results["gamma"] = []
        set_relation(alpha, gamma, DiplomaticStatus.WAR)

        execute_action(ctx, alpha, AttackAction(
            start_location=HOME_A, target_location="051.050", troops=20, weapons=10,
        ))
        assert "051.050" not in gamma.garrisons
        assert "053.050" in gamma.garrisons
        assert alpha.garrisons["051.050"].troops > 0
        assert last_result(ctx, "gamma").data["lost_hex"] == "051.050"


class TestScoutScavengeOutpost:
    """Tests for Scout, Scavenge and Build Outpost."""

    def test_scout_reveals_and_returns(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, ScoutAction(start_location=HOME_A, destination="052.050", troops=2))
        assert "053.050" in alpha.explored_hexes
        returning = ctx.state.journeys[0]
        assert returning.type == JourneyType.RETURN
        assert returning.destination == HOME_A
        assert returning.force.troops == 2

    def test_scavenge_food_on_plains(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, ScavengeAction(
            start_location=HOME_A, target_location="051.050", troops=10, resource_type=ResourceType.FOOD,
        ))
        # 1.5 food per scavenger at half yield on plains, carried home
        returning = ctx.state.journeys[0]
        assert returning.type == JourneyType.RETURN
        assert returning.payload.food == 7
        assert returning.force.troops == 10
        assert alpha.global_resources.food == 100

    def test_scavenge_own_hex_rejected(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.garrisons["051.050"] = Garrison(troops=1)
        execute_action(ctx, alpha, ScavengeAction(
            start_location=HOME_A, target_location="051.050", troops=2, resource_type=ResourceType.SCRAP,
        ))
        assert not last_result(ctx, "alpha").success

    def test_weapons_cache_is_exhausted(self, ctx):
        alpha = ctx.tribe("alpha")
        ctx.hex("051.050").poi = POI(id="cache", type=POIType.WEAPONS_CACHE)
        execute_action(ctx, alpha, ScavengeAction(
            start_location=HOME_A, target_location="051.050", troops=20, resource_type=ResourceType.WEAPONS,
        ))
        gathered = [r for r in ctx.results["alpha"] if "gathered" in r.data][0].data["gathered"]
        assert ctx.state.journeys[0].payload.weapons == gathered["weapons"]
        if gathered["weapons"] > 0:
            assert ctx.hex("051.050").poi is None

    def test_build_outpost(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.global_resources.scrap = 30
        execute_action(ctx, alpha, BuildOutpostAction(start_location=HOME_A, target_location="051.050", troops=5))
        assert alpha.global_resources.scrap == 5
        assert alpha.garrisons["051.050"].troops == 5
        poi = ctx.hex("051.050").poi
        assert poi.fortified and poi.outpost_owner == "alpha"

    def test_build_outpost_needs_scrap(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, BuildOutpostAction(start_location=HOME_A, target_location="051.050", troops=5))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert "25 scrap" in result.message
        assert alpha.garrisons[HOME_A].troops == 20


class TestStationaryActions:
    """Tests for actions that do not move troops."""

    def test_recruit_formula(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, RecruitAction(start_location=HOME_A, food_offered=30))
        # floor(30 * 0.3 * (1 + 5 * 0.05)) = 11
        assert alpha.garrisons[HOME_A].troops == 31
        assert alpha.global_resources.food == 70

    def test_recruit_needs_food(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, RecruitAction(start_location=HOME_A, food_offered=101))
        assert not last_result(ctx, "alpha").success
        assert alpha.global_resources.food == 100

    def test_build_weapons_formula(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, BuildWeaponsAction(start_location=HOME_A, scrap=20))
        # floor(20 * 0.4 * (1 + 5 * 0.02)) = 8
        assert alpha.garrisons[HOME_A].weapons == 18
        assert alpha.global_resources.scrap == 0

    def test_rest_raises_morale_within_range(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, RestAction(start_location=HOME_A))
        assert 65 <= alpha.global_resources.morale <= 76

    def test_rest_is_clamped(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.global_resources.morale = 95
        execute_action(ctx, alpha, RestAction(start_location=HOME_A))
        assert alpha.global_resources.morale == 100

    def test_set_rations(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, SetRationsAction(ration_level=RationLevel.HARD))
        assert alpha.ration_level == RationLevel.HARD

    def test_defend_more_troops_than_present(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, DefendAction(start_location=HOME_A, troops=50))
        assert not last_result(ctx, "alpha").success


class TestStartResearch:
    """Tests for Start Research."""

    def test_pays_scrap_and_starts_project(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.global_resources.scrap = 60
        execute_action(ctx, alpha, StartResearchAction(tech_id="basic-engineering", location=HOME_A, assigned_troops=10))
        assert last_result(ctx, "alpha").success
        assert alpha.global_resources.scrap == 10
        assert [p.tech_id for p in alpha.current_research] == ["basic-engineering"]

    @pytest.mark.parametrize("tech_id,assigned,scrap,message", [
        ("cold-fusion", 10, 100, "Unknown technology"),
        ("advanced-metallurgy", 20, 200, "requires"),
        ("basic-engineering", 5, 100, "at least 8"),
        ("basic-engineering", 25, 100, "Only 20 troops"),
        ("basic-engineering", 10, 49, "costs 50 scrap"),
    ])
    def test_rejections(self, ctx, tech_id, assigned, scrap, message):
        alpha = ctx.tribe("alpha")
        alpha.global_resources.scrap = scrap
        execute_action(ctx, alpha, StartResearchAction(tech_id=tech_id, location=HOME_A, assigned_troops=assigned))
        result = last_result(ctx, "alpha")
        assert not result.success
        assert message in result.message
        assert alpha.global_resources.scrap == scrap
        assert alpha.current_research == []

    def test_one_project_per_garrison(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.global_resources.scrap = 200
        execute_action(ctx, alpha, StartResearchAction(tech_id="basic-engineering", location=HOME_A, assigned_troops=8))
        execute_action(ctx, alpha, StartResearchAction(tech_id="basic-farming", location=HOME_A, assigned_troops=5))
        assert "already running" in last_result(ctx, "alpha").message

    def test_already_known(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.completed_techs = ["basic-farming"]
        execute_action(ctx, alpha, StartResearchAction(tech_id="basic-farming", location=HOME_A, assigned_troops=5))
        assert "already known" in last_result(ctx, "alpha").message
