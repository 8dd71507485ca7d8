"""Tests for covert operations.

Tests cover:
- Success chance formula and clamping
- Validation (war, garrison, outpost, resource choice)
- Each mission's effect on the victim
- The four success/detection outcomes
"""

import pytest

from tribes.engine.diplomacy import set_relation
from tribes.engine.executors import execute_action
from tribes.engine.sabotage import success_chance
from tribes.models.actions import ResourceType, SabotageAction, SabotageType
from tribes.models.hexmap import POI, POIType
from tribes.models.state import DiplomaticStatus, JourneyType, ResearchProject

HOME_A = "050.050"
HOME_B = "046.050"

SUCCEED, FAIL = 0.0, 0.999
DETECTED, UNSEEN = 0.0, 0.999


def mission(kind, troops=3, target_location=HOME_B, **kwargs):
    return SabotageAction(
        start_location=HOME_A,
        target_tribe_id="beta",
        target_location=target_location,
        sabotage_type=kind,
        troops=troops,
        **kwargs,
    )


def run(scripted_ctx, action, *draws, war=True):
    ctx = scripted_ctx(*draws)
    alpha, beta = ctx.tribe("alpha"), ctx.tribe("beta")
    if war:
        set_relation(alpha, beta, DiplomaticStatus.WAR)
    execute_action(ctx, alpha, action)
    return ctx, alpha, beta


class TestSuccessChance:
    """Tests for success_chance."""

    def test_base_case(self):
        assert success_chance(troops=2, chiefs=0, distance=2) == pytest.approx(0.6)

    def test_troop_bonus_is_capped(self):
        assert success_chance(troops=6, chiefs=0, distance=0) == pytest.approx(0.9)
        assert success_chance(troops=50, chiefs=0, distance=0) == pytest.approx(0.9)

    def test_distance_penalty_is_capped(self):
        assert success_chance(troops=0, chiefs=0, distance=8) == pytest.approx(0.2)
        assert success_chance(troops=0, chiefs=0, distance=30) == pytest.approx(0.2)

    def test_clamped_to_range(self):
        assert success_chance(troops=10, chiefs=3, distance=0) == 0.95
        assert success_chance(troops=0, chiefs=0, distance=10, resistance=0.5) == 0.10


class TestValidation:
    """Tests for mission preconditions."""

    def test_requires_war(self, scripted_ctx):
        ctx, alpha, _ = run(scripted_ctx, mission(SabotageType.POISON_SUPPLIES), war=False)
        assert "at war" in ctx.results["alpha"][-1].message
        assert alpha.garrisons[HOME_A].troops == 20

    def test_target_must_be_a_garrison(self, scripted_ctx):
        ctx, _, _ = run(scripted_ctx, mission(SabotageType.POISON_SUPPLIES, target_location="047.050"))
        assert "no garrison" in ctx.results["alpha"][-1].message

    def test_outpost_mission_needs_outpost(self, scripted_ctx):
        ctx, _, _ = run(scripted_ctx, mission(SabotageType.SABOTAGE_OUTPOST))
        assert "no outpost" in ctx.results["alpha"][-1].message

    def test_resource_mission_needs_resource(self, scripted_ctx):
        ctx, _, _ = run(scripted_ctx, mission(SabotageType.STEAL_RESOURCES))
        assert "Choose which resource" in ctx.results["alpha"][-1].message


class TestOutcomes:
    """Tests for the success and detection rolls."""

    def test_undetected_success_hides_saboteur(self, scripted_ctx):
        ctx, _, beta = run(scripted_ctx, mission(SabotageType.POISON_SUPPLIES), SUCCEED, UNSEEN)
        garrison = beta.garrisons[HOME_B]
        assert garrison.poisoned_troops == 6
        assert garrison.poisoned_until_turn == 8
        notice = ctx.results["beta"][-1]
        assert notice.data["saboteur"] is None
        assert notice.message.startswith("Unknown saboteurs")

    def test_detected_success_names_saboteur(self, scripted_ctx):
        ctx, _, _ = run(scripted_ctx, mission(SabotageType.POISON_SUPPLIES), SUCCEED, DETECTED)
        assert ctx.results["beta"][-1].data["saboteur"] == "alpha"

    def test_undetected_failure_walks_home(self, scripted_ctx):
        ctx, alpha, beta = run(scripted_ctx, mission(SabotageType.POISON_SUPPLIES), FAIL, UNSEEN)
        assert beta.garrisons[HOME_B].poisoned_troops == 0
        assert not ctx.results["alpha"][-1].success
        returning = ctx.state.journeys[0]
        assert returning.type == JourneyType.RETURN
        assert returning.force.troops == 3

    def test_detected_failure_captures_operatives(self, scripted_ctx):
        action = mission(SabotageType.POISON_SUPPLIES, chiefs_to_move=["Ash"])
        ctx, alpha, beta = run(scripted_ctx, action, FAIL, DETECTED)
        assert alpha.garrisons[HOME_A].troops == 17
        assert alpha.garrisons[HOME_A].chiefs == []
        assert [p.chief.name for p in beta.prisoners] == ["Ash"]
        assert beta.prisoners[0].from_tribe_id == "alpha"
        assert ctx.state.journeys == []


class TestMissions:
    """Tests for each mission's effect."""

    def test_steal_food_carries_loot_home(self, scripted_ctx):
        action = mission(SabotageType.STEAL_RESOURCES, resource_type=ResourceType.FOOD)
        ctx, alpha, beta = run(scripted_ctx, action, SUCCEED, UNSEEN)
        assert beta.global_resources.food == 75
        assert ctx.state.journeys[0].payload.food == 25
        assert alpha.global_resources.food == 100

    def test_destroy_weapons(self, scripted_ctx):
        action = mission(SabotageType.DESTROY_RESOURCES, resource_type=ResourceType.WEAPONS)
        ctx, _, beta = run(scripted_ctx, action, SUCCEED, UNSEEN)
        assert beta.garrisons[HOME_B].weapons == 7
        assert ctx.state.journeys[0].payload.is_empty()

    def test_intelligence_reveals_garrisons(self, scripted_ctx):
        ctx, alpha, _ = run(scripted_ctx, mission(SabotageType.INTELLIGENCE_GATHERING), SUCCEED, UNSEEN)
        assert HOME_B in alpha.explored_hexes
        report = ctx.results["alpha"][-1].data["intelligence"]
        assert report["garrisons"][HOME_B]["troops"] == 20

    def test_disable_outpost(self, scripted_ctx):
        ctx = scripted_ctx(SUCCEED, UNSEEN)
        ctx.hex("047.050").poi = POI(id="o", type=POIType.OUTPOST, fortified=True, outpost_owner="beta")
        alpha, beta = ctx.tribe("alpha"), ctx.tribe("beta")
        set_relation(alpha, beta, DiplomaticStatus.WAR)
        execute_action(ctx, alpha, mission(SabotageType.SABOTAGE_OUTPOST, target_location="047.050"))
        poi = ctx.hex("047.050").poi
        assert poi.disabled_until_turn == 7
        assert not poi.is_fortification_active(6)
        assert poi.is_fortification_active(7)

    def test_destroy_research(self, scripted_ctx):
        ctx = scripted_ctx(SUCCEED, UNSEEN, 0.5)
        alpha, beta = ctx.tribe("alpha"), ctx.tribe("beta")
        set_relation(alpha, beta, DiplomaticStatus.WAR)
        beta.current_research.append(ResearchProject(tech_id="basic-farming", progress=10, assigned_troops=5, location=HOME_B))
        execute_action(ctx, alpha, mission(SabotageType.DESTROY_RESEARCH))
        # Half way between 30% and 70% of the progress
        assert beta.current_research[0].progress == pytest.approx(5.0)

    def test_steal_research_feeds_matching_project(self, scripted_ctx):
        ctx = scripted_ctx(SUCCEED, UNSEEN, 0.0)
        alpha, beta = ctx.tribe("alpha"), ctx.tribe("beta")
        set_relation(alpha, beta, DiplomaticStatus.WAR)
        beta.current_research.append(ResearchProject(tech_id="basic-farming", progress=10, assigned_troops=5, location=HOME_B))
        alpha.current_research.append(ResearchProject(tech_id="basic-farming", progress=1, assigned_troops=5, location=HOME_A))
        execute_action(ctx, alpha, mission(SabotageType.STEAL_RESEARCH))
        assert alpha.current_research[0].progress == pytest.approx(3.0)
        assert beta.current_research[0].progress == pytest.approx(10.0)
