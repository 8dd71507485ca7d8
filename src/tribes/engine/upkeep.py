"""End-of-turn upkeep.

Runs after all actions and diplomacy. Research, passive income and food
consumption apply only to tribes that submitted orders this turn; timers
(injured chiefs coming back, poison wearing off, disabled outposts coming
back online) run for everyone.
"""

from __future__ import annotations

import logging
import math

from tribes.data import get_technology
from tribes.engine.context import TurnContext, nearest_garrison
from tribes.models.actions import ActionType, RationLevel
from tribes.models.hexmap import POIType
from tribes.models.state import Garrison, Tribe, clamp
from tribes.parameters import (
    FACTORY_SCRAP_YIELD,
    MAX_MORALE,
    MINE_SCRAP_YIELD,
    RATION_MORALE_CHANGE,
    RATION_MULTIPLIERS,
    STARVATION_MORALE_CAP,
)

logger = logging.getLogger(__name__)

_POI_SCRAP = {POIType.MINE: MINE_SCRAP_YIELD, POIType.FACTORY: FACTORY_SCRAP_YIELD}


def apply_upkeep(ctx: TurnContext) -> None:
    """Run upkeep for every tribe in roster order."""
    for tribe in ctx.state.tribes:
        if tribe.turn_submitted:
            advance_research(ctx, tribe)
            apply_passive_income(ctx, tribe)
            consume_food(ctx, tribe)
        return_injured_chiefs(ctx, tribe)
    expire_timers(ctx)


def advance_research(ctx: TurnContext, tribe: Tribe) -> None:
    """Add this turn's research points; completed projects become techs.

    A project earns one point per assigned troop still present at its
    garrison, scaled by research speed bonuses. A project whose garrison has
    been lost is abandoned.
    """
    speed = 1.0 + ctx.effects(tribe).research_speed
    still_running = []
    for project in tribe.current_research:
        tech = get_technology(project.tech_id)
        garrison = tribe.garrisons.get(project.location)
        if tech is None or garrison is None:
            ctx.report(tribe.id, ActionType.TECHNOLOGY,
                       f"Research on {project.tech_id} at {project.location} was abandoned.", success=False)
            continue

        workers = min(project.assigned_troops, garrison.troops)
        project.progress += workers * speed
        if project.progress >= tech.research_points:
            tribe.completed_techs.append(tech.id)
            logger.info(f"[turn {ctx.turn}] {tribe.id} completed {tech.id}")
            ctx.report(tribe.id, ActionType.TECHNOLOGY, f"Breakthrough! Research on {tech.name} is complete.",
                       tech_id=tech.id)
        else:
            still_running.append(project)
            ctx.report(tribe.id, ActionType.TECHNOLOGY,
                       f"Research on {tech.name} continues ({project.progress:.0f}/{tech.research_points} points).",
                       tech_id=tech.id, progress=project.progress)
    tribe.current_research = still_running


def apply_passive_income(ctx: TurnContext, tribe: Tribe) -> None:
    effects = ctx.effects(tribe)
    food = int(effects.passive_food)
    scrap = int(effects.passive_scrap)
    if food > 0 or scrap > 0:
        tribe.global_resources.food += food
        tribe.global_resources.scrap += scrap
        ctx.report(tribe.id, ActionType.TECHNOLOGY, f"Passive effects produced {food} food and {scrap} scrap.",
                   food=food, scrap=scrap)

    for key, garrison in sorted(tribe.garrisons.items()):
        if garrison.troops <= 0:
            continue
        hex_data = ctx.hex(key)
        if hex_data is None or hex_data.poi is None:
            continue
        yield_ = _POI_SCRAP.get(hex_data.poi.type, 0)
        if yield_:
            tribe.global_resources.scrap += yield_
            ctx.report(tribe.id, ActionType.UPKEEP,
                       f"Your garrison at {key} working the {hex_data.poi.type.value} produced {yield_} scrap.",
                       location=key, scrap=yield_)


def consume_food(ctx: TurnContext, tribe: Tribe) -> None:
    """Feed every troop, including those on the road, at the ration level."""
    on_journeys = sum(j.force.troops for j in ctx.state.journeys if j.owner_tribe_id == tribe.id)
    total = tribe.total_troops() + on_journeys
    if total == 0:
        return

    stock = tribe.global_resources
    required = math.ceil(total * RATION_MULTIPLIERS[tribe.ration_level.value])
    remaining = stock.food - required
    morale = stock.morale
    notes = [f"Consumed {required} food for {total} troops."]

    if tribe.ration_level == RationLevel.HARD:
        morale -= RATION_MORALE_CHANGE
        notes.append(f"Hard rations lowered morale by {RATION_MORALE_CHANGE}.")
    elif tribe.ration_level == RationLevel.GENEROUS and remaining >= 0:
        morale += RATION_MORALE_CHANGE
        notes.append(f"Generous rations raised morale by {RATION_MORALE_CHANGE}.")

    starving = remaining < 0
    if starving:
        penalty = math.floor(min(STARVATION_MORALE_CAP, -remaining / 2))
        morale -= penalty
        notes.append(f"Starvation! Morale dropped by a further {penalty}.")
        remaining = 0

    stock.food = remaining
    stock.morale = int(clamp(morale, 0, MAX_MORALE))
    ctx.report(tribe.id, ActionType.UPKEEP, " ".join(notes), success=not starving,
               food_consumed=required)


def return_injured_chiefs(ctx: TurnContext, tribe: Tribe) -> None:
    healing = []
    for injured in tribe.injured_chiefs:
        if ctx.turn < injured.return_turn:
            healing.append(injured)
            continue
        dest = tribe.location if tribe.location in tribe.garrisons else nearest_garrison(tribe, injured.from_hex)
        if dest is None:
            # No garrison left to rejoin
            healing.append(injured)
            continue
        tribe.garrisons.setdefault(dest, Garrison()).chiefs.append(injured.chief)
        ctx.report(tribe.id, ActionType.UPKEEP, f"{injured.chief.name} has recovered and rejoined you at {dest}.")
    tribe.injured_chiefs = healing


def expire_timers(ctx: TurnContext) -> None:
    """Clear poison and outpost disables that have run out by next turn."""
    next_turn = ctx.turn + 1
    for tribe in ctx.state.tribes:
        for garrison in tribe.garrisons.values():
            if garrison.poisoned_until_turn is not None and next_turn >= garrison.poisoned_until_turn:
                garrison.poisoned_troops = 0
                garrison.poisoned_until_turn = None
    for hex_data in ctx.state.map_data:
        poi = hex_data.poi
        if poi is not None and poi.disabled_until_turn is not None and next_turn >= poi.disabled_until_turn:
            poi.disabled_until_turn = None
