"""Covert operations.

A sabotage mission resolves the turn it is ordered. Operatives are detached
from their garrison, one roll decides success and a second roll decides
whether they were detected, giving four outcomes:

    success, undetected   effect applied, victim does not learn who did it
    success, detected     effect applied, victim learns the saboteur
    failure, undetected   nothing happens, operatives slip home
    failure, detected     operatives are caught: troops lost, chiefs imprisoned

Surviving operatives walk home from the target hex, carrying any loot.
"""

from __future__ import annotations

import logging
import math

from tribes.engine.context import TurnContext, detach_force
from tribes.models.actions import ActionType, Payload, ResourceType, SabotageAction, SabotageType
from tribes.models.state import DiplomaticStatus, Force, PrisonerChief, Tribe, clamp
from tribes.parameters import (
    DESTROY_RESEARCH_RANGE,
    DESTROY_RESOURCE_FRACTION,
    OUTPOST_DISABLE_TURNS,
    POISON_TROOP_FRACTION,
    POISON_TURNS,
    SABOTAGE_BASE_SUCCESS,
    SABOTAGE_DETECTION_ON_FAILURE,
    SABOTAGE_DETECTION_ON_SUCCESS,
    SABOTAGE_DISTANCE_CAP,
    SABOTAGE_PER_CHIEF,
    SABOTAGE_PER_HEX,
    SABOTAGE_PER_TROOP,
    SABOTAGE_SUCCESS_RANGE,
    SABOTAGE_TROOP_CAP,
    STEAL_RESEARCH_RANGE,
    STEAL_RESOURCE_FRACTION,
)
from tribes.spatial import hex_distance

logger = logging.getLogger(__name__)

_RESOURCE_MISSIONS = {SabotageType.STEAL_RESOURCES, SabotageType.DESTROY_RESOURCES}


def success_chance(
    troops: int, chiefs: int, distance: int, effectiveness: float = 0.0, resistance: float = 0.0
) -> float:
    """Probability that a mission succeeds.

    Examples:
        >>> round(success_chance(troops=2, chiefs=0, distance=2), 2)
        0.6
        >>> success_chance(troops=10, chiefs=3, distance=0)
        0.95
    """
    chance = (
        SABOTAGE_BASE_SUCCESS
        + min(SABOTAGE_TROOP_CAP, troops * SABOTAGE_PER_TROOP)
        + chiefs * SABOTAGE_PER_CHIEF
        + effectiveness
        - min(SABOTAGE_DISTANCE_CAP, distance * SABOTAGE_PER_HEX)
        - resistance
    )
    return clamp(chance, *SABOTAGE_SUCCESS_RANGE)


def _validate(ctx: TurnContext, tribe: Tribe, action: SabotageAction) -> tuple[Tribe | None, str | None]:
    target = ctx.tribe(action.target_tribe_id)
    if target is None or target.id == tribe.id:
        return None, f"There is no other tribe with id {action.target_tribe_id}."
    if tribe.relation_to(target.id) != DiplomaticStatus.WAR:
        return None, f"You must be at war with {target.name} to sabotage them."

    garrison = tribe.garrisons.get(action.start_location)
    if garrison is None:
        return None, f"You have no garrison at {action.start_location}."
    if garrison.troops < action.troops or garrison.weapons < action.weapons:
        return None, f"Not enough troops or weapons at {action.start_location}."
    present = {c.name for c in garrison.chiefs}
    missing = [n for n in action.chiefs_to_move if n not in present]
    if missing:
        return None, f"Chiefs not at {action.start_location}: {', '.join(missing)}."

    if action.sabotage_type == SabotageType.SABOTAGE_OUTPOST:
        hex_data = ctx.hex(action.target_location)
        poi = hex_data.poi if hex_data else None
        if poi is None or not poi.fortified or poi.outpost_owner != target.id:
            return None, f"{target.name} has no outpost at {action.target_location}."
    elif action.target_location not in target.garrisons:
        return None, f"{target.name} has no garrison at {action.target_location}."

    if action.sabotage_type in _RESOURCE_MISSIONS and action.resource_type is None:
        return None, "Choose which resource to target."
    return target, None


def execute_sabotage(ctx: TurnContext, tribe: Tribe, action: SabotageAction) -> None:
    target, problem = _validate(ctx, tribe, action)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return

    force = detach_force(tribe.garrisons[action.start_location], action.troops, action.weapons, action.chiefs_to_move)
    distance = hex_distance(action.start_location, action.target_location)
    chance = success_chance(
        force.troops,
        len(force.chiefs),
        distance,
        ctx.effects(tribe).sabotage_effectiveness,
        ctx.effects(target).sabotage_resistance,
    )
    succeeded = ctx.rng.random() < chance
    detection = SABOTAGE_DETECTION_ON_SUCCESS if succeeded else SABOTAGE_DETECTION_ON_FAILURE
    detected = ctx.rng.random() < detection
    logger.debug(
        f"[turn {ctx.turn}] Sabotage {action.sabotage_type.value} by {tribe.id} on {target.id}: "
        f"chance={chance:.2f} success={succeeded} detected={detected}"
    )

    mission = action.sabotage_type.value
    if not succeeded and detected:
        _capture(ctx, tribe, target, force, action)
        return

    loot = Payload()
    if succeeded:
        summary, loot, data = _apply_effect(ctx, tribe, target, action)
        ctx.report(tribe.id, action.action_type, f"{mission} against {target.name} succeeded: {summary}",
                   action_id=action.id, detected=detected, **data)
        culprit = tribe.name if detected else "Unknown saboteurs"
        ctx.report(target.id, ActionType.SABOTAGE, f"{culprit} struck at {action.target_location}: {summary}",
                   success=False, saboteur=tribe.id if detected else None)
    else:
        ctx.report(tribe.id, action.action_type,
                   f"{mission} against {target.name} failed, but your operatives escaped unseen.",
                   success=False, action_id=action.id, detected=False)

    if force.troops or force.chiefs or force.weapons:
        ctx.send_home(tribe, force, action.target_location, action.start_location,
                      payload=loot if not loot.is_empty() else None, source_id=action.id)


def _capture(ctx: TurnContext, tribe: Tribe, target: Tribe, force: Force, action: SabotageAction) -> None:
    for chief in force.chiefs:
        target.prisoners.append(PrisonerChief(chief=chief, from_tribe_id=tribe.id, captured_on_turn=ctx.turn))
    names = [c.name for c in force.chiefs]
    ctx.report(
        tribe.id, action.action_type,
        f"Your operatives were caught at {action.target_location}. {force.troops} troops were lost"
        + (f" and {', '.join(names)} taken prisoner." if names else "."),
        success=False, action_id=action.id, detected=True, troops_lost=force.troops, captured_chiefs=names,
    )
    ctx.report(
        target.id, ActionType.SABOTAGE,
        f"You caught {force.troops} saboteurs from {tribe.name} at {action.target_location}"
        + (f", including {', '.join(names)}." if names else "."),
        saboteur=tribe.id, captured_chiefs=names,
    )


def _apply_effect(
    ctx: TurnContext, tribe: Tribe, target: Tribe, action: SabotageAction
) -> tuple[str, Payload, dict]:
    """Mutate the victim for a successful mission.

    Returns:
        Tuple of (summary text, loot carried home, structured result data)
    """
    kind = action.sabotage_type
    key = action.target_location

    if kind == SabotageType.INTELLIGENCE_GATHERING:
        report = {
            "garrisons": {
                k: {"troops": g.troops, "weapons": g.weapons, "chiefs": [c.name for c in g.chiefs]}
                for k, g in sorted(target.garrisons.items())
            },
            "resources": target.global_resources.model_dump(),
            "research": [p.tech_id for p in target.current_research],
            "completed_techs": list(target.completed_techs),
        }
        tribe.reveal(target.garrisons.keys())
        return f"located {len(target.garrisons)} garrisons.", Payload(), {"intelligence": report}

    if kind == SabotageType.SABOTAGE_OUTPOST:
        poi = ctx.hex(key).poi
        poi.disabled_until_turn = ctx.turn + OUTPOST_DISABLE_TURNS
        return (f"the outpost at {key} is disabled until turn {poi.disabled_until_turn}.", Payload(),
                {"disabled_until_turn": poi.disabled_until_turn})

    if kind == SabotageType.POISON_SUPPLIES:
        garrison = target.garrisons[key]
        garrison.poisoned_troops = math.floor(garrison.troops * POISON_TROOP_FRACTION)
        garrison.poisoned_until_turn = ctx.turn + POISON_TURNS
        return (f"{garrison.poisoned_troops} troops at {key} are sickened until turn {garrison.poisoned_until_turn}.",
                Payload(), {"poisoned_troops": garrison.poisoned_troops})

    if kind in _RESOURCE_MISSIONS:
        stealing = kind == SabotageType.STEAL_RESOURCES
        fraction = STEAL_RESOURCE_FRACTION if stealing else DESTROY_RESOURCE_FRACTION
        resource = action.resource_type
        if resource == ResourceType.WEAPONS:
            garrison = target.garrisons[key]
            amount = math.floor(garrison.weapons * fraction)
            garrison.weapons -= amount
        else:
            field_name = resource.value.lower()
            stock = getattr(target.global_resources, field_name)
            amount = math.floor(stock * fraction)
            setattr(target.global_resources, field_name, stock - amount)
        verb = "stole" if stealing else "destroyed"
        loot = Payload(**{resource.value.lower(): amount}) if stealing else Payload()
        return f"{verb} {amount} {resource.value.lower()}.", loot, {"amount": amount, "resource": resource.value}

    # Research missions
    project = next(
        (p for p in target.current_research if action.research_tech_id in (None, p.tech_id)),
        None,
    )
    if project is None:
        return "but there was no research worth touching.", Payload(), {"amount": 0}

    if kind == SabotageType.STEAL_RESEARCH:
        amount = project.progress * ctx.rng.uniform(*STEAL_RESEARCH_RANGE)
        own = next((p for p in tribe.current_research if p.tech_id == project.tech_id), None)
        if own is not None:
            own.progress += amount
            return (f"copied {amount:.0f} points of {project.tech_id} research into your own project.",
                    Payload(), {"amount": amount, "tech_id": project.tech_id})
        return (f"copied notes on {project.tech_id}, but you have no matching project to use them.",
                Payload(), {"amount": 0, "tech_id": project.tech_id})

    amount = project.progress * ctx.rng.uniform(*DESTROY_RESEARCH_RANGE)
    project.progress = max(0.0, project.progress - amount)
    return (f"destroyed {amount:.0f} points of {project.tech_id} research.", Payload(),
            {"amount": amount, "tech_id": project.tech_id})
