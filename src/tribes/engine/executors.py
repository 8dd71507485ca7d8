"""Action executors.

One handler per player action kind. A handler validates the action against
the working state and either applies it or records a rejection; it never
raises for bad input. Actions that move troops detach a force from the start
garrison and hand a Journey to the scheduler, which resolves it on the spot
if it completes this turn.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from tribes.data import get_technology, prerequisites_met
from tribes.engine import diplomacy, sabotage
from tribes.engine.context import TurnContext, detach_force
from tribes.engine.journeys import dispatch_journey, respond_to_trade
from tribes.models.actions import (
    ActionType,
    AttackAction,
    BuildOutpostAction,
    BuildWeaponsAction,
    DefendAction,
    GameAction,
    MoveAction,
    RecruitAction,
    RespondToTradeAction,
    RestAction,
    ScavengeAction,
    ScoutAction,
    SetRationsAction,
    StartResearchAction,
    TradeAction,
)
from tribes.models.state import (
    DiplomaticStatus,
    Journey,
    JourneyType,
    ResearchProject,
    TradeOffer,
    Tribe,
    clamp,
)
from tribes.parameters import (
    MAX_MORALE,
    OUTPOST_SCRAP_COST,
    RECRUIT_CHARISMA_BONUS,
    RECRUIT_FOOD_RATE,
    REST_LEADERSHIP_BONUS,
    REST_MORALE_RANGE,
    TRADE_RESPONSE_WINDOW,
    WEAPON_BUILD_INTELLIGENCE_BONUS,
    WEAPON_BUILD_RATE,
)
from tribes.spatial import parse_hex_coords, travel_turns

logger = logging.getLogger(__name__)

Executor = Callable[[TurnContext, Tribe, GameAction], None]


def execute_action(ctx: TurnContext, tribe: Tribe, action: GameAction) -> None:
    """Run one submitted action for a tribe."""
    try:
        action_type = ActionType(action.action_type)
    except ValueError:
        ctx.fail(tribe.id, action, f"Unknown action type {action.action_type!r}.")
        return

    handler = _EXECUTORS.get(action_type)
    if handler is None:
        ctx.fail(tribe.id, action, f"{action_type.value} cannot be ordered directly.")
        return
    logger.debug(f"[turn {ctx.turn}] {tribe.id} executes {action_type.value} ({action.id})")
    handler(ctx, tribe, action)


# =============================================================================
# Force actions (spawn journeys)
# =============================================================================


def _check_force(ctx: TurnContext, tribe: Tribe, action) -> str | None:
    """Problem with detaching the ordered force, if any."""
    garrison = tribe.garrisons.get(action.start_location)
    if garrison is None:
        return f"You have no garrison at {action.start_location}."
    if garrison.troops < action.troops:
        return f"Only {garrison.troops} troops are at {action.start_location}; {action.troops} were ordered."
    if garrison.weapons < action.weapons:
        return f"Only {garrison.weapons} weapons are at {action.start_location}; {action.weapons} were ordered."
    present = {c.name for c in garrison.chiefs}
    missing = [name for name in action.chiefs_to_move if name not in present]
    if missing:
        return f"Chiefs not at {action.start_location}: {', '.join(missing)}."
    return None


def _check_destination(ctx: TurnContext, action, destination: str) -> str | None:
    try:
        parse_hex_coords(destination)
    except ValueError:
        return f"{destination!r} is not a valid hex."
    if ctx.state.map_data and ctx.hex(destination) is None:
        return f"{destination} is not on the map."
    if destination == action.start_location:
        return "The destination is the hex the force is already in."
    return None


def _send_force(
    ctx: TurnContext,
    tribe: Tribe,
    action,
    journey_type: JourneyType,
    destination: str,
    **extra,
) -> Journey:
    """Detach the ordered force and put it on the road."""
    force = detach_force(
        tribe.garrisons[action.start_location], action.troops, action.weapons, action.chiefs_to_move
    )
    turns = travel_turns(action.start_location, destination, ctx.effects(tribe).movement_speed)
    journey = Journey(
        id=ctx.next_id(journey_type.value.lower().replace(" ", "-")),
        owner_tribe_id=tribe.id,
        type=journey_type,
        origin=action.start_location,
        destination=destination,
        force=force,
        arrival_turn=turns,
        **extra,
    )
    eta = "this turn" if turns <= 1 and journey_type != JourneyType.TRADE else f"turn {ctx.turn + turns}"
    ctx.report(
        tribe.id, action.action_type,
        f"{force.troops} troops left {action.start_location} for {destination} (arriving {eta}).",
        action_id=action.id, journey_id=journey.id, arrival_turn=ctx.turn + turns,
    )
    dispatch_journey(ctx, journey)
    return journey


def execute_move(ctx: TurnContext, tribe: Tribe, action: MoveAction) -> None:
    problem = _check_force(ctx, tribe, action) or _check_destination(ctx, action, action.destination)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return
    owner = ctx.owner_of(action.destination)
    if owner is not None and owner.id != tribe.id and tribe.relation_to(owner.id) != DiplomaticStatus.WAR:
        ctx.fail(tribe.id, action, f"{action.destination} is held by {owner.name}; you are not at war with them.")
        return
    _send_force(ctx, tribe, action, JourneyType.MOVE, action.destination)


def execute_scout(ctx: TurnContext, tribe: Tribe, action: ScoutAction) -> None:
    problem = _check_force(ctx, tribe, action) or _check_destination(ctx, action, action.destination)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return
    _send_force(ctx, tribe, action, JourneyType.SCOUT, action.destination)


def execute_attack(ctx: TurnContext, tribe: Tribe, action: AttackAction) -> None:
    problem = _check_force(ctx, tribe, action) or _check_destination(ctx, action, action.target_location)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return
    owner = ctx.owner_of(action.target_location)
    if owner is not None:
        if owner.id == tribe.id:
            ctx.fail(tribe.id, action, f"{action.target_location} is your own garrison.")
            return
        if tribe.relation_to(owner.id) != DiplomaticStatus.WAR:
            ctx.fail(tribe.id, action, f"You must declare war on {owner.name} before attacking them.")
            return
    _send_force(ctx, tribe, action, JourneyType.ATTACK, action.target_location)


def execute_scavenge(ctx: TurnContext, tribe: Tribe, action: ScavengeAction) -> None:
    problem = _check_force(ctx, tribe, action) or _check_destination(ctx, action, action.target_location)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return
    if action.target_location in tribe.garrisons:
        ctx.fail(tribe.id, action, f"Your own garrison already occupies {action.target_location}.")
        return
    _send_force(ctx, tribe, action, JourneyType.SCAVENGE, action.target_location,
                scavenge_type=action.resource_type)


def execute_build_outpost(ctx: TurnContext, tribe: Tribe, action: BuildOutpostAction) -> None:
    problem = _check_force(ctx, tribe, action) or _check_destination(ctx, action, action.target_location)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return
    owner = ctx.owner_of(action.target_location)
    if owner is not None:
        ctx.fail(tribe.id, action, f"{action.target_location} is already held by {owner.name}.")
        return
    if tribe.global_resources.scrap < OUTPOST_SCRAP_COST:
        ctx.fail(tribe.id, action, f"An outpost needs {OUTPOST_SCRAP_COST} scrap; you have {tribe.global_resources.scrap}.")
        return
    _send_force(ctx, tribe, action, JourneyType.BUILD_OUTPOST, action.target_location)


def execute_trade(ctx: TurnContext, tribe: Tribe, action: TradeAction) -> None:
    """Send a caravan to another tribe's home base.

    The offered goods leave the tribe now and ride with the escort. The
    target has until `response_deadline` to answer once the caravan arrives.
    """
    problem = _check_force(ctx, tribe, action)
    if problem:
        ctx.fail(tribe.id, action, problem)
        return
    target = ctx.tribe(action.target_tribe_id)
    if target is None or target.id == tribe.id:
        ctx.fail(tribe.id, action, f"There is no other tribe with id {action.target_tribe_id}.")
        return
    if tribe.relation_to(target.id) == DiplomaticStatus.WAR:
        ctx.fail(tribe.id, action, f"{target.name} will not receive caravans from an enemy.")
        return
    if action.offer.is_empty() and action.request.is_empty():
        ctx.fail(tribe.id, action, "A trade must offer or request something.")
        return
    stock = tribe.global_resources
    garrison = tribe.garrisons[action.start_location]
    if (
        stock.food < action.offer.food
        or stock.scrap < action.offer.scrap
        or garrison.weapons < action.weapons + action.offer.weapons
    ):
        ctx.fail(tribe.id, action, f"You cannot afford to send {action.offer.describe()}.")
        return
    if target.location == action.start_location:
        ctx.fail(tribe.id, action, "The caravan is already at the target's home base.")
        return

    stock.food -= action.offer.food
    stock.scrap -= action.offer.scrap
    garrison.weapons -= action.offer.weapons

    turns = travel_turns(action.start_location, target.location, ctx.effects(tribe).movement_speed)
    _send_force(
        ctx, tribe, action, JourneyType.TRADE, target.location,
        payload=action.offer.model_copy(),
        trade_offer=TradeOffer(request=action.request.model_copy(), from_tribe_name=tribe.name),
        target_tribe_id=target.id,
        response_deadline=ctx.turn + turns + TRADE_RESPONSE_WINDOW,
    )


# =============================================================================
# Stationary actions
# =============================================================================


def execute_recruit(ctx: TurnContext, tribe: Tribe, action: RecruitAction) -> None:
    garrison = tribe.garrisons.get(action.start_location)
    if garrison is None:
        ctx.fail(tribe.id, action, f"You have no garrison at {action.start_location}.")
        return
    if tribe.global_resources.food < action.food_offered:
        ctx.fail(tribe.id, action, f"You only have {tribe.global_resources.food} food.")
        return

    recruits = math.floor(
        action.food_offered
        * RECRUIT_FOOD_RATE
        * (1 + tribe.stats.charisma * RECRUIT_CHARISMA_BONUS)
        * (1 + ctx.effects(tribe).recruitment_discount)
    )
    if recruits < 1:
        ctx.fail(tribe.id, action, f"{action.food_offered} food is not enough to attract anyone.")
        return
    tribe.global_resources.food -= action.food_offered
    garrison.troops += recruits
    ctx.report(tribe.id, action.action_type,
               f"{recruits} recruits joined at {action.start_location} for {action.food_offered} food.",
               action_id=action.id, recruits=recruits)


def execute_rest(ctx: TurnContext, tribe: Tribe, action: RestAction) -> None:
    if action.start_location not in tribe.garrisons:
        ctx.fail(tribe.id, action, f"You have no garrison at {action.start_location}.")
        return
    gain = math.floor(ctx.rng.uniform(*REST_MORALE_RANGE) * (1 + tribe.stats.leadership * REST_LEADERSHIP_BONUS))
    gain += int(ctx.effects(tribe).morale_bonus)
    before = tribe.global_resources.morale
    tribe.global_resources.morale = int(clamp(before + gain, 0, MAX_MORALE))
    ctx.report(tribe.id, action.action_type,
               f"Your troops rested. Morale {before} -> {tribe.global_resources.morale}.",
               action_id=action.id, morale_gain=tribe.global_resources.morale - before)


def execute_build_weapons(ctx: TurnContext, tribe: Tribe, action: BuildWeaponsAction) -> None:
    garrison = tribe.garrisons.get(action.start_location)
    if garrison is None:
        ctx.fail(tribe.id, action, f"You have no garrison at {action.start_location}.")
        return
    if tribe.global_resources.scrap < action.scrap:
        ctx.fail(tribe.id, action, f"You only have {tribe.global_resources.scrap} scrap.")
        return

    built = math.floor(
        action.scrap
        * WEAPON_BUILD_RATE
        * (1 + tribe.stats.intelligence * WEAPON_BUILD_INTELLIGENCE_BONUS)
        * (1 + ctx.effects(tribe).weapon_production)
    )
    if built < 1:
        ctx.fail(tribe.id, action, f"{action.scrap} scrap is not enough to make a weapon.")
        return
    tribe.global_resources.scrap -= action.scrap
    garrison.weapons += built
    ctx.report(tribe.id, action.action_type, f"Built {built} weapons at {action.start_location}.",
               action_id=action.id, weapons=built)


def execute_set_rations(ctx: TurnContext, tribe: Tribe, action: SetRationsAction) -> None:
    tribe.ration_level = action.ration_level
    ctx.report(tribe.id, action.action_type, f"Rations set to {action.ration_level.value}.", action_id=action.id)


def execute_defend(ctx: TurnContext, tribe: Tribe, action: DefendAction) -> None:
    garrison = tribe.garrisons.get(action.start_location)
    if garrison is None:
        ctx.fail(tribe.id, action, f"You have no garrison at {action.start_location}.")
        return
    if action.troops > garrison.troops:
        ctx.fail(tribe.id, action, f"Only {garrison.troops} troops are at {action.start_location}.")
        return
    ctx.report(tribe.id, action.action_type,
               f"{action.troops or garrison.troops} troops stand guard at {action.start_location}.",
               action_id=action.id)


def execute_start_research(ctx: TurnContext, tribe: Tribe, action: StartResearchAction) -> None:
    """Begin a research project at a garrison.

    The scrap cost is paid immediately. Assigned troops stay in the garrison;
    progress each turn is limited by how many of them are still present.
    """
    tech = get_technology(action.tech_id)
    if tech is None:
        ctx.fail(tribe.id, action, f"Unknown technology {action.tech_id!r}.")
        return
    if tech.id in tribe.completed_techs:
        ctx.fail(tribe.id, action, f"{tech.name} is already known.")
        return
    if any(p.tech_id == tech.id for p in tribe.current_research):
        ctx.fail(tribe.id, action, f"{tech.name} is already being researched.")
        return
    if not prerequisites_met(tech, tribe.completed_techs):
        ctx.fail(tribe.id, action, f"{tech.name} requires {', '.join(tech.prerequisites)}.")
        return

    garrison = tribe.garrisons.get(action.location)
    if garrison is None:
        ctx.fail(tribe.id, action, f"You have no garrison at {action.location}.")
        return
    if any(p.location == action.location for p in tribe.current_research):
        ctx.fail(tribe.id, action, f"The garrison at {action.location} is already running a research project.")
        return
    if action.assigned_troops < tech.required_troops:
        ctx.fail(tribe.id, action, f"{tech.name} needs at least {tech.required_troops} troops assigned.")
        return
    if garrison.troops < action.assigned_troops:
        ctx.fail(tribe.id, action, f"Only {garrison.troops} troops are at {action.location}.")
        return
    if tribe.global_resources.scrap < tech.scrap_cost:
        ctx.fail(tribe.id, action, f"{tech.name} costs {tech.scrap_cost} scrap; you have {tribe.global_resources.scrap}.")
        return

    tribe.global_resources.scrap -= tech.scrap_cost
    tribe.current_research.append(
        ResearchProject(tech_id=tech.id, assigned_troops=action.assigned_troops, location=action.location)
    )
    ctx.report(tribe.id, action.action_type,
               f"Research on {tech.name} began at {action.location} with {action.assigned_troops} troops.",
               action_id=action.id, tech_id=tech.id)


def execute_respond_to_trade(ctx: TurnContext, tribe: Tribe, action: RespondToTradeAction) -> None:
    respond_to_trade(ctx, tribe, action.journey_id, action.accept, action_id=action.id)


_EXECUTORS: dict[ActionType, Executor] = {
    ActionType.MOVE: execute_move,
    ActionType.SCOUT: execute_scout,
    ActionType.SCAVENGE: execute_scavenge,
    ActionType.ATTACK: execute_attack,
    ActionType.BUILD_OUTPOST: execute_build_outpost,
    ActionType.TRADE: execute_trade,
    ActionType.SABOTAGE: sabotage.execute_sabotage,
    ActionType.RECRUIT: execute_recruit,
    ActionType.REST: execute_rest,
    ActionType.BUILD_WEAPONS: execute_build_weapons,
    ActionType.SET_RATIONS: execute_set_rations,
    ActionType.DEFEND: execute_defend,
    ActionType.START_RESEARCH: execute_start_research,
    ActionType.RESPOND_TO_TRADE: execute_respond_to_trade,
    ActionType.RELEASE_PRISONER: diplomacy.release_prisoner,
    ActionType.EXCHANGE_PRISONERS: diplomacy.exchange_prisoners,
    ActionType.RESPOND_TO_PRISONER_EXCHANGE: diplomacy.respond_to_prisoner_exchange,
    ActionType.PROPOSE_ALLIANCE: diplomacy.propose_alliance,
    ActionType.SUE_FOR_PEACE: diplomacy.sue_for_peace,
    ActionType.DECLARE_WAR: diplomacy.declare_war,
    ActionType.ACCEPT_PROPOSAL: diplomacy.accept_proposal,
    ActionType.REJECT_PROPOSAL: diplomacy.reject_proposal,
    ActionType.PROPOSE_TRADE_AGREEMENT: diplomacy.propose_trade_agreement,
    ActionType.SEND_DIPLOMATIC_MESSAGE: diplomacy.send_diplomatic_message,
}
