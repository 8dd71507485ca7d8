"""Arrival effects for journeys reaching their destination.

Each handler receives a journey that has already been taken off the journey
list. Destinations are re-examined at arrival time, since ownership,
diplomacy and POIs may have changed since departure.
"""

from __future__ import annotations

import logging
import math

from tribes.data import tier_one_technologies
from tribes.engine.combat import CombatContext, CombatOutcome, resolve_combat
from tribes.engine.context import (
    TurnContext,
    deposit_payload,
    merge_force,
    nearest_garrison,
)
from tribes.models.actions import ActionType, Payload, ResourceType
from tribes.models.hexmap import POI, POIRarity, POIType, TerrainType
from tribes.models.state import (
    Chief,
    DiplomaticStatus,
    Force,
    InjuredChief,
    Journey,
    JourneyStatus,
    JourneyType,
    PrisonerChief,
    Tribe,
)
from tribes.parameters import (
    BANDIT_CAMP_ATTRITION,
    CHIEF_CAPTURE_CHANCE,
    CHIEF_INJURY_CHANCE,
    CHIEF_INJURY_TURNS,
    OUTPOST_SCRAP_COST,
    POISON_EFFECTIVENESS_PENALTY,
    RADIATION_ATTRITION,
    RARITY_YIELD_MULTIPLIERS,
    SCAVENGE_FOOD_RATE,
    SCAVENGE_SCRAP_RATE,
    SCAVENGE_WEAPONS_RATE,
    SCOUT_RANGE,
    TERRAIN_DEFENSE_BONUS,
    VAULT_SCRAP_RANGE,
    VAULT_TECH_CHANCE,
    VAULT_WEAPONS_RANGE,
    VISIBILITY_RANGE,
)
from tribes.spatial import get_hexes_in_range

logger = logging.getLogger(__name__)

_SCRAP_RICH_POIS = {POIType.SCRAPYARD, POIType.FACTORY, POIType.CRATER, POIType.RUINS}


def resolve_arrival(ctx: TurnContext, journey: Journey) -> None:
    """Fire the arrival effects of a journey that has reached its destination."""
    tribe = ctx.tribe(journey.owner_tribe_id)
    if tribe is None:
        logger.warning(f"Dropping journey {journey.id}: owner {journey.owner_tribe_id} no longer exists")
        return

    handler = _HANDLERS[journey.type]
    handler(ctx, tribe, journey)


def _reveal_around(ctx: TurnContext, tribe: Tribe, key: str, radius: int) -> int:
    return tribe.reveal(get_hexes_in_range(key, radius))


def _visibility(ctx: TurnContext, tribe: Tribe) -> int:
    return VISIBILITY_RANGE + ctx.effects(tribe).visibility_bonus


def _at_war(a: Tribe, b: Tribe) -> bool:
    return a.relation_to(b.id) == DiplomaticStatus.WAR


# =============================================================================
# Move / Attack
# =============================================================================


def _arrive_move(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    dest = journey.destination
    owner = ctx.owner_of(dest)

    if owner is None or owner.id == tribe.id:
        merge_force(tribe, dest, journey.force)
        _reveal_around(ctx, tribe, dest, _visibility(ctx, tribe))
        ctx.report(
            tribe.id, ActionType.MOVE,
            f"A force of {journey.force.troops} troops and {len(journey.force.chiefs)} chiefs "
            f"arrived at {dest}.",
            location=dest, troops=journey.force.troops,
        )
        return

    if _at_war(tribe, owner):
        fight(ctx, tribe, journey, owner)
        return

    ctx.report(
        tribe.id, ActionType.MOVE,
        f"Your force found {dest} held by {owner.name}, who are not at war with you, and turned back.",
        success=False, location=dest,
    )
    ctx.send_home(tribe, journey.force, dest, journey.origin, source_id=journey.id)


def _arrive_attack(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    dest = journey.destination
    owner = ctx.owner_of(dest)

    if owner is None:
        merge_force(tribe, dest, journey.force)
        _reveal_around(ctx, tribe, dest, _visibility(ctx, tribe))
        ctx.report(
            tribe.id, ActionType.ATTACK,
            f"Your attackers found {dest} undefended and occupied it.",
            location=dest, occupied=True,
        )
        return

    if owner.id == tribe.id:
        merge_force(tribe, dest, journey.force)
        ctx.report(tribe.id, ActionType.ATTACK, f"Your attackers reinforced your own garrison at {dest}.", location=dest)
        return

    if not _at_war(tribe, owner):
        ctx.report(
            tribe.id, ActionType.ATTACK,
            f"Your attack on {dest} was called off: you are no longer at war with {owner.name}.",
            success=False, location=dest,
        )
        ctx.send_home(tribe, journey.force, dest, journey.origin, source_id=journey.id)
        return

    fight(ctx, tribe, journey, owner)


def _chief_fates(
    ctx: TurnContext, loser: Tribe, winner: Tribe, chiefs: list[Chief], location: str
) -> tuple[list[Chief], list[str], list[str]]:
    """Roll capture and injury for each chief on the losing side.

    Returns:
        Tuple of (survivors, captured names, injured names)
    """
    survivors, captured, injured = [], [], []
    for chief in chiefs:
        if ctx.rng.random() < CHIEF_CAPTURE_CHANCE:
            winner.prisoners.append(
                PrisonerChief(chief=chief, from_tribe_id=loser.id, captured_on_turn=ctx.turn)
            )
            captured.append(chief.name)
        elif ctx.rng.random() < CHIEF_INJURY_CHANCE:
            return_turn = ctx.turn + ctx.rng.randint(*CHIEF_INJURY_TURNS)
            loser.injured_chiefs.append(
                InjuredChief(chief=chief, return_turn=return_turn, from_hex=location)
            )
            injured.append(chief.name)
        else:
            survivors.append(chief)
    return survivors, captured, injured


def _battle_context(ctx: TurnContext, attacker: Tribe, defender: Tribe, key: str) -> CombatContext:
    hex_data = ctx.hex(key)
    terrain = hex_data.terrain.value if hex_data else TerrainType.PLAINS.value
    poi = hex_data.poi if hex_data else None
    is_outpost = bool(
        poi is not None
        and poi.is_fortification_active(ctx.turn)
        and poi.outpost_owner in (None, defender.id)
    )
    garrison = defender.garrisons[key]
    weakened = 0.0
    if garrison.poisoned_until_turn is not None and ctx.turn < garrison.poisoned_until_turn:
        weakened = garrison.poisoned_troops * POISON_EFFECTIVENESS_PENALTY

    return CombatContext(
        terrain_defense_bonus=TERRAIN_DEFENSE_BONUS.get(terrain, 0.0),
        is_outpost=is_outpost,
        is_home_base=key == defender.location,
        attack_bonus=ctx.effects(attacker).attack_bonus(terrain),
        defense_bonus=ctx.effects(defender).defense_bonus(terrain),
        defender_weakened_troops=weakened,
    )


def fight(ctx: TurnContext, attacker: Tribe, journey: Journey, defender: Tribe) -> CombatOutcome:
    """Resolve a battle between an arriving force and the garrison at its destination.

    The attacking force in `journey` and the defending garrison are mutated in
    place. Afterwards:
    - attacker wins and no defending troops are left: the attacker occupies
      the hex and surviving chiefs fall back to the nearest other garrison
    - attacker wins but defending troops survive: they hold the hex and the
      attacker's survivors go home
    - defender wins: attacker survivors return to their origin
    """
    key = journey.destination
    force = journey.force
    garrison = defender.garrisons[key]
    context = _battle_context(ctx, attacker, defender, key)
    troops_before = (force.troops, garrison.troops)

    outcome = resolve_combat(force, garrison, context, ctx.rng)

    force.troops -= outcome.attacker_losses
    force.weapons -= outcome.attacker_weapon_losses
    garrison.troops -= outcome.defender_losses
    garrison.weapons -= outcome.defender_weapon_losses
    garrison.poisoned_troops = min(garrison.poisoned_troops, garrison.troops)

    data = {
        "location": key,
        "winner": outcome.winner,
        "attacker": attacker.id,
        "defender": defender.id,
        "attacker_troops_before": troops_before[0],
        "defender_troops_before": troops_before[1],
        "attacker_losses": outcome.attacker_losses,
        "defender_losses": outcome.defender_losses,
        "attacker_weapon_losses": outcome.attacker_weapon_losses,
        "defender_weapon_losses": outcome.defender_weapon_losses,
    }
    logger.info(
        f"[turn {ctx.turn}] Battle at {key}: {attacker.id} ({troops_before[0]}) vs "
        f"{defender.id} ({troops_before[1]}), winner={outcome.winner}, "
        f"losses {outcome.attacker_losses}/{outcome.defender_losses}"
    )

    if outcome.attacker_won:
        survivors, captured, injured = _chief_fates(ctx, defender, attacker, garrison.chiefs, key)
        garrison.chiefs = survivors
        retreat_to = nearest_garrison(defender, key, exclude=key)

        # The hex only changes hands once no defending troops are left
        if garrison.troops == 0 and (not garrison.chiefs or retreat_to is not None):
            retreating = Force(troops=0, weapons=garrison.weapons, chiefs=garrison.chiefs)
            del defender.garrisons[key]
            if retreating.chiefs:
                ctx.send_home(defender, retreating, key, retreat_to)
            merge_force(attacker, key, force)
            hex_data = ctx.hex(key)
            if hex_data and hex_data.poi and hex_data.poi.fortified:
                hex_data.poi.outpost_owner = attacker.id
            _reveal_around(ctx, attacker, key, _visibility(ctx, attacker))
            ctx.report(
                attacker.id, ActionType.ATTACK,
                f"Victory at {key}! {defender.name} lost {outcome.defender_losses} troops and the hex is yours. "
                f"You lost {outcome.attacker_losses}.",
                occupied=True, captured_chiefs=captured, **data,
            )
            ctx.report(
                defender.id, ActionType.ATTACK,
                f"{attacker.name} overran {key}. You lost {outcome.defender_losses} troops"
                + (f"; your chiefs fall back to {retreat_to}." if retreating.chiefs else "."),
                success=False, lost_hex=key, captured_chiefs=captured, injured_chiefs=injured, **data,
            )
        else:
            ctx.send_home(attacker, force, key, journey.origin, source_id=journey.id)
            ctx.report(
                attacker.id, ActionType.ATTACK,
                f"You won the battle at {key} ({outcome.defender_losses} enemy dead, {outcome.attacker_losses} of yours), "
                f"but {defender.name}'s last {garrison.troops} defenders still hold it. Your force withdraws.",
                occupied=False, captured_chiefs=captured, **data,
            )
            ctx.report(
                defender.id, ActionType.ATTACK,
                f"{attacker.name} beat your garrison at {key}, but your survivors refuse to yield. "
                f"You lost {outcome.defender_losses} troops.",
                success=False, injured_chiefs=injured, **data,
            )
    else:
        survivors, captured, injured = _chief_fates(ctx, attacker, defender, force.chiefs, key)
        force.chiefs = survivors
        if force.troops > 0 or force.chiefs:
            ctx.send_home(attacker, force, key, journey.origin, source_id=journey.id)
        ctx.report(
            attacker.id, ActionType.ATTACK,
            f"Your attack on {key} was repulsed by {defender.name}. You lost {outcome.attacker_losses} troops.",
            success=False, injured_chiefs=injured, **data,
        )
        ctx.report(
            defender.id, ActionType.ATTACK,
            f"Your garrison at {key} repelled {attacker.name}, killing {outcome.attacker_losses} "
            f"for {outcome.defender_losses} of your own.",
            captured_chiefs=captured, **data,
        )
    return outcome


# =============================================================================
# Scout / Scavenge / Outpost
# =============================================================================


def _arrive_scout(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    new = _reveal_around(ctx, tribe, journey.destination, SCOUT_RANGE)
    if new:
        message = f"Scouts surveyed {journey.destination}, revealing {new} new hexes."
    else:
        message = f"Scouts surveyed {journey.destination}, but found no new territory."
    ctx.report(tribe.id, ActionType.SCOUT, message, location=journey.destination, revealed=new)
    ctx.send_home(tribe, journey.force, journey.destination, journey.origin, source_id=journey.id)


def _scavenge_yield(
    ctx: TurnContext, tribe: Tribe, journey: Journey, scavengers: int, terrain: TerrainType, poi: POI | None
) -> Payload:
    effects = ctx.effects(tribe)
    resource = journey.scavenge_type or ResourceType.FOOD
    bonus = 1.0 + effects.scavenge_yield.get(resource.value, 0.0) + effects.scavenge_bonus
    rarity = RARITY_YIELD_MULTIPLIERS[poi.rarity.value] if poi else 1.0
    poi_type = poi.type if poi else None

    if resource == ResourceType.FOOD:
        multiplier = 1.5 if terrain in (TerrainType.FOREST, TerrainType.SWAMP) else 0.5
        if poi_type == POIType.FOOD_SOURCE:
            multiplier = 3.0
        return Payload(food=math.floor(SCAVENGE_FOOD_RATE * scavengers * multiplier * bonus * rarity))
    if resource == ResourceType.SCRAP:
        multiplier = 3.5 if poi_type in _SCRAP_RICH_POIS else 1.2
        return Payload(scrap=math.floor(SCAVENGE_SCRAP_RATE * scavengers * multiplier * bonus * rarity))

    multiplier = 1.0
    if poi_type == POIType.BATTLEFIELD:
        multiplier = 4.0
    elif poi_type == POIType.WEAPONS_CACHE:
        multiplier = 3.0
    base = ctx.rng.random() * scavengers * SCAVENGE_WEAPONS_RATE
    return Payload(weapons=math.floor(base * multiplier * bonus * rarity))


def _arrive_scavenge(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    dest = journey.destination
    hex_data = ctx.hex(dest)
    if hex_data is None:
        ctx.report(tribe.id, ActionType.SCAVENGE, f"Scavenging failed: {dest} is off the map.", success=False)
        ctx.send_home(tribe, journey.force, dest, journey.origin, source_id=journey.id)
        return

    occupant = ctx.owner_of(dest)
    if occupant is not None and occupant.id != tribe.id:
        ctx.report(
            tribe.id, ActionType.SCAVENGE,
            f"Your scavengers found {dest} occupied by {occupant.name} and came back empty-handed.",
            success=False, location=dest,
        )
        ctx.send_home(tribe, journey.force, dest, journey.origin, source_id=journey.id)
        return

    poi = hex_data.poi
    force = journey.force
    notes = []
    scavengers = force.troops
    if hex_data.terrain == TerrainType.RADIATION:
        lost = math.ceil(scavengers * RADIATION_ATTRITION)
        scavengers -= lost
        notes.append(f"Radiation claimed {lost} scavengers.")
    if poi is not None and poi.type == POIType.BANDIT_CAMP:
        lost = math.ceil(scavengers * BANDIT_CAMP_ATTRITION)
        scavengers -= lost
        notes.append(f"Bandits killed {lost} scavengers.")

    if scavengers <= 0:
        notes.append("The scavenging party was wiped out.")
        ctx.report(tribe.id, ActionType.SCAVENGE, " ".join(notes), success=False, location=dest)
        if force.chiefs:
            ctx.send_home(tribe, Force(chiefs=force.chiefs), dest, journey.origin, source_id=journey.id)
        return

    # Losses come out of troops first; weapons carried are kept
    force.troops = scavengers

    if poi is not None and poi.type == POIType.VAULT:
        payload = Payload(
            scrap=ctx.rng.randint(*VAULT_SCRAP_RANGE),
            weapons=ctx.rng.randint(*VAULT_WEAPONS_RANGE),
        )
        notes.append(f"The party breached the Vault and found {payload.describe()}.")
        if ctx.rng.random() < VAULT_TECH_CHANCE:
            unlearned = [t for t in tier_one_technologies() if t.id not in tribe.completed_techs]
            if unlearned:
                tech = ctx.rng.choice(unlearned)
                tribe.completed_techs.append(tech.id)
                notes.append(f"Inside were data slates describing {tech.name}!")
        hex_data.poi = POI(id=poi.id, type=POIType.RUINS, difficulty=3, rarity=POIRarity.COMMON)
    else:
        payload = _scavenge_yield(ctx, tribe, journey, scavengers, hex_data.terrain, poi)
        if poi is not None and poi.type == POIType.WEAPONS_CACHE and payload.weapons > 0:
            hex_data.poi = None
            notes.append("The weapons cache is now exhausted.")
        notes.insert(0, f"Scavengers at {dest} gathered {payload.describe()}.")

    ctx.report(
        tribe.id, ActionType.SCAVENGE, " ".join(notes),
        location=dest, gathered=payload.model_dump(), survivors=scavengers,
    )
    ctx.send_home(tribe, force, dest, journey.origin, payload=payload, source_id=journey.id)


def _arrive_build_outpost(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    dest = journey.destination
    hex_data = ctx.hex(dest)
    owner = ctx.owner_of(dest)

    if hex_data is None or (owner is not None and owner.id != tribe.id):
        reason = "is off the map" if hex_data is None else f"is already held by {owner.name}"
        ctx.report(
            tribe.id, ActionType.BUILD_OUTPOST,
            f"Could not build an outpost: {dest} {reason}. Builders are returning home.",
            success=False, location=dest,
        )
        ctx.send_home(tribe, journey.force, dest, journey.origin, source_id=journey.id)
        return

    if tribe.global_resources.scrap < OUTPOST_SCRAP_COST:
        ctx.report(
            tribe.id, ActionType.BUILD_OUTPOST,
            f"Failed to build outpost at {dest}: need {OUTPOST_SCRAP_COST} scrap. Builders are returning home.",
            success=False, location=dest,
        )
        ctx.send_home(tribe, journey.force, dest, journey.origin, source_id=journey.id)
        return

    tribe.global_resources.scrap -= OUTPOST_SCRAP_COST
    merge_force(tribe, dest, journey.force)
    if hex_data.poi is None:
        hex_data.poi = POI(
            id=f"poi-outpost-{dest}",
            type=POIType.OUTPOST,
            rarity=POIRarity.UNCOMMON,
            fortified=True,
            outpost_owner=tribe.id,
        )
    else:
        hex_data.poi.fortified = True
        hex_data.poi.outpost_owner = tribe.id
        hex_data.poi.disabled_until_turn = None
    _reveal_around(ctx, tribe, dest, _visibility(ctx, tribe))
    ctx.report(
        tribe.id, ActionType.BUILD_OUTPOST,
        f"Established a fortified outpost at {dest}.",
        location=dest, scrap_spent=OUTPOST_SCRAP_COST,
    )


# =============================================================================
# Return / Trade
# =============================================================================


def _arrive_return(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    dest = journey.destination
    owner = ctx.owner_of(dest)

    if owner is not None and owner.id != tribe.id:
        fallback = nearest_garrison(tribe, dest)
        if fallback is None:
            ctx.report(
                tribe.id, ActionType.ARRIVAL,
                f"Your returning party found {dest} in the hands of {owner.name} and had nowhere left to go. "
                f"They scattered into the wastes.",
                success=False, location=dest,
            )
            return
        ctx.send_home(tribe, journey.force, dest, fallback, payload=journey.payload)
        ctx.report(
            tribe.id, ActionType.ARRIVAL,
            f"Your returning party found {dest} taken by {owner.name} and is diverting to {fallback}.",
            success=False, location=dest,
        )
        return

    merge_force(tribe, dest, journey.force)
    deposit_payload(tribe, dest, journey.payload)
    brought = journey.payload.describe()
    ctx.report(
        tribe.id, ActionType.ARRIVAL,
        f"A party returned to {dest}"
        + (f" bringing {brought}." if not journey.payload.is_empty() else " empty-handed."),
        location=dest, payload=journey.payload.model_dump(), troops=journey.force.troops,
    )


def _arrive_trade(ctx: TurnContext, tribe: Tribe, journey: Journey) -> None:
    target = ctx.tribe(journey.target_tribe_id)
    if target is None or not target.garrisons:
        ctx.report(
            tribe.id, ActionType.TRADE,
            f"Your caravan reached {journey.destination} but its trading partner is gone. It turns back.",
            success=False,
        )
        ctx.send_home(tribe, journey.force, journey.destination, journey.origin,
                      payload=journey.payload, source_id=journey.id)
        return

    journey.status = JourneyStatus.AWAITING_RESPONSE
    journey.arrival_turn = 0
    ctx.add_journey(journey)
    ctx.report(
        tribe.id, ActionType.TRADE,
        f"Your caravan arrived at {target.name}'s base and awaits an answer until turn {journey.response_deadline}.",
        journey_id=journey.id,
    )
    request = journey.trade_offer.request if journey.trade_offer else Payload()
    ctx.report(
        target.id, ActionType.RESPOND_TO_TRADE,
        f"A caravan from {tribe.name} offers {journey.payload.describe()} for {request.describe()}. "
        f"Answer by turn {journey.response_deadline}.",
        journey_id=journey.id,
    )


_HANDLERS = {
    JourneyType.MOVE: _arrive_move,
    JourneyType.ATTACK: _arrive_attack,
    JourneyType.SCAVENGE: _arrive_scavenge,
    JourneyType.SCOUT: _arrive_scout,
    JourneyType.BUILD_OUTPOST: _arrive_build_outpost,
    JourneyType.RETURN: _arrive_return,
    JourneyType.TRADE: _arrive_trade,
}
