"""Aggregation of technology and asset effects for a tribe.

Technology effects stack additively. Asset effects are weakened as a tribe
collects more assets and are hard-capped, then added on top of the
technology totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tribes.data import EffectType, get_asset, get_technology
from tribes.models.state import Tribe
from tribes.parameters import ASSET_DIMINISHING_FLOOR, ASSET_DIMINISHING_STEP

ASSET_CAPS = {
    "passive_food": 15.0,
    "passive_scrap": 15.0,
    "scavenge_Food": 0.5,
    "scavenge_Scrap": 0.5,
    "scavenge_Weapons": 0.3,
    "attack": 0.25,
    "defense": 0.25,
    "movement": 0.5,
    "terrain": 0.4,
}


@dataclass
class CombinedEffects:
    """Totals of every modifier a tribe currently enjoys.

    Fractions are expressed as bonuses (0.1 = +10%). `movement_speed` is a
    multiplier where 1.0 is base speed.
    """

    passive_food: float = 0.0
    passive_scrap: float = 0.0
    scavenge_yield: dict[str, float] = field(
        default_factory=lambda: {"Food": 0.0, "Scrap": 0.0, "Weapons": 0.0}
    )
    scavenge_bonus: float = 0.0
    attack: float = 0.0
    defense: float = 0.0
    terrain_attack: dict[str, float] = field(default_factory=dict)
    terrain_defense: dict[str, float] = field(default_factory=dict)
    movement_speed: float = 1.0
    research_speed: float = 0.0
    weapon_production: float = 0.0
    recruitment_discount: float = 0.0
    visibility_bonus: int = 0
    sabotage_effectiveness: float = 0.0
    sabotage_resistance: float = 0.0
    morale_bonus: float = 0.0

    def attack_bonus(self, terrain: str) -> float:
        return self.attack + self.terrain_attack.get(terrain, 0.0)

    def defense_bonus(self, terrain: str) -> float:
        return self.defense + self.terrain_defense.get(terrain, 0.0)


def _apply(effects: CombinedEffects, effect_type: EffectType, value: float,
           resource: str | None, terrain: str | None) -> None:
    if effect_type == EffectType.PASSIVE_FOOD:
        effects.passive_food += value
    elif effect_type == EffectType.PASSIVE_SCRAP:
        effects.passive_scrap += value
    elif effect_type == EffectType.SCAVENGE_YIELD and resource:
        effects.scavenge_yield[resource] += value
    elif effect_type == EffectType.SCAVENGE_BONUS:
        effects.scavenge_bonus += value
    elif effect_type == EffectType.COMBAT_ATTACK:
        if terrain:
            effects.terrain_attack[terrain] = effects.terrain_attack.get(terrain, 0.0) + value
        else:
            effects.attack += value
    elif effect_type == EffectType.COMBAT_DEFENSE:
        if terrain:
            effects.terrain_defense[terrain] = effects.terrain_defense.get(terrain, 0.0) + value
        else:
            effects.defense += value
    elif effect_type == EffectType.MOVEMENT_SPEED:
        effects.movement_speed += value
    elif effect_type == EffectType.RESEARCH_SPEED:
        effects.research_speed += value
    elif effect_type == EffectType.WEAPON_PRODUCTION:
        effects.weapon_production += value
    elif effect_type == EffectType.RECRUITMENT_COST:
        effects.recruitment_discount += value
    elif effect_type == EffectType.VISIBILITY_RANGE:
        effects.visibility_bonus += int(value)
    elif effect_type == EffectType.SABOTAGE_EFFECTIVENESS:
        effects.sabotage_effectiveness += value
    elif effect_type == EffectType.SABOTAGE_RESISTANCE:
        effects.sabotage_resistance += value
    elif effect_type == EffectType.MORALE:
        effects.morale_bonus += value


def _tech_effects(tribe: Tribe) -> CombinedEffects:
    effects = CombinedEffects()
    for tech_id in tribe.completed_techs:
        tech = get_technology(tech_id)
        if tech is None:
            continue
        for effect in tech.effects:
            _apply(effects, effect.type, effect.value, effect.resource, effect.terrain)
    return effects


def _asset_effects(tribe: Tribe) -> CombinedEffects:
    effects = CombinedEffects()
    if not tribe.assets:
        return effects
    factor = max(ASSET_DIMINISHING_FLOOR, 1 - (len(tribe.assets) - 1) * ASSET_DIMINISHING_STEP)
    for name in tribe.assets:
        asset = get_asset(name)
        if asset is None:
            continue
        for effect in asset.effects:
            _apply(effects, effect.type, effect.value * factor, effect.resource, effect.terrain)

    effects.passive_food = min(effects.passive_food, ASSET_CAPS["passive_food"])
    effects.passive_scrap = min(effects.passive_scrap, ASSET_CAPS["passive_scrap"])
    for resource in effects.scavenge_yield:
        effects.scavenge_yield[resource] = min(
            effects.scavenge_yield[resource], ASSET_CAPS[f"scavenge_{resource}"]
        )
    effects.attack = min(effects.attack, ASSET_CAPS["attack"])
    effects.defense = min(effects.defense, ASSET_CAPS["defense"])
    effects.movement_speed = min(effects.movement_speed, 1.0 + ASSET_CAPS["movement"])
    for table in (effects.terrain_attack, effects.terrain_defense):
        for terrain in table:
            table[terrain] = min(table[terrain], ASSET_CAPS["terrain"])
    return effects


def get_combined_effects(tribe: Tribe) -> CombinedEffects:
    """Sum technology and (capped) asset effects for a tribe."""
    tech = _tech_effects(tribe)
    asset = _asset_effects(tribe)

    combined = CombinedEffects(
        passive_food=tech.passive_food + asset.passive_food,
        passive_scrap=tech.passive_scrap + asset.passive_scrap,
        scavenge_yield={
            k: tech.scavenge_yield[k] + asset.scavenge_yield[k] for k in tech.scavenge_yield
        },
        scavenge_bonus=tech.scavenge_bonus + asset.scavenge_bonus,
        attack=tech.attack + asset.attack,
        defense=tech.defense + asset.defense,
        movement_speed=tech.movement_speed + (asset.movement_speed - 1.0),
        research_speed=tech.research_speed + asset.research_speed,
        weapon_production=tech.weapon_production + asset.weapon_production,
        recruitment_discount=tech.recruitment_discount + asset.recruitment_discount,
        visibility_bonus=tech.visibility_bonus + asset.visibility_bonus,
        sabotage_effectiveness=tech.sabotage_effectiveness + asset.sabotage_effectiveness,
        sabotage_resistance=tech.sabotage_resistance + asset.sabotage_resistance,
        morale_bonus=tech.morale_bonus + asset.morale_bonus,
    )
    for terrain in set(tech.terrain_attack) | set(asset.terrain_attack):
        combined.terrain_attack[terrain] = tech.terrain_attack.get(terrain, 0.0) + asset.terrain_attack.get(terrain, 0.0)
    for terrain in set(tech.terrain_defense) | set(asset.terrain_defense):
        combined.terrain_defense[terrain] = tech.terrain_defense.get(terrain, 0.0) + asset.terrain_defense.get(terrain, 0.0)
    return combined
