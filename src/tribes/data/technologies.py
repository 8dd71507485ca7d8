"""Technology tree catalog.

Static lookup data keyed by technology id. Research cost is paid in scrap up
front; a project then needs `research_points` of progress, accrued from the
troops assigned to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class EffectType(str, Enum):
    """What a technology or asset effect modifies."""

    PASSIVE_FOOD = "PASSIVE_FOOD_GENERATION"
    PASSIVE_SCRAP = "PASSIVE_SCRAP_GENERATION"
    SCAVENGE_YIELD = "SCAVENGE_YIELD_BONUS"
    SCAVENGE_BONUS = "SCAVENGE_BONUS"
    COMBAT_ATTACK = "COMBAT_BONUS_ATTACK"
    COMBAT_DEFENSE = "COMBAT_BONUS_DEFENSE"
    MOVEMENT_SPEED = "MOVEMENT_SPEED_BONUS"
    RECRUITMENT_COST = "RECRUITMENT_COST_REDUCTION"
    WEAPON_PRODUCTION = "WEAPON_PRODUCTION_BONUS"
    RESEARCH_SPEED = "RESEARCH_SPEED_BONUS"
    MORALE = "MORALE_BONUS"
    TRADE = "TRADE_BONUS"
    VISIBILITY_RANGE = "VISIBILITY_RANGE_BONUS"
    SABOTAGE_RESISTANCE = "SABOTAGE_RESISTANCE"
    SABOTAGE_EFFECTIVENESS = "SABOTAGE_EFFECTIVENESS"
    RESOURCE_CAPACITY = "RESOURCE_CAPACITY_BONUS"
    CHIEF_RECRUITMENT = "CHIEF_RECRUITMENT_BONUS"


@dataclass(frozen=True)
class Effect:
    """A single modifier.

    Attributes:
        type: What is modified
        value: Flat amount for passive generation, fraction otherwise
        resource: Resource name for scavenge yield bonuses
        terrain: Terrain name for terrain-specific combat bonuses
    """

    type: EffectType
    value: float
    resource: str | None = None
    terrain: str | None = None


@dataclass(frozen=True)
class Technology:
    id: str
    name: str
    branch: str
    scrap_cost: int
    research_points: int
    required_troops: int
    prerequisites: tuple[str, ...] = ()
    effects: tuple[Effect, ...] = field(default_factory=tuple)

    @property
    def tier(self) -> int:
        return 1 if not self.prerequisites else 2


E = EffectType


def _tech(id, name, branch, cost, points, troops, prereqs=(), effects=()):
    return Technology(id, name, branch, cost, points, troops, tuple(prereqs), tuple(effects))


TECHNOLOGIES: tuple[Technology, ...] = (
    # Farming
    _tech("basic-farming", "Basic Farming", "Farming", 30, 20, 5, (), [Effect(E.PASSIVE_FOOD, 10)]),
    _tech("crop-rotation", "Crop Rotation", "Farming", 60, 60, 10, ["basic-farming"], [Effect(E.PASSIVE_FOOD, 15)]),
    _tech("hydroponics", "Hydroponics", "Farming", 120, 100, 15, ["crop-rotation"], [Effect(E.PASSIVE_FOOD, 25)]),
    # Scavenging
    _tech("scavenging-basics", "Scavenging Basics", "Scavenging", 25, 15, 5, (), [
        Effect(E.SCAVENGE_YIELD, 0.1, resource="Food"),
        Effect(E.SCAVENGE_YIELD, 0.1, resource="Scrap"),
    ]),
    _tech("advanced-scavenging", "Advanced Scavenging", "Scavenging", 75, 50, 10, ["scavenging-basics"], [
        Effect(E.SCAVENGE_YIELD, 0.15, resource="Scrap"),
        Effect(E.SCAVENGE_YIELD, 0.15, resource="Weapons"),
    ]),
    _tech("geological-surveying", "Geological Surveying", "Scavenging", 150, 80, 12, ["advanced-scavenging"], [
        Effect(E.SCAVENGE_YIELD, 0.20, resource="Scrap"),
    ]),
    # Attack
    _tech("sharpened-sticks", "Sharpened Sticks", "Attack", 35, 25, 5, (), [Effect(E.COMBAT_ATTACK, 0.05)]),
    _tech("forged-blades", "Forged Blades", "Attack", 80, 70, 10, ["sharpened-sticks"], [Effect(E.COMBAT_ATTACK, 0.10)]),
    _tech("composite-bows", "Composite Bows", "Attack", 160, 120, 15, ["forged-blades"], [Effect(E.COMBAT_ATTACK, 0.15)]),
    # Defense
    _tech("basic-fortifications", "Basic Fortifications", "Defense", 40, 32, 8, (), [Effect(E.COMBAT_DEFENSE, 0.05)]),
    _tech("watchtowers", "Watchtowers", "Defense", 60, 60, 10, ["basic-fortifications"], [Effect(E.VISIBILITY_RANGE, 1)]),
    _tech("reinforced-concrete", "Reinforced Concrete", "Defense", 120, 100, 20, ["watchtowers"], [Effect(E.COMBAT_DEFENSE, 0.15)]),
    # Intelligence
    _tech("reconnaissance", "Reconnaissance", "Intelligence", 45, 30, 6, (), [Effect(E.VISIBILITY_RANGE, 1)]),
    _tech("spy-networks", "Spy Networks", "Intelligence", 90, 80, 12, ["reconnaissance"], [Effect(E.SABOTAGE_EFFECTIVENESS, 0.25)]),
    _tech("counter-intelligence", "Counter-Intelligence", "Intelligence", 150, 120, 18, ["spy-networks"], [
        Effect(E.SABOTAGE_RESISTANCE, 0.30),
    ]),
    # Engineering
    _tech("basic-engineering", "Basic Engineering", "Engineering", 50, 40, 8, (), [Effect(E.WEAPON_PRODUCTION, 0.20)]),
    _tech("advanced-metallurgy", "Advanced Metallurgy", "Engineering", 100, 90, 15, ["basic-engineering"], [
        Effect(E.WEAPON_PRODUCTION, 0.30),
    ]),
    _tech("precision-manufacturing", "Precision Manufacturing", "Engineering", 200, 150, 25, ["advanced-metallurgy"], [
        Effect(E.WEAPON_PRODUCTION, 0.25),
        Effect(E.PASSIVE_SCRAP, 15),
    ]),
    # Medicine
    _tech("first-aid", "First Aid", "Medicine", 40, 35, 7, (), [Effect(E.RECRUITMENT_COST, 0.15)]),
    _tech("surgery", "Surgery", "Medicine", 85, 75, 12, ["first-aid"], [
        Effect(E.MORALE, 15),
        Effect(E.RECRUITMENT_COST, 0.20),
    ]),
    _tech("genetic-engineering", "Genetic Engineering", "Medicine", 180, 140, 22, ["surgery"], [
        Effect(E.CHIEF_RECRUITMENT, 0.50),
        Effect(E.COMBAT_ATTACK, 0.15),
        Effect(E.COMBAT_DEFENSE, 0.15),
    ]),
    # Energy
    _tech("solar-panels", "Solar Panels", "Energy", 60, 50, 10, (), [Effect(E.PASSIVE_SCRAP, 8)]),
    _tech("wind-turbines", "Wind Turbines", "Energy", 120, 100, 16, ["solar-panels"], [Effect(E.PASSIVE_SCRAP, 12)]),
    _tech("fusion-reactors", "Fusion Reactors", "Energy", 250, 200, 30, ["wind-turbines"], [
        Effect(E.PASSIVE_SCRAP, 25),
        Effect(E.COMBAT_ATTACK, 0.20),
    ]),
    # Transportation
    _tech("pack-animals", "Pack Animals", "Transportation", 35, 25, 5, (), [Effect(E.MOVEMENT_SPEED, 0.15)]),
    _tech("vehicles", "Vehicles", "Transportation", 80, 70, 12, ["pack-animals", "basic-engineering"], [
        Effect(E.MOVEMENT_SPEED, 0.25),
    ]),
    _tech("aircraft", "Aircraft", "Transportation", 200, 160, 25, ["vehicles", "fusion-reactors"], [
        Effect(E.MOVEMENT_SPEED, 0.50),
        Effect(E.VISIBILITY_RANGE, 2),
    ]),
    # Economics
    _tech("currency-systems", "Currency Systems", "Economics", 45, 40, 8, (), [Effect(E.TRADE, 0.30)]),
    _tech("banking", "Banking", "Economics", 90, 80, 14, ["currency-systems"], [Effect(E.RESOURCE_CAPACITY, 0.50)]),
    _tech("trade-routes", "Trade Routes", "Economics", 150, 120, 20, ["banking"], [
        Effect(E.PASSIVE_FOOD, 5),
        Effect(E.PASSIVE_SCRAP, 5),
        Effect(E.TRADE, 0.25),
    ]),
    # Research
    _tech("scientific-method", "Scientific Method", "Research", 55, 45, 9, (), [Effect(E.RESEARCH_SPEED, 0.25)]),
    _tech("advanced-laboratories", "Advanced Laboratories", "Research", 110, 95, 16, ["scientific-method"], [
        Effect(E.RESEARCH_SPEED, 0.35),
    ]),
    _tech("quantum-computing", "Quantum Computing", "Research", 220, 180, 28, ["advanced-laboratories", "fusion-reactors"], [
        Effect(E.RESEARCH_SPEED, 0.50),
        Effect(E.PASSIVE_SCRAP, 10),
    ]),
    # Warfare
    _tech("guerrilla-tactics", "Guerrilla Tactics", "Warfare", 65, 55, 11, ["sharpened-sticks"], [
        Effect(E.COMBAT_ATTACK, 0.15, terrain="Forest"),
        Effect(E.COMBAT_DEFENSE, 0.10, terrain="Mountains"),
    ]),
    _tech("siege-warfare", "Siege Warfare", "Warfare", 130, 110, 18, ["guerrilla-tactics", "basic-engineering"], [
        Effect(E.COMBAT_ATTACK, 0.30),
        Effect(E.SABOTAGE_EFFECTIVENESS, 0.20),
    ]),
    _tech("powered-exoskeletons", "Powered Exoskeletons", "Warfare", 280, 220, 35,
          ["siege-warfare", "fusion-reactors", "genetic-engineering"], [
        Effect(E.COMBAT_ATTACK, 0.40),
        Effect(E.COMBAT_DEFENSE, 0.35),
        Effect(E.MOVEMENT_SPEED, 0.30),
    ]),
    # Archaeology
    _tech("artifact-hunting", "Artifact Hunting", "Archaeology", 50, 40, 8, (), [Effect(E.SCAVENGE_BONUS, 0.40)]),
    _tech("ancient-technology", "Ancient Technology", "Archaeology", 140, 120, 20, ["artifact-hunting", "scientific-method"], [
        Effect(E.SCAVENGE_BONUS, 0.30),
        Effect(E.RESEARCH_SPEED, 0.20),
        Effect(E.PASSIVE_SCRAP, 8),
    ]),
    _tech("alien-artifacts", "Alien Artifacts", "Archaeology", 300, 250, 40, ["ancient-technology", "quantum-computing"], [
        Effect(E.COMBAT_ATTACK, 0.25),
        Effect(E.COMBAT_DEFENSE, 0.25),
        Effect(E.RESEARCH_SPEED, 0.30),
        Effect(E.PASSIVE_SCRAP, 20),
    ]),
)

_BY_ID = {tech.id: tech for tech in TECHNOLOGIES}


def get_technology(tech_id: str) -> Technology | None:
    """Look up a technology by id."""
    return _BY_ID.get(tech_id)


def tier_one_technologies() -> list[Technology]:
    """Technologies with no prerequisites, in catalog order."""
    return [tech for tech in TECHNOLOGIES if not tech.prerequisites]


def prerequisites_met(tech: Technology, completed: list[str] | set[str]) -> bool:
    return all(p in completed for p in tech.prerequisites)
