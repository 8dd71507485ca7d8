"""Balance parameters for the Tribes turn engine.

This module is the SINGLE SOURCE OF TRUTH for all tunable game constants.
Engine modules import from here; nothing else should hard-code a balance
number.

Parameter Categories:
- Movement & Visibility: travel times, reveal radii
- Combat: strength, casualty intensity, fortification lethality
- Economy: scavenging, recruiting, weapon production, upkeep
- Sabotage: success and detection odds
- Diplomacy: proposal expiry, truces, trade windows

Usage:
    from tribes.parameters import TURNS_PER_HEX, WEAPON_STRENGTH_FACTOR
"""

# =============================================================================
# MOVEMENT & VISIBILITY
# =============================================================================

COORDINATE_OFFSET = 50
"""Offset added to axial q/r when formatting hex keys.

Hex keys are fixed-width "QQQ.RRR" strings, so (0, 0) is "050.050".
Valid axial coordinates are therefore -50..949 on each axis.
"""

TURNS_PER_HEX = 0.5
"""Base turns needed to cross one hex before speed modifiers.

A 2-hex trip takes 1 turn, a 4-hex trip 2 turns. Movement speed bonuses
(techs, assets) divide this rate.
"""

FAST_TRACK_THRESHOLD = 1
"""Journeys needing this many turns or fewer resolve in the same turn.

Trade journeys never fast-track since they wait for a response.
"""

VISIBILITY_RANGE = 2
"""Radius revealed around a garrison established by a move or an outpost."""

SCOUT_RANGE = 1
"""Radius revealed by a scouting party on arrival."""

# =============================================================================
# COMBAT
# =============================================================================

WEAPON_STRENGTH_FACTOR = 0.5
"""Strength contributed by each weapon, in troop equivalents.

Weapons are not 1:1 with troops. 20 troops with 10 weapons have strength 25;
15 troops with 5 weapons have strength 17.5, a 1.43:1 ratio.
"""

COMBAT_VARIANCE = 0.05
"""Half-width of the two random strength multipliers (0.95 to 1.05)."""

CASUALTY_BASE_INTENSITY = 0.35
"""Casualty fraction baseline for a lopsided fight."""

CASUALTY_PARITY_INTENSITY = 0.25
"""Extra casualty fraction added as the fight approaches parity.

Intensity = 0.35 + 0.25 * near_parity, so 35% to 60%.
"""

WINNER_MARGIN_FACTOR = 0.6
"""Loser casualties grow by this much per unit of winning margin (capped at 1)."""

WINNER_RELIEF_FACTOR = 0.5
"""Winner casualties shrink by this much per unit of margin (margin capped at 0.7)."""

TERRAIN_MITIGATION_CAP = 0.2
"""Maximum casualty reduction a defender gets from terrain."""

OUTPOST_LETHALITY = 1.15
"""Casualty multiplier for BOTH sides when fighting over an outpost.

Fortified positions mean desperate close-quarter fighting, so they make
battles bloodier instead of protecting the defender.
"""

HOME_BASE_LETHALITY = 1.25
"""Casualty multiplier for BOTH sides when fighting over a home base.

Even more lethal than an outpost.
"""

WEAPON_LOSS_RATIO = 0.5
"""Weapons lost per troop lost, capped by the weapons actually carried."""

CHIEF_CAPTURE_CHANCE = 0.25
"""Chance each chief on the losing side is taken prisoner."""

CHIEF_INJURY_CHANCE = 0.5
"""Chance an uncaptured chief on the losing side is injured."""

CHIEF_INJURY_TURNS = (2, 4)
"""Inclusive range of turns an injured chief is out of action."""

TERRAIN_DEFENSE_BONUS = {
    "Plains": 0.0,
    "Desert": 0.0,
    "Wasteland": 0.0,
    "Water": 0.0,
    "Radiation": 0.05,
    "Crater": 0.1,
    "Swamp": 0.1,
    "Forest": 0.15,
    "Ruins": 0.2,
    "Mountains": 0.25,
}
"""Defender strength bonus by terrain, also used for casualty mitigation."""

# =============================================================================
# ECONOMY
# =============================================================================

INITIAL_FOOD = 100
INITIAL_SCRAP = 20
INITIAL_MORALE = 50
INITIAL_TROOPS = 20
INITIAL_WEAPONS = 10
"""Starting resources and home garrison for a new tribe."""

MAX_MORALE = 100
"""Morale is always kept within [0, MAX_MORALE]."""

RATION_MULTIPLIERS = {"Hard": 0.5, "Normal": 1.0, "Generous": 1.5}
"""Food consumed per troop each turn by ration level."""

RATION_MORALE_CHANGE = 2
"""Morale lost on Hard rations, gained on Generous rations when fed."""

STARVATION_MORALE_CAP = 20
"""Maximum morale lost to starvation in one turn (deficit / 2, capped)."""

RECRUIT_FOOD_RATE = 0.3
"""Recruits gained per food offered, before the charisma bonus."""

RECRUIT_CHARISMA_BONUS = 0.05
"""Recruit bonus per point of tribe charisma."""

REST_MORALE_RANGE = (15, 25)
"""Base morale restored by resting, scaled by leadership."""

REST_LEADERSHIP_BONUS = 0.01
"""Rest bonus per point of tribe leadership."""

WEAPON_BUILD_RATE = 0.4
"""Weapons produced per scrap, before intelligence and tech bonuses."""

WEAPON_BUILD_INTELLIGENCE_BONUS = 0.02
"""Weapon production bonus per point of tribe intelligence."""

OUTPOST_SCRAP_COST = 25
"""Scrap charged when builders arrive and found an outpost."""

MINE_SCRAP_YIELD = 10
FACTORY_SCRAP_YIELD = 25
"""Scrap generated each turn by a garrisoned Mine or Factory."""

SCAVENGE_FOOD_RATE = 1.5
SCAVENGE_SCRAP_RATE = 1.0
SCAVENGE_WEAPONS_RATE = 0.2
"""Base yield per scavenger (weapons yield is also scaled by a random roll)."""

RADIATION_ATTRITION = 0.1
BANDIT_CAMP_ATTRITION = 0.25
"""Fraction of scavengers lost (rounded up) to hazards."""

RARITY_YIELD_MULTIPLIERS = {
    "Common": 1.0,
    "Uncommon": 1.15,
    "Rare": 1.3,
    "Very Rare": 1.5,
}
"""Scavenge yield multiplier by POI rarity."""

VAULT_SCRAP_RANGE = (100, 200)
VAULT_WEAPONS_RANGE = (20, 40)
VAULT_TECH_CHANCE = 0.25
"""Vault loot and chance to recover a random tier-1 technology."""

ASSET_DIMINISHING_STEP = 0.05
ASSET_DIMINISHING_FLOOR = 0.3
"""Each owned asset beyond the first weakens all asset effects by 5% (floor 30%)."""

# =============================================================================
# SABOTAGE
# =============================================================================

SABOTAGE_BASE_SUCCESS = 0.60
SABOTAGE_PER_TROOP = 0.05
SABOTAGE_TROOP_CAP = 0.30
SABOTAGE_PER_CHIEF = 0.15
SABOTAGE_PER_HEX = 0.05
SABOTAGE_DISTANCE_CAP = 0.40
SABOTAGE_SUCCESS_RANGE = (0.10, 0.95)
"""Success chance: base + troops + chiefs + tech bonuses - distance - resistance.

Clamped to SABOTAGE_SUCCESS_RANGE.
"""

SABOTAGE_DETECTION_ON_SUCCESS = 0.20
SABOTAGE_DETECTION_ON_FAILURE = 0.70
"""Chance the target learns who was behind the operation."""

OUTPOST_DISABLE_TURNS = 2
"""Turns a sabotaged outpost loses its fortification."""

POISON_TROOP_FRACTION = 0.30
POISON_EFFECTIVENESS_PENALTY = 0.40
POISON_TURNS = 3
"""Poisoned garrisons: 30% of troops affected, -40% strength for 3 turns."""

STEAL_RESOURCE_FRACTION = 0.25
DESTROY_RESOURCE_FRACTION = 0.30
"""Share of the target's stock stolen or destroyed."""

STEAL_RESEARCH_RANGE = (0.20, 0.50)
DESTROY_RESEARCH_RANGE = (0.30, 0.70)
"""Share of a research project's progress stolen or destroyed."""

# =============================================================================
# DIPLOMACY
# =============================================================================

PROPOSAL_EXPIRY_TURNS = 3
"""Turns a diplomatic proposal or prisoner exchange remains open."""

MESSAGE_EXPIRY_TURNS = 5
"""Turns a plain diplomatic message remains in the inbox."""

TRUCE_DURATION = 5
"""Turns after a peace treaty during which war cannot be declared."""

TRADE_RESPONSE_WINDOW = 3
"""Turns after arrival that a trade caravan waits for an answer."""

DEFAULT_AGREEMENT_DURATION = 5
"""Duration of a trade agreement when the proposal does not specify one."""

# =============================================================================
# SCORING
# =============================================================================

SCORE_WEIGHTS = {
    "troops": 1.0,
    "weapons": 0.5,
    "garrisons": 10.0,
    "techs": 15.0,
    "chiefs": 20.0,
}
"""Weights for the per-turn history score."""
