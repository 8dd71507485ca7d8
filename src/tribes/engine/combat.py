"""Combat resolution for the Tribes turn engine.

A battle is decided by effective strength: troops plus a fractional
contribution per weapon, scaled by attack/defense bonuses. Two independent
multipliers in [0.95, 1.05], one per side, are the ONLY randomness; given
those, winner and casualties are a pure function of troop counts, weapon
counts, terrain and fortification flags.

Casualty model:
    near_parity = max(0, 1 - |1 - ratio|)         1 at parity, 0 when lopsided
    intensity   = 0.35 + 0.25 * near_parity        35% to 60%
    loser_frac  = intensity * (1 + min(1, margin) * 0.6)
    winner_frac = intensity * 0.5 * (1 - min(0.7, margin) * 0.5)

The defender's fraction is reduced by terrain (at most 20%). Fortifications
multiply BOTH sides' fractions upward: fighting over an outpost or a home
base is bloodier, not safer. Losses are floored, at least 1 per side, and
never exceed the troops present. Weapon losses are half the troop losses,
capped by the weapons carried.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Literal, Protocol

from tribes.parameters import (
    CASUALTY_BASE_INTENSITY,
    CASUALTY_PARITY_INTENSITY,
    COMBAT_VARIANCE,
    HOME_BASE_LETHALITY,
    OUTPOST_LETHALITY,
    TERRAIN_MITIGATION_CAP,
    WEAPON_LOSS_RATIO,
    WEAPON_STRENGTH_FACTOR,
    WINNER_MARGIN_FACTOR,
    WINNER_RELIEF_FACTOR,
)


class ForceLike(Protocol):
    troops: int
    weapons: int


@dataclass(frozen=True)
class CombatContext:
    """Battlefield conditions.

    Attributes:
        terrain_defense_bonus: Defender bonus from terrain (0.0 on plains)
        is_outpost: Defender holds an active outpost fortification
        is_home_base: Defender is fighting at its home base
        attack_bonus: Attacker's tech/asset combat bonus
        defense_bonus: Defender's tech/asset combat bonus (excluding terrain)
        defender_weakened_troops: Troop-equivalents lost to poisoned supplies
    """

    terrain_defense_bonus: float = 0.0
    is_outpost: bool = False
    is_home_base: bool = False
    attack_bonus: float = 0.0
    defense_bonus: float = 0.0
    defender_weakened_troops: float = 0.0


@dataclass(frozen=True)
class CombatOutcome:
    """Result of a battle.

    Attributes:
        winner: "attacker" or "defender"
        attacker_losses: Troops lost by the attacker
        defender_losses: Troops lost by the defender
        attacker_weapon_losses: Weapons lost by the attacker
        defender_weapon_losses: Weapons lost by the defender
        attacker_strength: Attacker effective strength before variance
        defender_strength: Defender effective strength before variance
        ratio: Attacker/defender strength after variance
    """

    winner: Literal["attacker", "defender"]
    attacker_losses: int
    defender_losses: int
    attacker_weapon_losses: int
    defender_weapon_losses: int
    attacker_strength: float
    defender_strength: float
    ratio: float

    @property
    def attacker_won(self) -> bool:
        return self.winner == "attacker"


def effective_strength(troops: float, weapons: int, bonus: float = 0.0) -> float:
    """Combat strength of a force.

    Examples:
        >>> effective_strength(20, 10)
        25.0
        >>> effective_strength(15, 5)
        17.5
    """
    return max(0.0, troops + weapons * WEAPON_STRENGTH_FACTOR) * (1.0 + bonus)


def fortification_lethality(context: CombatContext) -> float:
    """Casualty multiplier applied to both sides by fortifications."""
    if context.is_home_base:
        return HOME_BASE_LETHALITY
    if context.is_outpost:
        return OUTPOST_LETHALITY
    return 1.0


def casualty_fractions(
    ratio: float,
    attacker_won: bool,
    context: CombatContext,
) -> tuple[float, float]:
    """Fraction of troops each side loses.

    Args:
        ratio: Attacker/defender strength (> 1 favors attacker)
        attacker_won: Whether the attacker won
        context: Terrain and fortification conditions

    Returns:
        Tuple of (attacker_fraction, defender_fraction)
    """
    near_parity = max(0.0, 1.0 - abs(1.0 - ratio))
    intensity = CASUALTY_BASE_INTENSITY + CASUALTY_PARITY_INTENSITY * near_parity
    terrain_mitigation = 1.0 - min(TERRAIN_MITIGATION_CAP, max(0.0, context.terrain_defense_bonus))
    lethality = fortification_lethality(context)

    if attacker_won:
        margin = max(0.0, ratio - 1.0)
        defender_frac = intensity * (1.0 + min(1.0, margin) * WINNER_MARGIN_FACTOR)
        attacker_frac = intensity * 0.5 * (1.0 - min(0.7, margin) * WINNER_RELIEF_FACTOR)
    else:
        margin = max(0.0, (1.0 / ratio if ratio > 0 else math.inf) - 1.0)
        attacker_frac = intensity * (1.0 + min(1.0, margin) * WINNER_MARGIN_FACTOR)
        defender_frac = intensity * 0.5 * (1.0 - min(0.7, margin) * WINNER_RELIEF_FACTOR)

    return attacker_frac * lethality, defender_frac * terrain_mitigation * lethality


def _troop_losses(troops: int, fraction: float) -> int:
    if troops <= 0:
        return 0
    return max(1, min(troops, math.floor(troops * fraction)))


def _weapon_losses(weapons: int, troop_losses: int) -> int:
    return min(weapons, math.floor(troop_losses * WEAPON_LOSS_RATIO))


def resolve_combat(
    attacker: ForceLike,
    defender: ForceLike,
    context: CombatContext,
    rng: random.Random,
) -> CombatOutcome:
    """Decide a battle and its casualties.

    Args:
        attacker: Attacking force (troops, weapons)
        defender: Defending garrison (troops, weapons)
        context: Terrain, fortification and bonus conditions
        rng: Seeded generator; exactly two draws are made per contested battle

    Returns:
        CombatOutcome with winner and losses

    Examples:
        A side with no troops loses without casualties being rolled:

        >>> from types import SimpleNamespace as F
        >>> resolve_combat(F(troops=5, weapons=0), F(troops=0, weapons=3),
        ...                CombatContext(), random.Random(1)).winner
        'attacker'
    """
    attacker_strength = effective_strength(attacker.troops, attacker.weapons, context.attack_bonus)
    defender_strength = effective_strength(
        defender.troops - context.defender_weakened_troops,
        defender.weapons,
        context.terrain_defense_bonus + context.defense_bonus,
    )

    if attacker.troops <= 0 or defender.troops <= 0:
        attacker_won = defender.troops <= 0 and attacker.troops > 0
        return CombatOutcome(
            winner="attacker" if attacker_won else "defender",
            attacker_losses=0,
            defender_losses=0,
            attacker_weapon_losses=0,
            defender_weapon_losses=0,
            attacker_strength=attacker_strength,
            defender_strength=defender_strength,
            ratio=math.inf if attacker_won else 0.0,
        )

    attacker_roll = rng.uniform(1.0 - COMBAT_VARIANCE, 1.0 + COMBAT_VARIANCE)
    defender_roll = rng.uniform(1.0 - COMBAT_VARIANCE, 1.0 + COMBAT_VARIANCE)
    attacker_perturbed = attacker_strength * attacker_roll
    defender_perturbed = max(defender_strength * defender_roll, 1e-9)

    # Exact ties go to the defender
    attacker_won = attacker_perturbed > defender_perturbed
    ratio = attacker_perturbed / defender_perturbed

    attacker_frac, defender_frac = casualty_fractions(ratio, attacker_won, context)
    attacker_losses = _troop_losses(attacker.troops, attacker_frac)
    defender_losses = _troop_losses(defender.troops, defender_frac)

    return CombatOutcome(
        winner="attacker" if attacker_won else "defender",
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
        attacker_weapon_losses=_weapon_losses(attacker.weapons, attacker_losses),
        defender_weapon_losses=_weapon_losses(defender.weapons, defender_losses),
        attacker_strength=attacker_strength,
        defender_strength=defender_strength,
        ratio=ratio,
    )
