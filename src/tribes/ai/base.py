"""Base strategy interface for AI-controlled tribes.

AI tribes are ordinary tribes whose orders are produced by a strategy
instead of a player. Strategies only read the state; their actions go
through the same executors as everyone else's.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from tribes.models.actions import GameAction
from tribes.models.hexmap import TerrainType
from tribes.models.state import AIType, DiplomaticStatus, GameState, Garrison, Tribe
from tribes.spatial import get_hexes_in_range, hex_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnemySighting:
    """A hostile garrison within reach.

    Attributes:
        tribe: The other tribe
        location: Its garrison hex
        distance: Hexes from our closest garrison
    """

    tribe: Tribe
    location: str
    distance: int


class TribeStrategy(ABC):
    """Abstract base class for AI strategies.

    Subclasses implement `propose_actions`; the helpers here answer the
    questions most strategies ask about the map.
    """

    ai_type: AIType

    def __init__(self, name: str | None = None):
        self.name = name or self.ai_type.value

    @abstractmethod
    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        """Choose this turn's orders.

        Args:
            tribe: The AI tribe
            state: Current game state (read only)
            rng: Seeded generator for any random choice

        Returns:
            Actions to submit, possibly empty
        """
        pass

    # ===== Helpers =====

    @staticmethod
    def main_garrison(tribe: Tribe) -> tuple[str, Garrison] | None:
        """Garrison with the most troops; ties go to the lowest key."""
        if not tribe.garrisons:
            return None
        key = min(tribe.garrisons, key=lambda k: (-tribe.garrisons[k].troops, k))
        return key, tribe.garrisons[key]

    @staticmethod
    def first_garrison(tribe: Tribe, min_troops: int = 0) -> tuple[str, Garrison] | None:
        for key in sorted(tribe.garrisons):
            if tribe.garrisons[key].troops >= min_troops:
                return key, tribe.garrisons[key]
        return None

    @staticmethod
    def passable(state: GameState, key: str) -> bool:
        hex_data = state.get_hex(key)
        return hex_data is not None and hex_data.terrain != TerrainType.WATER

    @staticmethod
    def find_enemies(tribe: Tribe, state: GameState, reach: int) -> list[EnemySighting]:
        """Garrisons of non-allied tribes within reach, nearest first."""
        sightings = []
        for other in state.tribes:
            if other.id == tribe.id or tribe.relation_to(other.id) == DiplomaticStatus.ALLIANCE:
                continue
            for location, garrison in other.garrisons.items():
                if garrison.troops <= 0:
                    continue
                distance = min((hex_distance(mine, location) for mine in tribe.garrisons), default=None)
                if distance is not None and distance <= reach:
                    sightings.append(EnemySighting(tribe=other, location=location, distance=distance))
        return sorted(sightings, key=lambda s: (s.distance, s.location))

    def unexplored_near(self, tribe: Tribe, state: GameState, center: str, radius: int) -> list[str]:
        known = set(tribe.explored_hexes)
        return sorted(k for k in get_hexes_in_range(center, radius) if k not in known and self.passable(state, k))


def get_strategy(ai_type: AIType | str) -> TribeStrategy:
    """Create the strategy for an AI type.

    Raises:
        ValueError: If the AI type is unknown
    """
    from tribes.ai.archetypes import STRATEGIES

    try:
        key = AIType(ai_type)
    except ValueError:
        raise ValueError(f"Unknown AI type: {ai_type}. Available: {[t.value for t in AIType]}")
    return STRATEGIES[key]()


def prepare_ai_actions(state: GameState, rng: random.Random) -> dict[str, list[GameAction]]:
    """Orders for every AI tribe that has not submitted this turn.

    Returns:
        Actions per tribe id, ready to pass to resolve_turn
    """
    orders: dict[str, list[GameAction]] = {}
    for tribe in state.tribes:
        if not tribe.is_ai or tribe.turn_submitted:
            continue
        strategy = get_strategy(tribe.ai_type or AIType.WANDERER)
        orders[tribe.id] = strategy.propose_actions(tribe, state, rng)
        logger.debug(f"AI {tribe.id} ({strategy.name}) proposes {len(orders[tribe.id])} actions")
    return orders
