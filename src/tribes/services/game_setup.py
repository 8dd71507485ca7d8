"""Building fresh games.

Real maps come from an external generator; `build_map` only lays out a
small hex disk so a game can be started from the command line or in tests.
"""

from __future__ import annotations

import logging
import random

from tribes.models.hexmap import POI, HexData, POIRarity, POIType, TerrainType
from tribes.models.state import (
    AIType,
    Chief,
    GameState,
    Garrison,
    GlobalResources,
    Tribe,
    TribeStats,
)
from tribes.parameters import INITIAL_TROOPS, INITIAL_WEAPONS, VISIBILITY_RANGE
from tribes.spatial import format_hex_coords, get_hexes_in_range, parse_hex_coords

logger = logging.getLogger(__name__)

_LAND = [
    TerrainType.PLAINS,
    TerrainType.PLAINS,
    TerrainType.DESERT,
    TerrainType.FOREST,
    TerrainType.MOUNTAINS,
    TerrainType.RUINS,
    TerrainType.WASTELAND,
    TerrainType.SWAMP,
]

_POIS = [
    POIType.SCRAPYARD,
    POIType.FOOD_SOURCE,
    POIType.WEAPONS_CACHE,
    POIType.MINE,
    POIType.FACTORY,
    POIType.BATTLEFIELD,
    POIType.VAULT,
    POIType.BANDIT_CAMP,
]


def build_map(radius: int, rng: random.Random, poi_chance: float = 0.1) -> list[HexData]:
    """Lay out a hex disk of the given radius around 050.050."""
    hexes = []
    for key in sorted(get_hexes_in_range((0, 0), radius)):
        q, r = parse_hex_coords(key)
        poi = None
        if rng.random() < poi_chance:
            poi = POI(
                id=f"poi-{key}",
                type=rng.choice(_POIS),
                difficulty=rng.randint(1, 10),
                rarity=rng.choice(list(POIRarity)),
            )
        hexes.append(HexData(q=q, r=r, terrain=rng.choice(_LAND), poi=poi))
    return hexes


def starting_locations(radius: int, count: int) -> list[str]:
    """Evenly spaced spawn hexes on a ring two thirds of the way out."""
    ring = max(1, (radius * 2) // 3)
    corners = [(ring, 0), (0, ring), (-ring, ring), (-ring, 0), (0, -ring), (ring, -ring)]
    return [format_hex_coords(q, r) for q, r in corners[:count]]


def new_game(
    tribe_names: list[str],
    radius: int = 6,
    seed: int = 0,
    ai_types: dict[str, AIType] | None = None,
) -> GameState:
    """Create a game with one tribe per name.

    Args:
        tribe_names: Display names; tribe ids are derived from position
        radius: Map radius in hexes
        seed: Base seed for the map and every later turn
        ai_types: Optional AI archetype per tribe name; others are players

    Raises:
        ValueError: If there are more tribes than spawn points
    """
    if len(tribe_names) > 6:
        raise ValueError(f"At most 6 tribes fit on the map, got {len(tribe_names)}")
    rng = random.Random(seed)
    ai_types = ai_types or {}
    state = GameState(map_data=build_map(radius, rng), rng_seed=seed)
    spawns = starting_locations(radius, len(tribe_names))

    for index, (name, home) in enumerate(zip(tribe_names, spawns), start=1):
        hex_data = state.get_hex(home)
        hex_data.terrain = TerrainType.PLAINS
        hex_data.poi = None
        ai_type = ai_types.get(name)
        tribe = Tribe(
            id=f"tribe-{index}",
            player_id=f"player-{index}",
            player_name=name,
            tribe_name=name,
            is_ai=ai_type is not None,
            ai_type=ai_type,
            stats=TribeStats(),
            global_resources=GlobalResources(),
            location=home,
            garrisons={
                home: Garrison(
                    troops=INITIAL_TROOPS,
                    weapons=INITIAL_WEAPONS,
                    chiefs=[Chief(name=f"{name} Chief")],
                )
            },
        )
        tribe.reveal(get_hexes_in_range(home, VISIBILITY_RANGE))
        state.tribes.append(tribe)
    logger.info(f"Created game with {len(state.tribes)} tribes on a radius-{radius} map (seed {seed})")
    return state
